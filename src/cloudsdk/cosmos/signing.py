from __future__ import annotations

import base64
import datetime
from dataclasses import dataclass, field
from email.utils import format_datetime
from urllib.parse import quote

from cryptography.hazmat.primitives import hashes, hmac


def rfc1123_now() -> str:
    return format_datetime(datetime.datetime.now(datetime.timezone.utc), usegmt=True)


def master_key_authorization(
    master_key: bytes,
    *,
    verb: str,
    resource_type: str,
    resource_link: str,
    date: str,
) -> str:
    # The link is signed as-is (case preserved); verb, type and date are lower-cased.
    message = f"{verb.lower()}\n{resource_type.lower()}\n{resource_link}\n{date.lower()}\n\n".encode("utf-8")

    h = hmac.HMAC(master_key, hashes.SHA256())
    h.update(message)
    signature = base64.b64encode(h.finalize()).decode("utf-8")
    return quote(f"type=master&ver=1.0&sig={signature}", safe="")


@dataclass(frozen=True)
class MasterKeyAuth:
    key: bytes = field(repr=False)

    @classmethod
    def from_base64(cls, encoded: str) -> "MasterKeyAuth":
        return cls(key=base64.b64decode(encoded))
