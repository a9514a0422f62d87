from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from urllib.parse import urlparse

from cloudsdk.core.http import Json


def _from_unix(ts: int | None) -> datetime.datetime | None:
    if ts is None:
        return None
    return datetime.datetime.fromtimestamp(ts, tz=datetime.timezone.utc)


def parse_secret_id(secret_id: str) -> tuple[str, str | None]:
    """Split `https://<vault>/secrets|deletedsecrets/<name>[/<version>]` into (name, version)."""
    parts = [p for p in urlparse(secret_id).path.split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"Not a secret identifier: {secret_id}")
    version = parts[2] if len(parts) > 2 else None
    return parts[1], version


@dataclass(frozen=True)
class SecretProperties:
    id: str
    name: str
    version: str | None = None
    enabled: bool | None = None
    content_type: str | None = None
    created_on: datetime.datetime | None = None
    updated_on: datetime.datetime | None = None
    recovery_level: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: Json) -> "SecretProperties":
        name, version = parse_secret_id(raw["id"])
        attributes = raw.get("attributes") or {}
        return cls(
            id=raw["id"],
            name=name,
            version=version,
            enabled=attributes.get("enabled"),
            content_type=raw.get("contentType"),
            created_on=_from_unix(attributes.get("created")),
            updated_on=_from_unix(attributes.get("updated")),
            recovery_level=attributes.get("recoveryLevel"),
            tags=dict(raw.get("tags") or {}),
        )


@dataclass(frozen=True)
class KeyVaultSecret:
    properties: SecretProperties
    value: str | None

    @property
    def name(self) -> str:
        return self.properties.name

    @classmethod
    def from_json(cls, raw: Json) -> "KeyVaultSecret":
        return cls(properties=SecretProperties.from_json(raw), value=raw.get("value"))


@dataclass(frozen=True)
class DeletedSecret:
    """A soft-deleted secret. Deleted-secret listings carry no value."""
    properties: SecretProperties
    recovery_id: str | None = None
    deleted_date: datetime.datetime | None = None
    scheduled_purge_date: datetime.datetime | None = None
    value: str | None = None

    @property
    def name(self) -> str:
        return self.properties.name

    @classmethod
    def from_json(cls, raw: Json) -> "DeletedSecret":
        return cls(
            properties=SecretProperties.from_json(raw),
            recovery_id=raw.get("recoveryId"),
            deleted_date=_from_unix(raw.get("deletedDate")),
            scheduled_purge_date=_from_unix(raw.get("scheduledPurgeDate")),
            value=raw.get("value"),
        )
