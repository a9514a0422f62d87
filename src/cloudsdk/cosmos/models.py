from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from cloudsdk.core.http import Json
from cloudsdk.errors import ResourceValidationError


T = TypeVar("T")

_ILLEGAL_ID_CHARS = ("/", "\\", "?", "#")


@dataclass(frozen=True)
class SqlQuerySpec:
    """A SQL query with named parameters (`@name` in the query text)."""
    query: str
    parameters: list[dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> Json:
        return {"query": self.query, "parameters": list(self.parameters)}


Query = SqlQuerySpec | str


@dataclass(frozen=True)
class DatabaseDefinition:
    id: str
    rid: str | None = None
    etag: str | None = None
    ts: int | None = None

    @classmethod
    def from_json(cls, raw: Json) -> "DatabaseDefinition":
        return cls(id=raw["id"], rid=raw.get("_rid"), etag=raw.get("_etag"), ts=raw.get("_ts"))


@dataclass(frozen=True)
class UserDefinition:
    id: str
    rid: str | None = None
    etag: str | None = None
    ts: int | None = None
    permissions_link: str | None = None

    @classmethod
    def from_json(cls, raw: Json) -> "UserDefinition":
        return cls(
            id=raw["id"],
            rid=raw.get("_rid"),
            etag=raw.get("_etag"),
            ts=raw.get("_ts"),
            permissions_link=raw.get("_permissions"),
        )


@dataclass(frozen=True)
class ResourceResponse(Generic[T]):
    """A single-resource result plus the response headers it came with."""
    body: T
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def request_charge(self) -> float | None:
        raw = self.headers.get("x-ms-request-charge")
        return float(raw) if raw else None


def validate_resource(body: Json) -> None:
    """Reject bodies the service would refuse, before any request is sent."""
    if not isinstance(body, dict):
        raise ResourceValidationError(f"Resource body must be a JSON object, not {type(body).__name__}")
    resource_id = body.get("id")
    if resource_id is None:
        raise ResourceValidationError("Resource body must have an 'id'")
    if not isinstance(resource_id, str):
        raise ResourceValidationError("Resource id must be a string")
    if not resource_id:
        raise ResourceValidationError("Resource id must not be empty")
    if any(ch in resource_id for ch in _ILLEGAL_ID_CHARS):
        raise ResourceValidationError(f"Resource id contains an illegal character: {resource_id!r}")
    if resource_id.endswith(" "):
        raise ResourceValidationError("Resource id must not end with a space")
