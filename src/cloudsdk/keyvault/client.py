from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from cloudsdk.config import Settings, env_defaults
from cloudsdk.core.http import Json, ServiceClient, decode_json
from cloudsdk.core.pagination import FeedIterator, FeedPage, FetchExecutor
from cloudsdk.keyvault.models import DeletedSecret, KeyVaultSecret, SecretProperties


log = logging.getLogger(__name__)

T = TypeVar("T")

API_VERSION = "7.0"


@dataclass
class SecretClient(ServiceClient):
    access_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecretClient":
        defaults = env_defaults(settings.cloud_env)
        vault_url = settings.keyvault_url or defaults.keyvault_url
        if not vault_url:
            raise RuntimeError("No KEYVAULT_URL configured for this environment")
        return cls(
            base_url=vault_url.rstrip("/"),
            timeout_seconds=settings.http_timeout_seconds,
            access_token=settings.keyvault_access_token,
        )

    def _auth_headers(self, *, method: str, url: str, **context: Any) -> dict[str, str]:
        if not self.access_token:
            raise RuntimeError("Vault endpoint called but no KEYVAULT_ACCESS_TOKEN configured")
        return {"Authorization": f"Bearer {self.access_token}"}

    def _list_feed(
        self,
        path: str,
        *,
        parse: Callable[[Json], T],
        max_page_size: int | None,
    ) -> FetchExecutor[T]:
        async def fetch(continuation: str | None) -> FeedPage[T]:
            # nextLink is an absolute URL that already carries every query parameter.
            if continuation:
                resp = await self.send("GET", continuation)
            else:
                params: dict[str, Any] = {"api-version": API_VERSION}
                if max_page_size is not None:
                    params["maxresults"] = max_page_size
                resp = await self.send("GET", path, params=params)

            data = decode_json(resp)
            items = [parse(raw) for raw in data.get("value") or []]
            log.debug("GET %s returned %d items", path, len(items))
            return FeedPage(
                items=items,
                headers=dict(resp.headers),
                continuation=data.get("nextLink") or None,
            )

        return fetch

    # -------- Paged listings --------

    def list_properties_of_secrets(
        self,
        *,
        max_page_size: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[SecretProperties]:
        """List the latest version of every secret. Values are not included."""
        fetch = self._list_feed("/secrets", parse=SecretProperties.from_json, max_page_size=max_page_size)
        return FeedIterator(fetch, continuation=continuation)

    def list_properties_of_secret_versions(
        self,
        name: str,
        *,
        max_page_size: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[SecretProperties]:
        fetch = self._list_feed(
            f"/secrets/{name}/versions", parse=SecretProperties.from_json, max_page_size=max_page_size
        )
        return FeedIterator(fetch, continuation=continuation)

    def list_deleted_secrets(
        self,
        *,
        max_page_size: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[DeletedSecret]:
        fetch = self._list_feed("/deletedsecrets", parse=DeletedSecret.from_json, max_page_size=max_page_size)
        return FeedIterator(fetch, continuation=continuation)

    # -------- Single secrets --------

    async def get_secret(self, name: str, version: str | None = None) -> KeyVaultSecret:
        path = f"/secrets/{name}/{version}" if version else f"/secrets/{name}"
        data = await self.request("GET", path, params={"api-version": API_VERSION})
        return KeyVaultSecret.from_json(data)

    async def set_secret(
        self,
        name: str,
        value: str,
        *,
        content_type: str | None = None,
        enabled: bool | None = None,
        tags: dict[str, str] | None = None,
    ) -> KeyVaultSecret:
        body: Json = {"value": value}
        if content_type is not None:
            body["contentType"] = content_type
        if enabled is not None:
            body["attributes"] = {"enabled": enabled}
        if tags:
            body["tags"] = tags
        data = await self.request("PUT", f"/secrets/{name}", params={"api-version": API_VERSION}, json=body)
        return KeyVaultSecret.from_json(data)

    async def delete_secret(self, name: str) -> DeletedSecret:
        data = await self.request("DELETE", f"/secrets/{name}", params={"api-version": API_VERSION})
        return DeletedSecret.from_json(data)

    async def get_deleted_secret(self, name: str) -> DeletedSecret:
        data = await self.request("GET", f"/deletedsecrets/{name}", params={"api-version": API_VERSION})
        return DeletedSecret.from_json(data)

    async def purge_deleted_secret(self, name: str) -> None:
        await self.send("DELETE", f"/deletedsecrets/{name}", params={"api-version": API_VERSION})
