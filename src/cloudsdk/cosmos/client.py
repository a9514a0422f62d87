from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from cloudsdk.config import Settings, env_defaults
from cloudsdk.core.http import Json, Method, ServiceClient, decode_json
from cloudsdk.core.pagination import FeedPage, FetchExecutor
from cloudsdk.cosmos.databases import Databases
from cloudsdk.cosmos.models import Query
from cloudsdk.cosmos.signing import MasterKeyAuth, master_key_authorization, rfc1123_now


log = logging.getLogger(__name__)

T = TypeVar("T")

API_VERSION = "2018-12-31"
CONTINUATION_HEADER = "x-ms-continuation"
MAX_ITEM_COUNT_HEADER = "x-ms-max-item-count"


def _query_body(query: Query) -> Json:
    if isinstance(query, str):
        return {"query": query, "parameters": []}
    return query.to_json()


@dataclass
class CosmosClient(ServiceClient):
    auth: MasterKeyAuth | None = field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CosmosClient":
        defaults = env_defaults(settings.cloud_env)
        base_url = settings.cosmos_endpoint or defaults.cosmos_endpoint
        if not base_url:
            raise RuntimeError("No COSMOS_ENDPOINT configured for this environment")

        auth: MasterKeyAuth | None = None
        if settings.cosmos_master_key:
            auth = MasterKeyAuth.from_base64(settings.cosmos_master_key)

        return cls(
            base_url=base_url.rstrip("/"),
            timeout_seconds=settings.http_timeout_seconds,
            auth=auth,
        )

    @property
    def databases(self) -> Databases:
        return Databases(self)

    def _auth_headers(
        self,
        *,
        method: str,
        url: str,
        resource_type: str = "",
        resource_link: str = "",
        **context: Any,
    ) -> dict[str, str]:
        if self.auth is None:
            raise RuntimeError("Cosmos endpoint called but no COSMOS_MASTER_KEY configured")
        date = rfc1123_now()
        token = master_key_authorization(
            self.auth.key,
            verb=method,
            resource_type=resource_type,
            resource_link=resource_link,
            date=date,
        )
        return {
            "authorization": token,
            "x-ms-date": date,
            "x-ms-version": API_VERSION,
        }

    async def resource_request(
        self,
        method: Method,
        path: str,
        *,
        resource_type: str,
        resource_link: str,
        body: Json | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[Json, dict[str, str]]:
        resp = await self.send(
            method,
            path,
            json=body,
            headers=headers,
            auth_context={"resource_type": resource_type, "resource_link": resource_link},
        )
        return decode_json(resp), dict(resp.headers)

    def query_feed(
        self,
        path: str,
        *,
        resource_type: str,
        resource_link: str,
        result_key: str,
        parse: Callable[[Json], T],
        query: Query | None = None,
        max_item_count: int | None = None,
    ) -> FetchExecutor[T]:
        """Build the page fetcher for one resource collection.

        Without a query the collection is read with GET; with one it is
        POSTed as `application/query+json`. The continuation token travels
        in the `x-ms-continuation` header both ways.
        """

        async def fetch(continuation: str | None) -> FeedPage[T]:
            headers: dict[str, str] = {}
            if continuation:
                headers[CONTINUATION_HEADER] = continuation
            if max_item_count is not None:
                headers[MAX_ITEM_COUNT_HEADER] = str(max_item_count)

            method: Method = "GET"
            body: Json | None = None
            if query is not None:
                method = "POST"
                body = _query_body(query)
                headers["x-ms-documentdb-isquery"] = "True"
                headers["Content-Type"] = "application/query+json"

            data, resp_headers = await self.resource_request(
                method,
                path,
                resource_type=resource_type,
                resource_link=resource_link,
                body=body,
                headers=headers,
            )
            items = [parse(raw) for raw in data.get(result_key) or []]
            log.debug("%s %s returned %d %s", method, path, len(items), resource_type)
            return FeedPage(
                items=items,
                headers=resp_headers,
                continuation=resp_headers.get(CONTINUATION_HEADER) or None,
            )

        return fetch
