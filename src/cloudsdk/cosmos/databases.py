from __future__ import annotations

from typing import TYPE_CHECKING

from cloudsdk.core.http import Json
from cloudsdk.core.pagination import FeedIterator
from cloudsdk.cosmos.models import DatabaseDefinition, Query, ResourceResponse, validate_resource
from cloudsdk.cosmos.users import User, Users

if TYPE_CHECKING:
    from cloudsdk.cosmos.client import CosmosClient


class Databases:
    """Create, query and read all databases of an account."""

    def __init__(self, client: CosmosClient) -> None:
        self.client = client

    def query(
        self,
        query: Query | None,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[DatabaseDefinition]:
        fetch = self.client.query_feed(
            "dbs",
            resource_type="dbs",
            resource_link="",
            result_key="Databases",
            parse=DatabaseDefinition.from_json,
            query=query,
            max_item_count=max_item_count,
        )
        return FeedIterator(fetch, continuation=continuation)

    def read_all(
        self,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[DatabaseDefinition]:
        return self.query(None, max_item_count=max_item_count, continuation=continuation)

    async def create(self, body: Json) -> ResourceResponse[DatabaseDefinition]:
        validate_resource(body)
        data, headers = await self.client.resource_request(
            "POST", "dbs", resource_type="dbs", resource_link="", body=body
        )
        return ResourceResponse(body=DatabaseDefinition.from_json(data), headers=headers)

    def get(self, database_id: str) -> "Database":
        """Reference a database by id. No request is made."""
        return Database(self.client, database_id)


class Database:
    def __init__(self, client: CosmosClient, database_id: str) -> None:
        self.client = client
        self.id = database_id

    @property
    def link(self) -> str:
        return f"dbs/{self.id}"

    @property
    def users(self) -> Users:
        return Users(self)

    def user(self, user_id: str) -> User:
        return User(self, user_id)

    async def read(self) -> ResourceResponse[DatabaseDefinition]:
        data, headers = await self.client.resource_request(
            "GET", self.link, resource_type="dbs", resource_link=self.link
        )
        return ResourceResponse(body=DatabaseDefinition.from_json(data), headers=headers)

    async def delete(self) -> ResourceResponse[None]:
        _, headers = await self.client.resource_request(
            "DELETE", self.link, resource_type="dbs", resource_link=self.link
        )
        return ResourceResponse(body=None, headers=headers)
