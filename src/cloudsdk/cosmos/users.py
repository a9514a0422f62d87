from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cloudsdk.core.http import Json
from cloudsdk.core.pagination import FeedIterator
from cloudsdk.cosmos.models import Query, ResourceResponse, UserDefinition, validate_resource

if TYPE_CHECKING:
    from cloudsdk.cosmos.databases import Database


@dataclass(frozen=True)
class UserResponse:
    body: UserDefinition
    user: "User"
    headers: dict[str, str] = field(default_factory=dict)


class Users:
    """Create, upsert, query and read all users of a database.

    Use `User` to read or delete a specific user by id.
    """

    def __init__(self, database: Database) -> None:
        self.database = database
        self.client = database.client

    @property
    def path(self) -> str:
        return f"{self.database.link}/users"

    def query(
        self,
        query: Query | None,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[UserDefinition]:
        fetch = self.client.query_feed(
            self.path,
            resource_type="users",
            resource_link=self.database.link,
            result_key="Users",
            parse=UserDefinition.from_json,
            query=query,
            max_item_count=max_item_count,
        )
        return FeedIterator(fetch, continuation=continuation)

    def read_all(
        self,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
    ) -> FeedIterator[UserDefinition]:
        """Read all users.

        Example:
            users = await database.users.read_all().to_list()
        """
        return self.query(None, max_item_count=max_item_count, continuation=continuation)

    async def create(self, body: Json) -> UserResponse:
        return await self._write(body, upsert=False)

    async def upsert(self, body: Json) -> UserResponse:
        return await self._write(body, upsert=True)

    async def _write(self, body: Json, *, upsert: bool) -> UserResponse:
        validate_resource(body)
        headers = {"x-ms-documentdb-is-upsert": "True"} if upsert else None
        data, resp_headers = await self.client.resource_request(
            "POST",
            self.path,
            resource_type="users",
            resource_link=self.database.link,
            body=body,
            headers=headers,
        )
        definition = UserDefinition.from_json(data)
        return UserResponse(body=definition, user=User(self.database, definition.id), headers=resp_headers)


class User:
    def __init__(self, database: Database, user_id: str) -> None:
        self.database = database
        self.id = user_id

    @property
    def link(self) -> str:
        return f"{self.database.link}/users/{self.id}"

    async def read(self) -> ResourceResponse[UserDefinition]:
        data, headers = await self.database.client.resource_request(
            "GET", self.link, resource_type="users", resource_link=self.link
        )
        return ResourceResponse(body=UserDefinition.from_json(data), headers=headers)

    async def delete(self) -> ResourceResponse[None]:
        _, headers = await self.database.client.resource_request(
            "DELETE", self.link, resource_type="users", resource_link=self.link
        )
        return ResourceResponse(body=None, headers=headers)
