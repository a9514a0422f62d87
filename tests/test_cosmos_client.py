from __future__ import annotations

import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import asyncio
import base64
import json
from typing import Any, Callable
from urllib.parse import unquote

import httpx
import pytest

from cloudsdk.config import Settings
from cloudsdk.core.pagination import FeedState
from cloudsdk.cosmos import CosmosClient, DatabaseDefinition, SqlQuerySpec, UserDefinition
from cloudsdk.cosmos.models import ResourceResponse, validate_resource
from cloudsdk.cosmos.signing import MasterKeyAuth, master_key_authorization
from cloudsdk.errors import ResourceValidationError


MASTER_KEY = base64.b64encode(b"not-a-real-key").decode("ascii")

USER_PAGES: dict[str | None, tuple[list[dict[str, Any]], str | None]] = {
    None: ([{"id": "alice", "_rid": "r1"}, {"id": "bob", "_rid": "r2"}], "c1"),
    "c1": ([{"id": "carol", "_rid": "r3"}], None),
}


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> CosmosClient:
    return CosmosClient(
        base_url="https://acct.documents.azure.com",
        auth=MasterKeyAuth.from_base64(MASTER_KEY),
        _client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def users_handler(seen: list[httpx.Request]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        items, next_token = USER_PAGES[request.headers.get("x-ms-continuation")]
        headers = {"x-ms-request-charge": "2.5"}
        if next_token:
            headers["x-ms-continuation"] = next_token
        return httpx.Response(200, json={"_rid": "db", "Users": items, "_count": len(items)}, headers=headers)

    return handler


def test_read_all_users_follows_continuation_header() -> None:
    seen: list[httpx.Request] = []
    client = make_client(users_handler(seen))
    users = client.databases.get("app").users

    result = asyncio.run(users.read_all(max_item_count=2).to_list())

    assert result == [
        UserDefinition(id="alice", rid="r1"),
        UserDefinition(id="bob", rid="r2"),
        UserDefinition(id="carol", rid="r3"),
    ]
    assert [r.method for r in seen] == ["GET", "GET"]
    assert all(r.url.path == "/dbs/app/users" for r in seen)
    assert "x-ms-continuation" not in seen[0].headers
    assert seen[1].headers["x-ms-continuation"] == "c1"
    assert all(r.headers["x-ms-max-item-count"] == "2" for r in seen)


def test_feed_pages_expose_headers_and_tokens() -> None:
    client = make_client(users_handler([]))
    feed = client.databases.get("app").users.read_all()

    async def run() -> None:
        first = await feed.fetch_next()
        assert first.continuation == "c1"
        assert first.headers["x-ms-request-charge"] == "2.5"
        second = await feed.fetch_next()
        assert second.continuation is None

    asyncio.run(run())
    assert feed.state is FeedState.EXHAUSTED


def test_query_posts_query_json() -> None:
    seen: list[httpx.Request] = []
    client = make_client(users_handler(seen))
    spec = SqlQuerySpec("SELECT * FROM root r WHERE r.id = @id", [{"name": "@id", "value": "alice"}])

    page = asyncio.run(client.databases.get("app").users.query(spec).fetch_next())

    assert [u.id for u in page.items] == ["alice", "bob"]
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["x-ms-documentdb-isquery"] == "True"
    assert request.headers["content-type"] == "application/query+json"
    assert json.loads(request.content) == spec.to_json()


def test_requests_are_signed() -> None:
    seen: list[httpx.Request] = []
    client = make_client(users_handler(seen))

    asyncio.run(client.databases.get("app").users.read_all().fetch_next())

    headers = seen[0].headers
    assert unquote(headers["authorization"]).startswith("type=master&ver=1.0&sig=")
    assert headers["x-ms-version"] == "2018-12-31"
    assert headers["x-ms-date"].endswith("GMT")


def test_missing_master_key_raises() -> None:
    client = CosmosClient(
        base_url="https://acct.documents.azure.com",
        _client=httpx.AsyncClient(transport=httpx.MockTransport(users_handler([]))),
    )
    with pytest.raises(RuntimeError):
        asyncio.run(client.databases.read_all().fetch_next())


def test_http_error_propagates_and_feed_can_retry() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(403, json={"code": "Forbidden", "message": "nope"})
        return httpx.Response(200, json={"Databases": [{"id": "db1"}]})

    client = make_client(handler)
    feed = client.databases.read_all()

    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        asyncio.run(feed.fetch_next())
    assert excinfo.value.response.status_code == 403
    assert "Forbidden" in str(excinfo.value)
    assert feed.state is FeedState.NOT_STARTED

    page = asyncio.run(feed.fetch_next())
    assert [d.id for d in page.items] == ["db1"]
    assert calls["n"] == 2


def test_create_user_returns_reference() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(201, json={**body, "_rid": "new", "_etag": "e1"})

    client = make_client(handler)
    users = client.databases.get("app").users

    created = asyncio.run(users.upsert({"id": "dave"}))

    assert created.body == UserDefinition(id="dave", rid="new", etag="e1")
    assert created.user.link == "dbs/app/users/dave"
    assert seen[0].headers["x-ms-documentdb-is-upsert"] == "True"


@pytest.mark.parametrize("body", [{}, {"id": 5}, {"id": "a/b"}, {"id": "trailing "}])
def test_invalid_bodies_are_rejected_before_sending(body: dict[str, Any]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = make_client(handler)
    with pytest.raises(ResourceValidationError):
        asyncio.run(client.databases.get("app").users.create(body))


def test_from_settings_uses_emulator_default() -> None:
    settings = Settings(CLOUD_ENV="emulator", COSMOS_ENDPOINT=None, COSMOS_MASTER_KEY=MASTER_KEY)
    client = CosmosClient.from_settings(settings)
    assert client.base_url == "https://localhost:8081"
    assert client.auth is not None and client.auth.key == b"not-a-real-key"


def test_from_settings_public_requires_endpoint() -> None:
    with pytest.raises(RuntimeError):
        CosmosClient.from_settings(Settings(CLOUD_ENV="public", COSMOS_ENDPOINT=None))


# =============================================================================
# SINGLE-RESOURCE OPERATIONS
# =============================================================================

def assert_signed_for(request: httpx.Request, *, resource_type: str, resource_link: str) -> None:
    expected = master_key_authorization(
        base64.b64decode(MASTER_KEY),
        verb=request.method,
        resource_type=resource_type,
        resource_link=resource_link,
        date=request.headers["x-ms-date"],
    )
    assert request.headers["authorization"] == expected


def recording_handler(
    seen: list[httpx.Request],
    status: int = 200,
    body: dict[str, Any] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if body is None:
            return httpx.Response(status, headers={"x-ms-request-charge": "1.24"})
        return httpx.Response(status, json=body, headers={"x-ms-request-charge": "3.5"})

    return handler


def test_create_database() -> None:
    seen: list[httpx.Request] = []
    client = make_client(recording_handler(seen, 201, {"id": "app", "_rid": "d1", "_ts": 1571874854}))

    created = asyncio.run(client.databases.create({"id": "app"}))

    assert created.body == DatabaseDefinition(id="app", rid="d1", ts=1571874854)
    assert created.request_charge == 3.5
    request = seen[0]
    assert (request.method, request.url.path) == ("POST", "/dbs")
    assert json.loads(request.content) == {"id": "app"}
    assert_signed_for(request, resource_type="dbs", resource_link="")


def test_read_and_delete_database() -> None:
    seen: list[httpx.Request] = []
    client = make_client(recording_handler(seen, 200, {"id": "app", "_etag": "e9"}))
    database = client.databases.get("app")

    read = asyncio.run(database.read())
    assert read.body == DatabaseDefinition(id="app", etag="e9")
    assert_signed_for(seen[0], resource_type="dbs", resource_link="dbs/app")

    seen.clear()
    client = make_client(recording_handler(seen, 204))
    deleted = asyncio.run(client.databases.get("app").delete())
    assert deleted.body is None
    assert deleted.request_charge == 1.24
    assert (seen[0].method, seen[0].url.path) == ("DELETE", "/dbs/app")
    assert_signed_for(seen[0], resource_type="dbs", resource_link="dbs/app")


def test_create_user() -> None:
    seen: list[httpx.Request] = []
    client = make_client(recording_handler(seen, 201, {"id": "erin", "_rid": "u9", "_permissions": "permissions/"}))

    created = asyncio.run(client.databases.get("app").users.create({"id": "erin"}))

    assert created.body == UserDefinition(id="erin", rid="u9", permissions_link="permissions/")
    assert created.user.link == "dbs/app/users/erin"
    request = seen[0]
    assert (request.method, request.url.path) == ("POST", "/dbs/app/users")
    assert "x-ms-documentdb-is-upsert" not in request.headers
    assert_signed_for(request, resource_type="users", resource_link="dbs/app")


def test_read_and_delete_user() -> None:
    seen: list[httpx.Request] = []
    client = make_client(recording_handler(seen, 200, {"id": "erin", "_rid": "u9"}))
    user = client.databases.get("app").user("erin")

    read = asyncio.run(user.read())
    assert read.body == UserDefinition(id="erin", rid="u9")
    assert (seen[0].method, seen[0].url.path) == ("GET", "/dbs/app/users/erin")
    assert_signed_for(seen[0], resource_type="users", resource_link="dbs/app/users/erin")

    seen.clear()
    client = make_client(recording_handler(seen, 204))
    deleted = asyncio.run(client.databases.get("app").user("erin").delete())
    assert deleted.body is None
    assert (seen[0].method, seen[0].url.path) == ("DELETE", "/dbs/app/users/erin")
    assert_signed_for(seen[0], resource_type="users", resource_link="dbs/app/users/erin")


def test_plain_string_query() -> None:
    seen: list[httpx.Request] = []
    client = make_client(recording_handler(seen, 200, {"Databases": [{"id": "app"}]}))

    found = asyncio.run(client.databases.query("SELECT * FROM root r").to_list())

    assert found == [DatabaseDefinition(id="app")]
    request = seen[0]
    assert (request.method, request.url.path) == ("POST", "/dbs")
    assert json.loads(request.content) == {"query": "SELECT * FROM root r", "parameters": []}
    assert_signed_for(request, resource_type="dbs", resource_link="")


def test_request_charge_missing_header() -> None:
    assert ResourceResponse(body=None).request_charge is None


@pytest.mark.parametrize("body", [None, ["id", "x"], "x"])
def test_non_object_bodies_are_rejected(body: Any) -> None:
    with pytest.raises(ResourceValidationError):
        validate_resource(body)


def test_repr_hides_master_key() -> None:
    secret = b"SUPERSECRET"
    client = CosmosClient(base_url="https://acct.documents.azure.com", auth=MasterKeyAuth(key=secret))

    assert "SUPERSECRET" not in repr(client)
    assert "SUPERSECRET" not in repr(client.auth)
