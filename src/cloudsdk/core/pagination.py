"""
Continuation-token pagination shared by every service client.

Components:
- FeedPage: one server page (items, response headers, next continuation token)
- FetchExecutor: the per-collection callback that performs one round trip
- FeedIterator: token bookkeeping over a FetchExecutor, consumed page by page
  (`fetch_next`, `async for`) or drained in one go (`to_list`)

A FeedIterator is single-task: callers must await each `fetch_next()` before
issuing the next one on the same instance. Two overlapping calls would both
send the same token and race to store the next one, skipping or repeating
pages. Nothing here enforces that; separate instances share no state and may
run concurrently.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from cloudsdk.errors import FeedIteratorError


log = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@dataclass(frozen=True)
class FeedPage(Generic[T]):
    """One page of a feed, in server order."""
    items: list[T]
    headers: dict[str, str] = field(default_factory=dict)
    continuation: str | None = None

    @classmethod
    def empty(cls) -> "FeedPage[T]":
        return cls(items=[])

    def __len__(self) -> int:
        return len(self.items)


class FetchExecutor(Protocol[T_co]):
    """Performs exactly one round trip for the page at `continuation`.

    `continuation` is None for the first page. Failures are raised, not returned.
    """

    async def __call__(self, continuation: str | None) -> FeedPage[T_co]: ...


class FeedState(enum.Enum):
    NOT_STARTED = "not_started"
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"


class FeedIterator(Generic[T]):
    """Lazy, non-restartable view over a server-paginated feed.

    Each `fetch_next()` issues one executor call and returns the whole page,
    so per-page headers and continuation tokens stay visible. Once the server
    stops returning a token the iterator is exhausted for good: further
    fetches return an empty page without touching the executor. Build a new
    iterator to run the same query again.

    Executor errors propagate unchanged and leave the iterator where it was,
    so calling `fetch_next()` again retries the same token. No retry happens
    here. Token cycles from a misbehaving server are not detected.
    """

    def __init__(self, fetch: FetchExecutor[T], *, continuation: str | None = None) -> None:
        self._fetch = fetch
        self._state = FeedState.NOT_STARTED
        # Only read while NOT_STARTED (resume hint) or HAS_MORE.
        self._continuation = continuation or None
        self._current: FeedPage[T] | None = None

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def continuation(self) -> str | None:
        if self._state is FeedState.EXHAUSTED:
            return None
        return self._continuation

    def has_more_results(self) -> bool:
        return self._state is not FeedState.EXHAUSTED

    @property
    def current_page(self) -> FeedPage[T]:
        """The most recently fetched page. Does not advance the feed."""
        if self._current is None:
            raise FeedIteratorError("No page has been fetched yet; call fetch_next() first")
        return self._current

    @property
    def current_items(self) -> list[T]:
        return self.current_page.items

    async def fetch_next(self) -> FeedPage[T]:
        if self._state is FeedState.EXHAUSTED:
            return FeedPage.empty()

        token = self._continuation
        log.debug("Fetching feed page state=%s continuation=%r", self._state.value, token)
        page = await self._fetch(token)

        # Empty-string tokens mean the same as no token.
        next_token = page.continuation or None
        if next_token is None:
            self._state = FeedState.EXHAUSTED
            log.debug("Feed exhausted after page of %d items", len(page.items))
        else:
            self._state = FeedState.HAS_MORE
        self._continuation = next_token
        self._current = page
        return page

    def __aiter__(self) -> AsyncIterator[FeedPage[T]]:
        return self

    async def __anext__(self) -> FeedPage[T]:
        if self._state is FeedState.EXHAUSTED:
            raise StopAsyncIteration
        return await self.fetch_next()

    async def to_list(self) -> list[T]:
        """Drain the remaining pages into one list of items, in page order.

        The first error aborts the drain and nothing collected so far is
        returned. Use page iteration when partial results matter.
        """
        items: list[T] = []
        async for page in self:
            items.extend(page.items)
        return items


async def iter_items(feed: FeedIterator[T]) -> AsyncIterator[T]:
    """Yield individual items across the remaining pages of `feed`."""
    async for page in feed:
        for item in page.items:
            yield item
