from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_exponential, wait_random


log = logging.getLogger(__name__)

Json = dict[str, Any]
Method = Literal["GET", "POST", "DELETE", "PUT", "PATCH"]


def _is_retryable_exception(exc: BaseException) -> bool:
    # Network / timeout errors are usually retryable.
    if isinstance(exc, httpx.RequestError):
        return True

    # Only retry HTTP status errors that are plausibly transient.
    if isinstance(exc, httpx.HTTPStatusError):
        status = getattr(exc.response, "status_code", None)
        if status == 429:
            return True
        if isinstance(status, int) and 500 <= status <= 599:
            return True
        return False

    return False


def _throttle_delay(resp: httpx.Response) -> float:
    """Seconds to wait after a 429, from whichever hint the service sent."""
    delay = 1.0
    retry_after_ms = resp.headers.get("x-ms-retry-after-ms")
    retry_after = resp.headers.get("Retry-After")
    try:
        if retry_after_ms:
            delay = float(retry_after_ms) / 1000.0
        elif retry_after:
            delay = float(retry_after)
    except ValueError:
        delay = 1.0
    return max(0.5, min(delay, 10.0))


_backoff = wait_exponential(multiplier=0.2, max=2.0) + wait_random(0, 1)


def _wait_before_retry(retry_state: RetryCallState) -> float:
    # Throttled responses wait for the server hint; everything else backs off.
    # Tenacity only waits between attempts, so the final failure is raised at once.
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        delay = _throttle_delay(exc.response)
        log.warning("Throttled by %s; retrying in %.2fs", exc.request.url, delay)
        return delay
    return _backoff(retry_state)


def decode_json(resp: httpx.Response) -> Json:
    # Some endpoints (especially DELETEs) may return 204 or an empty body.
    # Treat that as success with an empty payload.
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {}


@dataclass
class ServiceClient:
    """Shared HTTP plumbing for one service endpoint.

    Subclasses add authentication in `_auth_headers` and the service's
    business methods on top of `send`.
    """

    base_url: str
    timeout_seconds: float = 10.0

    _client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_seconds))
        return self._client

    def _auth_headers(self, *, method: str, url: str, **context: Any) -> dict[str, str]:
        return {}

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @retry(
        wait=_wait_before_retry,
        stop=stop_after_attempt(3),
        retry=retry_if_exception(_is_retryable_exception),
        reraise=True,
    )
    async def send(
        self,
        method: Method,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        auth_context: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = self.url_for(path)
        merged: dict[str, str] = {}
        merged.update(self._auth_headers(method=method, url=url, **(auth_context or {})))
        if headers:
            merged.update(headers)
        if json is not None:
            merged.setdefault("Content-Type", "application/json")

        resp = await self._get_client().request(method, url, params=params, json=json, headers=merged)

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            # Attach the response body to aid debugging; services return JSON error details.
            body_preview = ""
            try:
                body_preview = resp.text
            except UnicodeDecodeError:
                body_preview = ""
            if body_preview:
                raise httpx.HTTPStatusError(
                    f"{e} | body={body_preview}",
                    request=e.request,
                    response=e.response,
                ) from None
            raise
        return resp

    async def request(
        self,
        method: Method,
        path: str,
        **kwargs: Any,
    ) -> Json:
        return decode_json(await self.send(method, path, **kwargs))
