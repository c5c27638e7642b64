"""
HTTP fetch client for the SoDEX upstream APIs.

Wraps a shared `httpx.AsyncClient` with a per-request timeout and a fixed-delay
retry loop (tenacity). Exhausted retries never raise: callers get `None` and
must treat the data as absent. The upstream is flaky enough that a missing
answer for one account is normal and must not stop the run.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from sodex_indexer.config import Settings
from sodex_indexer.utils.logging import get_logger

log = get_logger(__name__)


class FetchClient:
    """
    GET-only client with timeout and bounded retries.

    Use as an async context manager so the underlying connection pool is
    closed when the run ends:

        async with FetchClient(settings) as client:
            response = await client.fetch(url)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = settings.request_timeout_seconds
        self.retry_count = settings.retry_count
        self.retry_delay = settings.retry_delay_seconds
        self.requests_sent = 0
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            limits=httpx.Limits(max_connections=max(settings.concurrency * 2, 10)),
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.retry_count + 1),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=before_sleep_log(log, logging.DEBUG),
            reraise=True,
        )

    async def _get(self, url: str) -> httpx.Response:
        self.requests_sent += 1
        response = await self._client.get(url)
        response.raise_for_status()
        return response

    async def fetch(self, url: str) -> Optional[httpx.Response]:
        """
        GET `url`, retrying any transport or HTTP status failure.

        Returns
        -------
        httpx.Response | None
            The successful (2xx) response, or None once the retry budget
            (`retry_count` extra attempts) is spent.
        """
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._get(url)
        except httpx.HTTPError as exc:
            log.warning(
                f"[FETCH FAILED] {url}",
                extra={"url": url, "attempts": self.retry_count + 1, "error": repr(exc)},
            )
            return None
        return response

    async def fetch_json(self, url: str) -> Optional[Dict[str, Any]]:
        """`fetch` plus JSON decoding; a body that is not a JSON object counts as a failure."""
        response = await self.fetch(url)
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            log.warning(f"[FETCH FAILED] {url} returned a non-JSON body", extra={"url": url})
            return None
        if not isinstance(payload, dict):
            log.warning(f"[FETCH FAILED] {url} returned {type(payload).__name__}", extra={"url": url})
            return None
        return payload


__all__ = ["FetchClient"]
