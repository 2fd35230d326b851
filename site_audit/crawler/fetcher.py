# site_audit/crawler/fetcher.py
"""
Fetcher module: handles HTTP requests with rate limiting, retry/backoff, and timeout.

Every failure is raised as :class:`~site_audit.errors.FetchError` with a kind the
crawler and the page auditor can record.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout, ContentTypeError

from site_audit.config import AuditConfig
from site_audit.crawler.models import FetchedPage
from site_audit.errors import FetchError
from site_audit.logger import get_logger

logger = get_logger("fetcher")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


class PageFetcher:
    """Fetches pages of the audited site and third-party API payloads."""

    def __init__(
        self,
        session: ClientSession,
        config: AuditConfig,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        self.session = session
        self.config = config
        self._retry_status = retry_status
        self._last_request = float("-inf")
        self._rate_lock = asyncio.Lock()

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchedPage:
        """
        GET the URL and return its body as text.

        Raises FetchError on timeout, network error or a non-2xx status.
        """
        return await self._request("GET", url, timeout, read_body=True)

    async def head(self, url: str, timeout: Optional[float] = None) -> FetchedPage:
        """HEAD the URL; the returned page has headers but an empty body."""
        return await self._request("HEAD", url, timeout, read_body=False)

    async def get_json(
        self,
        url: str,
        params: Union[Mapping[str, Any], Sequence[Tuple[str, str]], None] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """GET a JSON document from an API. Not counted against the site rate limit."""
        client_timeout = ClientTimeout(total=timeout or self.config.timeout)
        try:
            async with self.session.get(url, params=params, timeout=client_timeout) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise FetchError(
                        "http-status", url, f"HTTP {resp.status}: {body[:200]}", status=resp.status
                    )
                data = await resp.json()
        except asyncio.TimeoutError as exc:
            raise FetchError("timeout", url, f"timed out after {client_timeout.total}s") from exc
        except (ContentTypeError, ValueError) as exc:
            raise FetchError("malformed", url, f"invalid JSON: {exc}") from exc
        except ClientError as exc:
            raise FetchError("network", url, str(exc) or type(exc).__name__) from exc
        if not isinstance(data, dict):
            raise FetchError("malformed", url, f"expected JSON object, got {type(data).__name__}")
        return data

    async def _request(
        self, method: str, url: str, timeout: Optional[float], *, read_body: bool
    ) -> FetchedPage:
        client_timeout = ClientTimeout(total=timeout or self.config.timeout)
        attempts = 0
        while True:
            await self._wait_for_rate_limit()
            try:
                async with self.session.request(
                    method, url, timeout=client_timeout, raise_for_status=False
                ) as resp:
                    if resp.status in self._retry_status:
                        raise _RetryableStatus(resp.status)
                    if resp.status >= 400:
                        raise FetchError(
                            "http-status", url, f"HTTP {resp.status}", status=resp.status
                        )
                    return await self._to_page(resp, read_body)
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise FetchError("timeout", url, f"timed out after {client_timeout.total}s") from exc
            except (ClientError, _RetryableStatus) as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    if isinstance(exc, _RetryableStatus):
                        raise FetchError(
                            "http-status", url, f"HTTP {exc.status}", status=exc.status
                        ) from None
                    raise FetchError("network", url, str(exc) or type(exc).__name__) from exc
                # exponential backoff, cap at 60s
                backoff = min(self.config.backoff_factor * 2**attempts, 60)
                logger.debug(
                    "Retry %d/%d for %s after %.2f s (%s)",
                    attempts, self.config.retry_times, url, backoff, exc,
                )
                await asyncio.sleep(backoff)

    @staticmethod
    async def _to_page(resp: ClientResponse, read_body: bool) -> FetchedPage:
        ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
        page = FetchedPage(
            url=str(resp.url),
            status=resp.status,
            content_type=ctype,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )
        if not read_body:
            return page
        if not page.is_html:
            # body of a PDF, video, archive ... is never downloaded
            resp.close()
            return page
        try:
            page.text = await resp.text(errors="replace")
        except UnicodeDecodeError as exc:
            raise FetchError("malformed", str(resp.url), f"cannot decode body: {exc}") from exc
        return page

    async def _wait_for_rate_limit(self) -> None:
        """Keep at least ``1 / rate_limit`` seconds between two site requests."""
        interval = 1.0 / self.config.rate_limit
        async with self._rate_lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < interval:
                await asyncio.sleep(interval - elapsed)
            self._last_request = time.monotonic()


class _RetryableStatus(Exception):
    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"retryable status {status}")


__all__ = ["PageFetcher", "RETRY_STATUS"]
