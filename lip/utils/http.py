"""
HTTP client utilities for lip.

This module provides an asynchronous HTTP client with retry logic,
rate limiting, and concurrency control. It is the only transport lip
uses: version lists come from :meth:`HTTPClient.get_text` and tooth
archives are streamed to disk by :meth:`HTTPClient.download`.
"""

from __future__ import annotations

import os
import time
import httpx
import random
import asyncio
from pathlib import Path
from typing import Any, Callable, Optional

from lip.utils.logger import get_logger
from lip.__version__ import __version__
from lip.exceptions import DownloadError, NetworkError
from lip.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DOWNLOAD_CHUNK_SIZE,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

#: Called as ``(bytes_received, total_bytes)``; total is 0 when unknown.
ProgressCallback = Callable[[int, int], None]


class HTTPClient:
    """Asynchronous HTTP client with retries, rate limiting, and concurrency control.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Maximum number of retry attempts.
        rate_limit_delay: Minimum delay (seconds) between requests.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of concurrent requests.

    Example:
        >>> async with HTTPClient() as client:
        ...     text = await client.get_text("https://goproxy.io/github.com/x/y/@v/list")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_delay: float = 0.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = 10,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit_delay = rate_limit_delay
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._last_request_time: float = 0.0
        self._rate_limit_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_429_retries: int = 5

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        """Initialize the underlying httpx client if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _rate_limit(self) -> None:
        """Enforce a minimum delay between outgoing requests."""
        if self.rate_limit_delay <= 0:
            return

        async with self._rate_limit_lock:
            now = time.time()
            elapsed = now - self._last_request_time

            if elapsed < self.rate_limit_delay:
                delay = self.rate_limit_delay - elapsed
                self._last_request_time = now + delay
                await asyncio.sleep(delay)
            else:
                self._last_request_time = now

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute an HTTP request with retry and backoff logic.

        4xx responses are not retried (except 429) and raise
        :class:`NetworkError` carrying the status code; timeouts, network
        errors and 5xx responses are retried with exponential backoff.
        """
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")
        last_exc: Optional[Exception] = None
        retry_429_count = 0

        for attempt in range(self.max_retries + 1):
            try:
                await self._rate_limit()

                async with self._semaphore:
                    response = await self._client.request(method, clean_url, **kwargs)

                if response.status_code == 429:
                    retry_429_count += 1
                    if retry_429_count > self._max_429_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self._max_429_retries} retries",
                            url=clean_url,
                            status_code=429,
                        )
                    retry_after = int(response.headers.get("Retry-After", "1"))
                    logger.warning(
                        "Rate limited (429), retrying after %ds (%d/%d)",
                        retry_after,
                        retry_429_count,
                        self._max_429_retries,
                    )
                    await asyncio.sleep(retry_after)
                    continue

                if response.status_code >= 400:
                    response.raise_for_status()

                return response

            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Request timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    clean_url,
                )

            except httpx.NetworkError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )

            except httpx.HTTPStatusError as exc:
                if 400 <= exc.response.status_code < 500:
                    raise NetworkError(
                        f"HTTP {exc.response.status_code} error for {clean_url}",
                        url=clean_url,
                        status_code=exc.response.status_code,
                        response_body=exc.response.text,
                    ) from exc
                last_exc = exc
                logger.warning(
                    "HTTP %d error (%d/%d): %s",
                    exc.response.status_code,
                    attempt + 1,
                    self.max_retries + 1,
                    clean_url,
                )

            if attempt < self.max_retries:
                delay = (2**attempt) + random.uniform(0.0, 0.3)
                logger.debug("Retrying in %.2fs", delay)
                await asyncio.sleep(delay)

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempts: {clean_url}",
            url=clean_url,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return await self._request_with_retry("GET", url, **kwargs)

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return the decoded response body."""
        response = await self.get(url, **kwargs)
        return response.text

    async def download(
        self,
        url: str,
        destination: Path,
        *,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """Stream ``url`` into ``destination``.

        Bytes are written to a ``.part`` file next to ``destination`` which
        replaces it only once the body has been received completely, so an
        interrupted download never leaves a truncated archive behind.

        Args:
            url: URL to download.
            destination: Final file path.
            progress_callback: Optional callback invoked as
                ``(received, total)`` after every chunk.

        Returns:
            Number of bytes written.

        Raises:
            DownloadError: On any HTTP status >= 400 or transport failure.
        """
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")
        part_path = destination.with_name(destination.name + ".part")
        received = 0

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await self._rate_limit()

            async with self._semaphore:
                async with self._client.stream("GET", clean_url) as response:
                    if response.status_code >= 400:
                        raise DownloadError(
                            f"Cannot download file (HTTP {response.status_code})",
                            url=clean_url,
                            status_code=response.status_code,
                        )

                    total = int(response.headers.get("Content-Length", "0") or 0)

                    with open(part_path, "wb") as fh:
                        async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                            fh.write(chunk)
                            received += len(chunk)
                            if progress_callback:
                                progress_callback(received, total)

            os.replace(part_path, destination)

        except DownloadError:
            _discard(part_path)
            raise
        except (httpx.HTTPError, OSError) as exc:
            _discard(part_path)
            raise DownloadError(
                f"Cannot download file: {exc}",
                url=clean_url,
            ) from exc

        logger.debug("Downloaded %d bytes from %s", received, clean_url)
        return received


def _discard(path: Path) -> None:
    """Remove a partial download, ignoring a file that never got created."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to remove partial download %s: %s", path, exc)
