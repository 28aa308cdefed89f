"""
Shared HTTP Transport

Async JSON-over-HTTP client used by every exchange adapter and by the
CoinGecko registry client. It handles:
- aiohttp session lifecycle (async context manager)
- Request timeouts
- Rate-limit retry with linear backoff (429, 418, 503)
- Mapping every other failure to a failed Result carrying a TransportError

Adapters never retry on their own; retry policy lives here only.

Usage:
    async with HttpClient("binance", "https://api.binance.com") as http:
        result = await http.get_json("/api/v3/exchangeInfo")
        if result.is_success:
            payload = result.value
"""

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp

from core.config import settings
from core.exceptions import TransportError
from core.logging import get_logger, log_api_request, log_api_response
from core.result import Result

RATE_LIMIT_STATUSES = (429, 418, 503)


class HttpClient:
    """
    Async HTTP client bound to one upstream API.

    Attributes:
        source: Name used in logs and errors (e.g., "binance", "coingecko")
        base_url: API base URL, paths are appended to it
        headers: Default headers sent with every request
        session: aiohttp ClientSession (created on open)

    Example:
        >>> http = HttpClient("bybit", "https://api.bybit.com")
        >>> await http.open()
        >>> result = await http.get_json("/v5/market/instruments-info", {"category": "spot"})
        >>> await http.close()
    """

    def __init__(
        self,
        source: str,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.source = source
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.retry_backoff
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Session Management
    # ============================================

    async def open(self) -> None:
        """Create the HTTP session (idempotent)."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers=self.headers)
            self.logger.debug(f"HTTP session created for {self.source}")

    async def close(self) -> None:
        """Close the HTTP session (idempotent)."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug(f"HTTP session closed for {self.source}")
        self.session = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # Requests
    # ============================================

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        failure_message: Optional[str] = None,
    ) -> Result[Any]:
        """
        GET a JSON document.

        Args:
            path: Endpoint path (e.g., "/api/v3/klines")
            params: Optional query parameters
            failure_message: Message used for the TransportError on failure

        Returns:
            Result with the decoded JSON payload, or a failed Result holding a
            TransportError with status code, response body and URL.

        Raises:
            RuntimeError: If the session was never opened
        """
        if self.session is None:
            raise RuntimeError(f"HTTP session for {self.source} not initialized. Use 'async with' or open().")

        url = f"{self.base_url}{path}"
        failure_message = failure_message or f"Request to {self.source} failed"
        log_api_request(self.source, path, params)

        for attempt in range(self.max_retries):
            started = time.monotonic()
            try:
                async with self.session.get(
                    url,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    log_api_response(self.source, path, resp.status, time.monotonic() - started)

                    if 200 <= resp.status < 300:
                        return Result.ok(await resp.json(content_type=None))

                    body = await resp.text()
                    if resp.status in RATE_LIMIT_STATUSES and attempt < self.max_retries - 1:
                        delay = self.retry_backoff * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) by {self.source} on {path}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    self.logger.error(f"HTTP {resp.status} from {self.source} on {path}: {body[:500]}")
                    return Result.fail(TransportError(
                        f"{failure_message} (HTTP {resp.status})",
                        source=self.source,
                        status_code=resp.status,
                        response_body=body,
                        request_url=str(resp.url),
                    ))

            except asyncio.TimeoutError:
                self.logger.error(f"Timeout from {self.source} on {path} after {self.timeout}s")
                return Result.fail(TransportError(
                    f"{failure_message} (timeout after {self.timeout}s)",
                    source=self.source,
                    request_url=url,
                ))

            except aiohttp.ClientError as e:
                self.logger.error(f"Request to {self.source} failed on {path}: {e}")
                return Result.fail(TransportError(
                    f"{failure_message} ({e.__class__.__name__}: {e})",
                    source=self.source,
                    request_url=url,
                ))

            except ValueError as e:
                # Body was not valid JSON
                self.logger.error(f"Malformed JSON from {self.source} on {path}: {e}")
                return Result.fail(TransportError(
                    f"{failure_message} (malformed JSON)",
                    source=self.source,
                    request_url=url,
                ))

        # Unreachable: the final attempt always returns
        raise AssertionError("retry loop exited without a result")
