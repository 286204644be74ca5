# 📄 File: app/shared/infrastructure/external_apis/api_client.py

# 🧭 Purpose (Layman Explanation):
# This file creates an HTTP client that knows how to talk to our other services reliably,
# giving up after a short, fixed time instead of hanging when a service is slow or down.

# 🧪 Purpose (Technical Summary):
# Generic async HTTP client on aiohttp with a bounded total timeout, tenacity retries for
# transport errors, JSON decoding that tolerates malformed bodies, and request statistics.

# 🔗 Dependencies:
# - aiohttp: Async HTTP client
# - tenacity: Retry logic and backoff strategies

# 🔄 Connected Modules / Calls From:
# Used by: product_catalog user service client (user status checks)

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.shared.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class APIResponse:
    """Status, decoded JSON body (None when absent or malformed) and headers."""

    status: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class APIClient:
    """
    Async HTTP client for calls between services.

    Non-2xx responses are returned, not raised; only transport failures and
    timeouts raise UpstreamUnavailableError.
    """

    def __init__(
        self,
        base_url: str,
        api_name: str,
        timeout: float = 5.0,
        max_attempts: int = 1,
        session: Optional[ClientSession] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.api_name = api_name
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.session: Optional[ClientSession] = session
        self._owns_session = session is None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'transport_errors': 0,
            'average_response_time': 0.0,
        }

    async def initialize(self) -> None:
        """Create the client session if one was not injected."""
        if self.session is None or self.session.closed:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
            logger.info(f"API client initialized for {self.api_name}")

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            'User-Agent': f'CatalogPlatform/1.0 ({self.api_name}-client)',
            'Accept': 'application/json',
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """
        Send a request, retrying transport failures with exponential backoff.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL
            json: Optional JSON body
            headers: Extra headers (e.g. Authorization)

        Returns:
            APIResponse: Response status and decoded body

        Raises:
            UpstreamUnavailableError: On connection errors or timeout
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
                retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await self._send(method, endpoint, json=json, headers=headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['transport_errors'] += 1
            logger.error(f"{self.api_name} unreachable: {method} {endpoint}: {e!r}")
            raise UpstreamUnavailableError(
                message=f"{self.api_name} is unavailable",
                service=self.api_name,
                details={"reason": type(e).__name__},
            ) from e

    async def _send(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        if self.session is None or self.session.closed:
            await self.initialize()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        start_time = time.monotonic()
        async with self.session.request(
            method,
            url,
            json=json,
            headers=request_headers,
            timeout=ClientTimeout(total=self.timeout),
        ) as response:
            body = await response.read()
            elapsed = time.monotonic() - start_time
            self._record(response.status, elapsed)

            data = None
            if body:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    logger.warning(f"{self.api_name} returned a non-JSON body for {method} {endpoint}")

            logger.debug(f"{self.api_name} {method} {endpoint} -> {response.status} in {elapsed:.3f}s")
            return APIResponse(status=response.status, data=data, headers=dict(response.headers))

    def _record(self, status: int, elapsed: float) -> None:
        self.stats['total_requests'] += 1
        if 200 <= status < 300:
            self.stats['successful_requests'] += 1
        else:
            self.stats['failed_requests'] += 1
        avg = self.stats['average_response_time']
        self.stats['average_response_time'] = elapsed if avg == 0 else avg * 0.7 + elapsed * 0.3

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
            logger.info(f"API client closed for {self.api_name}")
