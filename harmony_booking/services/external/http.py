"""
Shared HTTP plumbing for messaging providers.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

import httpx

from ...config import ExternalAPIConfig
from ...core.exceptions import ExternalAPIError, NotificationError
from ...core.logging import get_logger

logger = get_logger("harmony.outbound")

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class MessagingHTTPClient:
    """Base class making provider requests with retries."""

    def __init__(
        self,
        config: ExternalAPIConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        backoff: float = 0.5,
    ):
        self.config = config
        self.timeout = config.timeout
        self.max_retries = max(1, config.max_retries)
        self.backoff = backoff
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _make_request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make HTTP request, retrying rate limits and server errors."""
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                async with self._client() as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        json=json,
                        data=data,
                        headers=headers or {},
                        auth=auth,
                    )
                if response.status_code in RETRYABLE_STATUS and attempt + 1 < self.max_retries:
                    logger.warning(
                        "%s %s returned %s, retrying", method, url, response.status_code
                    )
                    await asyncio.sleep(self.backoff * (2 ** attempt))
                    continue
                response.raise_for_status()
                return response.json() if response.content else {}
            except httpx.TimeoutException as e:
                last_error = e
                logger.warning("%s %s timed out (attempt %d)", method, url, attempt + 1)
                if attempt + 1 < self.max_retries:
                    await asyncio.sleep(self.backoff * (2 ** attempt))
                    continue
                raise ExternalAPIError("Request timed out") from e
            except httpx.HTTPStatusError as e:
                raise NotificationError(f"HTTP error {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise ExternalAPIError(f"Request failed: {e}") from e
            except ValueError as e:
                raise ExternalAPIError("Provider returned invalid JSON") from e
        raise ExternalAPIError(f"Request failed: {last_error}")
