"""
Base Provider Client - Shared aiohttp plumbing for upstream APIs.

Subclasses build requests; this class owns the session, timeouts,
status-code mapping and retries.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from providers.exceptions import FetchError, RateLimitError
from providers.retry import RetryPolicy


logger = logging.getLogger(__name__)


class BaseProviderClient(ABC):
    """
    Abstract base for provider clients.

    A session passed in by the caller is never closed by the client.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._retry_policy = retry_policy or RetryPolicy()
        self._session = session
        self._owns_session = session is None

        self._request_count = 0
        self._error_count = 0
        self._last_latency_ms: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique provider identifier."""

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "movement-pipeline/1.0",
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Single HTTP request; maps failures to provider exceptions."""
        session = await self._get_session()
        self._request_count += 1

        start_time = time.time()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
            ) as response:
                self._last_latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        provider_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        provider_name=self.name,
                        status_code=response.status,
                        response_body=body[:500],
                    )

                return await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {e}",
                provider_name=self.name,
            ) from e

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """``_make_request`` wrapped in the retry policy."""
        try:
            return await self._retry_policy.call(self._make_request, method, url, **kwargs)
        except Exception:
            self._error_count += 1
            raise

    def stats(self) -> dict[str, Any]:
        return {
            "provider": self.name,
            "requests": self._request_count,
            "errors": self._error_count,
            "last_latency_ms": self._last_latency_ms,
        }

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseProviderClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"
