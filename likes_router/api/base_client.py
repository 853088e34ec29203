"""
Base API client providing common functionality for the catalog clients.
Includes async HTTP session handling, retry logic, rate limiting and error mapping.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import aiohttp
import backoff
from likes_router.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

MAX_TRIES = 5

class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status = status
        self.retryable = retryable

class RateLimitError(APIError):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, message: str, retry_after: float = 1.0):
        super().__init__(message, status=429, retryable=True)
        self.retry_after = retry_after

class AuthenticationError(APIError):
    """Exception raised when authentication fails."""

    def __init__(self, message: str, status: Optional[int] = 401, retryable: bool = False):
        super().__init__(message, status=status, retryable=retryable)

def _give_up(error: APIError) -> bool:
    return not error.retryable

def _log_backoff(details: Dict[str, Any]) -> None:
    logger.warning(
        f"Retrying request in {details['wait']:.1f}s "
        f"(attempt {details['tries']}): {details['exception']}"
    )

class BaseAPIClient(ABC):
    """Base class for catalog API clients."""

    def __init__(self, base_url: str, rate_limit: int, timeout: int = 30):
        self.base_url = base_url
        self.rate_limiter = RateLimiter(rate_limit)
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self._auth_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Ensure HTTP session is created."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self):
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()

    @abstractmethod
    async def authenticate(self) -> str:
        """Authenticate with the API and return access token."""
        pass

    def _clear_auth_token(self) -> None:
        self._auth_token = None
        self._token_expires_at = None

    async def _get_auth_token(self) -> str:
        """Get valid authentication token, refreshing if necessary."""
        if (self._auth_token is None or
            self._token_expires_at is None or
            datetime.now(timezone.utc) >= self._token_expires_at):
            self._auth_token = await self.authenticate()

        return self._auth_token

    def _get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers. Override in subclasses."""
        return {}

    @backoff.on_exception(
        backoff.expo,
        APIError,
        max_tries=MAX_TRIES,
        giveup=_give_up,
        on_backoff=_log_backoff,
        max_value=30
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Make HTTP request with retry logic and rate limiting.

        429 waits for Retry-After before the retry, 401 drops the cached token
        so the next attempt authenticates again. 5xx, connection errors and
        timeouts are retried; other 4xx responses fail immediately.
        """
        await self._ensure_session()
        await self.rate_limiter.acquire()

        await self._get_auth_token()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        request_headers = self._get_auth_headers()
        if headers:
            request_headers.update(headers)

        try:
            async with self.session.request(
                method, url, params=params, json=data, headers=request_headers
            ) as response:

                if response.status == 429:
                    retry_after = float(response.headers.get('Retry-After', 1))
                    retry_after = max(1.0, retry_after)
                    logger.warning(f"Rate limited, waiting {retry_after:.0f} seconds")
                    await asyncio.sleep(retry_after)
                    raise RateLimitError(f"Rate limit exceeded on {method} {endpoint}", retry_after)

                if response.status == 401:
                    self._clear_auth_token()
                    raise AuthenticationError(
                        f"Access token rejected on {method} {endpoint}", retryable=True
                    )

                if response.status >= 500:
                    raise APIError(
                        f"Server error {response.status} on {method} {endpoint}",
                        status=response.status,
                        retryable=True
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise APIError(
                        f"Request {method} {endpoint} failed with {response.status}: {body[:200]}",
                        status=response.status
                    )

                if response.status == 204 or response.content_length == 0:
                    return {}
                return await response.json()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"HTTP request failed: {method} {url} - {e!r}")
            raise APIError(f"Request failed: {e!r}", retryable=True) from e
