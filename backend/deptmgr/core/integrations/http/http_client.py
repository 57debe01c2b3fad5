"""
Generic async HTTP client wrapper using aiohttp.
Normalizes every call into a (data, error, message) response triple.
"""

import asyncio
from typing import Optional, Dict, Any, NamedTuple
import aiohttp
import logging

logger = logging.getLogger(__name__)

ENVELOPE_KEYS = frozenset({"data", "error", "message"})


class ApiResponse(NamedTuple):
    """Outcome of a remote call. ``error`` is set when the call failed."""
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return not self.error


class HttpClient:
    """
    Async HTTP client wrapper using aiohttp.
    Provides get/post/put/delete methods. Only idempotent reads are retried.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Optional base URL for all requests
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for retried requests
            retry_delay: Initial delay between retries in seconds
            default_headers: Headers sent with every request
        """
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.default_headers = dict(default_headers or {})
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from endpoint."""
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        return endpoint

    def _build_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = dict(self.default_headers)
        if headers:
            merged.update(headers)
        return merged

    @staticmethod
    def _unwrap(body: Any, status: int) -> ApiResponse:
        """
        Split a ``{data, message, error}`` envelope; bare bodies are returned as data.

        A dict carrying any of the envelope keys is an envelope, so an ``error``
        reported with a 2xx status is still a failure.
        """
        if isinstance(body, dict) and ENVELOPE_KEYS & body.keys():
            return ApiResponse(
                data=body.get("data") if "data" in body else body,
                error=body.get("error") or None,
                message=body.get("message"),
                status=status,
            )
        return ApiResponse(data=body, status=status)

    async def _send(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        session = await self._get_session()
        async with session.request(method, url, **kwargs) as response:
            try:
                body = await response.json(content_type=None)
            except ValueError:
                body = None

            if response.status >= 400:
                message = body.get("message") if isinstance(body, dict) else None
                return ApiResponse(
                    data=None,
                    error=message or f"Error {response.status}: {response.reason}",
                    message=message,
                    status=response.status,
                )
            return self._unwrap(body, response.status)

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        retry: bool = False,
        **kwargs: Any,
    ) -> ApiResponse:
        """
        Make HTTP request, retrying transport failures when ``retry`` is set.

        Args:
            method: HTTP method
            url: Request URL
            retry: Whether transport failures should be retried with backoff
            **kwargs: Additional arguments for aiohttp request

        Returns:
            ApiResponse triple
        """
        attempts = self.max_retries if retry else 1
        last_exception: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                return await self._send(method, url, **kwargs)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                if attempt < attempts - 1:
                    delay = self.retry_delay * (2 ** attempt)  # Exponential backoff
                    logger.warning(
                        f"{method} {url} failed (attempt {attempt + 1}/{attempts}): {e}. Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"{method} {url} failed after {attempts} attempt(s): {e}")

        return ApiResponse(error=str(last_exception) or "An unexpected error occurred")

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """
        Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            headers: Request headers

        Returns:
            ApiResponse triple
        """
        url = self._build_url(endpoint)
        return await self._request_with_retry(
            "GET", url, retry=True, params=params, headers=self._build_headers(headers)
        )

    async def post(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """Make POST request. Sent once."""
        url = self._build_url(endpoint)
        return await self._request_with_retry(
            "POST", url, json=json, headers=self._build_headers(headers)
        )

    async def put(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """Make PUT request. Sent once."""
        url = self._build_url(endpoint)
        return await self._request_with_retry(
            "PUT", url, json=json, headers=self._build_headers(headers)
        )

    async def delete(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """Make DELETE request, optionally with a JSON body. Sent once."""
        url = self._build_url(endpoint)
        return await self._request_with_retry(
            "DELETE", url, json=json, headers=self._build_headers(headers)
        )
