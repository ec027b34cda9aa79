"""Base HTTP client for calls to neighbouring services and providers.

Provides:
- Connection pooling via one shared httpx.AsyncClient per client instance
- Timeout configuration
- Request/response logging
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BaseHTTPClient:
    """Base HTTP client for external API integrations.

    Calls are single-shot: callers that need a hard bound (the recipient
    resolver, channel adapters) rely on the httpx timeout and on their own
    ``asyncio.wait_for`` instead of retrying.

    Example:
        ```python
        class UserServiceClient(BaseHTTPClient):
            async def get_user(self, user_id: str) -> dict:
                return await self.get(f"/api/users/{user_id}")
        ```
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Base URL for the API.
            timeout: Request timeout in seconds.
            headers: Default headers to include in all requests.
            auth: Optional httpx auth (e.g. basic auth tuple).
            transport: Optional transport override (tests use httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers=headers or {},
            auth=auth,
            transport=transport,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        )

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        await self.client.aclose()

    async def __aenter__(self) -> BaseHTTPClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make GET request and return the decoded JSON body.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
            httpx.HTTPError: On transport errors and timeouts.
            ValueError: When the body is not valid JSON.
        """
        response = await self.client.get(path, params=params, **kwargs)
        logger.debug(
            f"GET {self.base_url}{path} -> {response.status_code}",
            extra={"path": path, "status_code": response.status_code},
        )
        response.raise_for_status()
        return response.json()

    async def post_form(
        self,
        path: str,
        data: dict[str, Any],
        **kwargs: Any,
    ) -> httpx.Response:
        """POST a form-encoded body; the caller inspects the response."""
        response = await self.client.post(path, data=data, **kwargs)
        logger.debug(
            f"POST {self.base_url}{path} -> {response.status_code}",
            extra={"path": path, "status_code": response.status_code},
        )
        return response
