"""Unit tests for RecipientResolver."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from notification_service.features.notifications.resolver import RecipientResolver


def _resolver(handler, timeout: float = 1.0) -> RecipientResolver:
    return RecipientResolver("http://user-service:3001", timeout=timeout, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestRecipientResolver:
    """Test suite for user-service lookups."""

    @pytest.mark.asyncio
    async def test_resolve_phone(self):
        """The phone comes from ``profile.phone``."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"userId": "u-1", "profile": {"phone": "+15550001111"}})

        resolver = _resolver(handler)
        assert await resolver.resolve_phone("u-1") == "+15550001111"
        assert paths == ["/api/users/u-1"]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_resolve_push_token_prefers_push_token(self):
        """``pushToken`` is used first, ``fcmToken`` as a fallback."""
        resolver = _resolver(
            lambda request: httpx.Response(200, json={"profile": {"pushToken": "tok-1", "fcmToken": "tok-2"}})
        )
        fallback = _resolver(lambda request: httpx.Response(200, json={"profile": {"fcmToken": "tok-2"}}))

        assert await resolver.resolve_push_token("u-1") == "tok-1"
        assert await fallback.resolve_push_token("u-1") == "tok-2"
        await resolver.close()
        await fallback.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"error": "User not found"}),
            httpx.Response(500, text="internal error"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"profile": None}),
            httpx.Response(200, json={"profile": {"phone": ""}}),
            httpx.Response(200, json=["unexpected"]),
        ],
    )
    async def test_unusable_responses_yield_none(self, response):
        """Error statuses, bad bodies and missing fields all yield None."""
        resolver = _resolver(lambda request: response)
        assert await resolver.resolve_phone("u-1") is None
        await resolver.close()

    @pytest.mark.asyncio
    async def test_transport_error_yields_none(self):
        """A refused connection yields None instead of raising."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        resolver = _resolver(handler)
        assert await resolver.resolve_phone("u-1") is None
        assert await resolver.resolve_push_token("u-1") is None
        await resolver.close()

    @pytest.mark.asyncio
    async def test_slow_user_service_is_bounded(self):
        """A lookup slower than the timeout yields None within the bound."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(2.0)
            return httpx.Response(200, json={"profile": {"phone": "+15550001111"}})

        resolver = _resolver(handler, timeout=0.1)
        loop = asyncio.get_running_loop()
        started = loop.time()

        assert await resolver.resolve_phone("u-1") is None
        assert loop.time() - started < 1.0
        await resolver.close()
