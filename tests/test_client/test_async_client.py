"""Tests for the asynchronous HTTP client."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from studytrack.auth import create_default_manager
from studytrack.auth.base import AuthResult
from studytrack.client import AsyncClient
from studytrack.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    RequestError,
    ServerError,
)
from studytrack.models import AuthConfig, Profile, RequestConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_profile(
    auth: AuthConfig | None = None,
    max_retries: int = 0,
) -> Profile:
    return Profile(
        name="test",
        base_url="http://study.test",
        auth=auth,
        request=RequestConfig(timeout=5, max_retries=max_retries),
    )


def _status(code: int, body: Any = None) -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(code, json=body))


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace the backoff sleep and record the requested delays."""
    delays: list[float] = []

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("studytrack.client.async_client.asyncio.sleep", _sleep)
    return delays


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    @pytest.mark.asyncio
    async def test_enter_creates_client(self) -> None:
        client = AsyncClient(_make_profile(), transport=_status(200, {}))
        assert client._client is None
        async with client:
            assert client._client is not None
        assert client._client is None

    @pytest.mark.asyncio
    async def test_request_outside_context_fails(self) -> None:
        client = AsyncClient(_make_profile())
        with pytest.raises(AssertionError):
            await client.get("/api/study/dashboard")


# ---------------------------------------------------------------------------
# Auth injection
# ---------------------------------------------------------------------------


class TestAuth:
    @pytest.mark.asyncio
    async def test_bearer_token_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STUDY_TOKEN", "tok123")
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization", ""))
            return httpx.Response(200, json={})

        profile = _make_profile(auth=AuthConfig(source="env:STUDY_TOKEN"))
        async with AsyncClient(
            profile, auth_manager=create_default_manager(), transport=httpx.MockTransport(handler)
        ) as client:
            assert client.is_authenticated
            await client.get("/api/study/dashboard")
        assert seen == ["Bearer tok123"]

    @pytest.mark.asyncio
    async def test_missing_credential_sends_unauthenticated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("STUDY_TOKEN", raising=False)
        seen: list[bool] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append("Authorization" in request.headers)
            return httpx.Response(200, json={})

        profile = _make_profile(auth=AuthConfig(source="env:STUDY_TOKEN"))
        async with AsyncClient(
            profile, auth_manager=create_default_manager(), transport=httpx.MockTransport(handler)
        ) as client:
            assert not client.is_authenticated
            await client.get("/api/study/dashboard")
            client.set_token("late")
            await client.get("/api/study/dashboard")
        assert seen == [False, True]

    @pytest.mark.asyncio
    async def test_set_auth_none_drops_credential(self) -> None:
        async with AsyncClient(_make_profile(), transport=_status(200, {})) as client:
            client.set_auth(AuthResult(headers={"Authorization": "Bearer x"}))
            assert client.is_authenticated
            client.set_auth(None)
            assert not client.is_authenticated

    @pytest.mark.asyncio
    async def test_explicit_header_wins(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["Authorization"])
            return httpx.Response(200, json={})

        async with AsyncClient(_make_profile(), transport=httpx.MockTransport(handler)) as client:
            client.set_token("global")
            await client.get("/x", headers={"Authorization": "Bearer override"})
        assert seen == ["Bearer override"]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "exc_type"),
        [
            (401, AuthError),
            (403, AuthError),
            (404, NotFoundError),
            (409, RequestError),
            (422, RequestError),
            (500, ServerError),
            (503, ServerError),
        ],
    )
    async def test_status_maps_to_exception(self, status: int, exc_type: type) -> None:
        async with AsyncClient(
            _make_profile(), transport=_status(status, {"message": "nope"})
        ) as client:
            with pytest.raises(exc_type, match=f"HTTP {status}: nope"):
                await client.get("/api/study/dashboard")

    @pytest.mark.asyncio
    async def test_text_error_body(self) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(400, text="bad input"))
        async with AsyncClient(_make_profile(), transport=transport) as client:
            with pytest.raises(RequestError, match="bad input"):
                await client.post("/api/study/notes", json_body={})

    @pytest.mark.asyncio
    async def test_exit_codes(self) -> None:
        assert AuthError("x").exit_code == 3
        assert NotFoundError("x").exit_code == 4
        assert ServerError("x").exit_code == 5
        assert ConnectionError_("x").exit_code == 6


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self, no_sleep: list[float]) -> None:
        answers = iter([500, 502, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(answers), json={"ok": True})

        async with AsyncClient(
            _make_profile(max_retries=3), transport=httpx.MockTransport(handler)
        ) as client:
            response = await client.get("/api/study/dashboard")
        assert response.status_code == 200
        assert no_sleep == [1, 2]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, no_sleep: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(500)

        async with AsyncClient(
            _make_profile(max_retries=2), transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(ServerError):
                await client.get("/api/study/dashboard")
        assert len(calls) == 3
        assert no_sleep == [1, 2]

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self, no_sleep: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        async with AsyncClient(
            _make_profile(max_retries=3), transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(NotFoundError):
                await client.get("/api/study/notes/x")
        assert len(calls) == 1
        assert no_sleep == []

    @pytest.mark.asyncio
    async def test_connection_error(self, no_sleep: list[float]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with AsyncClient(
            _make_profile(max_retries=1), transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(ConnectionError_, match="after 2 attempts"):
                await client.get("/api/study/dashboard")
        assert no_sleep == [1]

    @pytest.mark.asyncio
    async def test_dropped_connection_is_retried_then_mapped(
        self, no_sleep: list[float]
    ) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.RemoteProtocolError(
                "Server disconnected without sending a response.", request=request
            )

        async with AsyncClient(
            _make_profile(max_retries=1), transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(ConnectionError_, match="Server disconnected"):
                await client.post("/api/study/state", json_body={})
        assert len(calls) == 2
        assert no_sleep == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc_type",
        [httpx.LocalProtocolError, httpx.ProxyError, httpx.UnsupportedProtocol],
    )
    async def test_other_transport_errors_map_to_connection_error(
        self, no_sleep: list[float], exc_type: type
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("broken", request=request)

        async with AsyncClient(_make_profile(), transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError_, match="broken"):
                await client.get("/api/study/sessions/today")

    @pytest.mark.asyncio
    async def test_too_many_redirects_not_retried(self, no_sleep: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        async with AsyncClient(
            _make_profile(max_retries=3), transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(ConnectionError_, match="redirects"):
                await client.get("/api/study/dashboard")
        assert len(calls) == 1
        assert no_sleep == []
