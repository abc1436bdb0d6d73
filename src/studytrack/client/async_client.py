"""Asynchronous HTTP client with process-wide auth, retry, and error mapping.

This module provides :class:`AsyncClient`, the transport every studytrack
API call goes through. It wraps :class:`httpx.AsyncClient` and layers on:

- **Auth injection** -- the bearer credential is resolved once when the
  client is entered and merged into every outgoing request. When no
  credential is available yet, requests go out unauthenticated until
  :meth:`AsyncClient.set_auth` installs one.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...) via :func:`asyncio.sleep`.
- **Error mapping** -- 4xx/5xx responses and transport failures become
  :class:`~studytrack.exceptions.StudytrackError` subclasses.

Cancelling the task that awaits a request aborts the underlying httpx call;
``asyncio.CancelledError`` is never caught or retried here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from studytrack.auth.base import AuthResult
from studytrack.auth.manager import AuthManager
from studytrack.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    RequestError,
    ServerError,
)
from studytrack.models import Profile

logger = logging.getLogger(__name__)


class AsyncClient:
    """Asynchronous HTTP client for study API calls.

    Must be used as an async context manager so that the underlying
    transport is opened and closed.

    Args:
        profile: The connection profile containing ``base_url``, auth
            config, and request settings (timeout, retries, SSL verify).
        auth_manager: Optional manager that resolves the bearer credential
            when the client is entered. When ``None``, no auth is injected
            unless :meth:`set_auth` is called.
        transport: Optional httpx transport, mainly for
            :class:`httpx.MockTransport` in tests.

    Example::

        async with AsyncClient(profile, auth_manager=am) as client:
            response = await client.get("/api/study/timetables")
    """

    def __init__(
        self,
        profile: Profile,
        auth_manager: Optional[AuthManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._auth_manager = auth_manager
        self._transport = transport
        self._auth_result: Optional[AuthResult] = None
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        config = self._profile.request
        self._client = httpx.AsyncClient(
            base_url=self._profile.base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        if self._auth_manager and self._profile.auth:
            try:
                self._auth_result = self._auth_manager.authenticate(self._profile)
            except ConfigError as exc:
                logger.debug("No credential available for %s: %s", self._profile.name, exc)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #

    @property
    def is_authenticated(self) -> bool:
        return bool(self._auth_result)

    def set_auth(self, auth_result: Optional[AuthResult]) -> None:
        """Install (or with ``None``, drop) the credential used for every later request."""
        self._auth_result = auth_result

    def set_token(self, token: str) -> None:
        """Shorthand for :meth:`set_auth` with a bearer token."""
        self.set_auth(AuthResult(headers={"Authorization": f"Bearer {token}"}))

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Make an HTTP request with auth injection, retry, and error mapping.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            path: URL path appended to the profile's ``base_url``.
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body.

        Returns:
            The :class:`httpx.Response` from the server.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            RequestError: On any other 4xx.
            ServerError: On 5xx after all retries are exhausted.
            ConnectionError_: On transport failures after all retries.
        """
        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})
        merged_params: dict[str, Any] = dict(params or {})

        merged_headers, merged_params = self._inject_auth(merged_headers, merged_params)

        response = await self._execute_with_retry(
            method, path, merged_headers, merged_params, json_body,
        )

        self._map_response_error(response)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _inject_auth(
        self,
        headers: dict[str, str],
        params: dict[str, Any],
    ) -> tuple[dict[str, str], dict[str, Any]]:
        """Merge auth credentials into *headers* and *params*."""
        if self._auth_result is None:
            return headers, params
        merged_headers = {**self._auth_result.headers, **headers}
        merged_params = {**self._auth_result.params, **params}
        return merged_headers, merged_params

    async def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        json_body: Any,
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and on any :class:`httpx.TransportError`
        (connect, timeout, dropped connection, protocol and proxy failures) up
        to ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s,
        4 s, ... Any other :class:`httpx.HTTPError`, such as too many
        redirects, becomes :class:`ConnectionError_` without a retry.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        max_retries = self._profile.request.max_retries
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                kwargs: dict[str, Any] = {
                    "method": method,
                    "url": path,
                    "headers": headers,
                    "params": params,
                }
                if json_body is not None:
                    kwargs["json"] = json_body

                response = await self._client.request(**kwargs)

                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Server error %s on %s %s, retrying in %ss (attempt %s/%s)",
                        response.status_code, method, path, delay, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except httpx.TransportError as exc:
                last_error = exc
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error on %s %s: %s, retrying in %ss (attempt %s/%s)",
                        method, path, exc, delay, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            except httpx.HTTPError as exc:
                raise ConnectionError_(f"Request to {method} {path} failed: {exc}") from exc

        if last_error is not None:  # pragma: no cover
            raise ConnectionError_(str(last_error)) from last_error
        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        if status >= 500:
            raise ServerError(full_msg)
        raise RequestError(full_msg)
