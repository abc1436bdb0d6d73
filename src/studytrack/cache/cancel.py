"""Cooperative cancellation token handed to every fetch function."""

from __future__ import annotations

import asyncio


class CancelToken:
    """Signal that a fetch has been superseded or its consumer torn down.

    Cancelling a :class:`~studytrack.cache.fetch_cache.PendingRequest`
    flips the token *and* cancels the task running the fetch, so a fetch
    function blocked in an httpx call is interrupted without looking at the
    token. The token is what lets a result that arrived after cancellation be
    recognised and discarded.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        """Raise :class:`asyncio.CancelledError` if the token has been cancelled."""
        if self._cancelled:
            raise asyncio.CancelledError()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self._cancelled})"
