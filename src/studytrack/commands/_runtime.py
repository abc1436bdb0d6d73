"""Shared plumbing for commands that talk to the API.

Every API-backed command builds the same stack -- resolved profile, fetch
cache, authenticated :class:`~studytrack.client.AsyncClient`,
:class:`~studytrack.api.StudyApi` and
:class:`~studytrack.study.StudyCoordinator` -- runs one coroutine against
the coordinator, and tears the stack down again.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer

from studytrack.exceptions import StudytrackError
from studytrack.exit_codes import EXIT_GENERIC_FAILURE
from studytrack.output import debug, error
from studytrack.study import StudyCoordinator

T = TypeVar("T")


def _obj(ctx: typer.Context) -> dict:
    root = ctx.find_root()
    return root.obj if isinstance(root.obj, dict) else {}


def run_coordinator(
    ctx: typer.Context,
    action: Callable[[StudyCoordinator], Awaitable[T]],
) -> T:
    """Run *action* against a freshly built coordinator and return its result.

    Configuration failures are reported and turned into the error's exit
    code; everything the coordinator swallows has already been logged.
    """
    from studytrack.api import StudyApi
    from studytrack.auth import create_default_manager
    from studytrack.cache import FetchCache
    from studytrack.client import AsyncClient
    from studytrack.config import resolve_config

    obj = _obj(ctx)

    async def _main() -> T:
        global_cfg, profile = resolve_config(
            cli_profile=obj.get("profile"),
            cli_base_url=obj.get("base_url"),
        )
        debug(f"Using profile {profile.name!r} at {profile.base_url}")
        cache = FetchCache(global_cfg.cache)
        async with AsyncClient(
            profile,
            auth_manager=create_default_manager(),
            transport=obj.get("transport"),
        ) as client:
            if not client.is_authenticated:
                debug("No token available; sending unauthenticated requests")
            async with StudyCoordinator(
                StudyApi(client),
                cache,
                refresh_interval=global_cfg.refresh.min_interval_seconds,
            ) as coordinator:
                return await action(coordinator)

    try:
        return asyncio.run(_main())
    except StudytrackError as exc:
        fail(str(exc), exc)


def fail(message: str, exc: Optional[BaseException] = None) -> NoReturn:
    """Report *message* and exit with the exit code of *exc* (1 when it has none)."""
    error(message)
    raise typer.Exit(code=getattr(exc, "exit_code", EXIT_GENERIC_FAILURE))


def resolve_from_context(ctx: typer.Context):
    """Resolve ``(global_config, profile)`` honouring the root ``--profile``/``--base-url``."""
    from studytrack.config import resolve_config

    obj = _obj(ctx)
    try:
        return resolve_config(cli_profile=obj.get("profile"), cli_base_url=obj.get("base_url"))
    except StudytrackError as exc:
        fail(str(exc), exc)
