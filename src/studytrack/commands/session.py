"""Session commands -- drive the in-progress study session.

The server keeps at most one in-progress session per learner. Each command
restores it first, so ``pause``, ``resume`` and ``end`` act on whatever a
previous invocation (or another device) started.

Typical workflow::

    studytrack session start "Linear algebra"
    studytrack session pause
    studytrack session resume
    studytrack session end --actual-time 2700 --notes "chapter 4"
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from studytrack.commands._runtime import fail, run_coordinator
from studytrack.output import format_response, info, success
from studytrack.study import StudyCoordinator


session_app = typer.Typer(no_args_is_help=True)


def _session_payload(coordinator: StudyCoordinator) -> Optional[dict[str, Any]]:
    if coordinator.current_session is None:
        return None
    payload = coordinator.current_session.model_dump(mode="json", exclude_none=True)
    payload["is_studying"] = coordinator.is_studying
    return payload


@session_app.command("status")
def session_status(ctx: typer.Context) -> None:
    """Show the running session and the subjects completed today.

    Example::

        studytrack session status
        studytrack --json session status
    """

    async def _load(coordinator: StudyCoordinator) -> dict[str, Any]:
        await coordinator.initialize()
        return {
            "session": _session_payload(coordinator),
            "completed_today": coordinator.study_data.completed_subjects,
        }

    result = run_coordinator(ctx, _load)
    if result["session"] is None:
        info("No session in progress.")
    format_response(result)


@session_app.command("start")
def session_start(
    ctx: typer.Context,
    subject: str = typer.Argument(help="Subject to study."),
) -> None:
    """Start a new session on SUBJECT.

    Any session already in progress on the server is replaced.
    """
    if not subject.strip():
        fail("Subject must not be empty.")

    async def _start(coordinator: StudyCoordinator) -> Optional[dict[str, Any]]:
        if await coordinator.start_session(subject) is None:
            return None
        return _session_payload(coordinator)

    payload = run_coordinator(ctx, _start)
    if payload is None:
        fail(f"Could not start a session on '{subject}'.")
    success(f"Started studying {subject}.")
    format_response(payload)


def _transition(ctx: typer.Context, verb: str, pause: bool) -> None:
    async def _run(coordinator: StudyCoordinator) -> bool:
        await coordinator.fetch_current_session()
        if coordinator.current_session is None:
            return False
        if pause:
            return await coordinator.pause_session()
        return await coordinator.resume_session()

    if not run_coordinator(ctx, _run):
        fail(f"Could not {verb} the session (is one in progress?).")
    success(f"Session {verb}d.")


@session_app.command("pause")
def session_pause(ctx: typer.Context) -> None:
    """Pause the running session."""
    _transition(ctx, "pause", pause=True)


@session_app.command("resume")
def session_resume(ctx: typer.Context) -> None:
    """Resume a paused session."""
    _transition(ctx, "resume", pause=False)


@session_app.command("end")
def session_end(
    ctx: typer.Context,
    actual_time: int = typer.Option(
        ..., "--actual-time", min=0, help="Seconds actually studied."
    ),
    target_time: Optional[int] = typer.Option(
        None, "--target-time", min=0, help="Seconds planned for the session."
    ),
    notes: str = typer.Option("", "--notes", help="Free-text notes for the record."),
) -> None:
    """Record the running session as completed and clear it.

    If the server rejects either step the session stays in progress and can
    be ended again.
    """

    async def _end(coordinator: StudyCoordinator) -> Optional[list]:
        await coordinator.fetch_current_session()
        if coordinator.current_session is None:
            return None
        ended = await coordinator.end_session(actual_time, notes=notes, target_time=target_time)
        return coordinator.study_data.completed_subjects if ended else None

    completed = run_coordinator(ctx, _end)
    if completed is None:
        fail("Could not end the session (is one in progress?).")
    success("Session recorded.")
    format_response({"completed_today": completed})
