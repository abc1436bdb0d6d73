"""Study read commands -- dashboard, timetables, completed subjects, statistics.

These are registered directly on the root app (``studytrack dashboard``,
``studytrack timetables`` ...) rather than as a sub-group.
"""

from __future__ import annotations

from typing import Any

import typer

from studytrack.commands._runtime import fail, run_coordinator
from studytrack.output import format_response, print_table, warning
from studytrack.study import StudyCoordinator


def register_study_commands(app: typer.Typer) -> None:
    app.command("dashboard")(dashboard)
    app.command("timetables")(timetables)
    app.command("completed")(completed)
    app.command("stats")(stats)


def dashboard(ctx: typer.Context) -> None:
    """Show today's reading time, session count, streaks and weekly series.

    Example::

        studytrack dashboard
        studytrack --json dashboard
    """

    async def _load(coordinator: StudyCoordinator) -> Any:
        summary = await coordinator.load_dashboard()
        if summary is None:
            exc = coordinator.dashboard.error
            fail(f"Dashboard unavailable: {exc}", exc)
        return summary

    summary = run_coordinator(ctx, _load)
    format_response(summary.model_dump(mode="json"))


def timetables(ctx: typer.Context) -> None:
    """List timetables; the active one is marked.

    When several timetables claim to be active, the first listed wins.
    """

    async def _load(coordinator: StudyCoordinator) -> Any:
        items = await coordinator.load_timetables()
        if items is None:
            exc = coordinator.timetables.error
            fail(f"Timetables unavailable: {exc}", exc)
        return items, coordinator.study_data.active_timetable

    items, active = run_coordinator(ctx, _load)
    rows = [[t.id or "", t.name or "", "yes" if t is active else ""] for t in items]
    print_table(["ID", "Name", "Active"], rows, title="Timetables")
    if active is None:
        warning("No active timetable.")


def completed(ctx: typer.Context) -> None:
    """Show the subjects completed today."""

    async def _load(coordinator: StudyCoordinator) -> list:
        return await coordinator.fetch_completed_subjects()

    format_response(run_coordinator(ctx, _load))


def stats(
    ctx: typer.Context,
    period: str = typer.Option("week", "--period", help="Reporting period: day, week, month, ..."),
) -> None:
    """Show aggregated session statistics for a period."""

    async def _load(coordinator: StudyCoordinator) -> Any:
        return await coordinator.fetch_session_stats(period)

    result = run_coordinator(ctx, _load)
    if result is None:
        fail(f"Statistics for '{period}' are unavailable.")
    format_response(result)
