"""Study-session coordinator.

:class:`StudyCoordinator` owns the client-side view of a learner's study
state and is the only thing the CLI talks to. It reads the two heavy
aggregates (dashboard and timetables) through a shared
:class:`~studytrack.cache.FetchCache` and calls every other endpoint
directly.

Failure policy: no network failure escapes. Every API call is wrapped at the
call site, logged on this module's logger, and turned into a neutral result:

* cached reads keep their previous data and expose ``error`` on the handle;
* ``fetch_completed_subjects`` resets the list to empty, so completions
  from an earlier fetch are never shown as current;
* ``fetch_session_stats`` returns ``None``;
* session mutations leave local state exactly as it was before the call.

Cancellation is never treated as a failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from studytrack.api import StudyApi
from studytrack.cache import CachedRead, CancelToken, FetchCache
from studytrack.exceptions import InvalidUsageError, StudytrackError
from studytrack.models import (
    CompletedSession,
    DashboardSummary,
    Note,
    SessionState,
    SessionStatus,
    StudyData,
    Timetable,
)
from studytrack.study.derive import find_active_timetable, sort_notes
from studytrack.study.rate_gate import RateGate

logger = logging.getLogger(__name__)

DASHBOARD_KEY = "dashboard"
TIMETABLES_KEY = "timetables"

DEFAULT_REFRESH_INTERVAL = 2.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudyCoordinator:
    """Session lifecycle and study reads for one learner.

    Args:
        api: Endpoint facade over an entered client.
        cache: Fetch cache shared with any other consumer of the dashboard
            and timetable keys.
        refresh_interval: Minimum seconds between accepted
            :meth:`refresh_dashboard_and_timetables` calls.
        clock: Monotonic time source for the refresh gate.
        now: Wall-clock source for session start/end timestamps.

    Attributes:
        study_data: Composite state; replaced (never mutated) on each update.
        current_session: The in-progress session record, or ``None``.
        is_studying: Whether the current session is running (not paused).
        loading_notes: ``True`` while :meth:`fetch_notes` is awaiting the API.
    """

    def __init__(
        self,
        api: StudyApi,
        cache: FetchCache,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._api = api
        self._cache = cache
        self._now = now
        self._refresh_gate = RateGate(refresh_interval, clock)

        self.study_data = StudyData()
        self.current_session: Optional[SessionState] = None
        self.is_studying = False
        self.loading_notes = False

        self._dashboard: CachedRead[DashboardSummary] = cache.reader(
            DASHBOARD_KEY, self._fetch_dashboard
        )
        self._timetables: CachedRead[list[Timetable]] = cache.reader(
            TIMETABLES_KEY, self._fetch_timetables
        )

    # ------------------------------------------------------------------ #
    # Cached reads
    # ------------------------------------------------------------------ #

    @property
    def dashboard(self) -> CachedRead[DashboardSummary]:
        return self._dashboard

    @property
    def timetables(self) -> CachedRead[list[Timetable]]:
        return self._timetables

    @property
    def loading(self) -> bool:
        """True while either cached aggregate is being fetched."""
        return self._dashboard.loading or self._timetables.loading

    async def _fetch_dashboard(self, token: CancelToken) -> DashboardSummary:
        return await self._api.get_dashboard()

    async def _fetch_timetables(self, token: CancelToken) -> list[Timetable]:
        return await self._api.get_timetables()

    async def load_dashboard(self) -> Optional[DashboardSummary]:
        summary = await self._dashboard.load()
        if summary is not None:
            self._update(
                today_reading=summary.today_reading,
                study_sessions=summary.study_sessions,
                current_streak=summary.current_streak,
                highest_streak=summary.highest_streak,
                weekly_data=summary.weekly_data,
            )
        return summary

    async def load_timetables(self) -> Optional[list[Timetable]]:
        timetables = await self._timetables.load()
        if timetables is not None:
            self._update(
                timetables=timetables,
                active_timetable=find_active_timetable(timetables),
            )
        return timetables

    async def load_overview(self) -> StudyData:
        """Load dashboard and timetables concurrently.

        The two reads are independent; each merges its slice into
        :attr:`study_data` as it completes.
        """
        await asyncio.gather(self.load_dashboard(), self.load_timetables())
        return self.study_data

    def refresh_dashboard_and_timetables(self) -> bool:
        """Invalidate the dashboard and timetable entries, at most once per interval.

        Calls inside the interval of the last accepted call are dropped
        silently. The next :meth:`load_dashboard` / :meth:`load_timetables`
        fetches fresh data.

        Returns:
            ``True`` if the call was accepted.
        """
        if not self._refresh_gate.allow():
            logger.debug("Dashboard refresh suppressed by rate limit")
            return False
        self._dashboard.invalidate()
        self._timetables.invalidate()
        return True

    # ------------------------------------------------------------------ #
    # Session lifecycle
    # ------------------------------------------------------------------ #

    async def fetch_current_session(self) -> Optional[SessionState]:
        """Restore the in-progress session from the API, if there is one."""
        try:
            state = await self._api.get_state()
        except StudytrackError as exc:
            logger.error("Failed to fetch session state: %s", exc)
            return self.current_session
        if state is not None:
            self.current_session = state
            self.is_studying = state.status is SessionStatus.ACTIVE
        return self.current_session

    async def start_session(self, subject: str) -> Optional[SessionState]:
        """Start a session on *subject*; returns the stored record or ``None`` on failure."""
        state = SessionState(
            current_subject=subject,
            elapsed_time=0,
            start_time=self._now(),
            status=SessionStatus.ACTIVE,
        )
        try:
            stored = await self._api.save_state(state)
        except StudytrackError as exc:
            logger.error("Failed to start session: %s", exc)
            return None
        self.current_session = stored
        self.is_studying = True
        return stored

    async def pause_session(self) -> bool:
        return await self._set_status(SessionStatus.PAUSED)

    async def resume_session(self) -> bool:
        return await self._set_status(SessionStatus.ACTIVE)

    async def _set_status(self, status: SessionStatus) -> bool:
        if self.current_session is None:
            logger.warning("Cannot mark session %s: no current session", status.value)
            return False
        updated = self.current_session.model_copy(update={"status": status})
        try:
            await self._api.save_state(updated)
        except StudytrackError as exc:
            logger.error("Failed to mark session %s: %s", status.value, exc)
            return False
        self.current_session = updated
        self.is_studying = status is SessionStatus.ACTIVE
        return True

    async def end_session(
        self,
        actual_time: int,
        notes: str = "",
        target_time: Optional[int] = None,
    ) -> bool:
        """Record the current session as completed and clear it.

        The completed record is created and the state record deleted before
        anything local changes; if either call fails the session stays as it
        was. On success the dashboard refresh is requested (subject to the
        rate limit) and today's completed subjects are re-read.
        """
        session = self.current_session
        if session is None:
            logger.warning("Cannot end session: no current session")
            return False

        record = CompletedSession(
            subject=session.current_subject,
            actual_time=actual_time,
            target_time=target_time,
            start_time=session.start_time,
            end_time=self._now(),
            completed=True,
            notes=notes,
        )
        try:
            await self._api.create_session(record)
            await self._api.clear_state()
        except StudytrackError as exc:
            logger.error("Failed to end session: %s", exc)
            return False

        self.current_session = None
        self.is_studying = False

        self.refresh_dashboard_and_timetables()
        await self.fetch_completed_subjects()
        return True

    # ------------------------------------------------------------------ #
    # Direct reads
    # ------------------------------------------------------------------ #

    async def fetch_completed_subjects(self) -> list[dict[str, Any]]:
        try:
            subjects = await self._api.get_completed_today()
        except StudytrackError as exc:
            logger.error("Failed to fetch completed subjects: %s", exc)
            subjects = []
        self._update(completed_subjects=subjects)
        return subjects

    async def fetch_session_stats(self, period: str = "week") -> Optional[Any]:
        """Return statistics for *period*, or ``None`` if they are unavailable."""
        try:
            return await self._api.get_session_stats(period)
        except StudytrackError as exc:
            logger.error("Failed to fetch session stats: %s", exc)
            return None

    async def fetch_notes(
        self,
        search: str = "",
        subject: str = "",
        page: int = 1,
        limit: int = 20,
    ) -> list[Note]:
        self.loading_notes = True
        try:
            notes = await self._api.list_notes(search, subject, page, limit)
            self._update(notes=notes)
        except StudytrackError as exc:
            logger.error("Failed to fetch notes: %s", exc)
        finally:
            self.loading_notes = False
        return self.study_data.notes

    async def initialize(self) -> None:
        """Initial fetch of the running session and today's completions."""
        await asyncio.gather(self.fetch_current_session(), self.fetch_completed_subjects())

    # ------------------------------------------------------------------ #
    # Notes
    # ------------------------------------------------------------------ #

    async def create_note(
        self,
        title: str,
        body: str,
        tags: Iterable[str] = (),
        subject: Optional[str] = None,
        is_pinned: bool = False,
    ) -> Optional[Note]:
        _require_text(title, body)
        note = Note(
            title=title,
            body=body,
            tags=_unique(tags),
            subject=subject,
            is_pinned=is_pinned,
        )
        try:
            created = await self._api.create_note(note)
        except StudytrackError as exc:
            logger.error("Failed to add note: %s", exc)
            return None
        self._update(notes=sort_notes([created, *self.study_data.notes]))
        return created

    async def update_note(self, note: Note) -> Optional[Note]:
        if not note.id:
            raise InvalidUsageError("Cannot update a note without an id")
        _require_text(note.title, note.body)
        try:
            stored = await self._api.update_note(note.id, note)
        except StudytrackError as exc:
            logger.error("Failed to update note: %s", exc)
            return None
        self._replace_note(note.id, stored)
        return stored

    async def toggle_pin(self, note: Note) -> Optional[Note]:
        if not note.id:
            raise InvalidUsageError("Cannot pin a note without an id")
        flipped = note.model_copy(update={"is_pinned": not note.is_pinned})
        try:
            stored = await self._api.update_note(note.id, flipped)
        except StudytrackError as exc:
            logger.error("Failed to toggle pin: %s", exc)
            return None
        self._replace_note(note.id, stored)
        return stored

    async def delete_note(self, note_id: str) -> bool:
        try:
            await self._api.delete_note(note_id)
        except StudytrackError as exc:
            logger.error("Failed to delete note: %s", exc)
            return False
        self._update(notes=[n for n in self.study_data.notes if n.id != note_id])
        return True

    def find_note(self, note_id: str) -> Optional[Note]:
        for note in self.study_data.notes:
            if note.id == note_id:
                return note
        return None

    # ------------------------------------------------------------------ #
    # Teardown
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Cancel any cached read still in flight."""
        self._dashboard.close()
        self._timetables.close()

    async def __aenter__(self) -> StudyCoordinator:
        return self

    async def __aexit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _update(self, **fields: Any) -> None:
        self.study_data = self.study_data.model_copy(update=fields)

    def _replace_note(self, note_id: str, stored: Note) -> None:
        notes = [stored if n.id == note_id else n for n in self.study_data.notes]
        self._update(notes=sort_notes(notes))


def _require_text(title: str, body: str) -> None:
    if not title.strip() or not body.strip():
        raise InvalidUsageError("A note needs a non-empty title and body")


def _unique(tags: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
