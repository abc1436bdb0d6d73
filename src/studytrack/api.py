"""Typed wrapper over the study REST API.

:class:`StudyApi` exposes one coroutine per endpoint and validates response
bodies into the wire models of :mod:`studytrack.models`. It adds no state and
no error handling of its own: transport and HTTP failures surface as the
:class:`~studytrack.exceptions.StudytrackError` subclasses raised by
:class:`~studytrack.client.async_client.AsyncClient`, and malformed payloads
as :class:`~studytrack.exceptions.ResponseFormatError`.

Endpoints::

    GET    /api/study/dashboard
    GET    /api/study/timetables
    GET    /api/study/state
    POST   /api/study/state
    DELETE /api/study/state
    POST   /api/study/sessions
    GET    /api/study/sessions/today
    GET    /api/study/sessions/stats?period=
    GET    /api/study/notes?search=&subject=&page=&limit=
    POST   /api/study/notes
    PUT    /api/study/notes/{id}
    DELETE /api/study/notes/{id}
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from studytrack.client.async_client import AsyncClient
from studytrack.client.response import extract_response_data
from studytrack.exceptions import ResponseFormatError
from studytrack.models import (
    CompletedSession,
    DashboardSummary,
    Note,
    SessionState,
    Timetable,
)

API_PREFIX = "/api/study"

_timetables = TypeAdapter(list[Timetable])
_notes = TypeAdapter(list[Note])


def _validate(adapter: Any, data: Any, what: str) -> Any:
    try:
        if isinstance(adapter, type):
            return adapter.model_validate(data)
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ResponseFormatError(f"Unexpected {what} payload: {exc}") from exc


class StudyApi:
    """Endpoint-per-method facade over an entered :class:`AsyncClient`."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self._client.get(f"{API_PREFIX}{path}", params=params)
        return extract_response_data(response)

    # --- Aggregates ---

    async def get_dashboard(self) -> DashboardSummary:
        return _validate(DashboardSummary, await self._get("/dashboard"), "dashboard")

    async def get_timetables(self) -> list[Timetable]:
        return _validate(_timetables, await self._get("/timetables") or [], "timetables")

    # --- Current session state ---

    async def get_state(self) -> Optional[SessionState]:
        """Return the in-progress session, or ``None`` when there is none.

        The API answers with an empty body or an object without
        ``currentSubject`` when no session is running.
        """
        data = await self._get("/state")
        if not isinstance(data, dict) or not data.get("currentSubject"):
            return None
        return _validate(SessionState, data, "session state")

    async def save_state(self, state: SessionState) -> SessionState:
        """Upsert the in-progress session and return the stored record.

        Falls back to the submitted record when the API answers without a body.
        """
        response = await self._client.post(f"{API_PREFIX}/state", json_body=state.to_wire())
        data = extract_response_data(response)
        if not isinstance(data, dict):
            return state
        return _validate(SessionState, data, "session state")

    async def clear_state(self) -> None:
        await self._client.delete(f"{API_PREFIX}/state")

    # --- Completed sessions ---

    async def create_session(self, session: CompletedSession) -> Any:
        response = await self._client.post(
            f"{API_PREFIX}/sessions", json_body=session.to_wire()
        )
        return extract_response_data(response)

    async def get_completed_today(self) -> list[dict[str, Any]]:
        data = await self._get("/sessions/today")
        if data is None:
            return []
        if not isinstance(data, list):
            raise ResponseFormatError(
                f"Unexpected completed subjects payload: {type(data).__name__}"
            )
        return data

    async def get_session_stats(self, period: str = "week") -> Any:
        return await self._get("/sessions/stats", params={"period": period})

    # --- Notes ---

    async def list_notes(
        self,
        search: str = "",
        subject: str = "",
        page: int = 1,
        limit: int = 20,
    ) -> list[Note]:
        params = {"search": search, "subject": subject, "page": page, "limit": limit}
        data = await self._get("/notes", params=params)
        return _validate(_notes, data or [], "notes")

    async def create_note(self, note: Note) -> Note:
        response = await self._client.post(f"{API_PREFIX}/notes", json_body=note.to_wire())
        return _validate(Note, extract_response_data(response), "note")

    async def update_note(self, note_id: str, note: Note) -> Note:
        response = await self._client.put(
            f"{API_PREFIX}/notes/{note_id}", json_body=note.to_wire()
        )
        return _validate(Note, extract_response_data(response), "note")

    async def delete_note(self, note_id: str) -> None:
        await self._client.delete(f"{API_PREFIX}/notes/{note_id}")
