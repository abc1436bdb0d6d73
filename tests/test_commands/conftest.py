"""Fixtures for CLI command tests: an in-memory study API behind a MockTransport."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import pytest

from studytrack.app import app


EPOCH = datetime(2024, 5, 1, tzinfo=timezone.utc)


class StudyServer:
    """Minimal in-memory implementation of the ``/api/study`` endpoints.

    ``fail`` maps ``(method, path)`` to a status code returned instead of
    the normal answer. Every request is kept in ``requests``.
    """

    def __init__(self) -> None:
        self.dashboard: dict[str, Any] = {
            "todayReading": 45,
            "studySessions": 3,
            "currentStreak": 2,
            "highestStreak": 7,
            "weeklyData": [10, 20, 15],
        }
        self.timetables: list[dict[str, Any]] = [
            {"_id": "t1", "name": "Term", "isActive": False},
            {"_id": "t2", "name": "Exams", "isActive": True},
        ]
        self.state: Optional[dict[str, Any]] = None
        self.sessions: list[dict[str, Any]] = []
        self.notes: list[dict[str, Any]] = []
        self.fail: dict[tuple[str, str], int] = {}
        self.requests: list[httpx.Request] = []
        self._next_id = 1

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def add_note(self, **fields: Any) -> dict[str, Any]:
        note = {
            "_id": f"n{self._next_id}",
            "title": "Title",
            "body": "Body",
            "tags": [],
            "isPinned": False,
            "createdAt": (EPOCH + timedelta(hours=self._next_id)).isoformat(),
        }
        note.update(fields)
        self._next_id += 1
        self.notes.append(note)
        return note

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        if (method, path) in self.fail:
            return httpx.Response(self.fail[(method, path)], json={"message": "injected failure"})

        body = json.loads(request.content) if request.content else None
        prefix = "/api/study"
        route = path[len(prefix):] if path.startswith(prefix) else path

        if route == "/dashboard" and method == "GET":
            return httpx.Response(200, json=self.dashboard)
        if route == "/timetables" and method == "GET":
            return httpx.Response(200, json=self.timetables)
        if route == "/state":
            if method == "GET":
                return httpx.Response(200, json=self.state or {})
            if method == "POST":
                self.state = body
                return httpx.Response(200, json=body)
            if method == "DELETE":
                self.state = None
                return httpx.Response(204)
        if route == "/sessions" and method == "POST":
            self.sessions.append(body)
            return httpx.Response(201, json={"_id": f"s{len(self.sessions)}", **body})
        if route == "/sessions/today" and method == "GET":
            return httpx.Response(
                200,
                json=[{"subject": s["subject"], "actualTime": s["actualTime"]} for s in self.sessions],
            )
        if route == "/sessions/stats" and method == "GET":
            period = request.url.params.get("period")
            return httpx.Response(200, json={"period": period, "totalTime": 5400})
        if route == "/notes":
            if method == "GET":
                page = int(request.url.params.get("page", 1))
                limit = int(request.url.params.get("limit", 20))
                return httpx.Response(200, json=self.notes[(page - 1) * limit : page * limit])
            if method == "POST":
                created = self.add_note(**body)
                return httpx.Response(201, json=created)
        if route.startswith("/notes/"):
            note_id = route[len("/notes/"):]
            for index, note in enumerate(self.notes):
                if note["_id"] != note_id:
                    continue
                if method == "PUT":
                    self.notes[index] = {**note, **body}
                    return httpx.Response(200, json=self.notes[index])
                if method == "DELETE":
                    del self.notes[index]
                    return httpx.Response(204)
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def server() -> StudyServer:
    return StudyServer()


@pytest.fixture
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _sleep(delay: float) -> None:
        return None

    monkeypatch.setattr("studytrack.client.async_client.asyncio.sleep", _sleep)


@pytest.fixture
def invoke(cli_runner, server: StudyServer, isolated_config, no_backoff):
    """Run the CLI against *server*; returns the click ``Result``."""

    def _invoke(*args: str, input: Optional[str] = None):
        return cli_runner.invoke(
            app,
            list(args),
            obj={"transport": httpx.MockTransport(server)},
            input=input,
        )

    return _invoke
