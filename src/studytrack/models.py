"""Canonical Pydantic models shared across all studytrack modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AuthConfig`, :class:`RequestConfig`, :class:`OutputConfig`,
    :class:`CacheConfig`, :class:`RefreshConfig`, :class:`GlobalConfig`,
    :class:`ProjectConfig`, and
    :class:`Profile`.

**Wire models** -- payloads exchanged with the study API:
    :class:`SessionStatus`, :class:`SessionState`, :class:`CompletedSession`,
    :class:`DashboardSummary`, :class:`Timetable`, :class:`Note`, plus the
    client-side composite :class:`StudyData`.

The API speaks camelCase JSON and identifies documents with ``_id``. Wire
models accept both the camelCase alias and the Python field name, and keep
unknown fields in ``model_extra`` so nothing the server sends is dropped when
a record is echoed back (e.g. on pause/resume upserts).
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BASE_URL = "http://localhost:5000"


# --- Configuration ---


class AuthConfig(BaseModel):
    """Authentication configuration embedded in a :class:`Profile`.

    The API only understands bearer tokens, so ``type`` defaults to
    ``"bearer"``. ``source`` tells :func:`~studytrack.config.resolve_credential`
    where the token lives.

    Example::

        AuthConfig(source="env:STUDYTRACK_TOKEN")
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="bearer", description="Auth type: bearer")
    source: str = Field(
        default="prompt",
        description="Credential source: env:VAR, file:/path, prompt, store:PROFILE",
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """How command results are printed when neither ``--json`` nor ``--plain`` is given.

    ``auto`` prints Rich tables on a terminal and plain text when piped.
    """

    format: Literal["auto", "json", "plain", "rich"] = "auto"


class CacheConfig(BaseModel):
    """Fetch cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable the fetch cache")
    ttl_seconds: float = Field(default=300.0, description="Cache TTL in seconds")
    max_entries: int = Field(
        default=128, ge=1, description="Entries kept before the oldest is evicted"
    )


class RefreshConfig(BaseModel):
    """Rate window for the coordinated dashboard+timetables refresh."""

    min_interval_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Minimum time between accepted refresh invocations",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/studytrack/config.json``.

    Loaded and saved by :func:`~studytrack.config.load_global_config` and
    :func:`~studytrack.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags.
    """

    default_profile: Optional[str] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)


class ProjectConfig(BaseModel):
    """``./studytrack.json``: lets a working directory pin the profile to use."""

    model_config = ConfigDict(extra="ignore")

    default_profile: Optional[str] = None


class Profile(BaseModel):
    """Per-account profile stored as JSON under the ``profiles/`` config directory.

    A profile names one API deployment (``base_url``) and the credential
    used against it.

    See Also:
        :func:`~studytrack.config.load_profile`: Deserialise a profile by name.
        :func:`~studytrack.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    auth: Optional[AuthConfig] = None
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Wire models ---


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the camelCase JSON shape the API expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionStatus(str, enum.Enum):
    """Lifecycle status of the in-progress session record."""

    ACTIVE = "active"
    PAUSED = "paused"


class SessionState(_WireModel):
    """The in-progress session record stored at ``/api/study/state``."""

    current_subject: Optional[str] = None
    elapsed_time: int = 0
    start_time: Optional[datetime] = None
    status: SessionStatus = SessionStatus.ACTIVE


class CompletedSession(_WireModel):
    """A finished study interval posted to ``/api/study/sessions``."""

    subject: Optional[str] = None
    actual_time: int
    target_time: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    completed: bool = True
    notes: str = ""


class DashboardSummary(_WireModel):
    """Aggregate summary returned by ``/api/study/dashboard``."""

    today_reading: float = 0
    study_sessions: int = 0
    current_streak: int = 0
    highest_streak: int = 0
    weekly_data: list[Any] = Field(default_factory=list)


class Timetable(_WireModel):
    """A timetable document; at most one is expected to be active."""

    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    is_active: bool = False


class Note(_WireModel):
    """A study note."""

    id: Optional[str] = Field(default=None, alias="_id")
    title: str = ""
    body: str = ""
    tags: list[str] = Field(default_factory=list)
    subject: Optional[str] = None
    is_pinned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudyData(BaseModel):
    """Composite client-side state assembled by the session coordinator.

    Dashboard fields are merged in from :class:`DashboardSummary`; the rest is
    filled by the timetable, notes and completed-subjects reads, each of which
    updates only its own slice.
    """

    today_reading: float = 0
    study_sessions: int = 0
    current_streak: int = 0
    highest_streak: int = 0
    weekly_data: list[Any] = Field(default_factory=list)
    timetables: list[Timetable] = Field(default_factory=list)
    active_timetable: Optional[Timetable] = None
    notes: list[Note] = Field(default_factory=list)
    completed_subjects: list[dict[str, Any]] = Field(default_factory=list)
