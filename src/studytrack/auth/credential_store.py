"""Per-profile bearer token storage.

``studytrack auth login`` saves the token the study API issued into
``<data dir>/credentials/<profile>.json`` with ``0o600`` permissions; a
profile whose auth source is ``store:<profile>`` reads it back on every run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from studytrack.config import get_data_dir, read_model, write_json
from studytrack.exceptions import ConfigError


class CredentialEntry(BaseModel):
    """A stored token and, when the API told us, when it stops working."""

    auth_type: str = Field(default="bearer")
    credential: str
    expires_at: Optional[datetime] = None

    def expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return (now or datetime.now(timezone.utc)) >= expires


class CredentialStore:
    """The token file of one profile.

    Example::

        store = CredentialStore("default")
        store.save(CredentialEntry(credential="tok123"))
        assert store.load_valid().credential == "tok123"
    """

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        self.path: Path = get_data_dir() / "credentials" / f"{profile_name}.json"

    def save(self, entry: CredentialEntry) -> None:
        write_json(self.path, entry.model_dump(mode="json"), mode=0o600)

    def load(self) -> Optional[CredentialEntry]:
        """Return the stored entry; ``None`` if there is none or it is unreadable."""
        if not self.path.is_file():
            return None
        try:
            return read_model(self.path, CredentialEntry, "stored credential")
        except (ConfigError, OSError):
            return None

    def load_valid(self) -> Optional[CredentialEntry]:
        """Return the stored entry only while it has not expired."""
        entry = self.load()
        if entry is None or entry.expired():
            return None
        return entry

    def is_valid(self) -> bool:
        return self.load_valid() is not None

    def clear(self) -> bool:
        """Delete the token file; returns whether there was one."""
        if not self.path.is_file():
            return False
        self.path.unlink()
        return True
