"""Pure derivations over API payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from studytrack.models import Note, Timetable


def find_active_timetable(timetables: Iterable[Timetable]) -> Optional[Timetable]:
    """Return the first timetable flagged active, or ``None``.

    The API does not guarantee that only one timetable is active; list order
    breaks the tie.
    """
    for timetable in timetables:
        if timetable.is_active:
            return timetable
    return None


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created(note: Note) -> datetime:
    created = note.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def sort_notes(notes: Iterable[Note]) -> list[Note]:
    """Pinned notes first, then newest first by ``created_at``."""
    return sorted(notes, key=lambda n: (not n.is_pinned, -_created(n).timestamp()))
