"""Study-session coordination on top of the fetch cache.

- :class:`StudyCoordinator` -- session lifecycle (start, pause, resume, end)
  and the dashboard/timetable/notes/statistics reads behind it.
- :class:`RateGate` -- the minimum-interval gate guarding the coordinated
  dashboard+timetables refresh.
- :func:`find_active_timetable`, :func:`sort_notes` -- pure helpers over API
  payloads.
"""

from studytrack.study.coordinator import DASHBOARD_KEY, TIMETABLES_KEY, StudyCoordinator
from studytrack.study.derive import find_active_timetable, sort_notes
from studytrack.study.rate_gate import RateGate

__all__ = [
    "DASHBOARD_KEY",
    "TIMETABLES_KEY",
    "RateGate",
    "StudyCoordinator",
    "find_active_timetable",
    "sort_notes",
]
