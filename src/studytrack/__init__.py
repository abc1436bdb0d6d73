"""studytrack -- async client and CLI for a study-tracking REST API.

The package talks to a remote study-tracking service (dashboard, timetables,
study sessions, notes) and keeps a small amount of client-side state in
front of it. The two pieces that carry real logic are:

* :mod:`studytrack.cache` -- a key-addressed fetch cache with a fixed TTL,
  request coalescing, explicit invalidation, and cooperative cancellation.
* :mod:`studytrack.study` -- the session coordinator that drives the study
  session lifecycle and rate-limits the coordinated dashboard refresh.

Typical usage::

    async with AsyncClient(profile, auth_manager=create_default_manager()) as client:
        coordinator = StudyCoordinator(StudyApi(client), FetchCache(CacheConfig()))
        await coordinator.initialize()
        await coordinator.load_overview()

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
