"""HTTP client module for studytrack.

Provides :class:`AsyncClient`, a non-blocking wrapper around
:class:`httpx.AsyncClient` with process-wide bearer auth injection, retry
with exponential backoff, and typed error mapping.

Example::

    from studytrack.client import AsyncClient

    async with AsyncClient(profile, auth_manager=manager) as client:
        resp = await client.get("/api/study/dashboard")
"""

from studytrack.client.async_client import AsyncClient
from studytrack.client.response import extract_response_data

__all__ = ["AsyncClient", "extract_response_data"]
