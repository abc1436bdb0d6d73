"""Bearer-token authentication for studytrack.

The study API authenticates every call with an ``Authorization: Bearer``
header. This package resolves that token and hands it to the HTTP client:

- :class:`AuthPlugin` -- abstract base class for an auth strategy.
- :class:`BearerAuthPlugin` -- the one strategy the API accepts.
- :class:`AuthManager` / :func:`create_default_manager` -- registry that
  dispatches authentication for a :class:`~studytrack.models.Profile`.
- :class:`CredentialStore` -- persistent, per-profile token storage on disk.

Typical usage::

    from studytrack.auth import create_default_manager

    manager = create_default_manager()
    auth_result = manager.authenticate(profile)
"""

from studytrack.auth.base import AuthPlugin, AuthResult
from studytrack.auth.bearer import BearerAuthPlugin
from studytrack.auth.credential_store import CredentialEntry, CredentialStore
from studytrack.auth.manager import AuthManager, create_default_manager

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "AuthManager",
    "BearerAuthPlugin",
    "CredentialEntry",
    "CredentialStore",
    "create_default_manager",
]
