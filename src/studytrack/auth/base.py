"""What an auth strategy must provide, and what it hands back.

The study API only speaks bearer tokens today (see
:mod:`studytrack.auth.bearer`); the split keeps :class:`AuthManager
<studytrack.auth.manager.AuthManager>` free of token details.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from studytrack.models import AuthConfig


class AuthResult:
    """Headers and query parameters added to every API request.

    An empty result is falsy, which is how the client tells an
    unauthenticated run apart.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}

    def __bool__(self) -> bool:
        return bool(self.headers or self.params)


class AuthPlugin(ABC):
    """One auth scheme, selected by ``AuthConfig.type``."""

    @property
    @abstractmethod
    def auth_type(self) -> str: ...

    @abstractmethod
    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        """Read the credential named by ``auth_config.source``.

        Raises:
            ConfigError: If the credential is unavailable.
        """

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        """List what is missing from *auth_config*; checked before :meth:`authenticate`."""
        return []
