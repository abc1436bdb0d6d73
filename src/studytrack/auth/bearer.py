"""Bearer token authentication plugin.

Resolves a pre-existing token from the configured ``source`` (e.g.
``env:STUDYTRACK_TOKEN``, ``store:default``) and injects it as an
``Authorization: Bearer <token>`` header. No token exchange or refresh is
performed; tokens are issued by the API's own login flow.
"""

from __future__ import annotations

from studytrack.auth.base import AuthPlugin, AuthResult
from studytrack.config import resolve_credential
from studytrack.models import AuthConfig


class BearerAuthPlugin(AuthPlugin):
    """Authenticate via Bearer token in the Authorization header."""

    @property
    def auth_type(self) -> str:
        return "bearer"

    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        token = resolve_credential(auth_config.source)
        return AuthResult(headers={"Authorization": f"Bearer {token}"})

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        errors: list[str] = []
        if not auth_config.source:
            errors.append("Bearer auth requires a 'source' for the token")
        return errors
