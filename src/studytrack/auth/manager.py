"""Turns a profile's ``auth`` section into the headers the study API wants.

:class:`~studytrack.client.AsyncClient` calls :meth:`AuthManager.authenticate`
once when it opens; a :class:`~studytrack.exceptions.ConfigError` from here
means "no token", and the client carries on unauthenticated.
"""

from __future__ import annotations

import logging
from typing import Iterable

from studytrack.auth.base import AuthPlugin, AuthResult
from studytrack.exceptions import AuthError, ConfigError
from studytrack.models import Profile

logger = logging.getLogger(__name__)


class AuthManager:
    """Picks the plugin named by ``profile.auth.type`` and runs it.

    Example::

        manager = AuthManager([BearerAuthPlugin()])
        headers = manager.authenticate(profile).headers
    """

    def __init__(self, plugins: Iterable[AuthPlugin] = ()) -> None:
        self._plugins: dict[str, AuthPlugin] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: AuthPlugin) -> None:
        self._plugins[plugin.auth_type] = plugin

    def list_types(self) -> list[str]:
        return sorted(self._plugins)

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Return the plugin for *auth_type*.

        Raises:
            AuthError: If none is registered; the message lists what is.
        """
        try:
            return self._plugins[auth_type]
        except KeyError:
            available = ", ".join(self.list_types()) or "(none)"
            raise AuthError(
                f"Unsupported auth type '{auth_type}' in profile. Available types: {available}"
            ) from None

    def authenticate(self, profile: Profile) -> AuthResult:
        """Resolve *profile*'s token into request headers.

        Returns:
            An empty :class:`~studytrack.auth.base.AuthResult` when the
            profile has no ``auth`` section.

        Raises:
            AuthError: If the auth type is not supported.
            ConfigError: If the auth section is incomplete or the token
                cannot be read from its source.
        """
        if profile.auth is None:
            return AuthResult()
        plugin = self.get_plugin(profile.auth.type)
        problems = plugin.validate_config(profile.auth)
        if problems:
            raise ConfigError(f"Profile '{profile.name}': {'; '.join(problems)}")
        logger.debug(
            "Reading %s token for %s from %s", plugin.auth_type, profile.name, profile.auth.source
        )
        return plugin.authenticate(profile.auth)


def create_default_manager() -> AuthManager:
    """Return a manager that knows the bearer scheme the study API uses."""
    from studytrack.auth.bearer import BearerAuthPlugin

    return AuthManager([BearerAuthPlugin()])
