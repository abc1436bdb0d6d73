"""Tests for the ``auth`` command group."""

from __future__ import annotations

import json

from studytrack.auth.credential_store import CredentialStore


class TestLogin:
    def test_login_with_option(self, invoke) -> None:
        result = invoke("auth", "login", "--token", "tok123")
        assert result.exit_code == 0, result.output
        assert CredentialStore("default").load().credential == "tok123"

    def test_login_prompts(self, invoke) -> None:
        result = invoke("auth", "login", input="secret\n")
        assert result.exit_code == 0, result.output
        assert CredentialStore("default").load().credential == "secret"
        assert "secret" not in result.stdout

    def test_login_uses_active_profile(self, invoke, monkeypatch) -> None:
        monkeypatch.setenv("STUDYTRACK_PROFILE", "work")
        invoke("auth", "login", "--token", "work-token")
        assert CredentialStore("work").load().credential == "work-token"
        assert CredentialStore("default").load() is None

    def test_empty_token_rejected(self, invoke) -> None:
        result = invoke("auth", "login", "--token", "  ")
        assert result.exit_code == 1
        assert CredentialStore("default").load() is None

    def test_stored_token_is_sent(self, invoke, server) -> None:
        invoke("auth", "login", "--token", "tok123")
        result = invoke("--json", "--quiet", "dashboard")
        assert result.exit_code == 0, result.output
        assert server.requests[-1].headers["Authorization"] == "Bearer tok123"


class TestLogoutAndStatus:
    def test_logout(self, invoke) -> None:
        invoke("auth", "login", "--token", "tok123")
        result = invoke("auth", "logout")
        assert result.exit_code == 0, result.output
        assert CredentialStore("default").load() is None

    def test_logout_without_token(self, invoke) -> None:
        result = invoke("auth", "logout")
        assert result.exit_code == 0
        assert "No stored token" in result.output

    def test_status(self, invoke) -> None:
        invoke("auth", "login", "--token", "tok123")
        result = invoke("--json", "--quiet", "auth", "status")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["profile"] == "default"
        assert data["source"] == "store:default"
        assert data["stored"] is True
        assert data["valid"] is True
        assert data["expires_at"] is None
        assert "tok123" not in result.stdout
