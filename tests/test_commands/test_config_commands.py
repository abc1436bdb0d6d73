"""Tests for the ``config`` command group."""

from __future__ import annotations

import json

import pytest

from studytrack.config import load_global_config, load_profile, save_profile
from studytrack.models import Profile


class TestShow:
    def test_show(self, invoke) -> None:
        result = invoke("--json", "--quiet", "config", "show")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["config"]["cache"]["ttl_seconds"] == 300
        assert data["config"]["refresh"]["min_interval_seconds"] == 2.0
        assert data["profile"]["name"] == "default"
        assert data["profile"]["base_url"] == "http://localhost:5000"


class TestSet:
    def test_set_float(self, invoke) -> None:
        result = invoke("config", "set", "cache.ttl_seconds", "600")
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.ttl_seconds == 600

    def test_set_bool(self, invoke) -> None:
        invoke("config", "set", "cache.enabled", "false")
        assert load_global_config().cache.enabled is False

    def test_set_top_level(self, invoke) -> None:
        invoke("config", "set", "default_profile", "work")
        assert load_global_config().default_profile == "work"

    def test_unknown_key(self, invoke) -> None:
        result = invoke("config", "set", "cache.size", "5")
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_bad_integer(self, invoke) -> None:
        result = invoke("config", "set", "cache.max_entries", "lots")
        assert result.exit_code == 2

    def test_validation_error(self, invoke) -> None:
        result = invoke("config", "set", "cache.max_entries", "0")
        assert result.exit_code == 2
        assert load_global_config().cache.max_entries == 128

    def test_cache_settings_apply(self, invoke, server) -> None:
        invoke("config", "set", "cache.enabled", "false")
        result = invoke("--json", "--quiet", "dashboard")
        assert result.exit_code == 0, result.output


class TestSetBaseUrl:
    def test_saves_profile(self, invoke, server) -> None:
        result = invoke("config", "set-base-url", "https://study.example.com/")
        assert result.exit_code == 0, result.output
        assert load_profile("default").base_url == "https://study.example.com"

        invoke("--json", "--quiet", "dashboard")
        assert server.requests[-1].url.host == "study.example.com"

    def test_rejects_non_http(self, invoke) -> None:
        result = invoke("config", "set-base-url", "ftp://example.com")
        assert result.exit_code == 2


class TestOutputFormatSetting:
    def test_configured_json_is_default(self, invoke, server) -> None:
        invoke("config", "set", "output.format", "json")
        result = invoke("--quiet", "dashboard")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["today_reading"] == 45

    def test_plain_flag_overrides_configured_json(self, invoke, server) -> None:
        invoke("config", "set", "output.format", "json")
        result = invoke("--plain", "--quiet", "dashboard")
        assert result.exit_code == 0, result.output
        with pytest.raises(json.JSONDecodeError):
            json.loads(result.stdout)

    def test_unknown_format_rejected(self, invoke) -> None:
        result = invoke("config", "set", "output.format", "yaml")
        assert result.exit_code == 2
        assert load_global_config().output.format == "auto"


class TestProfiles:
    def test_no_saved_profiles(self, invoke) -> None:
        result = invoke("config", "profiles")
        assert result.exit_code == 0, result.output
        assert "No saved profiles" in result.output

    def test_lists_and_marks_active(self, invoke, monkeypatch) -> None:
        save_profile(Profile(name="home", base_url="http://home.test"))
        save_profile(Profile(name="work", base_url="http://work.test"))
        monkeypatch.setenv("STUDYTRACK_PROFILE", "work")
        result = invoke("--json", "--quiet", "config", "profiles")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"Active": "", "Name": "home", "Base URL": "http://home.test"},
            {"Active": "*", "Name": "work", "Base URL": "http://work.test"},
        ]

    def test_unsaved_active_profile_is_reported(self, invoke) -> None:
        save_profile(Profile(name="home", base_url="http://home.test"))
        result = invoke("config", "profiles")
        assert result.exit_code == 0, result.output
        assert "'default' is not saved" in result.output

        result = invoke("--plain", "--quiet", "config", "profiles")
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == ["Active\tName\tBase URL", "\thome\thttp://home.test"]
