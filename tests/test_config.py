"""Tests for startup configuration."""

import sys

import pytest

from core.config import (
    adapter_launch_command,
    available_adapters,
    cli_option,
    load_adapter_settings,
    parse_rate_limits,
    require_env,
)
from core.errors import FatalStartupError
from core.models import RateLimit


class TestParseRateLimits:
    def test_multiple_granularities(self):
        limits = parse_rate_limits("5/1s,80/60s")

        assert limits == (
            RateLimit(5, 1.0, label="5/1s"),
            RateLimit(80, 60.0, label="80/60s"),
        )

    def test_units(self):
        limits = parse_rate_limits("100/500ms, 10/2m, 5/1h, 15000/30d")

        assert [l.window for l in limits] == pytest.approx([0.5, 120.0, 3600.0, 30 * 86400.0])
        assert limits[-1].label == "15000/30d"

    def test_bare_number_means_seconds(self):
        (limit,) = parse_rate_limits("500/100")
        assert limit.window == 100.0
        assert limit.label == "500/100s"

    @pytest.mark.parametrize("value", ["", "five/1s", "5/1w", "0/1s", "5/0s", "5"])
    def test_invalid_limits_are_fatal(self, value):
        with pytest.raises(FatalStartupError):
            parse_rate_limits(value)


class TestLoadAdapterSettings:
    def test_defaults(self):
        settings = load_adapter_settings("ploomes-crm", env={})

        assert settings.timeout_ms == 30000
        assert [l.label for l in settings.rate_limits] == ["5/1s", "300/60s"]
        assert settings.category("ploomes_get_deal") == "ploomes-crm"

    def test_google_calendar_has_one_quota_per_tool(self):
        settings = load_adapter_settings("google-calendar", env={})

        assert settings.per_operation is True
        assert settings.category("google_calendar_list_events") == "google_calendar_list_events"
        assert settings.rate_limits == (RateLimit(500, 100.0, label="500/100s"),)

    def test_env_overrides(self):
        env = {"SLACK_RATE_LIMITS": "1/1s", "SLACK_TIMEOUT_MS": "2000"}
        settings = load_adapter_settings("slack", env=env)

        assert settings.timeout_ms == 2000
        assert [l.label for l in settings.rate_limits] == ["1/1s"]

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_bad_timeout_is_fatal(self, value):
        with pytest.raises(FatalStartupError):
            load_adapter_settings("brasil-api", env={"BRASIL_API_TIMEOUT_MS": value})

    def test_unknown_adapter(self):
        with pytest.raises(FatalStartupError):
            load_adapter_settings("twitter", env={})


class TestCredentials:
    def test_require_env_returns_values(self):
        env = {"A": "1", "B": "2"}
        assert require_env("A", "B", env=env) == {"A": "1", "B": "2"}

    def test_require_env_lists_every_missing_variable(self):
        with pytest.raises(FatalStartupError) as excinfo:
            require_env("SLACK_BOT_TOKEN", "SLACK_USER_TOKEN", "SLACK_TEAM_ID",
                        env={"SLACK_USER_TOKEN": "xoxp"})

        assert "SLACK_BOT_TOKEN" in str(excinfo.value)
        assert "SLACK_TEAM_ID" in str(excinfo.value)
        assert "SLACK_USER_TOKEN" not in str(excinfo.value)

    def test_empty_value_counts_as_missing(self):
        with pytest.raises(FatalStartupError):
            require_env("BRAVE_API_KEY", env={"BRAVE_API_KEY": ""})

    def test_cli_option(self):
        argv = ["--verbose", "--api-key=abc=123"]
        assert cli_option("api-key", argv) == "abc=123"
        assert cli_option("token", argv) is None

    def test_available_adapters(self):
        env = {
            "GOOGLE_ACCESS_TOKEN": "ya29",
            "BRAVE_API_KEY": "k",
            "SLACK_BOT_TOKEN": "xoxb",
        }
        assert available_adapters(env) == ["google-calendar", "brave-search", "brasil-api"]

    def test_brasil_api_needs_nothing(self):
        assert available_adapters({}) == ["brasil-api"]


def test_adapter_launch_command():
    command, args = adapter_launch_command("ploomes-crm")

    assert command == sys.executable
    assert args == ["-m", "tools.ploomes_crm_server"]
