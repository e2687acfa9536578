"""Tests for environment-driven relay settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from discord_relay.config import RelaySettings, split_list
from discord_relay.errors import ConfigError


def test_defaults_from_empty_environment() -> None:
    settings = RelaySettings.from_env({})
    assert settings.webhook_url is None
    assert settings.shared_secret is None
    assert settings.allowed_origins == ()
    assert settings.allowed_referers == ()
    assert settings.require_api_key is True
    assert settings.rate_limit == 60
    assert settings.relay_path == "/relay"
    assert settings.port == 3000


def test_reads_all_variables() -> None:
    settings = RelaySettings.from_env({
        "DISCORD_WEBHOOK_URL": "https://discord.example/api/webhooks/1/x",
        "SHARED_SECRET": "s3cret",
        "ALLOWED_ORIGINS": "https://a.example, https://b.example,,",
        "ALLOWED_REFERERS": "https://game.example/",
        "REQUIRE_API_KEY": "false",
        "RATE_LIMIT_PER_MINUTE": "10",
        "RELAY_PATH": "api/discord",
        "AUDIT_LOG_PATH": "/tmp/audit.jsonl",
        "PORT": "8080",
    })
    assert settings.webhook_url == "https://discord.example/api/webhooks/1/x"
    assert settings.shared_secret == "s3cret"
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.allowed_referers == ("https://game.example/",)
    assert settings.require_api_key is False
    assert settings.rate_limit == 10
    assert settings.relay_path == "/api/discord"
    assert settings.audit_log_path == "/tmp/audit.jsonl"
    assert settings.port == 8080


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHARED_SECRET", "from-env")
    assert RelaySettings.from_env().shared_secret == "from-env"


def test_empty_values_treated_as_unset() -> None:
    settings = RelaySettings.from_env({"DISCORD_WEBHOOK_URL": "", "SHARED_SECRET": ""})
    assert settings.webhook_url is None
    assert settings.shared_secret is None


@pytest.mark.parametrize(
    "env",
    [
        {"REQUIRE_API_KEY": "maybe"},
        {"RATE_LIMIT_PER_MINUTE": "lots"},
        {"RATE_LIMIT_PER_MINUTE": "-1"},
        {"PORT": "0"},
        {"PORT": "70000"},
    ],
)
def test_invalid_values_raise_config_error(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        RelaySettings.from_env(env)


def test_settings_are_frozen() -> None:
    settings = RelaySettings()
    with pytest.raises(ValidationError):
        settings.shared_secret = "changed"  # type: ignore[misc]


def test_split_list() -> None:
    assert split_list(None) == ()
    assert split_list(" a , ,b ") == ("a", "b")
