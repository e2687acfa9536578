"""Relay settings, read once from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from discord_relay.errors import ConfigError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def split_list(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated variable, dropping blanks."""
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{name} must not be negative")
    return value


class RelaySettings(BaseModel):
    """Immutable process-wide configuration shared by every component."""

    model_config = ConfigDict(frozen=True)

    webhook_url: str | None = None
    shared_secret: str | None = None
    allowed_origins: tuple[str, ...] = ()
    allowed_referers: tuple[str, ...] = ()
    require_api_key: bool = True
    rate_limit: int = Field(default=60, ge=0)
    rate_window_seconds: int = Field(default=60, gt=0)
    relay_path: str = "/relay"
    audit_log_path: str | None = None
    port: int = Field(default=3000, gt=0, lt=65536)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelaySettings:
        env = os.environ if environ is None else environ
        relay_path = env.get("RELAY_PATH", "").strip() or "/relay"
        if not relay_path.startswith("/"):
            relay_path = f"/{relay_path}"
        try:
            return cls._build(env, relay_path)
        except ValidationError as exc:
            raise ConfigError(f"Invalid relay configuration: {exc}") from exc

    @classmethod
    def _build(cls, env: Mapping[str, str], relay_path: str) -> RelaySettings:
        return cls(
            webhook_url=env.get("DISCORD_WEBHOOK_URL") or None,
            shared_secret=env.get("SHARED_SECRET") or None,
            allowed_origins=split_list(env.get("ALLOWED_ORIGINS")),
            allowed_referers=split_list(env.get("ALLOWED_REFERERS")),
            require_api_key=_parse_bool(
                "REQUIRE_API_KEY", env.get("REQUIRE_API_KEY"), True,
            ),
            rate_limit=_parse_int(
                "RATE_LIMIT_PER_MINUTE", env.get("RATE_LIMIT_PER_MINUTE"), 60,
            ),
            relay_path=relay_path,
            audit_log_path=env.get("AUDIT_LOG_PATH") or None,
            port=_parse_int("PORT", env.get("PORT"), 3000),
        )
