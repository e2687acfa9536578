"""Relay error taxonomy.

Parsing and validation steps raise these; the dispatcher turns them into
RelayResult values and the transport adapters turn results back into
errors via ``error_from_result`` to render the wire response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord_relay.relay.models import RelayResult

MAX_DETAIL_LENGTH = 500


def bound_detail(text: str | None, limit: int = MAX_DETAIL_LENGTH) -> str | None:
    """Clip diagnostic text before it is exposed to a caller."""
    if text is None:
        return None
    return text[:limit]


class RelayError(Exception):
    """Base class for every error the relay reports to a caller."""

    status_code = 500
    reason = "unexpected"

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = bound_detail(detail)
        super().__init__(message)


class ClientInputError(RelayError):
    """Missing or invalid content, bad base64, malformed JSON."""

    status_code = 400
    reason = "invalid_input"


class AuthError(RelayError):
    """Bad credential or disallowed origin."""

    status_code = 401
    reason = "bad_credential"


class ForbiddenError(RelayError):
    """Referer outside the allowlist."""

    status_code = 403
    reason = "bad_referer"


class RateLimitError(RelayError):
    status_code = 429
    reason = "rate_limited"


class ConfigError(RelayError):
    """Relay is missing required configuration."""

    status_code = 500
    reason = "not_configured"


class UpstreamError(RelayError):
    """Downstream webhook answered with a non-success status."""

    status_code = 502
    reason = "upstream_error"

    def __init__(
        self, message: str, upstream_status: int | None, detail: str | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(message, detail)


class InternalRelayError(RelayError):
    status_code = 500


_REJECTION_ERRORS: dict[str, tuple[type[RelayError], str]] = {
    "bad_origin": (AuthError, "Unauthorized"),
    "bad_credential": (AuthError, "Unauthorized"),
    "bad_referer": (ForbiddenError, "Forbidden"),
    "rate_limited": (RateLimitError, "Too many requests"),
    "missing_content": (ClientInputError, "content or code required"),
    "invalid_input": (ClientInputError, "Invalid input"),
}


def error_from_result(result: RelayResult) -> RelayError | None:
    """Map a dispatch outcome onto the error it represents (None when sent)."""
    from discord_relay.relay.models import RelayStatus

    if result.status == RelayStatus.SENT:
        return None

    if result.status == RelayStatus.REJECTED:
        error_cls, default_message = _REJECTION_ERRORS.get(
            result.reason or "", (ClientInputError, "Bad request"),
        )
        message = result.detail if result.reason == "invalid_input" and result.detail else default_message
        error = error_cls(message)
        error.reason = result.reason or error_cls.reason
        return error

    if result.status == RelayStatus.UPSTREAM_ERROR:
        return UpstreamError(
            "Discord error", result.upstream_status, detail=result.detail,
        )

    if result.reason == "not_configured":
        return ConfigError("Webhook not configured")

    error = InternalRelayError("Relay failed", detail=result.detail)
    error.reason = result.reason or InternalRelayError.reason
    return error
