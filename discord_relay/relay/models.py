"""Data models for the relay pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CodeEncoding(str, Enum):
    PLAIN = "plain"
    BASE64 = "base64"


class AccessReason(str, Enum):
    OK = "ok"
    BAD_ORIGIN = "bad_origin"
    BAD_REFERER = "bad_referer"
    BAD_CREDENTIAL = "bad_credential"
    RATE_LIMITED = "rate_limited"


class RelayStatus(str, Enum):
    SENT = "sent"
    REJECTED = "rejected"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class RelayRequest:
    """Canonical inbound request, independent of the transport it came from."""

    message: str | None = None
    code: str | None = None
    language: str | None = None
    code_encoding: CodeEncoding = CodeEncoding.PLAIN
    embeds: Any = None

    def has_content(self) -> bool:
        return bool(self.message) or bool(self.code) or bool(self.embeds)


@dataclass(frozen=True)
class OutboundPayload:
    """Body sent to the downstream webhook."""

    content: str
    embeds: Any = None

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"content": self.content}
        if self.embeds is not None:
            body["embeds"] = self.embeds
        return body


@dataclass(frozen=True)
class RequestMeta:
    """Request attributes the access gate looks at."""

    origin: str | None = None
    referer: str | None = None
    api_key: str | None = None
    client_id: str = "unknown"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: AccessReason = AccessReason.OK
    cors_headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RelayResult:
    """Outcome of one dispatch."""

    status: RelayStatus
    reason: str | None = None
    detail: str | None = None
    upstream_status: int | None = None

    @property
    def sent(self) -> bool:
        return self.status == RelayStatus.SENT
