"""Shared Pydantic data models for discord-relay."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    ACCESS_DENIED = "access_denied"
    RELAY_SENT = "relay_sent"
    RELAY_FAILED = "relay_failed"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    transport: str | None = None  # "json" | "query"
    action: str
    result: str  # "sent" | "rejected" | "upstream_error" | "internal_error"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
