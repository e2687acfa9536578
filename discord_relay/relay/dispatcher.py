"""Relay dispatcher: one request, at most one downstream call.

Stages:
1. Honour the access decision
2. Require some content
3. Require a configured webhook URL
4. Normalize content
5. POST the payload to the webhook via httpx (no retries)
6. Audit log
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from discord_relay.errors import RelayError, bound_detail
from discord_relay.models import AuditEvent, AuditEventType, RiskLevel
from discord_relay.relay.models import (
    AccessDecision,
    RelayRequest,
    RelayResult,
    RelayStatus,
)
from discord_relay.relay.normalizer import normalize

if TYPE_CHECKING:
    from discord_relay.audit.logger import AuditLogger
    from discord_relay.config import RelaySettings

logger = logging.getLogger(__name__)


class RelayDispatcher:
    """Runs a single relay request against the downstream webhook."""

    def __init__(
        self,
        settings: RelaySettings,
        audit_logger: AuditLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._audit = audit_logger
        self._transport = transport

    async def dispatch(
        self,
        decision: AccessDecision,
        request: RelayRequest,
        source_ip: str | None = None,
        transport_name: str | None = None,
    ) -> RelayResult:
        result = await self._dispatch(decision, request)
        self._record(result, source_ip, transport_name)
        return result

    def reject(
        self,
        error: RelayError,
        source_ip: str | None = None,
        transport_name: str | None = None,
    ) -> RelayResult:
        """Record a request the transport refused before it could be dispatched."""
        result = RelayResult(
            RelayStatus.REJECTED, reason=error.reason, detail=bound_detail(error.message),
        )
        self._record(result, source_ip, transport_name)
        return result

    async def _dispatch(
        self, decision: AccessDecision, request: RelayRequest,
    ) -> RelayResult:
        if not decision.allowed:
            return RelayResult(RelayStatus.REJECTED, reason=decision.reason.value)

        if not request.has_content():
            return RelayResult(
                RelayStatus.REJECTED,
                reason="missing_content",
                detail="content or code required",
            )

        if not self._settings.webhook_url:
            return RelayResult(
                RelayStatus.INTERNAL_ERROR,
                reason="not_configured",
                detail="not configured",
            )

        try:
            payload = normalize(request)
        except RelayError as exc:
            return RelayResult(
                RelayStatus.REJECTED, reason=exc.reason, detail=bound_detail(exc.message),
            )
        except Exception as exc:
            logger.exception("Unexpected error while normalizing relay content")
            return RelayResult(
                RelayStatus.INTERNAL_ERROR, reason="unexpected", detail=bound_detail(str(exc)),
            )

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(self._settings.webhook_url, json=payload.to_json())
        except httpx.HTTPError as exc:
            logger.warning("Webhook request failed: %s", type(exc).__name__)
            return RelayResult(
                RelayStatus.INTERNAL_ERROR,
                reason="downstream_unreachable",
                detail=bound_detail(str(exc) or type(exc).__name__),
            )

        if resp.is_success:
            return RelayResult(RelayStatus.SENT, upstream_status=resp.status_code)

        return RelayResult(
            RelayStatus.UPSTREAM_ERROR,
            reason="upstream_error",
            detail=bound_detail(resp.text),
            upstream_status=resp.status_code,
        )

    def _record(
        self, result: RelayResult, source_ip: str | None, transport_name: str | None,
    ) -> None:
        if result.status == RelayStatus.SENT:
            logger.info("Relayed message (webhook status %s)", result.upstream_status)
        elif result.status == RelayStatus.REJECTED:
            logger.info("Rejected relay request: %s", result.reason)
        else:
            logger.warning(
                "Relay failed: %s (webhook status %s)", result.reason, result.upstream_status,
            )

        if not self._audit:
            return

        if result.status == RelayStatus.SENT:
            event_type, risk = AuditEventType.RELAY_SENT, RiskLevel.INFO
        elif result.status == RelayStatus.REJECTED and result.reason in _ACCESS_REASONS:
            event_type, risk = AuditEventType.ACCESS_DENIED, RiskLevel.HIGH
        elif result.status == RelayStatus.REJECTED:
            event_type, risk = AuditEventType.RELAY_FAILED, RiskLevel.LOW
        else:
            event_type, risk = AuditEventType.RELAY_FAILED, RiskLevel.MEDIUM

        details: dict[str, object] = {"reason": result.reason}
        if result.upstream_status is not None:
            details["upstream_status"] = result.upstream_status
        event = AuditEvent(
            event_type=event_type,
            source_ip=source_ip,
            transport=transport_name,
            action="relay",
            result=result.status.value,
            risk_level=risk,
            details=details,
        )
        try:
            self._audit.log(event)
        except OSError:
            # The outcome stands even when the audit trail cannot be written.
            logger.exception("Failed to write audit event")


_ACCESS_REASONS = frozenset({"bad_origin", "bad_referer", "bad_credential", "rate_limited"})
