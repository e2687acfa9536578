"""Relay pipeline: request models, content normalizer and dispatcher."""

from discord_relay.relay.dispatcher import RelayDispatcher
from discord_relay.relay.models import (
    AccessDecision,
    AccessReason,
    CodeEncoding,
    OutboundPayload,
    RelayRequest,
    RelayResult,
    RelayStatus,
    RequestMeta,
)
from discord_relay.relay.normalizer import normalize

__all__ = [
    "AccessDecision",
    "AccessReason",
    "CodeEncoding",
    "OutboundPayload",
    "RelayDispatcher",
    "RelayRequest",
    "RelayResult",
    "RelayStatus",
    "RequestMeta",
    "normalize",
]
