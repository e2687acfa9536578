"""Shared test fixtures for discord-relay."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from discord_relay.audit.logger import AuditLogger
from discord_relay.config import RelaySettings

WEBHOOK_URL = "https://discord.example/api/webhooks/1/token"
SECRET = "test-shared-secret"


def make_settings(**kwargs: Any) -> RelaySettings:
    """Factory for RelaySettings with a configured webhook and secret."""
    defaults: dict[str, Any] = {
        "webhook_url": WEBHOOK_URL,
        "shared_secret": SECRET,
    }
    defaults.update(kwargs)
    return RelaySettings(**defaults)


class FakeWebhook:
    """Downstream sink recording every request it receives."""

    def __init__(self, status_code: int = 204, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def fake_webhook() -> FakeWebhook:
    return FakeWebhook()


@pytest.fixture
def webhook_factory() -> Callable[..., FakeWebhook]:
    return FakeWebhook


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)
