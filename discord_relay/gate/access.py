"""Access gate: origin, referer, shared-secret and rate-limit checks.

The JSON transport runs rate limit, origin, then credential. The query
transport runs rate limit, then referer, since browser navigation cannot
attach a secret header.
"""

from __future__ import annotations

from discord_relay.config import RelaySettings
from discord_relay.gate.rate_limiter import RelayRateLimiter
from discord_relay.relay.models import AccessDecision, AccessReason, RequestMeta

ALLOW_METHODS = "POST,OPTIONS,GET"
ALLOW_HEADERS = "Content-Type,x-api-key"


class AccessGate:
    """Decides whether a request may reach the downstream webhook."""

    def __init__(
        self,
        settings: RelaySettings,
        rate_limiter: RelayRateLimiter | None = None,
    ) -> None:
        self._settings = settings
        self._rate_limiter = rate_limiter or RelayRateLimiter(
            max_requests=settings.rate_limit,
            window_seconds=settings.rate_window_seconds,
        )

    def cors_headers(self, origin: str | None) -> dict[str, str]:
        """CORS headers for a response, echoing the origin only when allowlisted."""
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
        }
        if origin and origin in self._settings.allowed_origins:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers

    def origin_allowed(self, origin: str | None) -> bool:
        if not origin or not self._settings.allowed_origins:
            return True
        return origin in self._settings.allowed_origins

    def referer_allowed(self, referer: str | None) -> bool:
        if not referer or not self._settings.allowed_referers:
            return True
        return any(referer.startswith(prefix) for prefix in self._settings.allowed_referers)

    def credential_valid(self, api_key: str | None) -> bool:
        expected = self._settings.shared_secret
        if not expected:
            return False
        return api_key == expected

    def evaluate_json(self, meta: RequestMeta) -> AccessDecision:
        """Gate for the JSON POST transport."""
        cors = self.cors_headers(meta.origin)

        if not self._rate_limiter.check(meta.client_id):
            return AccessDecision(False, AccessReason.RATE_LIMITED, cors)
        if not self.origin_allowed(meta.origin):
            return AccessDecision(False, AccessReason.BAD_ORIGIN, cors)
        if self._settings.require_api_key and not self.credential_valid(meta.api_key):
            return AccessDecision(False, AccessReason.BAD_CREDENTIAL, cors)
        return AccessDecision(True, AccessReason.OK, cors)

    def evaluate_query(self, meta: RequestMeta) -> AccessDecision:
        """Gate for the query-string GET transport."""
        if not self._rate_limiter.check(meta.client_id):
            return AccessDecision(False, AccessReason.RATE_LIMITED)
        if not self.referer_allowed(meta.referer):
            return AccessDecision(False, AccessReason.BAD_REFERER)
        return AccessDecision(True, AccessReason.OK)
