"""FastAPI relay application: JSON and query-string transports."""

from __future__ import annotations

import html
import json
import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from discord_relay.audit.logger import AuditLogger
from discord_relay.config import RelaySettings
from discord_relay.errors import (
    ClientInputError,
    InternalRelayError,
    RateLimitError,
    RelayError,
    UpstreamError,
    error_from_result,
)
from discord_relay.gate.access import AccessGate
from discord_relay.gate.rate_limiter import RelayRateLimiter
from discord_relay.relay.dispatcher import RelayDispatcher
from discord_relay.relay.models import CodeEncoding, RelayRequest, RequestMeta

logger = logging.getLogger(__name__)

AUTO_CLOSE_MS = 1500


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = RelaySettings.from_env()
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path) if settings.audit_log_path else None
    )
    if not settings.webhook_url:
        logger.warning("DISCORD_WEBHOOK_URL is not set; relay requests will fail with 500")
    if settings.require_api_key and not settings.shared_secret:
        logger.warning("SHARED_SECRET is not set; every JSON relay request will be rejected")
    return create_app(settings, audit_logger)


def create_app(
    settings: RelaySettings,
    audit_logger: AuditLogger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    rate_limiter: RelayRateLimiter | None = None,
) -> FastAPI:
    """Create the relay app. ``transport`` replaces the network for the webhook call."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    gate = AccessGate(settings, rate_limiter)
    dispatcher = RelayDispatcher(settings, audit_logger, transport)

    @app.get("/ping")
    async def ping() -> dict[str, bool]:
        return {"ok": True}

    @app.options(settings.relay_path)
    async def preflight(request: Request) -> Response:
        return Response(
            status_code=204, headers=gate.cors_headers(request.headers.get("origin")),
        )

    @app.post(settings.relay_path)
    async def relay_json(request: Request) -> Response:
        meta = _request_meta(request)
        decision = gate.evaluate_json(meta)
        cors = decision.cors_headers

        relay_request = RelayRequest()
        if decision.allowed:
            try:
                relay_request = _parse_json_request(await request.body())
            except ClientInputError as exc:
                dispatcher.reject(exc, source_ip=meta.client_id, transport_name="json")
                return _json_error(exc, cors)

        result = await dispatcher.dispatch(
            decision, relay_request, source_ip=meta.client_id, transport_name="json",
        )
        error = error_from_result(result)
        if error is None:
            return Response(status_code=204, headers=cors)
        return _json_error(error, cors)

    @app.get(settings.relay_path)
    async def relay_query(request: Request) -> HTMLResponse:
        meta = _request_meta(request)
        decision = gate.evaluate_query(meta)

        result = await dispatcher.dispatch(
            decision,
            _parse_query_request(request.query_params),
            source_ip=meta.client_id,
            transport_name="query",
        )
        error = error_from_result(result)
        if error is None:
            return _html_page(
                200, "Sent", "Message sent to Discord. This window closes shortly.",
                auto_close=True,
            )
        return _html_error(error)

    return app


def _request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        origin=request.headers.get("origin"),
        referer=request.headers.get("referer"),
        api_key=request.headers.get("x-api-key"),
        client_id=request.client.host if request.client else "unknown",
    )


def _optional_str(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    raise ClientInputError(f"'{key}' must be a string")


def _parse_json_request(raw: bytes) -> RelayRequest:
    """Parse a JSON relay body. An empty body counts as ``{}``."""
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return RelayRequest()
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ClientInputError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(body, dict):
        raise ClientInputError("JSON body must be an object")

    code = _optional_str(body, "code")
    encoding = CodeEncoding.PLAIN
    encoded = _optional_str(body, "code_b64")
    if encoded is not None and not code:
        code, encoding = encoded, CodeEncoding.BASE64

    return RelayRequest(
        message=_optional_str(body, "content"),
        code=code,
        language=_optional_str(body, "lang"),
        code_encoding=encoding,
        embeds=body.get("embeds"),
    )


def _parse_query_request(params: Any) -> RelayRequest:
    encoded = params.get("code_b64")
    if encoded:
        return RelayRequest(
            message=params.get("m"),
            # An unescaped "+" arrives as a space after query-string decoding.
            code=encoded.replace(" ", "+"),
            language=params.get("lang"),
            code_encoding=CodeEncoding.BASE64,
        )
    return RelayRequest(
        message=params.get("m"),
        code=params.get("code"),
        language=params.get("lang"),
    )


def _json_error(error: RelayError, headers: dict[str, str]) -> JSONResponse:
    body: dict[str, Any] = {"error": error.message}
    if isinstance(error, UpstreamError):
        body["status"] = error.upstream_status
        body["detail"] = error.detail or ""
    elif isinstance(error, InternalRelayError) and error.detail:
        body["detail"] = error.detail
    headers = dict(headers)
    if isinstance(error, RateLimitError):
        headers["Retry-After"] = "60"
    return JSONResponse(body, status_code=error.status_code, headers=headers)


_HTML_TITLES = {
    400: "Bad request",
    403: "Forbidden",
    429: "Too many requests",
    500: "Relay error",
    502: "Discord error",
}


def _html_error(error: RelayError) -> HTMLResponse:
    message = error.message
    if isinstance(error, UpstreamError):
        message = f"Discord answered with status {error.upstream_status}."
        if error.detail:
            message = f"{message} {error.detail}"
    elif error.detail:
        message = f"{message}: {error.detail}"
    # Credential failures never reach the query transport; report them as forbidden.
    status = 403 if error.status_code == 401 else error.status_code
    return _html_page(status, _HTML_TITLES.get(status, "Error"), message)


def _html_page(
    status_code: int, title: str, message: str, auto_close: bool = False,
) -> HTMLResponse:
    script = ""
    if auto_close:
        script = f"<script>setTimeout(function(){{window.close();}},{AUTO_CLOSE_MS});</script>"
    page = (
        "<!doctype html>"
        "<html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1><p>{html.escape(message)}</p>"
        f"{script}</body></html>"
    )
    return HTMLResponse(page, status_code=status_code)
