"""Content normalizer: turns a RelayRequest into one bounded Discord message.

Precedence:
1. A non-empty message that fits the limit is sent verbatim.
2. Otherwise code (plain or base64) is wrapped in a single fenced block.
3. Otherwise an oversized message is truncated.
4. Otherwise only embeds are forwarded, with empty content.

Every path keeps ``content`` within MAX_CONTENT_LENGTH code points.
"""

from __future__ import annotations

import base64
import binascii
import re

from discord_relay.errors import ClientInputError
from discord_relay.relay.models import CodeEncoding, OutboundPayload, RelayRequest

MAX_CONTENT_LENGTH = 2000
MAX_LANGUAGE_LENGTH = 20
TRUNCATION_MARKER = "…[truncated]"
FENCE = "```"

_LANGUAGE_STRIP = re.compile(r"[^A-Za-z0-9.+\-#]")
_LINE_ENDINGS = re.compile(r"\r\n?")


def sanitize_language(language: str | None) -> str:
    """Keep only fence-safe characters of a language tag, capped at 20."""
    if not language:
        return ""
    return _LANGUAGE_STRIP.sub("", language)[:MAX_LANGUAGE_LENGTH]


def decode_base64_code(encoded: str) -> str:
    """Decode base64 code text.

    Embedded whitespace such as line wrapping is ignored. The URL-safe
    alphabet and missing padding are accepted.
    """
    cleaned = encoded.replace("-", "+").replace("_", "/")
    cleaned = "".join(cleaned.split())
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ClientInputError(f"code_b64 is not valid base64: {exc}") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ClientInputError("code_b64 does not decode to UTF-8 text") from exc


def truncate(text: str, room: int) -> str:
    """Cut text to fit ``room`` code points, ending with the marker when cut."""
    room = max(room, 0)
    if len(text) <= room:
        return text
    if room <= len(TRUNCATION_MARKER):
        return TRUNCATION_MARKER[:room]
    return text[: room - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def fence_code(code: str, language: str | None = None) -> str:
    """Wrap code in a fenced block no longer than MAX_CONTENT_LENGTH."""
    tag = sanitize_language(language)
    body = _LINE_ENDINGS.sub("\n", code)
    opening = f"{FENCE}{tag}\n"
    closing = f"\n{FENCE}"
    room = max(MAX_CONTENT_LENGTH - len(opening) - len(closing), 0)
    return opening + truncate(body, room) + closing


def normalize(request: RelayRequest) -> OutboundPayload:
    """Build the outbound payload for a request. Pure and deterministic."""
    message = request.message or ""

    if message and len(message) <= MAX_CONTENT_LENGTH:
        return OutboundPayload(content=message, embeds=request.embeds)

    if request.code is not None:
        code = request.code
        if request.code_encoding == CodeEncoding.BASE64:
            code = decode_base64_code(code)
        return OutboundPayload(
            content=fence_code(code, request.language), embeds=request.embeds,
        )

    if message:
        return OutboundPayload(
            content=truncate(message, MAX_CONTENT_LENGTH), embeds=request.embeds,
        )

    if not request.embeds:
        raise ClientInputError("content or code required")

    return OutboundPayload(content="", embeds=request.embeds)
