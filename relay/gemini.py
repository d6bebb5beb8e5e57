from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from config.settings import Settings
from relay.errors import (
    ClientInputError,
    ConfigurationError,
    UpstreamApiError,
    UpstreamShapeError,
    UpstreamTransportError,
)


logger = logging.getLogger("chat_relay")

MISSING_KEY_MESSAGE = "GEMINI_API_KEY is not configured on the server."
MISSING_CONTENTS_MESSAGE = 'Request body must contain "contents" array.'
UPSTREAM_FALLBACK_MESSAGE = "An error occurred with the Gemini API."
INVALID_STRUCTURE_MESSAGE = "Invalid response structure from Gemini API."
COMMUNICATION_FAILED_MESSAGE = "Failed to communicate with the Gemini API."


def require_contents(contents: Any) -> Any:
    # Turns are passed through untouched; only presence is checked.
    if not contents:
        raise ClientInputError(MISSING_CONTENTS_MESSAGE)
    return contents


def build_payload(contents: Any, system_prompt: str) -> Dict[str, Any]:
    return {
        "contents": contents,
        "systemInstruction": {
            "parts": [{"text": system_prompt}],
        },
    }


def extract_error_message(body: Any) -> str:
    error = body.get("error") if isinstance(body, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return UPSTREAM_FALLBACK_MESSAGE


def extract_text(result: Any) -> str:
    """Return the first candidate's first text part or raise UpstreamShapeError."""
    text: Optional[Any] = None
    candidates = result.get("candidates") if isinstance(result, dict) else None
    if isinstance(candidates, list) and candidates:
        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            text = parts[0].get("text")

    if not isinstance(text, str) or not text:
        raise UpstreamShapeError(INVALID_STRUCTURE_MESSAGE)
    return text


async def generate_reply(settings: Settings, contents: Any) -> str:
    """Forward one conversation to Gemini and return the reply text.

    Makes exactly one outbound call. Every failure surfaces as a
    ``RelayError`` subclass; nothing is retried.
    """
    if not settings.gemini_api_key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    require_contents(contents)

    payload = build_payload(contents, settings.system_prompt)

    try:
        async with httpx.AsyncClient(timeout=settings.upstream_timeout) as client:
            response = await client.post(
                settings.generate_content_url,
                params={"key": settings.gemini_api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        body = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Error calling Gemini API: %s", exc)
        raise UpstreamTransportError(COMMUNICATION_FAILED_MESSAGE) from exc

    if not 200 <= response.status_code < 300:
        logger.error("Gemini API Error (status=%s): %s", response.status_code, body)
        raise UpstreamApiError(extract_error_message(body), status_code=response.status_code)

    return extract_text(body)
