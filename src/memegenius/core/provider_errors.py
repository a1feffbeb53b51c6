"""Shared helpers for provider error inspection."""

from __future__ import annotations

import ast
from dataclasses import dataclass
import re
from typing import Any

_STATUS_CODE_PATTERN = re.compile(r"\b(4\d{2}|5\d{2})\b")
_MAX_MESSAGE_LENGTH = 240


@dataclass(frozen=True)
class ProviderErrorInfo:
    code: int | None
    status: str
    message: str


def extract_status_code(exc: BaseException) -> int | None:
    """Best-effort extraction of HTTP-like status code from provider exceptions."""
    candidates: list[Any] = [
        getattr(exc, "status_code", None),
        getattr(exc, "code", None),
    ]
    response = getattr(exc, "response", None)
    if response is not None:
        candidates.append(getattr(response, "status_code", None))

    for candidate in candidates:
        coerced = _coerce_int(candidate)
        if coerced is not None:
            return coerced

    message = " ".join(
        str(value)
        for value in (
            getattr(exc, "status", ""),
            str(exc),
        )
        if value
    )
    for match in _STATUS_CODE_PATTERN.findall(message):
        value = int(match)
        if 400 <= value <= 599:
            return value
    return None


def extract_error_info(exc: BaseException) -> ProviderErrorInfo:
    """Pull code, status and message out of a provider exception.

    Gemini errors embed a JSON-like ``{"error": {...}}`` payload in their text;
    when it is present its fields win over the exception attributes.
    """
    raw_message = str(exc)
    code = extract_status_code(exc)
    status = _normalize_text(str(getattr(exc, "status", "") or ""))
    message = _normalize_text(str(getattr(exc, "message", "") or "")) or _normalize_text(
        raw_message
    )

    payload = _extract_payload_from_text(raw_message) or _extract_payload_from_response(exc)
    if isinstance(payload, dict):
        error_payload = payload.get("error", payload)
        if isinstance(error_payload, dict):
            payload_code = _coerce_int(error_payload.get("code"))
            if payload_code is not None:
                code = payload_code
            payload_status = _normalize_text(str(error_payload.get("status", "")))
            if payload_status:
                status = payload_status
            payload_message = _normalize_text(str(error_payload.get("message", "")))
            if payload_message:
                message = payload_message

    return ProviderErrorInfo(code=code, status=status, message=message)


def describe_provider_error(exc: BaseException, *, fallback: str) -> str:
    """Return a human-readable message for ``exc``, or ``fallback``."""
    return extract_error_info(exc).message or fallback


def is_service_unavailable_error(exc: BaseException) -> bool:
    """Return True when the exception represents a provider availability outage."""
    status_code = extract_status_code(exc)
    if status_code == 503:
        return True

    message = " ".join(
        part
        for part in (
            exc.__class__.__name__,
            str(getattr(exc, "status", "")),
            str(exc),
        )
        if part
    ).lower()
    return "service unavailable" in message or "temporarily unavailable" in message


def _extract_payload_from_text(raw_message: str) -> dict[str, Any] | None:
    payload_start = raw_message.find("{")
    if payload_start < 0:
        return None
    payload_text = raw_message[payload_start:]
    try:
        payload = ast.literal_eval(payload_text)
    except (SyntaxError, ValueError):
        return None
    if isinstance(payload, dict):
        return payload
    return None


def _extract_payload_from_response(exc: BaseException) -> dict[str, Any] | None:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    response_json = getattr(response, "json", None)
    if not callable(response_json):
        return None
    try:
        payload = response_json()
    except (TypeError, ValueError):
        return None
    if isinstance(payload, dict):
        return payload
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _normalize_text(text: str) -> str:
    collapsed = " ".join(text.split())
    if len(collapsed) <= _MAX_MESSAGE_LENGTH:
        return collapsed
    return f"{collapsed[:_MAX_MESSAGE_LENGTH - 3]}..."
