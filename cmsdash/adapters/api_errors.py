"""Typed failures raised by document-store adapters.

The REST backend answers errors with a Firestore-shaped body::

    {"error": {"code": 404, "message": "No document to update", "status": "NOT_FOUND"}}

The helpers below pull a message, a code and a hint out of that shape (and
out of looser shapes returned by proxies) without raising.
"""

from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for store adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the store (bad request, denied, missing document)."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            code=code,
            hint=hint,
            payload=payload,
            context=context,
        )


class ApiServerError(ApiError):
    """HTTP 5xx from the store."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            payload=payload,
            context=context,
        )


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except Exception:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = first_string(payload)
    if detail:
        return f"{ctx}: {detail} (HTTP {status})"
    return f"{ctx}: HTTP {status}"


def extract_error_code(payload: Any) -> Optional[str]:
    """Return the symbolic status (``NOT_FOUND``) or numeric code as text."""
    if isinstance(payload, dict):
        nested = payload.get("error")
        if isinstance(nested, dict):
            code = extract_error_code({k: v for k, v in nested.items() if k in ("status", "code")})
            if code:
                return code
        for key in ("status", "code", "error", "error_code"):
            value = payload.get(key)
            if value is None or isinstance(value, (dict, list)):
                continue
            return value if isinstance(value, str) else str(value)
    return None


def extract_error_hint(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        nested = payload.get("error")
        if isinstance(nested, dict):
            hint = extract_error_hint(nested)
            if hint:
                return hint
        for key in ("hint", "details", "errors", "messages"):
            if key not in payload:
                continue
            text = stringify(payload[key])
            if text:
                return text
    if isinstance(payload, list):
        return stringify(payload)
    if isinstance(payload, str):
        return payload.strip() or None
    return None


def first_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        text = payload.strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("message", "detail", "error", "title"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, (list, dict)):
                candidate = first_string(value)
                if candidate:
                    return candidate
    if isinstance(payload, list):
        for item in payload:
            candidate = first_string(item)
            if candidate:
                return candidate
    return None


def stringify(data: Any, *, limit: int = 200) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, str):
        cleaned = data.strip()
        return cleaned[:limit] if cleaned else None
    if isinstance(data, list):
        parts = []
        for item in data:
            text = stringify(item, limit=limit)
            if text:
                parts.append(text)
            if len(parts) >= 3:
                break
        if not parts:
            return None
        return "; ".join(parts)[:limit]
    if isinstance(data, dict):
        pairs = []
        for key, value in list(data.items())[:4]:
            value_text = stringify(value, limit=limit)
            if value_text:
                pairs.append(f"{key}={value_text}")
        if not pairs:
            return None
        return ", ".join(pairs)[:limit]
    text = str(data).strip()
    return text[:limit] if text else None
