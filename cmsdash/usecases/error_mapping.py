"""Translate adapter errors into user-facing OperationError instances."""

from __future__ import annotations

from typing import Optional

from cmsdash.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    extract_error_hint,
    first_string,
)
from cmsdash.domain.errors import OperationError
from cmsdash.domain.ports import UseCaseError


def map_api_error(
    exc: Exception,
    *,
    operation: str,
    default_code: str = "OPERATION_FAILED",
    default_message: Optional[str] = None,
) -> OperationError:
    """Map adapter exceptions to stable OperationError codes.

    Args:
        exc: Exception raised by a store adapter call.
        operation: ``create``/``update``/``delete``/``subscribe``.
        default_code: Code used for exceptions outside the adapter taxonomy.
        default_message: Message used when ``exc`` carries no text.

    Returns:
        OperationError: Error carrying a stable code and a presentable message.
    """
    if isinstance(exc, OperationError):
        return exc
    if isinstance(exc, UseCaseError):
        return OperationError(exc.code, exc.message, operation=operation, meta=exc.meta)
    if isinstance(exc, ApiTimeoutError):
        return OperationError(
            "REQUEST_TIMEOUT", "Request timed out. Check connection.", operation=operation
        )
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        detail = first_string(getattr(exc, "payload", None)) or exc.hint or extract_error_hint(
            getattr(exc, "payload", None)
        )
        meta = {"status": status, "code": exc.code} if exc.code else {"status": status}
        if status == 400:
            return OperationError(
                "INVALID_ARGUMENT",
                _compose_error_message("Invalid request", detail),
                operation=operation,
                meta=meta,
            )
        if status in (401, 403):
            return OperationError(
                "PERMISSION_DENIED",
                "Permission denied / API key invalid.",
                operation=operation,
                meta=meta,
            )
        if status == 404:
            return OperationError(
                "NOT_FOUND",
                _compose_error_message("Document not found", detail),
                operation=operation,
                meta=meta,
            )
        if status == 409:
            return OperationError(
                "CONFLICT",
                _compose_error_message("Conflicting write", detail),
                operation=operation,
                meta=meta,
            )
        label = f"Request failed (HTTP {status})" if status else "Request failed"
        return OperationError(
            "REQUEST_FAILED", _compose_error_message(label, detail), operation=operation, meta=meta
        )
    if isinstance(exc, ApiServerError):
        return OperationError("SERVER_ERROR", "Store error, try again.", operation=operation)
    if isinstance(exc, ApiError):
        return OperationError("API_ERROR", str(exc), operation=operation)

    message = default_message or str(exc) or "Unexpected error."
    return OperationError(default_code, message, operation=operation)


def _compose_error_message(base: str, hint: Optional[str]) -> str:
    """Compose a user-facing error message with optional hint text."""
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    if base.endswith("."):
        return base
    return f"{base}."


__all__ = ["map_api_error"]
