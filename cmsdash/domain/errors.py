"""Domain-level error types for use-case and adapter mapping.

This module is the home for shared domain errors that cross layer
boundaries without leaking transport-specific exception details.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from .ports import UseCaseError


class ValidationError(UseCaseError):
    """Missing or malformed form input, detected before any backend call."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__("VALIDATION_FAILED", message, meta={"field": field} if field else None)
        self.field = field


class OperationError(UseCaseError):
    """Backend rejection or transport failure of one store operation."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        operation: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, meta=meta)
        self.operation = operation


__all__ = ["OperationError", "UseCaseError", "ValidationError"]
