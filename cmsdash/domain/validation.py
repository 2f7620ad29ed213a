"""Form validation rules for album and user records.

Validators return the payload to send to the store or raise
``ValidationError`` with the user-facing message. Values are sent as typed;
blank checks ignore surrounding whitespace.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _text(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def validate_album(
    operation: str,
    fields: Mapping[str, Any],
    *,
    clock: Optional[Clock] = None,
) -> Dict[str, Any]:
    """Check the album name; creates also stamp the creation time."""
    name = _text(fields, "name")
    if not name.strip():
        if operation == "create":
            raise ValidationError("Please enter an album name!", field="name")
        raise ValidationError("Album name cannot be empty!", field="name")
    if operation == "create":
        return {"name": name, "timestamp": (clock or _utcnow)()}
    return {"name": name}


def validate_user(operation: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Require name/email/password, a plausible email and a 6+ char password."""
    name = _text(fields, "name")
    email = _text(fields, "email")
    password = _text(fields, "password")
    missing = [key for key, value in (("name", name), ("email", email), ("password", password)) if not value.strip()]
    if missing:
        raise ValidationError(
            "Please enter all fields: name, email, and password", field=missing[0]
        )
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", field="email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )
    return {"name": name, "email": email, "password": password}


__all__ = ["EMAIL_PATTERN", "MIN_PASSWORD_LENGTH", "validate_album", "validate_user"]
