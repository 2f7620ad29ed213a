"""Domain package exports for records, list state and errors."""

from .entities import ALBUMS_COLLECTION, USERS_COLLECTION, Album, Document, User
from .errors import OperationError, UseCaseError, ValidationError
from .live_list import LiveList
from .validation import validate_album, validate_user

__all__ = [
    "ALBUMS_COLLECTION",
    "USERS_COLLECTION",
    "Album",
    "Document",
    "LiveList",
    "OperationError",
    "UseCaseError",
    "User",
    "ValidationError",
    "validate_album",
    "validate_user",
]
