from __future__ import annotations

from typing import Any, Dict, List, Mapping

from cmsdash.domain.entities import USERS_COLLECTION, Document, User
from cmsdash.domain.errors import OperationError
from cmsdash.domain.validation import validate_user

from .collection_screen_vm import CollectionScreenVM

PAGE_SIZE = 6
PAGE_SIZE_OPTIONS = (6, 10, 20)


class UsersScreenVM(CollectionScreenVM[User]):
    """Paginated user table; loading while a mutation is in flight."""

    COLLECTION = USERS_COLLECTION
    FIELDS = ("name", "email", "password")
    SUCCESS_MESSAGES = {
        "create": "User added successfully",
        "update": "User updated successfully",
        "delete": "User deleted successfully",
    }
    MISSING_RECORD_MESSAGE = "This user no longer exists."

    def project(self, doc: Document) -> User:
        return User.from_document(doc)

    def validate(self, operation: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return validate_user(operation, fields)

    def failure_message(self, operation: str, error: OperationError) -> str:
        if operation == "delete":
            return "Failed to delete user. Please try again."
        return "Operation failed. Please try again."

    @property
    def loading(self) -> bool:
        return self.dispatcher.busy

    def rows(self) -> List[Dict[str, Any]]:
        """Table rows with 1-based display numbers in snapshot order."""
        return [
            {"no": index, "id": user.id, "name": user.name, "email": user.email}
            for index, user in enumerate(self.records.snapshot(), start=1)
        ]


__all__ = ["PAGE_SIZE", "PAGE_SIZE_OPTIONS", "UsersScreenVM"]
