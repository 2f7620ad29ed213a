from __future__ import annotations

import pytest

from cmsdash.adapters.api_errors import ApiClientError, ApiError, ApiServerError, ApiTimeoutError
from cmsdash.domain.errors import OperationError, ValidationError
from cmsdash.usecases.error_mapping import map_api_error


@pytest.mark.parametrize(
    "status, code",
    [
        (400, "INVALID_ARGUMENT"),
        (401, "PERMISSION_DENIED"),
        (403, "PERMISSION_DENIED"),
        (404, "NOT_FOUND"),
        (409, "CONFLICT"),
        (429, "REQUEST_FAILED"),
    ],
)
def test_client_errors_map_by_status(status: int, code: str) -> None:
    err = map_api_error(ApiClientError("ctx", status=status), operation="update")

    assert err.code == code
    assert err.operation == "update"
    assert err.meta["status"] == status


def test_not_found_message_includes_backend_detail() -> None:
    payload = {"error": {"code": 404, "message": "No document to update", "status": "NOT_FOUND"}}
    exc = ApiClientError("ctx", status=404, code="NOT_FOUND", payload=payload)

    err = map_api_error(exc, operation="update")

    assert err.message == "Document not found: No document to update"
    assert err.meta == {"status": 404, "code": "NOT_FOUND"}


def test_timeout_server_and_generic_api_errors() -> None:
    assert map_api_error(ApiTimeoutError("t"), operation="create").code == "REQUEST_TIMEOUT"
    assert map_api_error(ApiServerError("s", status=503), operation="create").message == "Store error, try again."
    generic = map_api_error(ApiError("weird transport"), operation="delete")
    assert (generic.code, generic.message) == ("API_ERROR", "weird transport")


def test_use_case_errors_pass_through() -> None:
    original = OperationError("X", "already mapped", operation="delete")

    assert map_api_error(original, operation="update") is original
    converted = map_api_error(ValidationError("bad"), operation="create")
    assert (converted.code, converted.message) == ("VALIDATION_FAILED", "bad")


def test_unknown_exception_uses_default_code() -> None:
    err = map_api_error(RuntimeError("boom"), operation="subscribe", default_code="SYNC_LOST")

    assert (err.code, err.message) == ("SYNC_LOST", "boom")
    assert map_api_error(RuntimeError(), operation="create").message == "Unexpected error."
