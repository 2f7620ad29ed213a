from __future__ import annotations

from datetime import datetime, timezone

import pytest
from requests import exceptions as req_exc

from cmsdash.adapters.api_errors import ApiClientError, ApiError, ApiServerError, ApiTimeoutError
from cmsdash.adapters.firestore_rest import FirestoreRestAdapter
from cmsdash.tests.helpers import ResponseStub, SessionStub, firestore_doc

ROOT = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents"


def _adapter(responses, **kwargs) -> tuple:
    adapter = FirestoreRestAdapter("demo", **kwargs)
    stub = SessionStub(responses)
    adapter.session.session = stub  # type: ignore[assignment]
    return adapter, stub


def test_requires_project_id() -> None:
    with pytest.raises(ValueError):
        FirestoreRestAdapter("  ")


def test_documents_root_uses_project_and_database() -> None:
    adapter = FirestoreRestAdapter("demo", base_url="http://localhost:8080/v1/")

    assert adapter.documents_root == "http://localhost:8080/v1/projects/demo/databases/(default)/documents"


def test_list_follows_page_tokens_and_sends_api_key() -> None:
    adapter, stub = _adapter(
        [
            ResponseStub(
                {"documents": [firestore_doc("albums", "a1", name="Vacation")], "nextPageToken": "t1"}
            ),
            ResponseStub({"documents": [firestore_doc("albums", "a2", name="Birthday")]}),
        ],
        api_key="k-1",
        page_size=1,
    )

    docs = adapter.list_documents("albums")

    assert [(doc.id, doc.fields["name"]) for doc in docs] == [("a1", "Vacation"), ("a2", "Birthday")]
    assert stub.calls[0]["url"] == f"{ROOT}/albums"
    assert stub.calls[0]["params"] == {"pageSize": 1, "key": "k-1"}
    assert stub.calls[1]["params"] == {"pageSize": 1, "pageToken": "t1", "key": "k-1"}


def test_list_of_empty_collection_returns_nothing() -> None:
    adapter, _ = _adapter([ResponseStub({})])

    assert adapter.list_documents("albums") == []


def test_create_posts_typed_fields_and_returns_new_id() -> None:
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    adapter, stub = _adapter([ResponseStub(firestore_doc("albums", "new1", name="Vacation"))])

    new_id = adapter.create("albums", {"name": "Vacation", "timestamp": stamp})

    assert new_id == "new1"
    call = stub.calls[0]
    assert call["method"] == "POST"
    assert call["json"] == {
        "fields": {
            "name": {"stringValue": "Vacation"},
            "timestamp": {"timestampValue": "2024-05-01T12:00:00Z"},
        }
    }
    assert call["headers"]["Content-Type"] == "application/json"


def test_create_is_not_retried_on_timeout() -> None:
    adapter, stub = _adapter([req_exc.Timeout("slow"), ResponseStub(firestore_doc("albums", "x"))])

    with pytest.raises(ApiTimeoutError):
        adapter.create("albums", {"name": "Vacation"})

    assert len(stub.calls) == 1


def test_update_uses_mask_and_exists_precondition() -> None:
    adapter, stub = _adapter([ResponseStub(firestore_doc("users", "u1"))], id_token="tok")

    adapter.update("users", "u1", {"name": "Ann", "email": "a@b.co", "password": "secret1"})

    call = stub.calls[0]
    assert call["method"] == "PATCH"
    assert call["url"] == f"{ROOT}/users/u1"
    assert call["params"]["updateMask.fieldPaths"] == ["name", "email", "password"]
    assert call["params"]["currentDocument.exists"] == "true"
    assert call["headers"]["Authorization"] == "Bearer tok"


def test_update_missing_document_raises_client_error_with_code() -> None:
    body = {"error": {"code": 404, "message": "No document to update", "status": "NOT_FOUND"}}
    adapter, _ = _adapter([ResponseStub(body, status_code=404)])

    with pytest.raises(ApiClientError) as excinfo:
        adapter.update("albums", "ghost", {"name": "x"})

    assert excinfo.value.status == 404
    assert excinfo.value.code == "NOT_FOUND"
    assert "No document to update" in str(excinfo.value)


def test_delete_retries_transport_failures() -> None:
    adapter, stub = _adapter([req_exc.ConnectionError("reset"), ResponseStub({})], retries=2)

    adapter.delete("albums", "a2")

    assert [call["method"] for call in stub.calls] == ["DELETE", "DELETE"]
    assert stub.calls[1]["url"] == f"{ROOT}/albums/a2"


def test_timeouts_exhaust_retries() -> None:
    adapter, stub = _adapter([req_exc.Timeout("t")] * 3, retries=2)

    with pytest.raises(ApiTimeoutError):
        adapter.list_documents("albums")

    assert len(stub.calls) == 3


def test_server_error_maps_to_api_server_error() -> None:
    adapter, _ = _adapter([ResponseStub({"error": {"message": "backend down"}}, status_code=503)])

    with pytest.raises(ApiServerError) as excinfo:
        adapter.delete("albums", "a1")

    assert excinfo.value.status == 503


def test_invalid_json_is_reported_as_api_error() -> None:
    adapter, _ = _adapter([ResponseStub(None)])

    with pytest.raises(ApiError):
        adapter.list_documents("albums")


@pytest.mark.parametrize("doc_id", ["", "   "])
def test_blank_document_id_is_rejected_before_any_request(doc_id: str) -> None:
    adapter, stub = _adapter([])

    with pytest.raises(ValueError):
        adapter.delete("albums", doc_id)

    assert stub.calls == []
