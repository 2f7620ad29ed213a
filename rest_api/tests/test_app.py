import pytest
from fastapi.testclient import TestClient

from rest_api import app as app_module

ROOT = "/v1/projects/demo/databases/(default)/documents"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(app_module, "EMULATOR_API_KEY", "")
    app_module.reset_store()
    with TestClient(app_module.app) as test_client:
        yield test_client
    app_module.reset_store()


def _create(client, collection, **values):
    body = {"fields": {key: {"stringValue": value} for key, value in values.items()}}
    resp = client.post(f"{ROOT}/{collection}", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health_reports_collection_sizes(client):
    _create(client, "albums", name="Vacation")

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "ok": True,
        "collections": {"projects/demo/databases/(default)/documents/albums": 1},
    }


def test_create_assigns_id_and_lists_in_document_id_order(client):
    first = _create(client, "albums", name="Vacation")
    second = _create(client, "albums", name="Birthday")

    assert first["name"].startswith("projects/demo/databases/(default)/documents/albums/")
    assert len(first["name"].rsplit("/", 1)[-1]) == 20

    resp = client.get(f"{ROOT}/albums")
    listed = [doc["name"] for doc in resp.json()["documents"]]
    assert listed == sorted([first["name"], second["name"]])


def test_list_orders_by_id_not_insertion(client):
    for doc_id in ("m", "z", "a"):
        body = {"fields": {"name": {"stringValue": doc_id.upper()}}}
        resp = client.post(f"{ROOT}/albums", params={"documentId": doc_id}, json=body)
        assert resp.status_code == 200, resp.text

    first = client.get(f"{ROOT}/albums", params={"pageSize": 2}).json()
    rest = client.get(f"{ROOT}/albums", params={"pageSize": 2, "pageToken": first["nextPageToken"]}).json()

    ids = [doc["name"].rsplit("/", 1)[-1] for doc in first["documents"] + rest["documents"]]
    assert ids == ["a", "m", "z"]


def test_projects_and_databases_are_isolated(client):
    created = _create(client, "albums", name="Vacation")
    doc_id = created["name"].rsplit("/", 1)[-1]
    other_project = "/v1/projects/other/databases/(default)/documents"
    other_database = "/v1/projects/demo/databases/staging/documents"

    assert client.get(f"{other_project}/albums").json() == {}
    assert client.get(f"{other_database}/albums").json() == {}
    assert client.get(f"{other_project}/albums/{doc_id}").status_code == 404

    client.delete(f"{other_database}/albums/{doc_id}")
    assert client.get(f"{ROOT}/albums/{doc_id}").status_code == 200


def test_list_of_unknown_collection_is_empty_object(client):
    resp = client.get(f"{ROOT}/nothing")

    assert resp.status_code == 200
    assert resp.json() == {}


def test_list_pages_with_tokens(client):
    for index in range(5):
        _create(client, "users", name=f"user{index}")

    first = client.get(f"{ROOT}/users", params={"pageSize": 2}).json()
    assert len(first["documents"]) == 2
    assert first["nextPageToken"] == "2"

    last = client.get(f"{ROOT}/users", params={"pageSize": 2, "pageToken": "4"}).json()
    assert len(last["documents"]) == 1
    assert "nextPageToken" not in last


def test_patch_with_mask_only_touches_masked_fields(client):
    created = _create(client, "users", name="Ann", email="ann@x.io", password="secret1")
    doc_id = created["name"].rsplit("/", 1)[-1]

    resp = client.patch(
        f"{ROOT}/users/{doc_id}",
        params={"updateMask.fieldPaths": ["name"], "currentDocument.exists": "true"},
        json={"fields": {"name": {"stringValue": "Anna"}}},
    )

    assert resp.status_code == 200
    fields = resp.json()["fields"]
    assert fields["name"] == {"stringValue": "Anna"}
    assert fields["email"] == {"stringValue": "ann@x.io"}


def test_patch_missing_document_with_exists_precondition_is_not_found(client):
    resp = client.patch(
        f"{ROOT}/albums/ghost",
        params={"updateMask.fieldPaths": ["name"], "currentDocument.exists": "true"},
        json={"fields": {"name": {"stringValue": "x"}}},
    )

    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["status"] == "NOT_FOUND"
    assert error["code"] == 404
    assert "No document to update" in error["message"]


def test_delete_is_idempotent(client):
    created = _create(client, "albums", name="Vacation")
    doc_id = created["name"].rsplit("/", 1)[-1]

    assert client.delete(f"{ROOT}/albums/{doc_id}").status_code == 200
    assert client.delete(f"{ROOT}/albums/{doc_id}").status_code == 200
    assert client.get(f"{ROOT}/albums/{doc_id}").status_code == 404


def test_invalid_typed_value_is_rejected(client):
    resp = client.post(f"{ROOT}/albums", json={"fields": {"name": {"weirdValue": 1}}})

    assert resp.status_code == 400
    assert resp.json()["error"]["status"] == "INVALID_ARGUMENT"


def test_api_key_is_enforced_when_configured(client, monkeypatch):
    monkeypatch.setattr(app_module, "EMULATOR_API_KEY", "k-123")

    denied = client.get(f"{ROOT}/albums")
    allowed = client.get(f"{ROOT}/albums", params={"key": "k-123"})

    assert denied.status_code == 403
    assert denied.json()["error"]["status"] == "PERMISSION_DENIED"
    assert allowed.status_code == 200
