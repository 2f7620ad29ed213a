# Local document-store emulator for development and adapter tests.
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from cmsdash.adapters.firestore_values import decode_value, format_timestamp
from cmsdash.adapters.memory_store import auto_id

EMULATOR_API_KEY = os.getenv("CMSDASH_EMULATOR_API_KEY", "")
DEFAULT_PAGE_SIZE = 300

_HTTP_STATUS = {
    400: "INVALID_ARGUMENT",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    409: "ALREADY_EXISTS",
}


# ---------- Models ----------
class DocumentBody(BaseModel):
    fields: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Typed field values, e.g. {'name': {'stringValue': 'x'}}"
    )


class StoreError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


# ---------- Storage ----------
# projects/{p}/databases/{d}/documents/{collection} -> doc id -> document resource
DOCUMENTS: Dict[str, Dict[str, Dict[str, Any]]] = {}
STORE_LOCK = threading.Lock()


def reset_store() -> None:
    with STORE_LOCK:
        DOCUMENTS.clear()


def _now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def _collection_path(project: str, database: str, collection: str) -> str:
    return f"projects/{project}/databases/{database}/documents/{collection}"


def _doc_name(project: str, database: str, collection: str, doc_id: str) -> str:
    return f"{_collection_path(project, database, collection)}/{doc_id}"


def _check_fields(fields: Dict[str, Dict[str, Any]]) -> None:
    for key, typed in fields.items():
        if not key:
            raise StoreError(400, "Field names must be non-empty.")
        try:
            decode_value(typed)
        except (TypeError, ValueError) as exc:
            raise StoreError(400, f"Invalid value for field '{key}': {exc}") from exc


app = FastAPI(title="cmsdash document store emulator", version="0.1.0")


@app.exception_handler(StoreError)
async def store_error_handler(_: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            "error": {
                "code": exc.status,
                "message": exc.message,
                "status": _HTTP_STATUS.get(exc.status, "UNKNOWN"),
            }
        },
    )


# ---------- Auth Helper ----------
def require_key(key: Optional[str]) -> None:
    if EMULATOR_API_KEY and key != EMULATOR_API_KEY:
        raise StoreError(403, "API key not valid. Please pass a valid API key.")


_ROOT = "/v1/projects/{project}/databases/{database}/documents"


# ---------- Health ----------
@app.get("/health")
def health():
    with STORE_LOCK:
        counts = {name: len(docs) for name, docs in DOCUMENTS.items()}
    return {"ok": True, "collections": counts}


# ---------- Collections ----------
@app.get(_ROOT + "/{collection}")
def list_documents(
    project: str,
    database: str,
    collection: str,
    key: Optional[str] = None,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1),
    page_token: Optional[str] = Query(None, alias="pageToken"),
):
    require_key(key)
    try:
        offset = int(page_token) if page_token else 0
    except ValueError:
        raise StoreError(400, "Invalid page token.") from None
    with STORE_LOCK:
        stored = DOCUMENTS.get(_collection_path(project, database, collection)) or {}
        docs = [stored[doc_id] for doc_id in sorted(stored)]
    page = docs[offset:offset + page_size]
    payload: Dict[str, Any] = {}
    if page:
        payload["documents"] = page
    if offset + page_size < len(docs):
        payload["nextPageToken"] = str(offset + page_size)
    return payload


@app.post(_ROOT + "/{collection}")
def create_document(
    project: str,
    database: str,
    collection: str,
    body: DocumentBody,
    key: Optional[str] = None,
    document_id: Optional[str] = Query(None, alias="documentId"),
):
    require_key(key)
    _check_fields(body.fields)
    now = _now()
    with STORE_LOCK:
        docs = DOCUMENTS.setdefault(_collection_path(project, database, collection), {})
        doc_id = document_id or auto_id()
        if doc_id in docs:
            raise StoreError(409, f"Document already exists: {collection}/{doc_id}")
        resource = {
            "name": _doc_name(project, database, collection, doc_id),
            "fields": dict(body.fields),
            "createTime": now,
            "updateTime": now,
        }
        docs[doc_id] = resource
    return resource


# ---------- Documents ----------
@app.get(_ROOT + "/{collection}/{doc_id}")
def get_document(project: str, database: str, collection: str, doc_id: str, key: Optional[str] = None):
    require_key(key)
    with STORE_LOCK:
        resource = (DOCUMENTS.get(_collection_path(project, database, collection)) or {}).get(doc_id)
    if resource is None:
        raise StoreError(404, f"Document not found: {collection}/{doc_id}")
    return resource


@app.patch(_ROOT + "/{collection}/{doc_id}")
def patch_document(
    project: str,
    database: str,
    collection: str,
    doc_id: str,
    body: DocumentBody,
    request: Request,
    key: Optional[str] = None,
):
    require_key(key)
    _check_fields(body.fields)
    mask: List[str] = request.query_params.getlist("updateMask.fieldPaths")
    must_exist = request.query_params.get("currentDocument.exists")
    now = _now()
    with STORE_LOCK:
        docs = DOCUMENTS.setdefault(_collection_path(project, database, collection), {})
        resource = docs.get(doc_id)
        if must_exist == "true" and resource is None:
            raise StoreError(404, f"No document to update: {_doc_name(project, database, collection, doc_id)}")
        if must_exist == "false" and resource is not None:
            raise StoreError(409, f"Document already exists: {collection}/{doc_id}")
        if resource is None:
            resource = {
                "name": _doc_name(project, database, collection, doc_id),
                "fields": {},
                "createTime": now,
            }
            docs[doc_id] = resource
        if mask:
            fields = dict(resource["fields"])
            for path in mask:
                if path in body.fields:
                    fields[path] = body.fields[path]
                else:
                    fields.pop(path, None)
        else:
            fields = dict(body.fields)
        resource["fields"] = fields
        resource["updateTime"] = now
        return dict(resource)


@app.delete(_ROOT + "/{collection}/{doc_id}")
def delete_document(project: str, database: str, collection: str, doc_id: str, key: Optional[str] = None):
    require_key(key)
    with STORE_LOCK:
        (DOCUMENTS.get(_collection_path(project, database, collection)) or {}).pop(doc_id, None)
    return {}


def main() -> None:
    uvicorn.run(
        app,
        host=os.getenv("CMSDASH_EMULATOR_HOST", "127.0.0.1"),
        port=int(os.getenv("CMSDASH_EMULATOR_PORT", "8090")),
        log_level="info",
    )


if __name__ == "__main__":
    main()
