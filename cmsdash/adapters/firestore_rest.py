"""REST adapter for a Firestore-compatible document store.

Endpoints (relative to ``{base_url}/projects/{project}/databases/{database}/documents``):
  - GET    /{collection}?pageSize=N&pageToken=T -> {"documents": [...], "nextPageToken": "..."}
  - POST   /{collection}                  body: {"fields": {...}} -> document
  - PATCH  /{collection}/{id}?updateMask.fieldPaths=f&currentDocument.exists=true
  - DELETE /{collection}/{id}

Notes:
  - Lists come back ordered by document id, which is the snapshot order.
  - ``subscribe`` is served by a ``CollectionWatch`` polling the list endpoint.
  - The same surface is served by ``rest_api.app`` for local development.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from cmsdash.domain.entities import Document
from cmsdash.domain.ports import (
    CollectionName,
    DocumentId,
    DocumentStorePort,
    OnSnapshot,
    OnStreamError,
    Unsubscribe,
)

from .api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    build_error_message,
    extract_error_code,
    extract_error_hint,
    parse_error_payload,
)
from .collection_watch import CollectionWatch
from .firestore_values import decode_document, encode_fields
from .http_client import HttpConfig, RetryingSession

DEFAULT_BASE_URL = "https://firestore.googleapis.com/v1"


class FirestoreRestAdapter(DocumentStorePort):
    """Document store port over the Firestore REST API (or the local emulator)."""

    def __init__(
        self,
        project_id: str,
        *,
        database: str = "(default)",
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        id_token: Optional[str] = None,
        request_timeout_s: int = 10,
        retries: int = 2,
        watch_interval_s: float = 1.0,
        page_size: int = 300,
    ) -> None:
        if not str(project_id or "").strip():
            raise ValueError("FirestoreRestAdapter requires a project id.")
        self._log = logging.getLogger(__name__)
        self.project_id = project_id.strip()
        self.database = database or "(default)"
        self.base_url = str(base_url or DEFAULT_BASE_URL).rstrip("/")
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(self.cfg, api_key=api_key or None, id_token=id_token or None)
        self.watch_interval_s = float(watch_interval_s)
        self.page_size = max(1, int(page_size))

    # ---------- URLs ----------

    @property
    def documents_root(self) -> str:
        return (
            f"{self.base_url}/projects/{quote(self.project_id, safe='')}"
            f"/databases/{quote(self.database, safe='()')}/documents"
        )

    def _collection_url(self, collection: CollectionName) -> str:
        name = str(collection or "").strip().strip("/")
        if not name:
            raise ValueError("Collection name must be a non-empty string.")
        return f"{self.documents_root}/{quote(name, safe='')}"

    def _document_url(self, collection: CollectionName, doc_id: DocumentId) -> str:
        ident = str(doc_id or "").strip()
        if not ident:
            raise ValueError("Document id must be a non-empty string.")
        return f"{self._collection_url(collection)}/{quote(ident, safe='')}"

    # ---------- DocumentStorePort ----------

    def list_documents(self, collection: CollectionName) -> List[Document]:
        """Return every document of the collection, following page tokens."""
        url = self._collection_url(collection)
        docs: List[Document] = []
        token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"pageSize": self.page_size}
            if token:
                params["pageToken"] = token
            resp = self.session.get(url, params=params)
            self._ensure_ok(resp, f"list[{collection}]")
            data = self._json(resp, f"list[{collection}]")
            for item in data.get("documents") or []:
                if isinstance(item, dict):
                    docs.append(decode_document(item))
            token = data.get("nextPageToken") or None
            if not token:
                return docs

    def subscribe(
        self,
        collection: CollectionName,
        on_change: OnSnapshot,
        on_error: Optional[OnStreamError] = None,
    ) -> Unsubscribe:
        self._collection_url(collection)
        watch = CollectionWatch(
            lambda: self.list_documents(collection),
            on_change,
            on_error,
            interval_s=self.watch_interval_s,
            name=collection,
        )
        return watch.start()

    def create(self, collection: CollectionName, fields: Mapping[str, Any]) -> DocumentId:
        url = self._collection_url(collection)
        if self._log.isEnabledFor(logging.DEBUG):
            self._log.debug("POST create[%s]: fields=%s", collection, sorted(fields))
        resp = self.session.post(url, json_body={"fields": encode_fields(fields)})
        self._ensure_ok(resp, f"create[{collection}]")
        data = self._json(resp, f"create[{collection}]")
        try:
            return decode_document(data).id
        except ValueError as exc:
            raise ApiError(
                "Response payload missing document name",
                context=f"create[{collection}]",
                payload=data,
            ) from exc

    def update(
        self, collection: CollectionName, doc_id: DocumentId, fields: Mapping[str, Any]
    ) -> None:
        url = self._document_url(collection, doc_id)
        params = {
            "updateMask.fieldPaths": [str(key) for key in fields],
            "currentDocument.exists": "true",
        }
        resp = self.session.patch(url, params=params, json_body={"fields": encode_fields(fields)})
        self._ensure_ok(resp, f"update[{collection}/{doc_id}]")

    def delete(self, collection: CollectionName, doc_id: DocumentId) -> None:
        resp = self.session.delete(self._document_url(collection, doc_id))
        self._ensure_ok(resp, f"delete[{collection}/{doc_id}]")

    # ---------- Helpers ----------

    @staticmethod
    def _ensure_ok(resp: Any, ctx: str) -> None:
        status = int(getattr(resp, "status_code", 0) or 0)
        if 200 <= status < 300:
            return
        payload = parse_error_payload(resp)
        message = build_error_message(ctx, status, payload)
        if 400 <= status < 500:
            raise ApiClientError(
                message,
                status=status,
                code=extract_error_code(payload),
                hint=extract_error_hint(payload),
                payload=payload,
                context=ctx,
            )
        if status >= 500:
            raise ApiServerError(message, status=status, payload=payload, context=ctx)
        raise ApiError(message, status=status, payload=payload, context=ctx)

    @staticmethod
    def _json(resp: Any, ctx: str) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError("Invalid JSON in response", context=ctx) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ApiError("Expected JSON object in response", context=ctx, payload=data)
        return data


__all__ = ["DEFAULT_BASE_URL", "FirestoreRestAdapter"]
