"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.

Beyond single-document reads/writes this client exposes batch_write(),
which commits multi-document writes through documents:commit in chunks
of at most 500 writes (Firestore's per-commit cap). Each chunk commits
atomically on its own; there is no atomicity across chunks.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from typing import Any
from urllib.parse import quote

import httpx

from app.infrastructure.exceptions import (
    BackendError,
    DocumentExistsError,
    DocumentNotFoundError,
)
from app.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_document,
    encode_document,
    encode_fields,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"

# Firestore rejects commits with more writes than this.
MAX_WRITES_PER_COMMIT = 500


def _get_credentials(key_dict: dict, scopes: list[str] | None = None):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=scopes or [_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    try:
        if method == "GET":
            resp = await client.get(url, headers=headers)
        elif method == "PATCH":
            resp = await client.patch(url, headers=headers, json=body)
        elif method == "POST":
            resp = await client.post(url, headers=headers, json=body)
        elif method == "DELETE":
            resp = await client.delete(url, headers=headers)
        else:
            raise ValueError(f"Unsupported method: {method!r}")
    except httpx.TransportError as exc:
        raise BackendError(f"Firestore {method} failed: {exc}") from exc
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code not in (200, 204):
        raise BackendError(
            f"Firestore {method} returned HTTP {resp.status_code}: {resp.text[:200]}"
        )
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _mask_query(field_paths: Iterable[str]) -> str:
    return "&".join(
        f"updateMask.fieldPaths={quote(p, safe='')}" for p in field_paths
    )


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    @property
    def path(self) -> str:
        """Full resource name (projects/.../documents/<collection>/<id>)."""
        return self._path

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        doc = encode_document(data)
        url = f"{_BASE}/{self._path}"
        await _request_async(
            self._client._http,
            url,
            method="PATCH",
            body=doc,
            access_token=await self._client.get_token(),
        )

    async def update(self, updates: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document.

        Raises:
            DocumentNotFoundError: The document does not exist.
        """
        if not updates:
            return
        url = (
            f"{_BASE}/{self._path}?{_mask_query(updates)}"
            "&currentDocument.exists=true"
        )
        out = await _request_async(
            self._client._http,
            url,
            method="PATCH",
            body=encode_document(updates),
            access_token=await self._client.get_token(),
        )
        if out is None:
            raise DocumentNotFoundError(self._path)

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        url = f"{_BASE}/{self._path}"
        out = await _request_async(
            self._client._http, url, access_token=await self._client.get_token()
        )
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_document(out.get("fields")))

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        url = f"{_BASE}/{self._path}"
        await _request_async(
            self._client._http,
            url,
            method="DELETE",
            access_token=await self._client.get_token(),
        )


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array_contains": "ARRAY_CONTAINS",
    "array-contains": "ARRAY_CONTAINS",
    "array_contains_any": "ARRAY_CONTAINS_ANY",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


class _Query:
    """Fluent query builder for a collection; runs via runQuery.

    Multiple where() calls are ANDed (compositeFilter) on the server.
    """

    def __init__(
        self,
        client: FirestoreRESTClient,
        parent: str,
        collection_id: str,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[tuple[str, str, Any]] = []
        self._order_by_field: str | None = None
        self._order_direction: str = "ASCENDING"
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append((field, _OP_MAP.get(op, op), value))
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> _Query:
        self._order_by_field = field
        self._order_direction = direction
        return self

    def limit(self, n: int) -> _Query:
        self._limit = n
        return self

    def _structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {
            "from": [{"collectionId": self._collection_id}],
        }
        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": op,
                    "value": _encode_value(value),
                }
            }
            for field, op, value in self._filters
        ]
        if len(field_filters) == 1:
            structured["where"] = field_filters[0]
        elif field_filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": field_filters}
            }
        if self._order_by_field is not None:
            structured["orderBy"] = [
                {
                    "field": {"fieldPath": self._order_by_field},
                    "direction": self._order_direction,
                }
            ]
        if self._limit:
            structured["limit"] = self._limit
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        url = f"{_BASE}/{self._parent}:runQuery"
        body = {"structuredQuery": self._structured_query()}
        resp = await _request_async(
            self._client._http,
            url,
            method="POST",
            body=body,
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            doc = item["document"]
            name = doc.get("name", "")
            doc_id = name.split("/")[-1] if name else ""
            yield DocumentSnapshot(doc_id, decode_document(doc.get("fields")))


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (fail with DocumentExistsError if it exists)."""
        doc = encode_document(data)
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await _request_async(
            self._client._http,
            url,
            method="POST",
            body=doc,
            access_token=await self._client.get_token(),
        )

    def _query(self) -> _Query:
        parent = self._path.rsplit("/", 1)[0]
        return _Query(self._client, parent, self.id)

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Chain .where(), .order_by(), .limit(), then .stream()."""
        return self._query().where(field, op, value)

    def order_by(self, field: str, direction: str = "ASCENDING") -> _Query:
        return self._query().order_by(field, direction)

    def limit(self, n: int) -> _Query:
        return self._query().limit(n)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """List every document in the collection (shallow), following page tokens."""
        page_token: str | None = None
        while True:
            url = f"{_BASE}/{self._path}?pageSize=300"
            if page_token:
                url += f"&pageToken={quote(page_token, safe='')}"
            out = await _request_async(
                self._client._http, url, access_token=await self._client.get_token()
            )
            if not out:
                return
            for doc in out.get("documents", []):
                name = doc.get("name", "")
                doc_id = name.split("/")[-1] if name else ""
                yield DocumentSnapshot(doc_id, decode_document(doc.get("fields")))
            page_token = out.get("nextPageToken")
            if not page_token:
                return


def _to_commit_write(prefix: str, op: dict[str, Any]) -> dict[str, Any]:
    """Translate one batch_write op into a Firestore REST Write."""
    name = f"{prefix}/{op['path']}"
    if op.get("delete"):
        return {"delete": name}
    if "increment" in op:
        return {
            "transform": {
                "document": name,
                "fieldTransforms": [
                    {"fieldPath": field, "increment": _encode_value(amount)}
                    for field, amount in op["increment"].items()
                ],
            }
        }
    if "update" in op:
        updates = op["update"]
        return {
            "update": {"name": name, "fields": encode_fields(updates)},
            "updateMask": {"fieldPaths": list(updates)},
            "currentDocument": {"exists": True},
        }
    return {"update": encode_document(op["data"], name=name)}


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._prefix = f"projects/{project_id}/databases/(default)/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    async def batch_write(
        self,
        writes: list[dict[str, Any]],
        limit: int = MAX_WRITES_PER_COMMIT,
    ) -> int:
        """Commit writes in chunks of at most `limit`; return the number of commits.

        Each write is a dict with a relative "path" ("collection/docId") and one of:
        "data" (full set), "update" (merge into existing doc), "increment"
        ({field: amount}) or "delete": True.

        Chunks commit in order; if one fails, earlier chunks stay committed
        and BackendError propagates.
        """
        if not 1 <= limit <= MAX_WRITES_PER_COMMIT:
            raise ValueError(f"limit must be between 1 and {MAX_WRITES_PER_COMMIT}")
        url = f"{_BASE}/{self._prefix}:commit"
        commits = 0
        for start in range(0, len(writes), limit):
            chunk = writes[start : start + limit]
            body = {"writes": [_to_commit_write(self._prefix, op) for op in chunk]}
            out = await _request_async(
                self._http,
                url,
                method="POST",
                body=body,
                access_token=await self.get_token(),
            )
            if out is None:
                # Update precondition on a missing document.
                raise DocumentNotFoundError(chunk[0]["path"])
            commits += 1
        return commits
