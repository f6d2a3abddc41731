"""Firestore document store over the v1 REST API.

Talks to ``https://firestore.googleapis.com/v1/projects/<p>/databases/<d>/documents``
with an injected ``httpx.AsyncClient``:

    :runQuery               — structured queries (sheetKey lookups, full reads)
    :runAggregationQuery    — reaction counts
    POST  <collection>      — create (optionally with ``documentId``)
    PATCH <name>            — update with ``updateMask.fieldPaths`` (upserts)
    DELETE <name>           — remove stale leaderboard documents
    GET   <collection>      — paged listing

Pacing is a fixed pause after every ``pause_every`` requests.  Retries on
429/5xx are disabled unless ``firestore_max_retries`` is set.  Any failure
surfaces as :class:`DocumentStoreError` with the status code and body.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore, RemoteDocument
from src.providers.firestore.values import decode_fields, encode_fields, encode_value
from src.utils.errors import DocumentStoreError
from src.utils.logging import get_logger

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}
_BODY_LOG_LIMIT = 500


class FirestoreRESTProvider(IDocumentStore):
    """Firestore adapter built on plain REST calls.

    Parameters
    ----------
    settings:
        Supplies project, database, credentials and pacing.
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    sleep:
        Awaitable sleep used for pacing and backoff (tests pass a fake).
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._sleep = sleep
        self._api_root = settings.firestore_base_url.rstrip("/")
        self._documents_url = settings.get_documents_url()
        self._documents_path = (
            f"projects/{settings.firestore_project_id}"
            f"/databases/{settings.firestore_database}/documents"
        )
        self._request_count = 0
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "firestore"

    @property
    def request_count(self) -> int:
        return self._request_count

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _pace(self) -> None:
        """Pause once every ``pause_every`` requests."""
        every = self._settings.firestore_pause_every
        if every > 0 and self._request_count > 0 and self._request_count % every == 0:
            self._logger.debug(
                "firestore_pacing_pause",
                requests=self._request_count,
                pause_s=self._settings.firestore_pause_seconds,
            )
            await self._sleep(self._settings.firestore_pause_seconds)
        self._request_count += 1

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._settings.firestore_bearer_token:
            headers["Authorization"] = f"Bearer {self._settings.firestore_bearer_token}"
        return headers

    def _params(self, extra: list[tuple[str, str]] | None = None) -> list[tuple[str, str]]:
        params = list(extra or [])
        if self._settings.firestore_api_key:
            params.append(("key", self._settings.firestore_api_key))
        return params

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: list[tuple[str, str]] | None = None,
    ) -> Any:
        """Send one request (plus configured retries) and return decoded JSON."""
        max_retries = max(0, self._settings.firestore_max_retries)

        for attempt in range(max_retries + 1):
            await self._pace()
            try:
                response = await self._http.request(
                    method,
                    url,
                    json=json,
                    params=self._params(params),
                    headers=self._headers(),
                    timeout=self._settings.firestore_timeout_seconds,
                )
            except httpx.HTTPError as exc:
                self._logger.warning(
                    "firestore_request_failed",
                    method=method,
                    url=url,
                    error=str(exc),
                    attempt=attempt + 1,
                )
                if attempt < max_retries:
                    await self._sleep(self._settings.firestore_retry_backoff_seconds * (attempt + 1))
                    continue
                raise DocumentStoreError(
                    message=f"{method} {url} failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            if response.status_code in _RETRYABLE_STATUS and attempt < max_retries:
                backoff = self._settings.firestore_retry_backoff_seconds * (attempt + 1)
                self._logger.warning(
                    "firestore_retryable_status",
                    method=method,
                    status=response.status_code,
                    attempt=attempt + 1,
                    backoff_s=backoff,
                )
                await self._sleep(backoff)
                continue

            if response.status_code >= 400:
                body = response.text
                self._logger.error(
                    "firestore_error_response",
                    method=method,
                    url=url,
                    status=response.status_code,
                    body=body[:_BODY_LOG_LIMIT],
                )
                raise DocumentStoreError(
                    message=f"{method} {url} returned HTTP {response.status_code}",
                    provider_name=self.get_provider_name(),
                    status_code=response.status_code,
                    body=body,
                )

            if not response.content:
                return {}
            return response.json()

        # Only reachable when every attempt hit a retryable status.
        raise DocumentStoreError(
            message=f"{method} {url} kept failing after {max_retries + 1} attempts",
            provider_name=self.get_provider_name(),
        )

    def _document_name(self, collection: str, document_id: str) -> str:
        return f"{self._documents_path}/{collection}/{document_id}"

    @staticmethod
    def _decode_document(doc: dict[str, Any]) -> RemoteDocument:
        return RemoteDocument(
            name=doc.get("name", ""),
            fields=decode_fields(doc.get("fields", {})),
            create_time=doc.get("createTime"),
            update_time=doc.get("updateTime"),
        )

    @staticmethod
    def _structured_query(
        collection: str,
        where: tuple[str, str, Any] | None,
        limit: int | None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {"from": [{"collectionId": collection}]}
        if where is not None:
            field_path, op, value = where
            query["where"] = {
                "fieldFilter": {
                    "field": {"fieldPath": field_path},
                    "op": op,
                    "value": encode_value(value),
                }
            }
        if limit is not None:
            query["limit"] = limit
        return query

    # ------------------------------------------------------------------
    # IDocumentStore implementation
    # ------------------------------------------------------------------

    async def run_query(
        self,
        collection: str,
        *,
        where: tuple[str, str, Any] | None = None,
        limit: int | None = None,
    ) -> list[RemoteDocument]:
        payload = {"structuredQuery": self._structured_query(collection, where, limit)}
        result = await self._request("POST", f"{self._documents_url}:runQuery", json=payload)

        # runQuery streams one object per match; objects without a
        # "document" key only carry readTime.
        documents = [
            self._decode_document(item["document"])
            for item in result or []
            if isinstance(item, dict) and item.get("document")
        ]
        self._logger.debug("firestore_query", collection=collection, matches=len(documents))
        return documents

    async def find_document_name(self, collection: str, field_path: str, value: Any) -> str | None:
        documents = await self.run_query(collection, where=(field_path, "EQUAL", value), limit=1)
        return documents[0].name if documents else None

    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> RemoteDocument:
        params = [("documentId", document_id)] if document_id else None
        result = await self._request(
            "POST",
            f"{self._documents_url}/{collection}",
            json={"fields": encode_fields(fields)},
            params=params,
        )
        document = self._decode_document(result)
        self._logger.info("firestore_document_created", collection=collection, name=document.name)
        return document

    async def patch_document(
        self,
        document_name: str,
        fields: dict[str, Any],
        update_mask: list[str] | None = None,
    ) -> RemoteDocument:
        mask = update_mask if update_mask is not None else list(fields)
        params = [("updateMask.fieldPaths", path) for path in mask]
        result = await self._request(
            "PATCH",
            f"{self._api_root}/{document_name}",
            json={"fields": encode_fields(fields)},
            params=params,
        )
        self._logger.info("firestore_document_patched", name=document_name, fields=mask)
        return self._decode_document(result)

    async def upsert_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> RemoteDocument:
        return await self.patch_document(self._document_name(collection, document_id), fields)

    async def delete_document(self, document_name: str) -> None:
        await self._request("DELETE", f"{self._api_root}/{document_name}")
        self._logger.info("firestore_document_deleted", name=document_name)

    async def list_documents(self, collection: str, page_size: int = 300) -> list[RemoteDocument]:
        documents: list[RemoteDocument] = []
        page_token: str | None = None

        while True:
            params = [("pageSize", str(page_size))]
            if page_token:
                params.append(("pageToken", page_token))
            result = await self._request("GET", f"{self._documents_url}/{collection}", params=params)
            documents.extend(self._decode_document(doc) for doc in result.get("documents", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                break

        return documents

    async def count_documents(self, collection: str, field_path: str, value: Any) -> int:
        payload = {
            "structuredAggregationQuery": {
                "structuredQuery": self._structured_query(collection, (field_path, "EQUAL", value), None),
                "aggregations": [{"alias": "count", "count": {}}],
            }
        }
        result = await self._request("POST", f"{self._documents_url}:runAggregationQuery", json=payload)
        for item in result or []:
            aggregate = item.get("result", {}).get("aggregateFields", {}).get("count")
            if aggregate is not None:
                return int(aggregate.get("integerValue", 0))
        return 0
