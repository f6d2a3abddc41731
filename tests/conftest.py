"""Shared pytest fixtures for the AI Tips test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore, RemoteDocument
from src.providers.sheet.sqlite_sheet_provider import SQLiteSheetProvider
from src.utils.errors import DocumentStoreError

_DOCUMENTS_PATH = "projects/test-project/databases/(default)/documents"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed IDocumentStore with the same naming scheme as Firestore.

    ``fail_on`` names operations that should raise DocumentStoreError,
    and ``calls`` records every operation in order.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: set[str] = set()
        self._next_id = 0

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise DocumentStoreError(
                message=f"{operation} failed", provider_name="memory", status_code=500, body="boom",
            )

    def _name(self, collection: str, document_id: str) -> str:
        return f"{_DOCUMENTS_PATH}/{collection}/{document_id}"

    @staticmethod
    def _split(name: str) -> tuple[str, str]:
        collection, document_id = name.rsplit("/", 2)[-2:]
        return collection, document_id

    def get_provider_name(self) -> str:
        return "memory"

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    async def run_query(self, collection, *, where=None, limit=None):
        self.calls.append(("run_query", collection))
        self._maybe_fail("run_query")
        results = []
        for document_id, fields in self.documents(collection).items():
            if where is not None:
                field_path, _op, value = where
                if fields.get(field_path) != value:
                    continue
            results.append(RemoteDocument(name=self._name(collection, document_id), fields=dict(fields)))
        return results[:limit] if limit is not None else results

    async def find_document_name(self, collection, field_path, value):
        documents = await self.run_query(collection, where=(field_path, "EQUAL", value), limit=1)
        return documents[0].name if documents else None

    async def create_document(self, collection, fields, document_id=None):
        self.calls.append(("create_document", collection))
        self._maybe_fail("create_document")
        if document_id is None:
            self._next_id += 1
            document_id = f"auto{self._next_id}"
        self.documents(collection)[document_id] = dict(fields)
        return RemoteDocument(name=self._name(collection, document_id), fields=dict(fields))

    async def patch_document(self, document_name, fields, update_mask=None):
        self.calls.append(("patch_document", document_name))
        self._maybe_fail("patch_document")
        collection, document_id = self._split(document_name)
        current = self.documents(collection).setdefault(document_id, {})
        for key in update_mask if update_mask is not None else fields:
            current[key] = fields.get(key)
        return RemoteDocument(name=document_name, fields=dict(current))

    async def upsert_document(self, collection, document_id, fields):
        return await self.patch_document(self._name(collection, document_id), fields)

    async def delete_document(self, document_name):
        self.calls.append(("delete_document", document_name))
        self._maybe_fail("delete_document")
        collection, document_id = self._split(document_name)
        self.documents(collection).pop(document_id, None)

    async def list_documents(self, collection, page_size=300):
        self.calls.append(("list_documents", collection))
        self._maybe_fail("list_documents")
        return [
            RemoteDocument(name=self._name(collection, document_id), fields=dict(fields))
            for document_id, fields in self.documents(collection).items()
        ]

    async def count_documents(self, collection, field_path, value):
        self.calls.append(("count_documents", collection))
        self._maybe_fail("count_documents")
        return sum(1 for fields in self.documents(collection).values() if fields.get(field_path) == value)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the developer's .env and real Firestore."""
    return Settings(
        _env_file=None,
        firestore_project_id="test-project",
        firestore_pause_every=10,
        firestore_pause_seconds=0.0,
        firestore_max_retries=0,
        sheet_db_path=str(tmp_path / "sheets.db"),
        config_path=str(tmp_path / "missing.yaml"),
    )


@pytest.fixture
async def sheet_store(settings: Settings) -> SQLiteSheetProvider:
    """An initialised SQLiteSheetProvider on a temp database."""
    provider = SQLiteSheetProvider(db_path=settings.sheet_db_path)
    await provider.initialize()
    return provider


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def valid_submission() -> dict[str, str]:
    return {
        "fullName": "Jane Doe",
        "email": "jane.doe@kms-technology.com",
        "department": "Engineering",
        "submissionType": "ai-tip",
        "title": "Summarise meeting notes",
        "description": "Paste the transcript and ask for action items.",
        "tags": "meetings, productivity",
    }
