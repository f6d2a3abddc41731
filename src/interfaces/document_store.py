"""Abstract base class for the remote document store (Firestore).

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# Services talk to Firestore only through IDocumentStore.  Documents are
# exchanged as plain Python dicts; the concrete adapter owns the wire
# encoding (``{"stringValue": ...}`` and friends).
#
# Concrete implementation: FirestoreRESTProvider
# (src/providers/firestore/firestore_rest_provider.py).
#
# Every method raises DocumentStoreError on failure.  Callers that loop
# over many rows catch it per row and keep going.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RemoteDocument:
    """A decoded document.

    ``name`` is the full resource name
    (``projects/p/databases/(default)/documents/playbooks/abc``) and
    ``document_id`` its last path segment.
    """

    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    create_time: str | None = None
    update_time: str | None = None

    @property
    def document_id(self) -> str:
        return self.name.rsplit("/", 1)[-1]


class IDocumentStore(ABC):
    """Contract for the Firestore-like document database."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    async def run_query(
        self,
        collection: str,
        *,
        where: tuple[str, str, Any] | None = None,
        limit: int | None = None,
    ) -> list[RemoteDocument]:
        """Run a structured query against *collection*.

        Parameters
        ----------
        where:
            Optional ``(field_path, op, value)`` single-field filter, e.g.
            ``("sheetKey", "EQUAL", key)``.
        limit:
            Maximum number of documents to return.
        """

    @abstractmethod
    async def find_document_name(self, collection: str, field_path: str, value: Any) -> str | None:
        """Return the name of the first document whose *field_path* equals *value*."""

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> RemoteDocument:
        """Create a document; the server picks the id when *document_id* is None."""

    @abstractmethod
    async def patch_document(
        self,
        document_name: str,
        fields: dict[str, Any],
        update_mask: list[str] | None = None,
    ) -> RemoteDocument:
        """Update (or create) the document at *document_name*.

        ``update_mask`` limits the write to the listed field paths; when
        omitted every key of *fields* is written.
        """

    @abstractmethod
    async def upsert_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> RemoteDocument:
        """Write *fields* to ``collection/document_id``, creating it if needed."""

    @abstractmethod
    async def delete_document(self, document_name: str) -> None:
        """Delete the document at *document_name*."""

    @abstractmethod
    async def list_documents(self, collection: str, page_size: int = 300) -> list[RemoteDocument]:
        """Return every document in *collection*, following page tokens."""

    @abstractmethod
    async def count_documents(self, collection: str, field_path: str, value: Any) -> int:
        """Count documents in *collection* whose *field_path* equals *value*."""
