"""Public interface definitions for the two stores behind the service.

Business logic reaches storage only through the abstract base classes in
this package; concrete adapters are built in ``src/main.py`` and injected
into the services.  Unit tests inject fakes or mocks instead.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementation (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ISheetProvider     →  SQLiteSheetProvider
    IDocumentStore     →  FirestoreRESTProvider

Re-exports
----------
ISheetProvider
    Tabular store: submissions, playbooks, standings.
IDocumentStore, RemoteDocument
    Firestore-like document store contract and its decoded document.
"""

from src.interfaces.document_store import IDocumentStore, RemoteDocument
from src.interfaces.sheet_provider import ISheetProvider

__all__ = [
    "IDocumentStore",
    "ISheetProvider",
    "RemoteDocument",
]
