"""Reaction counts for playbooks.

Reactions live only in Firestore (the dashboard writes them); each
document carries a ``playbook_id`` field holding the Firestore id of the
playbook it reacts to.  Counting uses the REST aggregation query so no
reaction documents are downloaded.
"""

from __future__ import annotations

import structlog

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

REACTION_PLAYBOOK_FIELD = "playbook_id"


class ReactionService:
    def __init__(self, settings: Settings, document_store: IDocumentStore | None = None) -> None:
        self._settings = settings
        self._store = document_store

    async def count_reactions(self, playbook_id: str) -> int:
        if self._store is None:
            raise ConfigurationError("Firestore mirroring is disabled", provider_name="firestore")
        count = await self._store.count_documents(
            self._settings.collection_reactions, REACTION_PLAYBOOK_FIELD, playbook_id,
        )
        logger.debug("reactions_counted", playbook_id=playbook_id, count=count)
        return count
