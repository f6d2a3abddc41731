"""Unit tests for ReactionService."""

from __future__ import annotations

import pytest

from src.services.reaction_service import ReactionService
from src.utils.errors import ConfigurationError, DocumentStoreError


@pytest.mark.asyncio
async def test_counts_reactions_for_document_id(settings, document_store) -> None:
    reactions = document_store.documents("reactions")
    reactions["a"] = {"playbook_id": "doc-1"}
    reactions["b"] = {"playbook_id": "doc-1"}
    reactions["c"] = {"playbook_id": "doc-2"}
    service = ReactionService(settings=settings, document_store=document_store)

    assert await service.count_reactions("doc-1") == 2
    assert await service.count_reactions("doc-3") == 0


@pytest.mark.asyncio
async def test_uses_configured_collection(settings, document_store) -> None:
    document_store.documents("likes")["a"] = {"playbook_id": "doc-1"}
    service = ReactionService(
        settings=settings.model_copy(update={"collection_reactions": "likes"}),
        document_store=document_store,
    )
    assert await service.count_reactions("doc-1") == 1


@pytest.mark.asyncio
async def test_store_errors_propagate(settings, document_store) -> None:
    document_store.fail_on.add("count_documents")
    service = ReactionService(settings=settings, document_store=document_store)
    with pytest.raises(DocumentStoreError):
        await service.count_reactions("doc-1")


@pytest.mark.asyncio
async def test_requires_document_store(settings) -> None:
    with pytest.raises(ConfigurationError):
        await ReactionService(settings=settings).count_reactions("doc-1")
