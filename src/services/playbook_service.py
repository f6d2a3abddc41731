"""Playbook lifecycle: intake, reviewer votes, public listing, Firestore sync.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (business logic orchestration).
# Depends on: ISheetProvider, IDocumentStore (optional), ReactionService.
#
# A playbook row is linked to its Firestore document by ``sheetKey``, the
# SHA-256 of owner + normalised timestamp.  The key is recomputed from the
# row every time, never trusted from the remote side.
#
#   submit_playbook   — store the row, create the remote document
#                       (isApproved=false).  A Firestore failure is
#                       reported but the row stays stored.
#   record_vote       — write one vote cell, recompute approval, and
#                       when the flag flips PATCH ``isApproved`` on the
#                       document found by sheetKey (true or false).
#   list_approved_playbooks / list_remote_playbooks — read paths.
#   sync_all          — upsert every row by sheetKey, collecting errors.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from src.config.loader import DEFAULT_CATEGORY, DEFAULT_CATEGORY_RULES
from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.interfaces.sheet_provider import ISheetProvider
from src.models.playbook import REVIEWER_SLOTS, Playbook, PlaybookView, RemotePlaybook
from src.models.sync import SyncReport
from src.providers.firestore.values import Timestamp
from src.services.approval import count_approvals, is_approved
from src.services.reaction_service import ReactionService
from src.utils.errors import (
    ConfigurationError,
    RecordNotFoundError,
    SubmissionValidationError,
    TipsError,
)
from src.utils.sheet_key import create_playbook_key, to_iso_timestamp

logger = structlog.get_logger(logger_name=__name__)

# Fields written by create and by the full sync PATCH.
REMOTE_PLAYBOOK_FIELDS = ("category", "description", "email", "isApproved", "timestamp", "sheetKey")


def map_category(
    raw: str | None,
    rules: list[dict[str, Any]] | None = None,
    default: str = DEFAULT_CATEGORY,
) -> str:
    """Map a free-text form category onto an internal category.

    Rules are checked in order and the first one with a keyword contained
    in the lowercased text wins.
    """
    text = (raw or "").lower()
    if not text:
        return default
    for rule in rules if rules is not None else DEFAULT_CATEGORY_RULES:
        if any(str(keyword).lower() in text for keyword in rule.get("keywords", [])):
            return rule["category"]
    return default


def _now_iso() -> str:
    return to_iso_timestamp(datetime.now(timezone.utc))


class PlaybookService:
    """Coordinates the playbook sheet with the Firestore ``playbooks`` collection."""

    def __init__(
        self,
        sheet_provider: ISheetProvider,
        settings: Settings,
        document_store: IDocumentStore | None = None,
        reaction_service: ReactionService | None = None,
        playbook_config: dict[str, Any] | None = None,
    ) -> None:
        self._sheets = sheet_provider
        self._settings = settings
        self._store = document_store
        self._reactions = reaction_service
        config = playbook_config or {}
        self._category_rules = config.get("category_rules", DEFAULT_CATEGORY_RULES)
        self._default_category = config.get("default_category", DEFAULT_CATEGORY)

    @property
    def _collection(self) -> str:
        return self._settings.collection_playbooks

    def _require_store(self) -> IDocumentStore:
        if self._store is None:
            raise ConfigurationError("Firestore mirroring is disabled", provider_name="firestore")
        return self._store

    @staticmethod
    def _remote_fields(playbook: Playbook, approved: bool) -> dict[str, Any]:
        return {
            "category": playbook.category,
            "description": playbook.description,
            "email": playbook.owner,
            "isApproved": approved,
            "timestamp": Timestamp(playbook.timestamp),
            "sheetKey": create_playbook_key(playbook.owner, playbook.timestamp),
        }

    # ── Intake ─────────────────────────────────────────────────────────

    async def submit_playbook(self, data: dict[str, Any]) -> dict[str, Any]:
        """Store a playbook form response and create its Firestore document.

        ``data`` accepts ``email`` (or ``owner``), ``timestamp`` (defaults
        to now), ``category``, ``description`` and ``supportingMaterials``.
        """
        owner = str(data.get("email") or data.get("owner") or "").strip()
        if not owner:
            raise SubmissionValidationError(missing_fields=["email"])
        try:
            timestamp = to_iso_timestamp(data.get("timestamp") or datetime.now(timezone.utc))
        except ValueError as exc:
            raise SubmissionValidationError(message=f"Invalid timestamp: {exc}") from exc

        sheet_key = create_playbook_key(owner, timestamp)
        playbook = await self._sheets.append_playbook({
            "timestamp": timestamp,
            "owner": owner,
            "category": str(data.get("category") or ""),
            "description": str(data.get("description") or ""),
            "supporting_materials": str(data.get("supportingMaterials") or "N/A"),
            "sheet_key": sheet_key,
        })
        logger.info("playbook_saved", playbook_id=playbook.id, sheet_key=sheet_key)

        firestore_saved = False
        document_name: str | None = None
        error: str | None = None
        if self._store is not None:
            try:
                document = await self._store.create_document(
                    self._collection, self._remote_fields(playbook, False),
                )
                document_name = document.name
                await self._sheets.set_playbook_document(playbook.id, document_name, _now_iso())
                firestore_saved = True
            except TipsError as exc:
                logger.error("playbook_firestore_save_failed", playbook_id=playbook.id, error=str(exc))
                error = str(exc)

        result: dict[str, Any] = {
            "success": True,
            "playbookId": playbook.id,
            "sheetKey": sheet_key,
            "firestoreSaved": firestore_saved,
            "documentName": document_name,
        }
        if error:
            result["error"] = error
        return result

    # ── Votes ──────────────────────────────────────────────────────────

    async def record_vote(self, playbook_id: int, slot: int, value: str) -> dict[str, Any]:
        """Write reviewer vote *slot* (1-based) and re-evaluate approval.

        Slots outside the five reviewer columns are ignored.
        """
        current = await self._sheets.get_playbook(playbook_id)
        if current is None:
            raise RecordNotFoundError(f"Playbook {playbook_id} not found", provider_name="sqlite_sheet")

        if not 1 <= slot <= REVIEWER_SLOTS:
            logger.info("vote_outside_reviewer_window", playbook_id=playbook_id, slot=slot)
            return {
                "playbookId": playbook_id,
                "approvalCount": count_approvals(current.votes),
                "isApproved": current.is_approved,
                "changed": False,
                "remoteUpdated": False,
            }

        playbook = await self._sheets.set_playbook_vote(playbook_id, slot - 1, value)
        if playbook is None:
            raise RecordNotFoundError(f"Playbook {playbook_id} not found", provider_name="sqlite_sheet")

        approvals = count_approvals(playbook.votes)
        approved = is_approved(playbook.votes)
        changed = approved != playbook.is_approved
        remote_updated = False

        if changed:
            await self._sheets.set_playbook_approval(playbook_id, approved)
            logger.info("playbook_approval_changed", playbook_id=playbook_id,
                        approvals=approvals, is_approved=approved)
        else:
            logger.info("playbook_approval_unchanged", playbook_id=playbook_id,
                        approvals=approvals, is_approved=approved)

        # Reconcile the mirror on every in-window vote.
        if self._store is not None:
            remote_updated = await self._reconcile_remote_approval(playbook, approved)

        return {
            "playbookId": playbook_id,
            "approvalCount": approvals,
            "isApproved": approved,
            "changed": changed,
            "remoteUpdated": remote_updated,
        }

    async def _reconcile_remote_approval(self, playbook: Playbook, approved: bool) -> bool:
        """Patch ``isApproved`` on the mirrored document when it disagrees with the sheet."""
        if not playbook.timestamp or not playbook.owner:
            logger.error("playbook_key_fields_missing", playbook_id=playbook.id)
            return False

        sheet_key = create_playbook_key(playbook.owner, playbook.timestamp)
        try:
            documents = await self._store.run_query(
                self._collection, where=("sheetKey", "EQUAL", sheet_key), limit=1,
            )
            if not documents:
                logger.error("playbook_document_not_found", playbook_id=playbook.id, sheet_key=sheet_key)
                return False
            document = documents[0]
            if document.fields.get("isApproved") is approved:
                return False
            await self._store.patch_document(document.name, {"isApproved": approved}, ["isApproved"])
        except TipsError as exc:
            logger.error("playbook_approval_patch_failed", playbook_id=playbook.id, error=str(exc))
            return False
        logger.info("playbook_remote_approval_patched", playbook_id=playbook.id, is_approved=approved)
        return True

    # ── Read paths ─────────────────────────────────────────────────────

    async def list_approved_playbooks(self, include_reactions: bool = False) -> dict[str, Any]:
        """Approved rows with mapped categories, as served by ``action=getPlaybooks``."""
        try:
            playbooks = await self._sheets.list_playbooks()
        except TipsError as exc:
            logger.error("playbooks_read_failed", error=str(exc))
            return {"success": False, "error": str(exc), "playbooks": []}

        views: list[dict[str, Any]] = []
        for playbook in playbooks:
            if not playbook.is_approved:
                continue
            reaction_count = None
            if include_reactions and self._reactions is not None and playbook.document_name:
                document_id = playbook.document_name.rsplit("/", 1)[-1]
                try:
                    reaction_count = await self._reactions.count_reactions(document_id)
                except TipsError as exc:
                    logger.warning("reaction_count_failed", playbook_id=playbook.id, error=str(exc))
            view = PlaybookView(
                id=playbook.id,
                timestamp=playbook.timestamp,
                owner=playbook.owner,
                category=map_category(playbook.category, self._category_rules, self._default_category),
                description=playbook.description,
                reaction_count=reaction_count,
            )
            views.append(view.model_dump(by_alias=True, exclude_none=True))

        return {"success": True, "playbooks": views, "count": len(views)}

    async def get_reaction_count(self, playbook_id: int) -> dict[str, Any]:
        if self._reactions is None:
            raise ConfigurationError("Firestore mirroring is disabled", provider_name="firestore")
        playbook = await self._sheets.get_playbook(playbook_id)
        if playbook is None:
            raise RecordNotFoundError(f"Playbook {playbook_id} not found", provider_name="sqlite_sheet")
        if not playbook.document_name:
            raise RecordNotFoundError(
                f"Playbook {playbook_id} has not been mirrored yet", provider_name="firestore",
            )
        document_id = playbook.document_name.rsplit("/", 1)[-1]
        count = await self._reactions.count_reactions(document_id)
        return {"playbookId": playbook_id, "documentId": document_id, "reactionCount": count}

    async def list_remote_playbooks(self) -> dict[str, Any]:
        store = self._require_store()
        try:
            documents = await store.run_query(self._collection)
        except TipsError as exc:
            logger.error("remote_playbooks_read_failed", error=str(exc))
            return {"success": False, "error": str(exc), "playbooks": []}

        playbooks = [
            RemotePlaybook(
                document_name=doc.name,
                timestamp=doc.fields.get("timestamp") or "",
                owner=doc.fields.get("email") or "",
                category=doc.fields.get("category") or "",
                description=doc.fields.get("description") or "",
                is_approved=doc.fields.get("isApproved", "N/A"),
                sheet_key=doc.fields.get("sheetKey", "N/A"),
            ).model_dump(by_alias=True)
            for doc in documents
        ]
        logger.info("remote_playbooks_read", count=len(playbooks))
        return {"success": True, "playbooks": playbooks, "count": len(playbooks)}

    # ── Bulk sync ──────────────────────────────────────────────────────

    async def sync_all(self) -> SyncReport:
        """Upsert every playbook row into Firestore by sheetKey.

        Rows without a timestamp or owner are skipped.  A failing row is
        recorded and the loop continues.
        """
        store = self._require_store()
        started_at = _now_iso()
        playbooks = await self._sheets.list_playbooks()
        logger.info("playbook_sync_started", rows=len(playbooks))

        created = updated = skipped = 0
        errors: list[str] = []
        for playbook in playbooks:
            if not playbook.timestamp or not playbook.owner:
                logger.info("sync_row_skipped", playbook_id=playbook.id)
                skipped += 1
                continue

            approved = is_approved(playbook.votes)
            fields = self._remote_fields(playbook, approved)
            try:
                document_name = await store.find_document_name(
                    self._collection, "sheetKey", fields["sheetKey"],
                )
                if document_name:
                    await store.patch_document(document_name, fields, list(REMOTE_PLAYBOOK_FIELDS))
                    updated += 1
                else:
                    document = await store.create_document(self._collection, fields)
                    document_name = document.name
                    created += 1
                await self._sheets.set_playbook_document(playbook.id, document_name, _now_iso())
                if approved != playbook.is_approved:
                    await self._sheets.set_playbook_approval(playbook.id, approved)
            except TipsError as exc:
                logger.warning("sync_row_failed", playbook_id=playbook.id, error=str(exc))
                errors.append(f"playbook {playbook.id}: {exc}")

        report = SyncReport(
            target=self._collection,
            total=len(playbooks),
            created=created,
            updated=updated,
            skipped=skipped,
            errors=errors,
            started_at=started_at,
            finished_at=_now_iso(),
        )
        logger.info("playbook_sync_finished", created=created, updated=updated,
                    skipped=skipped, errors=len(errors))
        return report
