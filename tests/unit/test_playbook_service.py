"""Unit tests for PlaybookService: intake, votes, listing and bulk sync."""

from __future__ import annotations

import pytest

from src.config.loader import DEFAULT_CATEGORY_RULES
from src.services.playbook_service import PlaybookService, map_category
from src.services.reaction_service import ReactionService
from src.utils.errors import ConfigurationError, RecordNotFoundError, SubmissionValidationError
from src.utils.sheet_key import create_playbook_key

TIMESTAMP = "2024-05-01T10:20:30.000Z"
OWNER = "jane@kms-technology.com"


@pytest.fixture
def service(sheet_store, settings, document_store) -> PlaybookService:
    return PlaybookService(
        sheet_provider=sheet_store,
        settings=settings,
        document_store=document_store,
        reaction_service=ReactionService(settings=settings, document_store=document_store),
    )


async def _submit(service: PlaybookService, **overrides) -> dict:
    data = {
        "email": OWNER,
        "timestamp": TIMESTAMP,
        "category": "Driving operational efficiency",
        "description": "Draft test plans with an assistant.",
    }
    data.update(overrides)
    return await service.submit_playbook(data)


async def _approve(service: PlaybookService, playbook_id: int, slots=(1, 2, 3)) -> None:
    for slot in slots:
        await service.record_vote(playbook_id, slot, "Approved")


class TestMapCategory:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Driving Operational Efficiency", "productivity"),
            ("Predictive insights from data", "data"),
            ("Improving customer experience", "cx"),
            ("Creativity & innovation", "innovation"),
            ("Something else", "productivity"),
            ("", "productivity"),
            (None, "productivity"),
        ],
    )
    def test_default_rules(self, raw, expected) -> None:
        assert map_category(raw) == expected

    def test_first_matching_rule_wins(self) -> None:
        assert map_category("productivity through data analysis", DEFAULT_CATEGORY_RULES) == "productivity"

    def test_custom_rules_and_default(self) -> None:
        rules = [{"category": "ops", "keywords": ["ON-CALL"]}]
        assert map_category("Better on-call handoffs", rules, default="misc") == "ops"
        assert map_category("Unrelated", rules, default="misc") == "misc"


class TestSubmit:
    @pytest.mark.asyncio
    async def test_stores_row_and_creates_document(self, service, sheet_store, document_store) -> None:
        result = await _submit(service)

        assert result["success"] is True
        assert result["firestoreSaved"] is True
        assert result["sheetKey"] == create_playbook_key(OWNER, TIMESTAMP)
        [doc] = document_store.documents("playbooks").values()
        assert doc["email"] == OWNER
        assert doc["isApproved"] is False
        assert doc["sheetKey"] == result["sheetKey"]
        assert doc["timestamp"] == TIMESTAMP

        playbook = await sheet_store.get_playbook(result["playbookId"])
        assert playbook.document_name == result["documentName"]
        assert playbook.saved_to_firestore_at is not None

    @pytest.mark.asyncio
    async def test_timestamp_is_normalised_before_keying(self, service) -> None:
        result = await _submit(service, timestamp="2024-05-01T12:20:30+02:00")
        assert result["sheetKey"] == create_playbook_key(OWNER, TIMESTAMP)

    @pytest.mark.asyncio
    async def test_firestore_failure_keeps_row(self, service, sheet_store, document_store) -> None:
        document_store.fail_on.add("create_document")

        result = await _submit(service)

        assert result["success"] is True
        assert result["firestoreSaved"] is False
        assert "create_document failed" in result["error"]
        assert (await sheet_store.get_playbook(result["playbookId"])).document_name is None

    @pytest.mark.asyncio
    async def test_email_is_required(self, service) -> None:
        with pytest.raises(SubmissionValidationError) as exc_info:
            await _submit(service, email="")
        assert exc_info.value.missing_fields == ["email"]

    @pytest.mark.asyncio
    async def test_bad_timestamp(self, service) -> None:
        with pytest.raises(SubmissionValidationError):
            await _submit(service, timestamp="yesterday")


class TestVotes:
    @pytest.mark.asyncio
    async def test_approval_flips_at_third_vote(self, service, document_store) -> None:
        result = await _submit(service)
        playbook_id = result["playbookId"]

        await service.record_vote(playbook_id, 1, "Approved")
        second = await service.record_vote(playbook_id, 2, "Approved")
        assert second["isApproved"] is False
        assert second["changed"] is False

        third = await service.record_vote(playbook_id, 4, "Approved")
        assert third == {
            "playbookId": playbook_id,
            "approvalCount": 3,
            "isApproved": True,
            "changed": True,
            "remoteUpdated": True,
        }
        [doc] = document_store.documents("playbooks").values()
        assert doc["isApproved"] is True

    @pytest.mark.asyncio
    async def test_revoking_a_vote_patches_false(self, service, sheet_store, document_store) -> None:
        playbook_id = (await _submit(service))["playbookId"]
        await _approve(service, playbook_id)

        result = await service.record_vote(playbook_id, 2, "Rejected")

        assert result["isApproved"] is False
        assert result["changed"] is True
        assert result["remoteUpdated"] is True
        [doc] = document_store.documents("playbooks").values()
        assert doc["isApproved"] is False
        assert (await sheet_store.get_playbook(playbook_id)).is_approved is False

    @pytest.mark.asyncio
    async def test_patch_only_touches_is_approved(self, service, document_store) -> None:
        playbook_id = (await _submit(service))["playbookId"]
        await _approve(service, playbook_id)

        [doc] = document_store.documents("playbooks").values()
        assert doc["description"] == "Draft test plans with an assistant."
        patches = [c for c in document_store.calls if c[0] == "patch_document"]
        assert len(patches) == 1

    @pytest.mark.asyncio
    async def test_missing_remote_document(self, service, document_store) -> None:
        playbook_id = (await _submit(service))["playbookId"]
        document_store.collections["playbooks"].clear()

        await service.record_vote(playbook_id, 1, "Approved")
        await service.record_vote(playbook_id, 2, "Approved")
        result = await service.record_vote(playbook_id, 3, "Approved")

        assert result["isApproved"] is True
        assert result["remoteUpdated"] is False

    @pytest.mark.asyncio
    async def test_failed_patch_heals_on_next_vote(self, service, document_store) -> None:
        playbook_id = (await _submit(service))["playbookId"]
        await service.record_vote(playbook_id, 1, "Approved")
        await service.record_vote(playbook_id, 2, "Approved")

        document_store.fail_on.add("patch_document")
        third = await service.record_vote(playbook_id, 3, "Approved")
        assert third["changed"] is True
        assert third["remoteUpdated"] is False
        [doc] = document_store.documents("playbooks").values()
        assert doc["isApproved"] is False

        document_store.fail_on.clear()
        fourth = await service.record_vote(playbook_id, 4, "Approved")

        assert fourth["changed"] is False
        assert fourth["remoteUpdated"] is True
        [doc] = document_store.documents("playbooks").values()
        assert doc["isApproved"] is True

    @pytest.mark.asyncio
    async def test_vote_in_sync_with_remote_skips_patch(self, service, document_store) -> None:
        playbook_id = (await _submit(service))["playbookId"]
        await _approve(service, playbook_id)

        result = await service.record_vote(playbook_id, 4, "Approved")

        assert result["remoteUpdated"] is False
        patches = [c for c in document_store.calls if c[0] == "patch_document"]
        assert len(patches) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slot", [0, 6])
    async def test_slot_outside_window_is_ignored(self, service, sheet_store, slot) -> None:
        playbook_id = (await _submit(service))["playbookId"]

        result = await service.record_vote(playbook_id, slot, "Approved")

        assert result["changed"] is False
        assert result["approvalCount"] == 0
        assert (await sheet_store.get_playbook(playbook_id)).votes == [""] * 5

    @pytest.mark.asyncio
    async def test_unknown_playbook(self, service) -> None:
        with pytest.raises(RecordNotFoundError):
            await service.record_vote(404, 1, "Approved")


class TestListing:
    @pytest.mark.asyncio
    async def test_only_approved_rows_with_mapped_category(self, service) -> None:
        approved_id = (await _submit(service))["playbookId"]
        await _submit(service, timestamp="2024-05-02T00:00:00.000Z", category="customer experience")
        await _approve(service, approved_id)

        payload = await service.list_approved_playbooks()

        assert payload["success"] is True
        assert payload["count"] == 1
        [view] = payload["playbooks"]
        assert view["id"] == approved_id
        assert view["category"] == "productivity"
        assert "reactionCount" not in view

    @pytest.mark.asyncio
    async def test_reaction_counts(self, service, document_store) -> None:
        result = await _submit(service)
        await _approve(service, result["playbookId"])
        document_id = result["documentName"].rsplit("/", 1)[-1]
        reactions = document_store.documents("reactions")
        reactions["r1"] = {"playbook_id": document_id, "type": "like"}
        reactions["r2"] = {"playbook_id": document_id, "type": "love"}
        reactions["r3"] = {"playbook_id": "other", "type": "like"}

        payload = await service.list_approved_playbooks(include_reactions=True)
        assert payload["playbooks"][0]["reactionCount"] == 2

        count = await service.get_reaction_count(result["playbookId"])
        assert count == {"playbookId": result["playbookId"], "documentId": document_id, "reactionCount": 2}

    @pytest.mark.asyncio
    async def test_reaction_count_needs_mirrored_row(self, service, document_store) -> None:
        document_store.fail_on.add("create_document")
        playbook_id = (await _submit(service))["playbookId"]

        with pytest.raises(RecordNotFoundError):
            await service.get_reaction_count(playbook_id)

    @pytest.mark.asyncio
    async def test_remote_playbooks_defaults(self, service, document_store) -> None:
        await _submit(service)
        document_store.documents("playbooks")["legacy"] = {"email": "old@kms-technology.com"}

        payload = await service.list_remote_playbooks()

        assert payload["count"] == 2
        legacy = next(p for p in payload["playbooks"] if p["documentName"].endswith("/legacy"))
        assert legacy["owner"] == "old@kms-technology.com"
        assert legacy["isApproved"] == "N/A"
        assert legacy["sheetKey"] == "N/A"


class TestSyncAll:
    @pytest.mark.asyncio
    async def test_creates_then_updates(self, service, sheet_store, document_store) -> None:
        await sheet_store.append_playbook({
            "timestamp": TIMESTAMP, "owner": OWNER, "sheet_key": create_playbook_key(OWNER, TIMESTAMP),
            "votes": ["Approved", "Approved", "Approved", "", ""],
        })

        first = await service.sync_all()
        assert (first.total, first.created, first.updated, first.skipped) == (1, 1, 0, 0)
        [doc] = document_store.documents("playbooks").values()
        assert doc["isApproved"] is True
        assert (await sheet_store.get_playbook(1)).is_approved is True

        second = await service.sync_all()
        assert (second.created, second.updated) == (0, 1)
        assert len(document_store.documents("playbooks")) == 1

    @pytest.mark.asyncio
    async def test_skips_rows_without_key_fields(self, service, sheet_store) -> None:
        await sheet_store.append_playbook({"timestamp": "", "owner": OWNER, "sheet_key": ""})

        report = await service.sync_all()

        assert report.skipped == 1
        assert report.created == 0

    @pytest.mark.asyncio
    async def test_row_errors_are_collected(self, service, document_store) -> None:
        await _submit(service)
        await _submit(service, timestamp="2024-05-02T00:00:00.000Z")
        document_store.fail_on.add("patch_document")

        report = await service.sync_all()

        assert not report.success
        assert len(report.errors) == 2
        assert report.errors[0].startswith("playbook 1:")

    @pytest.mark.asyncio
    async def test_requires_document_store(self, sheet_store, settings) -> None:
        service = PlaybookService(sheet_provider=sheet_store, settings=settings)
        with pytest.raises(ConfigurationError):
            await service.sync_all()
