"""Unit tests for leaderboard materialisation and mirroring."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.models.leaderboard import IndividualStandingRow, TeamStandingRow
from src.services.leaderboard_service import (
    NO_INDIVIDUAL_ENTRIES,
    NO_TEAM_ENTRIES,
    LeaderboardService,
    build_individual_entries,
    build_team_entries,
    leaderboard_document_id,
    parse_int,
    sanitize_id_part,
)
from src.utils.errors import ConfigurationError, SheetStoreError


def _individual(no, name, function, points, account=None, sub=None):
    return IndividualStandingRow(no=no, full_name=name, function=function, points=points,
                                 account=account, sub_department=sub)


def _team(no, function, account, points, size, sub=None, fte=None):
    return TeamStandingRow(no=no, function=function, account=account, accumulated_points=points,
                           team_size=size, sub_department=sub, accumulated_based_on_fte=fte)


@pytest.fixture
def service(sheet_store, settings, document_store) -> LeaderboardService:
    return LeaderboardService(
        sheet_provider=sheet_store,
        settings=settings,
        document_store=document_store,
        sheet_names={"individual": "Leaderboard by Individual", "team": "Leaderboard by Account/Department"},
    )


class TestCellHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("42", 42), (" 42 pts", 42), ("3.9", 3), ("-5", -5), ("abc", None), ("", None), (None, None), (7, 7)],
    )
    def test_parse_int(self, value, expected) -> None:
        assert parse_int(value) == expected

    def test_sanitize_id_part(self) -> None:
        assert sanitize_id_part("  Acme Corp / EU ") == "acme_corp_eu"
        assert sanitize_id_part(None) == ""

    def test_document_id_uses_account_then_function(self) -> None:
        [entry] = build_individual_entries([_individual("7", "Jane", "QA", "5", account="Acme", sub="Web")])
        assert leaderboard_document_id(entry) == "7_acme_web"

        [team] = build_team_entries([_team("3", "Delivery", "Globex", "10", "2")])
        assert leaderboard_document_id(team) == "3_globex"


class TestIndividualEntries:
    def test_filters_incomplete_rows(self) -> None:
        rows = [
            _individual("1", "A", "QA", "10"),
            _individual(None, "B", "QA", "10"),
            _individual("3", "", "QA", "10"),
            _individual("4", "D", None, "10"),
            _individual("5", "E", "QA", "  "),
        ]
        entries = build_individual_entries(rows)
        assert [e.full_name for e in entries] == ["A"]

    def test_sorted_descending_with_ranks(self) -> None:
        rows = [
            _individual("1", "Low", "QA", "5"),
            _individual("2", "High", "QA", "50"),
            _individual("3", "Mid", "QA", "20"),
            _individual("4", "Text", "QA", "n/a"),
        ]
        entries = build_individual_entries(rows)

        assert [e.full_name for e in entries] == ["High", "Mid", "Low", "Text"]
        assert [e.rank for e in entries] == [1, 2, 3, 4]
        assert [e.points for e in entries] == [50, 20, 5, 0]
        assert all(e.points_per_team_size == e.points for e in entries)

    def test_ties_keep_sheet_order(self) -> None:
        rows = [_individual(str(i), name, "QA", "10") for i, name in enumerate(["C", "A", "B"], start=1)]
        assert [e.full_name for e in build_individual_entries(rows)] == ["C", "A", "B"]

    def test_account_falls_back_to_name(self) -> None:
        [entry] = build_individual_entries([_individual("1", "Jane", "QA", "1", account="  ")])
        assert entry.account == "Jane"

    def test_wire_shape(self) -> None:
        [entry] = build_individual_entries([_individual("1", "Jane", "QA", "1", sub="Web")])
        dumped = entry.model_dump(by_alias=True)
        assert dumped["fullName"] == "Jane"
        assert dumped["subDepartment"] == "Web"
        assert dumped["pointsPerTeamSize"] == 1


class TestTeamEntries:
    def test_points_per_member_and_order(self) -> None:
        rows = [
            _team("1", "Dev", "Acme", "100", "10"),
            _team("2", "QA", "Globex", "30", "2"),
            _team("3", "Ops", "Initech", "10", "3"),
        ]
        entries = build_team_entries(rows)

        assert [e.account for e in entries] == ["Globex", "Acme", "Initech"]
        assert [e.points_per_team_member for e in entries] == [15.0, 10.0, 3.33]
        assert [e.rank for e in entries] == [1, 2, 3]

    @pytest.mark.parametrize("size", ["0", "abc"])
    def test_unusable_team_size_falls_back_to_one(self, size) -> None:
        [entry] = build_team_entries([_team("1", "Dev", "Acme", "12", size)])
        assert entry.team_size == 1
        assert entry.points_per_team_member == 12.0

    def test_filters_incomplete_rows(self) -> None:
        rows = [
            _team("1", "Dev", "Acme", "10", "2"),
            _team("2", "Dev", None, "10", "2"),
            _team("3", "Dev", "Acme", "10", None),
        ]
        assert len(build_team_entries(rows)) == 1

    def test_program_and_fte(self) -> None:
        [entry] = build_team_entries([_team("1", "Dev", "Acme", "10", "2", sub="Payments", fte="4.5")])
        dumped = entry.model_dump(by_alias=True)
        assert dumped["program"] == "Payments"
        assert dumped["accumulatedBasedOnFTE"] == "4.5"


class TestService:
    @pytest.mark.asyncio
    async def test_empty_sheets(self, service) -> None:
        payload = await service.get_leaderboard()

        assert payload["success"] is True
        assert payload["individual"] == []
        assert payload["team"] == []
        assert payload["messages"] == {"individual": NO_INDIVIDUAL_ENTRIES, "team": NO_TEAM_ENTRIES}
        assert payload["sheetNames"]["team"] == "Leaderboard by Account/Department"

    @pytest.mark.asyncio
    async def test_combined_payload(self, service) -> None:
        await service.replace_individual_standings([
            _individual("1", "A", "QA", "5"), _individual("2", "B", "Dev", "9"),
        ])
        await service.replace_team_standings([_team("1", "Dev", "Acme", "10", "2")])

        payload = await service.get_leaderboard()

        assert [e["fullName"] for e in payload["individual"]] == ["B", "A"]
        assert payload["team"][0]["pointsPerTeamMember"] == 5.0
        assert payload["totalEntries"] == {"individual": 2, "team": 1}
        assert payload["lastUpdated"].endswith("Z")

    @pytest.mark.asyncio
    async def test_read_failure_is_reported(self, settings) -> None:
        sheets = AsyncMock()
        sheets.read_individual_standings.side_effect = SheetStoreError("locked")
        sheets.read_team_standings.return_value = []
        service = LeaderboardService(sheet_provider=sheets, settings=settings)

        result = await service.get_individual_leaderboard()

        assert result.success is False
        assert result.entries == []
        assert result.message == "Failed to load individual leaderboard data: locked"

        payload = await service.get_leaderboard()
        assert payload["success"] is False


class TestMirror:
    @pytest.mark.asyncio
    async def test_upserts_and_prunes(self, service, document_store) -> None:
        document_store.documents("individual_leaderboard")["99_gone"] = {"fullName": "Old"}
        await service.replace_individual_standings([
            _individual("1", "A", "QA", "5", account="Acme"), _individual("2", "B", "Dev", "9"),
        ])
        await service.replace_team_standings([_team("1", "Dev", "Acme", "10", "2")])

        reports = await service.mirror_to_document_store()

        individual = reports["individual"]
        assert individual.success
        assert (individual.total, individual.updated, individual.deleted) == (2, 2, 1)
        docs = document_store.documents("individual_leaderboard")
        assert set(docs) == {"1_acme", "2_b"}
        assert docs["2_b"]["rank"] == 1
        assert "lastUpdated" in docs["1_acme"]
        assert set(document_store.documents("team_leaderboard")) == {"1_acme"}

    @pytest.mark.asyncio
    async def test_write_errors_are_collected(self, service, document_store) -> None:
        await service.replace_individual_standings([_individual("1", "A", "QA", "5")])
        document_store.fail_on.add("patch_document")

        reports = await service.mirror_to_document_store()

        assert not reports["individual"].success
        assert reports["individual"].updated == 0
        assert reports["individual"].errors[0].startswith("1_a:")

    @pytest.mark.asyncio
    async def test_failed_read_does_not_prune(self, settings, document_store) -> None:
        document_store.documents("team_leaderboard")["1_acme"] = {"account": "Acme"}
        sheets = AsyncMock()
        sheets.read_individual_standings.return_value = []
        sheets.read_team_standings.side_effect = SheetStoreError("locked")
        service = LeaderboardService(sheet_provider=sheets, settings=settings, document_store=document_store)

        reports = await service.mirror_to_document_store()

        assert reports["team"].errors
        assert "1_acme" in document_store.documents("team_leaderboard")

    @pytest.mark.asyncio
    async def test_requires_document_store(self, sheet_store, settings) -> None:
        service = LeaderboardService(sheet_provider=sheet_store, settings=settings)
        with pytest.raises(ConfigurationError):
            await service.mirror_to_document_store()
