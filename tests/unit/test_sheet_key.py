"""Unit tests for sheet key derivation and timestamp normalisation."""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

import pytest

from src.utils.sheet_key import create_playbook_key, to_iso_timestamp


class TestToIsoTimestamp:
    def test_aware_datetime_keeps_milliseconds(self) -> None:
        value = datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)
        assert to_iso_timestamp(value) == "2024-05-01T10:20:30.123Z"

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        assert to_iso_timestamp(datetime(2024, 5, 1, 10, 20, 30)) == "2024-05-01T10:20:30.000Z"

    def test_offset_is_converted_to_utc(self) -> None:
        value = datetime(2024, 5, 1, 12, 20, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso_timestamp(value) == "2024-05-01T10:20:30.000Z"

    def test_string_with_z_suffix(self) -> None:
        assert to_iso_timestamp("2024-05-01T10:20:30.250Z") == "2024-05-01T10:20:30.250Z"

    def test_string_with_offset(self) -> None:
        assert to_iso_timestamp("2024-05-01T03:20:30-07:00") == "2024-05-01T10:20:30.000Z"

    def test_output_is_idempotent(self) -> None:
        once = to_iso_timestamp("2024-12-31T23:59:59.999Z")
        assert to_iso_timestamp(once) == once

    @pytest.mark.parametrize("value", ["", "   ", "not a date"])
    def test_invalid_strings_raise(self, value: str) -> None:
        with pytest.raises(ValueError):
            to_iso_timestamp(value)


class TestCreatePlaybookKey:
    def test_known_digests(self) -> None:
        assert create_playbook_key("", "") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )
        assert create_playbook_key("a", "bc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_hashes_owner_then_timestamp(self) -> None:
        owner, ts = "jane@kms-technology.com", "2024-05-01T10:20:30.000Z"
        expected = hashlib.sha256(f"{owner}{ts}".encode("utf-8")).hexdigest()
        assert create_playbook_key(owner, ts) == expected

    def test_is_deterministic_lowercase_hex(self) -> None:
        key = create_playbook_key("jane@kms-technology.com", "2024-05-01T10:20:30.000Z")
        assert key == create_playbook_key("jane@kms-technology.com", "2024-05-01T10:20:30.000Z")
        assert len(key) == 64
        assert key == key.lower()
        int(key, 16)

    def test_one_millisecond_changes_the_key(self) -> None:
        a = create_playbook_key("jane@kms-technology.com", "2024-05-01T10:20:30.000Z")
        b = create_playbook_key("jane@kms-technology.com", "2024-05-01T10:20:30.001Z")
        assert a != b
