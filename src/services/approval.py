"""Playbook approval rule.

A playbook is approved when at least three of its five reviewer vote cells
contain the literal text ``Approved``.  The match is a case-sensitive
substring test on the cell text, so "Approved with edits" counts and so
does "Not Approved".  Cells beyond the fifth are ignored.
"""

from __future__ import annotations

from typing import Any, Iterable

APPROVAL_MARKER = "Approved"
APPROVAL_THRESHOLD = 3
REVIEWER_WINDOW = 5


def count_approvals(votes: Iterable[Any]) -> int:
    """Count the cells in the reviewer window whose text contains ``Approved``."""
    count = 0
    for index, cell in enumerate(votes):
        if index >= REVIEWER_WINDOW:
            break
        if cell is not None and APPROVAL_MARKER in str(cell):
            count += 1
    return count


def is_approved(votes: Iterable[Any]) -> bool:
    return count_approvals(votes) >= APPROVAL_THRESHOLD
