"""AI Tips domain models — re-exports all public model classes.

Import from ``src.models`` rather than the individual modules:

    - submission.py   — AI tip submissions and reviewer updates
    - playbook.py     — Playbook rows, public views, Firestore read-backs
    - leaderboard.py  — Standings rows and ranked leaderboard entries
    - sync.py         — Bulk mirror job reports

If you add a new model class, add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.leaderboard import (
    IndividualLeaderboardEntry,
    IndividualStandingRow,
    LeaderboardResult,
    TeamLeaderboardEntry,
    TeamStandingRow,
)
from src.models.playbook import REVIEWER_SLOTS, Playbook, PlaybookView, RemotePlaybook
from src.models.submission import (
    REQUIRED_SUBMISSION_FIELDS,
    Submission,
    SubmissionReview,
    SubmissionStatus,
)
from src.models.sync import SyncReport

__all__ = [
    "REQUIRED_SUBMISSION_FIELDS",
    "REVIEWER_SLOTS",
    "IndividualLeaderboardEntry",
    "IndividualStandingRow",
    "LeaderboardResult",
    "Playbook",
    "PlaybookView",
    "RemotePlaybook",
    "Submission",
    "SubmissionReview",
    "SubmissionStatus",
    "SyncReport",
    "TeamLeaderboardEntry",
    "TeamStandingRow",
]
