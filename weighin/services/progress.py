"""Per-member progress within a challenge window.

Everything here is pure: no store access, no clock. The sign convention is
inverted on purpose for this domain: ``delta = baseline - latest`` so a
positive delta means weight was lost.
"""
from typing import Iterable

from weighin.models import ChallengeRecord, DailyEntryRecord, WeeklyTargetRecord
from weighin.schemas import ProgressResponse


def entries_in_window(
    challenge: ChallengeRecord,
    entries: Iterable[DailyEntryRecord],
    user_id: str | None = None,
) -> list[DailyEntryRecord]:
    """Entries inside the challenge window, oldest first, optionally for one member."""
    selected = [
        entry
        for entry in entries
        if challenge.contains(entry.date) and (user_id is None or entry.user_id == user_id)
    ]
    return sorted(selected, key=lambda entry: entry.date)


def compute_progress(
    challenge: ChallengeRecord,
    target: WeeklyTargetRecord,
    entries: Iterable[DailyEntryRecord],
) -> ProgressResponse:
    """Join one member's entries against their target for a challenge."""
    window = entries_in_window(challenge, entries, user_id=target.user_id)
    if not window:
        # No data yet: remaining is the raw target, not zero.
        return ProgressResponse(remaining=target.target_delta_kg)

    baseline = window[0]
    latest = window[-1]
    delta = baseline.weight_kg - latest.weight_kg

    return ProgressResponse(
        baseline_weight=baseline.weight_kg,
        current_weight=latest.weight_kg,
        delta=delta,
        remaining=target.target_delta_kg - delta,
        achieved=delta >= target.target_delta_kg,
        latest_entry_date=latest.date,
        entries=window,
    )
