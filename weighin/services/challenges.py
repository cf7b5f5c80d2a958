"""Read models built from a store snapshot: active challenge, per-member summary,
team log and prize pool."""
from dataclasses import dataclass
from datetime import date

from weighin.models import (
    DEFAULT_COLOR,
    ChallengeRecord,
    DailyEntryRecord,
    Database,
    PenaltyStatus,
)
from weighin.schemas import (
    PrizePoolResponse,
    ProgressResponse,
    SummaryItem,
    TargetView,
    TeamLogItem,
)
from weighin.services.progress import compute_progress, entries_in_window


@dataclass
class ChallengeContext:
    challenge: ChallengeRecord
    targets: list[TargetView]
    entries_by_user: dict[str, list[DailyEntryRecord]]
    progress_by_user: dict[str, ProgressResponse]


def list_challenges(db: Database) -> list[ChallengeRecord]:
    """All challenges, most recently started first."""
    return sorted(db.challenges, key=lambda c: c.start_on, reverse=True)


def resolve_active_challenge(challenges: list[ChallengeRecord], today: date) -> ChallengeRecord | None:
    """The challenge whose window contains ``today``, else the latest one to start."""
    for challenge in challenges:
        if challenge.contains(today):
            return challenge
    if not challenges:
        return None
    return max(challenges, key=lambda c: c.start_on)


def build_challenge_context(
    db: Database,
    challenge_id: str | None = None,
    today: date | None = None,
) -> ChallengeContext | None:
    """Resolve a challenge (by id, or the active one) and compute everyone's progress."""
    if challenge_id:
        challenge = db.find_challenge(challenge_id)
    else:
        challenge = resolve_active_challenge(db.challenges, today or date.today())
    if challenge is None:
        return None

    targets = []
    for target in db.targets:
        if target.challenge_id != challenge.id:
            continue
        user = db.find_user(target.user_id)
        targets.append(
            TargetView(
                **target.model_dump(),
                user_display_name=user.display_name if user else target.user_id,
                color_hex=user.color_hex if user else DEFAULT_COLOR,
            )
        )

    entries_by_user: dict[str, list[DailyEntryRecord]] = {}
    for entry in entries_in_window(challenge, db.entries):
        entries_by_user.setdefault(entry.user_id, []).append(entry)

    progress_by_user = {
        target.user_id: compute_progress(challenge, target, entries_by_user.get(target.user_id, []))
        for target in targets
    }

    return ChallengeContext(
        challenge=challenge,
        targets=targets,
        entries_by_user=entries_by_user,
        progress_by_user=progress_by_user,
    )


def build_challenge_summary(context: ChallengeContext) -> list[SummaryItem]:
    """One row per targeted member, in target order."""
    items = []
    for target in context.targets:
        progress = context.progress_by_user[target.user_id]
        items.append(
            SummaryItem(
                target=target,
                progress=progress,
                actual_delta_kg=progress.delta if progress.delta is not None else 0.0,
                achieved=progress.achieved,
                remaining=progress.remaining,
            )
        )
    return items


def build_prize_pool(context: ChallengeContext, today: date | None = None) -> PrizePoolResponse:
    """Pool bookkeeping: paid penalties are taken out of the pool."""
    today = today or date.today()
    challenge = context.challenge
    pool = challenge.prize_pool or 0.0
    paid = sum(1 for t in context.targets if t.penalty_status == PenaltyStatus.COMPLETED)
    total_penalized = paid * (challenge.penalty_amount or 0.0)
    logged_today = sum(
        1
        for target in context.targets
        if any(entry.date == today for entry in context.entries_by_user.get(target.user_id, []))
    )
    return PrizePoolResponse(
        pool_amount=pool,
        total_penalized=total_penalized,
        remaining_pool=max(0.0, pool - total_penalized),
        total_members=len(context.targets),
        logged_today=logged_today,
        challenge_ended=today > challenge.end_on,
    )


def build_team_log(
    context: ChallengeContext,
    viewer_id: str,
    member_id: str | None = None,
    day: date | None = None,
) -> list[TeamLogItem]:
    """Everyone's entries in the window, newest first.

    Photo references are blanked unless the owner shared them or the viewer
    is the owner.
    """
    logs = []
    for target in context.targets:
        if member_id and target.user_id != member_id:
            continue
        for entry in context.entries_by_user.get(target.user_id, []):
            if day and entry.date != day:
                continue
            visible = entry.model_copy()
            if entry.user_id != viewer_id:
                if not entry.photo_shared:
                    visible.photo_path = None
                if not entry.meal_photo_shared:
                    visible.meal_photo_path = None
            logs.append(
                TeamLogItem(
                    member_id=target.user_id,
                    member_name=target.user_display_name,
                    color_hex=target.color_hex,
                    entry=visible,
                )
            )
    logs.sort(key=lambda item: item.entry.date, reverse=True)
    return logs
