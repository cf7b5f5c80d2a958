from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status, Query

from weighin.auth import get_current_user
from weighin.database import JsonStore, get_store
from weighin.exceptions import PenaltyLockedError
from weighin.models import UserRecord, WeeklyTargetRecord
from weighin.schemas import (
    ChallengeListResponse,
    ChallengeSummaryResponse,
    PenaltyUpdate,
    PrizePoolResponse,
    TeamLogResponse,
)
from weighin.services.challenges import (
    ChallengeContext,
    build_challenge_context,
    build_challenge_summary,
    build_prize_pool,
    build_team_log,
    list_challenges,
)
from weighin.services.penalties import set_penalty_status

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


async def _load_context(store: JsonStore, challenge_id: str | None) -> ChallengeContext:
    db = await store.read()
    context = build_challenge_context(db, challenge_id, today=date.today())
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No challenge found for {challenge_id}" if challenge_id else "No challenge configured",
        )
    return context


@router.get("", response_model=ChallengeListResponse)
async def get_challenges(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """List all challenges, most recently started first."""
    db = await store.read()
    challenges = list_challenges(db)
    return ChallengeListResponse(challenges=challenges, total=len(challenges))


@router.get("/active", response_model=ChallengeSummaryResponse)
async def get_active_challenge(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Progress summary for the challenge running today (or the latest one)."""
    context = await _load_context(store, None)
    return ChallengeSummaryResponse(challenge=context.challenge, members=build_challenge_summary(context))


@router.get("/{challenge_id}", response_model=ChallengeSummaryResponse)
async def get_challenge(
    challenge_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Progress summary for one challenge."""
    context = await _load_context(store, challenge_id)
    return ChallengeSummaryResponse(challenge=context.challenge, members=build_challenge_summary(context))


@router.get("/{challenge_id}/team-log", response_model=TeamLogResponse)
async def get_team_log(
    challenge_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
    member: str | None = Query(None, description="Only this member's entries"),
    day: date | None = Query(None, description="Only entries for this date"),
):
    """Everyone's entries within the challenge, newest first."""
    context = await _load_context(store, challenge_id)
    logs = build_team_log(context, current_user.id, member_id=member, day=day)
    return TeamLogResponse(challenge=context.challenge, logs=logs, total=len(logs))


@router.get("/{challenge_id}/prize-pool", response_model=PrizePoolResponse)
async def get_prize_pool(
    challenge_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Pool amount, paid penalties and today's logging count for one challenge."""
    context = await _load_context(store, challenge_id)
    return build_prize_pool(context, today=date.today())


@router.put("/{challenge_id}/penalties/{user_id}", response_model=WeeklyTargetRecord)
async def put_penalty(
    challenge_id: str,
    user_id: str,
    data: PenaltyUpdate,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Record whether a member's penalty is pending, paid or waived."""
    try:
        target = await set_penalty_status(store, challenge_id, user_id, data.status, data.note)
    except PenaltyLockedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    if target is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No target for user {user_id} in challenge {challenge_id}",
        )
    return target
