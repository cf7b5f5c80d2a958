import logging
from datetime import date

from weighin.database import JsonStore
from weighin.exceptions import PenaltyLockedError
from weighin.models import Database, PenaltyStatus, WeeklyTargetRecord, utcnow

logger = logging.getLogger(__name__)


async def set_penalty_status(
    store: JsonStore,
    challenge_id: str,
    user_id: str,
    status: PenaltyStatus,
    note: str | None = None,
    today: date | None = None,
) -> WeeklyTargetRecord | None:
    """Record the latest penalty status for a member's target.

    Only the latest state is kept. Returns None, without writing, when the
    challenge or the target does not exist. Raises PenaltyLockedError while
    the challenge is still running, since achievement can still change.
    """
    today = today or date.today()

    snapshot = await store.read()
    challenge = snapshot.find_challenge(challenge_id)
    if challenge is None or snapshot.find_target(challenge_id, user_id) is None:
        return None
    if today <= challenge.end_on:
        raise PenaltyLockedError(f"Penalties can be recorded after {challenge.end_on.isoformat()}")

    recorded_at = utcnow()

    def mutate(draft: Database) -> WeeklyTargetRecord | None:
        target = draft.find_target(challenge_id, user_id)
        if target is None:
            return None
        target.penalty_status = status
        target.penalty_note = note
        target.penalty_recorded_at = recorded_at
        return target

    target = await store.update(mutate)
    if target is not None:
        logger.info("Penalty for user %s in challenge %s set to %s", user_id, challenge_id, status.value)
    return target
