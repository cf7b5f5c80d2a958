from datetime import timedelta

import pytest

from weighin.exceptions import PenaltyLockedError
from weighin.models import PenaltyStatus
from weighin.services.penalties import set_penalty_status

from conftest import WEEK_END

AFTER = WEEK_END + timedelta(days=1)


@pytest.mark.asyncio
async def test_locked_until_challenge_ends(store):
    with pytest.raises(PenaltyLockedError):
        await set_penalty_status(store, "c-week", "u-sang", PenaltyStatus.COMPLETED, today=WEEK_END)
    target = (await store.read()).find_target("c-week", "u-sang")
    assert target.penalty_status == PenaltyStatus.PENDING
    assert target.penalty_recorded_at is None


@pytest.mark.asyncio
async def test_records_status_note_and_time(store):
    target = await set_penalty_status(store, "c-week", "u-sang", PenaltyStatus.COMPLETED, "paid in cash", today=AFTER)
    assert target.penalty_status == PenaltyStatus.COMPLETED
    assert target.penalty_note == "paid in cash"
    assert target.penalty_recorded_at is not None

    stored = (await store.read()).find_target("c-week", "u-sang")
    assert stored == target


@pytest.mark.asyncio
async def test_latest_status_overwrites(store):
    await set_penalty_status(store, "c-week", "u-gua", PenaltyStatus.COMPLETED, "paid", today=AFTER)
    target = await set_penalty_status(store, "c-week", "u-gua", PenaltyStatus.WAIVED, today=AFTER)
    assert target.penalty_status == PenaltyStatus.WAIVED
    assert target.penalty_note is None
    db = await store.read()
    assert len([t for t in db.targets if t.user_id == "u-gua"]) == 1


@pytest.mark.asyncio
async def test_unknown_target_is_a_no_op(store):
    await store.open()
    before = store.path.read_text(encoding="utf-8")
    assert await set_penalty_status(store, "c-week", "u-nobody", PenaltyStatus.WAIVED, today=AFTER) is None
    assert await set_penalty_status(store, "c-missing", "u-sang", PenaltyStatus.WAIVED, today=AFTER) is None
    assert store.path.read_text(encoding="utf-8") == before
