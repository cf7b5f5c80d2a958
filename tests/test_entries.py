from datetime import date, timedelta

import pytest

from weighin.exceptions import EntryValidationError
from weighin.schemas import EntryInput
from weighin.services.entries import (
    delete_entry,
    find_entry,
    latest_entry_date,
    list_entries_for_user,
    save_entry,
    streak_length,
)
from weighin.services.photos import PhotoUpload

from conftest import WEEK_END, WEEK_START, make_database, make_entry

DAY = WEEK_START + timedelta(days=1)


def _upload(name="scale.jpg", size=10):
    return PhotoUpload(filename=name, content=b"x" * size)


def _stored_file(photos, reference):
    return photos.root / reference.rsplit("/", 1)[-1]


@pytest.mark.asyncio
async def test_second_save_updates_instead_of_duplicating(store, photos):
    first = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0))
    second = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=79.5))

    db = await store.read()
    same_day = [e for e in db.entries if e.user_id == "u-sang" and e.date == DAY]
    assert len(same_day) == 1
    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert same_day[0].weight_kg == 79.5


@pytest.mark.asyncio
async def test_identical_resave_only_changes_updated_at(store, photos):
    data = EntryInput(date=DAY, weight_kg=80.0, note="morning", breakfast="oats")
    first = await save_entry(store, photos, "u-sang", data)
    second = await save_entry(store, photos, "u-sang", data)
    assert first.model_dump(exclude={"updated_at"}) == second.model_dump(exclude={"updated_at"})


@pytest.mark.asyncio
async def test_omitted_fields_are_retained(store, photos):
    await save_entry(
        store,
        photos,
        "u-sang",
        EntryInput(date=DAY, weight_kg=80.0, note="felt good", breakfast="eggs", lunch="salad", exercise_minutes=30),
    )
    updated = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=79.0, dinner="soup"))

    assert updated.note == "felt good"
    assert updated.exercise_minutes == 30
    assert updated.meals.breakfast == "eggs"
    assert updated.meals.lunch == "salad"
    assert updated.meals.dinner == "soup"


@pytest.mark.asyncio
async def test_blank_text_clears_a_field(store, photos):
    await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0, note="first", breakfast="eggs"))
    updated = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0, note="  ", breakfast=""))
    assert updated.note is None
    assert updated.meals is None


def test_weight_bounds():
    with pytest.raises(ValueError):
        EntryInput(date=DAY, weight_kg=19.9)
    with pytest.raises(ValueError):
        EntryInput(date=DAY, weight_kg=200.1)
    assert EntryInput(date=DAY, weight_kg=20).weight_kg == 20
    with pytest.raises(ValueError):
        EntryInput(date="not-a-date", weight_kg=80)


@pytest.mark.asyncio
async def test_date_outside_challenge_is_rejected(store, photos):
    # falls back to the latest challenge, which does not contain the date
    with pytest.raises(EntryValidationError, match="outside the challenge period"):
        await save_entry(store, photos, "u-sang", EntryInput(date=WEEK_END + timedelta(days=1), weight_kg=80.0))
    assert (await store.read()).entries == []


@pytest.mark.asyncio
async def test_end_day_is_accepted(store, photos):
    entry = await save_entry(store, photos, "u-sang", EntryInput(date=WEEK_END, weight_kg=80.0))
    assert entry.date == WEEK_END


@pytest.mark.asyncio
async def test_no_challenge_is_rejected(tmp_path, photos):
    from weighin.database import JsonStore
    from weighin.models import Database

    store = JsonStore(tmp_path / "empty.json", seed=Database)
    with pytest.raises(EntryValidationError):
        await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0))


@pytest.mark.asyncio
async def test_oversized_upload_persists_nothing(store, photos):
    with pytest.raises(EntryValidationError, match="smaller than"):
        await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload(size=2048))
    assert (await store.read()).entries == []
    assert not photos.root.exists() or list(photos.root.iterdir()) == []


@pytest.mark.asyncio
async def test_new_photo_replaces_and_removes_previous(store, photos):
    first = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload())
    old_file = _stored_file(photos, first.photo_path)
    assert first.photo_path.startswith("/uploads/")
    assert first.photo_path.endswith(".jpg")
    assert old_file.exists()

    second = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload("new.png"))
    assert second.photo_path != first.photo_path
    assert second.photo_path.endswith(".png")
    assert not old_file.exists()
    assert _stored_file(photos, second.photo_path).exists()


@pytest.mark.asyncio
async def test_no_upload_keeps_existing_photos(store, photos):
    first = await save_entry(
        store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload(), meal_photo=_upload("meal.webp")
    )
    second = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=79.0))
    assert second.photo_path == first.photo_path
    assert second.meal_photo_path == first.meal_photo_path


@pytest.mark.asyncio
async def test_share_flags_default_from_preferences(store, photos):
    sang = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0))
    gua = await save_entry(store, photos, "u-gua", EntryInput(date=DAY, weight_kg=60.0))
    assert sang.photo_shared is False
    assert gua.photo_shared is True
    assert gua.meal_photo_shared is True

    explicit = await save_entry(store, photos, "u-gua", EntryInput(date=DAY, weight_kg=60.0, photo_shared=False))
    assert explicit.photo_shared is False
    assert explicit.meal_photo_shared is True


@pytest.mark.asyncio
async def test_only_owner_can_delete(store, photos):
    entry = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload())

    assert await delete_entry(store, photos, entry.id, "u-gua") is False
    assert await delete_entry(store, photos, "missing", "u-sang") is False
    assert len((await store.read()).entries) == 1
    assert _stored_file(photos, entry.photo_path).exists()

    assert await delete_entry(store, photos, entry.id, "u-sang") is True
    assert (await store.read()).entries == []
    assert not _stored_file(photos, entry.photo_path).exists()


@pytest.mark.asyncio
async def test_delete_survives_missing_photo_file(store, photos):
    entry = await save_entry(store, photos, "u-sang", EntryInput(date=DAY, weight_kg=80.0), photo=_upload())
    _stored_file(photos, entry.photo_path).unlink()
    assert await delete_entry(store, photos, entry.id, "u-sang") is True


def test_history_helpers():
    db = make_database()
    today = date(2025, 3, 10)
    db.entries = [
        make_entry("u-sang", today, 79.0),
        make_entry("u-sang", today - timedelta(days=1), 79.5),
        make_entry("u-sang", today - timedelta(days=2), 80.0),
        make_entry("u-sang", today - timedelta(days=4), 80.5),
        make_entry("u-sang", today + timedelta(days=1), 78.0),
        make_entry("u-gua", today, 60.0),
    ]

    assert streak_length(db, "u-sang", today) == 3
    assert streak_length(db, "u-sang", today + timedelta(days=5)) == 0
    assert latest_entry_date(db, "u-sang", today) == today
    assert latest_entry_date(db, "u-bi", today) is None
    history = list_entries_for_user(db, "u-sang")
    assert history[0].date == today + timedelta(days=1)
    assert len(history) == 5
    assert find_entry(db, "u-gua", today).weight_kg == 60.0
    assert find_entry(db, "u-gua", today - timedelta(days=1)) is None


def test_streak_counts_from_yesterday_when_today_missing():
    db = make_database()
    today = date(2025, 3, 10)
    db.entries = [make_entry("u-sang", today - timedelta(days=n), 80.0) for n in (1, 2)]
    assert streak_length(db, "u-sang", today) == 2
