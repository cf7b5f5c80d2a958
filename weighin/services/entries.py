"""Daily entry lifecycle: at most one entry per member per calendar date."""
import logging
from datetime import date, timedelta

from weighin.database import JsonStore
from weighin.exceptions import EntryValidationError
from weighin.models import DailyEntryRecord, Database, Meals, utcnow
from weighin.schemas import EntryInput
from weighin.services.challenges import resolve_active_challenge
from weighin.services.photos import PhotoStorage, PhotoUpload

logger = logging.getLogger(__name__)

MEAL_FIELDS = ("breakfast", "lunch", "dinner")
PLAIN_FIELDS = ("weight_kg", "exercise_minutes", "activity_type", "note", "photo_shared", "meal_photo_shared")


def find_entry(db: Database, user_id: str, day: date) -> DailyEntryRecord | None:
    return next((e for e in db.entries if e.user_id == user_id and e.date == day), None)


def list_entries_for_user(db: Database, user_id: str) -> list[DailyEntryRecord]:
    """A member's entries, newest first."""
    return sorted(
        (e for e in db.entries if e.user_id == user_id),
        key=lambda e: e.date,
        reverse=True,
    )


def latest_entry_date(db: Database, user_id: str, today: date | None = None) -> date | None:
    today = today or date.today()
    dates = [e.date for e in db.entries if e.user_id == user_id and e.date <= today]
    return max(dates, default=None)


def streak_length(db: Database, user_id: str, today: date | None = None, within_days: int = 14) -> int:
    """Consecutive logged days ending today (or yesterday, if today is not logged yet)."""
    today = today or date.today()
    logged = {
        e.date
        for e in db.entries
        if e.user_id == user_id and 0 <= (today - e.date).days < within_days
    }
    cursor = today if today in logged else today - timedelta(days=1)
    streak = 0
    while cursor in logged:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _merge(
    previous: DailyEntryRecord | None,
    user_id: str,
    data: EntryInput,
    default_shared: bool,
) -> DailyEntryRecord:
    provided = data.model_dump(exclude_unset=True)
    now = utcnow()

    if previous is None:
        entry = DailyEntryRecord(
            user_id=user_id,
            date=data.date,
            weight_kg=data.weight_kg,
            photo_shared=default_shared,
            meal_photo_shared=default_shared,
            created_at=now,
            updated_at=now,
        )
    else:
        entry = previous.model_copy(deep=True)
        entry.updated_at = now

    for name in PLAIN_FIELDS:
        if name in provided:
            setattr(entry, name, provided[name])

    meal_updates = {name: provided[name] for name in MEAL_FIELDS if name in provided}
    if meal_updates:
        meals = (entry.meals or Meals()).model_copy(update=meal_updates)
        entry.meals = None if meals.is_empty() else meals

    return entry


async def save_entry(
    store: JsonStore,
    photos: PhotoStorage,
    user_id: str,
    data: EntryInput,
    photo: PhotoUpload | None = None,
    meal_photo: PhotoUpload | None = None,
    today: date | None = None,
) -> DailyEntryRecord:
    """Create or update the member's entry for ``data.date``.

    Raises EntryValidationError when the date is outside the challenge period
    or an upload is too large; nothing is persisted in that case.
    """
    photos.check(photo, "Photo")
    photos.check(meal_photo, "Meal photo")

    snapshot = await store.read()
    challenge = resolve_active_challenge(snapshot.challenges, data.date)
    if challenge is None:
        raise EntryValidationError("There is no challenge to record against")
    if not challenge.contains(data.date):
        raise EntryValidationError("Date is outside the challenge period")

    new_photo = await photos.save(photo) if photo else None
    new_meal_photo = await photos.save(meal_photo) if meal_photo else None
    replaced: list[str] = []

    def mutate(draft: Database) -> DailyEntryRecord:
        user = draft.find_user(user_id)
        default_shared = user.preferences.share_photos_by_default if user else False
        previous = find_entry(draft, user_id, data.date)

        entry = _merge(previous, user_id, data, default_shared)
        if new_photo:
            if entry.photo_path and entry.photo_path != new_photo:
                replaced.append(entry.photo_path)
            entry.photo_path = new_photo
        if new_meal_photo:
            if entry.meal_photo_path and entry.meal_photo_path != new_meal_photo:
                replaced.append(entry.meal_photo_path)
            entry.meal_photo_path = new_meal_photo

        if previous is None:
            draft.entries.append(entry)
        else:
            index = draft.entries.index(previous)
            draft.entries[index] = entry
        return entry

    try:
        saved = await store.update(mutate)
    except Exception:
        await photos.discard(new_photo)
        await photos.discard(new_meal_photo)
        raise

    for reference in replaced:
        await photos.discard(reference)

    logger.info("Saved entry %s for user %s on %s", saved.id, user_id, saved.date)
    return saved


async def delete_entry(store: JsonStore, photos: PhotoStorage, entry_id: str, user_id: str) -> bool:
    """Delete one of the member's own entries. Returns False when there was nothing to delete."""
    removed: list[str] = []

    def mutate(draft: Database) -> bool:
        entry = next((e for e in draft.entries if e.id == entry_id), None)
        if entry is None or entry.user_id != user_id:
            return False
        removed.extend(entry.photo_paths())
        draft.entries = [e for e in draft.entries if e.id != entry_id]
        return True

    deleted = await store.update(mutate)
    if not deleted:
        logger.info("Entry %s not deleted: missing or not owned by %s", entry_id, user_id)
        return False

    for reference in removed:
        await photos.discard(reference)
    logger.info("Deleted entry %s for user %s", entry_id, user_id)
    return True
