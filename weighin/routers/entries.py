from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from weighin.auth import get_current_user
from weighin.database import JsonStore, get_store
from weighin.exceptions import EntryValidationError
from weighin.models import DailyEntryRecord, UserRecord
from weighin.schemas import EntryInput
from weighin.services.entries import delete_entry, find_entry, save_entry
from weighin.services.photos import PhotoStorage, PhotoUpload, get_photos

router = APIRouter(prefix="/api/entries", tags=["entries"])


async def _read_upload(upload: UploadFile | None, photos: PhotoStorage) -> PhotoUpload | None:
    if upload is None or not upload.filename:
        return None
    # One byte past the cap is enough for the size check to reject it
    content = await upload.read(photos.max_bytes + 1)
    if not content:
        return None
    return PhotoUpload(filename=upload.filename, content=content)


@router.get("/{entry_date}", response_model=DailyEntryRecord)
async def get_entry(
    entry_date: date,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Get the current member's entry for a date."""
    db = await store.read()
    entry = find_entry(db, current_user.id, entry_date)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No entry found for {entry_date}",
        )
    return entry


@router.post("", response_model=DailyEntryRecord)
async def post_entry(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
    photos: Annotated[PhotoStorage, Depends(get_photos)],
    entry_date: str = Form(..., alias="date"),
    weight_kg: str = Form(...),
    exercise_minutes: str | None = Form(None),
    activity_type: str | None = Form(None),
    breakfast: str | None = Form(None),
    lunch: str | None = Form(None),
    dinner: str | None = Form(None),
    note: str | None = Form(None),
    photo_shared: str | None = Form(None),
    meal_photo_shared: str | None = Form(None),
    photo: UploadFile | None = File(None),
    meal_photo: UploadFile | None = File(None),
):
    """Save the current member's entry for a day; saving the same day again updates it."""
    submitted = {
        "date": entry_date,
        "weight_kg": weight_kg,
        "exercise_minutes": exercise_minutes,
        "activity_type": activity_type,
        "breakfast": breakfast,
        "lunch": lunch,
        "dinner": dinner,
        "note": note,
        "photo_shared": photo_shared,
        "meal_photo_shared": meal_photo_shared,
    }
    # Fields left out of the form keep their previous value
    provided = {key: value for key, value in submitted.items() if value is not None}
    if provided.get("exercise_minutes") == "":
        provided["exercise_minutes"] = None
    try:
        data = EntryInput(**provided)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors()[0]["msg"],
        )

    try:
        return await save_entry(
            store,
            photos,
            current_user.id,
            data,
            photo=await _read_upload(photo, photos),
            meal_photo=await _read_upload(meal_photo, photos),
        )
    except EntryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_entry(
    entry_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
    photos: Annotated[PhotoStorage, Depends(get_photos)],
):
    """Delete one of the current member's entries."""
    if not await delete_entry(store, photos, entry_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No entry {entry_id} to delete",
        )
    return None
