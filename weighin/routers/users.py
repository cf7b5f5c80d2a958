from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from weighin.auth import get_current_user
from weighin.database import JsonStore, get_store
from weighin.models import UserRecord
from weighin.schemas import EntryListResponse, PreferencesUpdate, UserResponse, UserStats
from weighin.services.entries import latest_entry_date, list_entries_for_user, streak_length
from weighin.services.users import update_preferences

router = APIRouter(prefix="/api/users", tags=["users"])


@router.put("/me/preferences", response_model=UserResponse)
async def put_preferences(
    data: PreferencesUpdate,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Choose which optional metrics to show and the default photo sharing."""
    user = await update_preferences(store, current_user.id, data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/me/entries", response_model=EntryListResponse)
async def my_entries(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """All of the current member's entries, newest first."""
    db = await store.read()
    entries = list_entries_for_user(db, current_user.id)
    return EntryListResponse(entries=entries, total=len(entries))


@router.get("/me/stats", response_model=UserStats)
async def my_stats(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[JsonStore, Depends(get_store)],
):
    """Logging streak, latest entry date and record count for the current member."""
    db = await store.read()
    today = date.today()
    return UserStats(
        total_records=len(list_entries_for_user(db, current_user.id)),
        streak_days=streak_length(db, current_user.id, today),
        latest_entry_date=latest_entry_date(db, current_user.id, today),
    )
