from datetime import date
from pydantic import BaseModel, ConfigDict, Field, field_validator

from weighin.models import (
    METRIC_KEYS,
    REQUIRED_METRIC,
    ChallengeRecord,
    DailyEntryRecord,
    PenaltyStatus,
    UserPreferences,
    WeeklyTargetRecord,
)

MIN_WEIGHT_KG = 20
MAX_WEIGHT_KG = 200


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


# ============ Auth Schemas ============

class UserResponse(BaseModel):
    id: str
    username: str
    display_name: str
    color_hex: str
    preferences: UserPreferences

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PreferencesUpdate(BaseModel):
    metrics: list[str]
    share_photos_by_default: bool = False

    @field_validator("metrics")
    @classmethod
    def check_metrics(cls, v: list[str]) -> list[str]:
        unknown = [m for m in v if m not in METRIC_KEYS]
        if unknown:
            raise ValueError(f"Unknown metrics: {', '.join(unknown)}")
        if REQUIRED_METRIC not in v:
            raise ValueError("Weight is a required metric")
        # keep order, drop repeats
        return list(dict.fromkeys(v))


class UserStats(BaseModel):
    total_records: int
    streak_days: int
    latest_entry_date: date | None


# ============ Entry Schemas ============

class EntryInput(BaseModel):
    """A member's submission for one day.

    Only fields the caller actually set overwrite an existing entry, so the
    router builds this from the submitted form fields alone.
    """
    date: date
    weight_kg: float = Field(..., ge=MIN_WEIGHT_KG, le=MAX_WEIGHT_KG)
    exercise_minutes: int | None = Field(None, ge=0, le=24 * 60)
    activity_type: str | None = None
    breakfast: str | None = None
    lunch: str | None = None
    dinner: str | None = None
    note: str | None = None
    photo_shared: bool | None = None
    meal_photo_shared: bool | None = None

    @field_validator("activity_type", "breakfast", "lunch", "dinner", "note")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class EntryListResponse(BaseModel):
    entries: list[DailyEntryRecord]
    total: int


# ============ Challenge Schemas ============

class PenaltyUpdate(BaseModel):
    status: PenaltyStatus
    note: str | None = Field(None, max_length=500)

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TargetView(WeeklyTargetRecord):
    """A weekly target joined with the member it belongs to."""
    user_display_name: str
    color_hex: str


class ProgressResponse(BaseModel):
    baseline_weight: float | None = None
    current_weight: float | None = None
    delta: float | None = None
    remaining: float
    achieved: bool = False
    latest_entry_date: date | None = None
    entries: list[DailyEntryRecord] = Field(default_factory=list)


class SummaryItem(BaseModel):
    target: TargetView
    progress: ProgressResponse
    actual_delta_kg: float
    achieved: bool
    remaining: float


class ChallengeSummaryResponse(BaseModel):
    challenge: ChallengeRecord
    members: list[SummaryItem]


class ChallengeListResponse(BaseModel):
    challenges: list[ChallengeRecord]
    total: int


class PrizePoolResponse(BaseModel):
    pool_amount: float
    total_penalized: float
    remaining_pool: float
    total_members: int
    logged_today: int
    challenge_ended: bool


class TeamLogItem(BaseModel):
    member_id: str
    member_name: str
    color_hex: str
    entry: DailyEntryRecord


class TeamLogResponse(BaseModel):
    challenge: ChallengeRecord
    logs: list[TeamLogItem]
    total: int

