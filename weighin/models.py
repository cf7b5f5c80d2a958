from datetime import date, datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


METRIC_KEYS = ("weight", "exercise_minutes")
REQUIRED_METRIC = "weight"
DEFAULT_COLOR = "#888888"


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PenaltyStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    WAIVED = "WAIVED"


class UserPreferences(BaseModel):
    metrics: list[str] = Field(default_factory=lambda: [REQUIRED_METRIC])
    share_photos_by_default: bool = False


class UserRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    username: str
    display_name: str
    password_hash: str
    color_hex: str = DEFAULT_COLOR
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class ChallengeRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    label: str
    start_on: date
    end_on: date
    rules: str = ""
    penalty: str = ""
    prize_pool: float | None = None
    penalty_amount: float | None = None

    @model_validator(mode="after")
    def check_window(self) -> "ChallengeRecord":
        if self.start_on > self.end_on:
            raise ValueError("start_on must not be after end_on")
        return self

    def contains(self, day: date) -> bool:
        """Inclusive on both ends."""
        return self.start_on <= day <= self.end_on

    def __repr__(self) -> str:
        return f"<Challenge {self.label} {self.start_on}..{self.end_on}>"


class WeeklyTargetRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    challenge_id: str
    user_id: str
    target_delta_kg: float
    penalty_status: PenaltyStatus = PenaltyStatus.PENDING
    penalty_note: str | None = None
    penalty_recorded_at: datetime | None = None


class Meals(BaseModel):
    breakfast: str | None = None
    lunch: str | None = None
    dinner: str | None = None

    def is_empty(self) -> bool:
        return not (self.breakfast or self.lunch or self.dinner)


class DailyEntryRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    date: date
    weight_kg: float
    exercise_minutes: int | None = None
    activity_type: str | None = None
    meals: Meals | None = None
    note: str | None = None
    photo_path: str | None = None
    photo_shared: bool = False
    meal_photo_path: str | None = None
    meal_photo_shared: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def photo_paths(self) -> list[str]:
        return [p for p in (self.photo_path, self.meal_photo_path) if p]

    def __repr__(self) -> str:
        return f"<DailyEntry {self.user_id} {self.date} {self.weight_kg}kg>"


class Database(BaseModel):
    users: list[UserRecord] = Field(default_factory=list)
    challenges: list[ChallengeRecord] = Field(default_factory=list)
    targets: list[WeeklyTargetRecord] = Field(default_factory=list)
    entries: list[DailyEntryRecord] = Field(default_factory=list)

    # At most one target per (challenge, user)
    @model_validator(mode="after")
    def check_unique_targets(self) -> "Database":
        seen = set()
        for target in self.targets:
            key = (target.challenge_id, target.user_id)
            if key in seen:
                raise ValueError(f"duplicate target for challenge {key[0]} and user {key[1]}")
            seen.add(key)
        return self

    def find_user(self, user_id: str) -> UserRecord | None:
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_username(self, username: str) -> UserRecord | None:
        return next((u for u in self.users if u.username == username), None)

    def find_challenge(self, challenge_id: str) -> ChallengeRecord | None:
        return next((c for c in self.challenges if c.id == challenge_id), None)

    def find_target(self, challenge_id: str, user_id: str) -> WeeklyTargetRecord | None:
        return next(
            (t for t in self.targets if t.challenge_id == challenge_id and t.user_id == user_id),
            None,
        )
