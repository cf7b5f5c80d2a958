from datetime import date

import pytest
from fastapi.testclient import TestClient

from weighin.auth import get_password_hash
from weighin.config import Settings
from weighin.database import JsonStore
from weighin.main import create_app
from weighin.models import (
    ChallengeRecord,
    DailyEntryRecord,
    Database,
    UserPreferences,
    UserRecord,
    WeeklyTargetRecord,
)
from weighin.services.photos import PhotoStorage

PASSWORD = "secret-pass"
PASSWORD_HASH = get_password_hash(PASSWORD)

WEEK_START = date(2025, 3, 3)
WEEK_END = date(2025, 3, 9)


def make_database() -> Database:
    users = [
        UserRecord(
            id="u-sang",
            username="sang",
            display_name="Sang",
            password_hash=PASSWORD_HASH,
            color_hex="#FF8A5C",
        ),
        UserRecord(
            id="u-gua",
            username="gua",
            display_name="Gua",
            password_hash=PASSWORD_HASH,
            color_hex="#46A0FF",
            preferences=UserPreferences(metrics=["weight", "exercise_minutes"], share_photos_by_default=True),
        ),
    ]
    challenge = ChallengeRecord(
        id="c-week",
        label="Week 10",
        start_on=WEEK_START,
        end_on=WEEK_END,
        rules="Weigh in every morning",
        penalty="70 into the pool",
        prize_pool=140.0,
        penalty_amount=70.0,
    )
    targets = [
        WeeklyTargetRecord(id="t-sang", challenge_id="c-week", user_id="u-sang", target_delta_kg=2.0),
        WeeklyTargetRecord(id="t-gua", challenge_id="c-week", user_id="u-gua", target_delta_kg=1.0),
    ]
    return Database(users=users, challenges=[challenge], targets=targets)


def make_entry(user_id: str, day: date, weight: float, **kwargs) -> DailyEntryRecord:
    return DailyEntryRecord(user_id=user_id, date=day, weight_kg=weight, **kwargs)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "db.json", seed=make_database)


@pytest.fixture
def photos(tmp_path):
    return PhotoStorage(tmp_path / "uploads", max_bytes=1024)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_root=tmp_path, secret_key="test-secret", debug=True, max_upload_bytes=1024)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    app.state.store = JsonStore(settings.db_path, seed=make_database)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def logged_in(client):
    response = client.post("/api/auth/login", data={"username": "sang", "password": PASSWORD})
    assert response.status_code == 200
    return client
