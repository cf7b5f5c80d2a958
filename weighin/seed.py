"""Default document used the first time the store finds no file on disk."""
import logging
from datetime import date, timedelta

from weighin.auth import get_password_hash
from weighin.models import (
    ChallengeRecord,
    Database,
    UserPreferences,
    UserRecord,
    WeeklyTargetRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "changeme"

DEFAULT_MEMBERS = [
    {"username": "sang", "display_name": "Sang", "color_hex": "#FF8A5C"},
    {"username": "gua", "display_name": "Gua", "color_hex": "#46A0FF"},
    {"username": "bi", "display_name": "Bi", "color_hex": "#5BC49F"},
]

DEFAULT_TARGET_DELTA_KG = 1.0


def build_default_database(today: date | None = None) -> Database:
    """Three members and a one-week challenge starting on the current Monday."""
    today = today or date.today()
    start = today - timedelta(days=today.weekday())

    users = [
        UserRecord(
            username=member["username"],
            display_name=member["display_name"],
            color_hex=member["color_hex"],
            password_hash=get_password_hash(DEFAULT_PASSWORD),
            preferences=UserPreferences(),
        )
        for member in DEFAULT_MEMBERS
    ]
    challenge = ChallengeRecord(
        label=f"Week of {start.isoformat()}",
        start_on=start,
        end_on=start + timedelta(days=6),
        rules="Log your weight every day before 23:59.",
        penalty="Members who miss their target pay into the pool.",
        prize_pool=210.0,
        penalty_amount=70.0,
    )
    targets = [
        WeeklyTargetRecord(
            challenge_id=challenge.id,
            user_id=user.id,
            target_delta_kg=DEFAULT_TARGET_DELTA_KG,
        )
        for user in users
    ]

    logger.warning(
        "Seeding %d members with the default password; change it before sharing the app",
        len(users),
    )
    return Database(users=users, challenges=[challenge], targets=targets)
