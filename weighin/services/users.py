import logging

from weighin.database import JsonStore
from weighin.models import Database, UserRecord, utcnow
from weighin.schemas import PreferencesUpdate

logger = logging.getLogger(__name__)


async def update_preferences(store: JsonStore, user_id: str, data: PreferencesUpdate) -> UserRecord | None:
    """Replace a member's display preferences. Returns None for an unknown member."""

    def mutate(draft: Database) -> UserRecord | None:
        user = draft.find_user(user_id)
        if user is None:
            return None
        user.preferences.metrics = list(data.metrics)
        user.preferences.share_photos_by_default = data.share_photos_by_default
        user.updated_at = utcnow()
        return user

    user = await store.update(mutate)
    if user is not None:
        logger.info("Updated preferences for user %s", user_id)
    return user
