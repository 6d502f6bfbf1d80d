"""
AssetDesk Backend — Notification Preference Service
=====================================================

What:  Per-user notification switches and Do-Not-Disturb evaluation.
How:   Preferences rows are created lazily with every flag enabled.
       `is_in_dnd_window()` is a pure function so it can be tested without
       a database.
Who:   NotificationService (gating each delivery) and the preference routes.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AssetDeskError, DatabaseError
from app.models.notification import NotificationPreference

logger = logging.getLogger(__name__)


def is_in_dnd_window(prefs: NotificationPreference, now: datetime) -> bool:
    """
    Whether `now` (recipient wall-clock time) falls inside the DND window.

    Rules:
        - DND must be enabled and both start and end times set.
        - dnd_days uses 0 = Sunday … 6 = Saturday; an empty list means
          every day.
        - start <= end is a same-day window, inclusive at both ends.
        - start > end is an overnight window (e.g. 22:00–08:00).
    """
    if not prefs.dnd_enabled or not prefs.dnd_start_time or not prefs.dnd_end_time:
        return False

    # datetime.weekday(): Monday = 0; stored days count from Sunday = 0
    today = (now.weekday() + 1) % 7
    days = prefs.dnd_days or []
    if days and today not in days:
        return False

    current = now.strftime("%H:%M")
    start, end = prefs.dnd_start_time, prefs.dnd_end_time
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


class PreferenceService:
    """Reads and writes `notification_preferences` rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[NotificationPreference]:
        """The user's preferences, or None when they never saved any."""
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> NotificationPreference:
        """Return the user's preferences, inserting the all-enabled default row if missing."""
        try:
            prefs = await self.get(user_id)
            if prefs is None:
                prefs = NotificationPreference(user_id=user_id, dnd_days=[])
                self.db.add(prefs)
                await self.db.flush()
                logger.info("Created default notification preferences for user %s", user_id)
            return prefs
        except AssetDeskError:
            raise
        except Exception as e:
            logger.error("Database error loading preferences for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not load notification preferences. Please try again.",
                context={"user_id": user_id},
            )

    async def update(self, user_id: int, changes: Mapping[str, Any]) -> NotificationPreference:
        """
        Apply a partial update. Every key in `changes` is written, so None
        clears a nullable field; absent keys are left unchanged.
        """
        prefs = await self.get_or_create(user_id)
        try:
            for field, value in changes.items():
                setattr(prefs, field, value)
            await self.db.flush()
            return prefs
        except Exception as e:
            logger.error("Database error updating preferences for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not update notification preferences. Please try again.",
                context={"user_id": user_id},
            )
