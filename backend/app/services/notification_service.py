"""
AssetDesk Backend — Notification Service (In-App Delivery)
============================================================

What:  Persists in-app notifications and manages each user's inbox.
How:   `NotificationService` works inside a caller-supplied session:
       template rendering, preference/DND gating, row insertion, and the
       inbox operations behind the notification routes.
       `InAppDelivery` adapts it to the NotificationDelivery interface,
       opening and committing its own session per call.
Who:   Notification routes (inbox, admin create/broadcast/cleanup) and,
       through InAppDelivery, the NotificationDispatcher.

Delivery Flow (deliver):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │  Render  │───▶│ Preference   │───▶│ DND window   │───▶│  INSERT  │
    │ template │    │ flag enabled?│    │ (critical    │    │  unread  │
    └──────────┘    └──────────────┘    │  bypasses)   │    └──────────┘
                                        └──────────────┘
    Suppressed notifications return None and are logged at DEBUG.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.exceptions import (
    AssetDeskError,
    DatabaseError,
    DeliveryError,
    NotFoundError,
    ValidationError,
)
from app.models.notification import Notification
from app.models.user import User
from app.services.delivery_base import NotificationDelivery
from app.services.preference_service import PreferenceService, is_in_dnd_window
from app.services.templates import Template, get_spec, render

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationService:
    """
    Notification persistence and inbox operations for one session.

    Error Handling Strategy:
        deliver() wraps persistence failures in DeliveryError.
        Inbox operations wrap unexpected failures in DatabaseError and let
        NotFoundError / ValidationError propagate unchanged.
        Nothing is committed here; the session owner commits.
    """

    def __init__(self, db: AsyncSession, clock: Optional[Clock] = None):
        self.db = db
        self._clock = clock or _utcnow

    # ── Delivery ──────────────────────────────────────────────────────────

    async def deliver(
        self,
        user_id: int,
        template: Template,
        payload: Mapping[str, Any],
    ) -> Optional[Notification]:
        """
        Render `template` for `user_id` and store it unless the user muted it.

        Returns:
            The new Notification, or None when suppressed by a preference
            flag or by an active Do-Not-Disturb window.

        Raises:
            ValidationError: unknown template or incomplete payload.
            DeliveryError: the row could not be written.
        """
        spec = get_spec(template)
        rendered = render(template, payload)

        try:
            prefs = await PreferenceService(self.db).get(user_id)
            if prefs is not None:
                if not getattr(prefs, spec.preference, True):
                    logger.debug(
                        "Notification skipped: user %s disabled %s (%s)",
                        user_id, spec.preference, rendered.title,
                    )
                    return None
                # Wall-clock time in the server's zone; DND times are local
                local_now = self._clock().astimezone()
                if rendered.priority != "critical" and is_in_dnd_window(prefs, local_now):
                    logger.debug(
                        "Notification blocked by DND: user %s (%s)", user_id, rendered.title
                    )
                    return None

            notification = Notification(
                user_id=user_id,
                title=rendered.title,
                message=rendered.message,
                type=rendered.type,
                entity_id=rendered.entity_id,
                priority=rendered.priority,
                category=rendered.category,
                is_read=False,
            )
            self.db.add(notification)
            await self.db.flush()
        except Exception as e:
            logger.error(
                "Failed to create notification '%s' for user %s: %s",
                rendered.title, user_id, e,
            )
            raise DeliveryError(
                recipient_user_id=user_id,
                context={"template": spec.key.value, "error_type": type(e).__name__},
            )

        logger.info(
            "Notification created: %s (id=%s, user=%s, entity=%s)",
            rendered.title, notification.id, user_id, rendered.entity_id,
        )
        return notification

    async def deliver_many(
        self,
        user_ids: Iterable[int],
        template: Template,
        payload: Mapping[str, Any],
    ) -> int:
        """
        Deliver to each user in order; returns how many rows were created.

        Each recipient gets its own savepoint. A DeliveryError for one user
        rolls back only that user's row and the loop moves on.
        """
        key = get_spec(template).key.value
        created = 0
        for user_id in user_ids:
            try:
                async with self.db.begin_nested():
                    notification = await self.deliver(user_id, template, payload)
            except DeliveryError as e:
                logger.warning(
                    "Skipping recipient %s for %s: %s",
                    user_id, key, e.message,
                )
                continue
            if notification is not None:
                created += 1
        return created

    async def deliver_to_roles(
        self,
        roles: Sequence[str],
        template: Template,
        payload: Mapping[str, Any],
    ) -> int:
        """Deliver to every active user holding one of `roles`."""
        user_ids = await self._active_user_ids(roles)
        return await self.deliver_many(user_ids, template, payload)

    async def deliver_to_all(self, template: Template, payload: Mapping[str, Any]) -> int:
        """Deliver to every active user."""
        user_ids = await self._active_user_ids(None)
        return await self.deliver_many(user_ids, template, payload)

    async def _active_user_ids(self, roles: Optional[Sequence[str]]) -> List[int]:
        query = select(User.id).where(User.is_active.is_(True)).order_by(User.id)
        if roles:
            query = query.where(User.role.in_(list(roles)))
        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error("Database error resolving audience %s: %s", roles, e)
            raise DatabaseError(
                message="Could not resolve notification recipients.",
                context={"roles": list(roles or [])},
            )

    async def create_direct(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str,
        entity_id: Optional[int] = None,
        priority: str = "medium",
        category: str = "alerts",
    ) -> Notification:
        """
        Admin-authored notification. Bypasses preferences and DND.

        Raises:
            NotFoundError: the recipient user does not exist.
        """
        try:
            recipient = await self.db.get(User, user_id)
            if recipient is None:
                raise NotFoundError(resource="user", resource_id=str(user_id))

            notification = Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                entity_id=entity_id,
                priority=priority,
                category=category,
                is_read=False,
            )
            self.db.add(notification)
            await self.db.flush()
            logger.info("Direct notification %s created for user %s", notification.id, user_id)
            return notification
        except AssetDeskError:
            raise
        except Exception as e:
            logger.error("Database error creating notification for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not create the notification. Please try again.",
                context={"user_id": user_id},
            )

    # ── Inbox ─────────────────────────────────────────────────────────────

    def _visible(self, user_id: int):
        """Filter: the user's rows that are not snoozed into the future."""
        now = self._clock()
        return (
            Notification.user_id == user_id,
            or_(Notification.snoozed_until.is_(None), Notification.snoozed_until <= now),
        )

    async def list_for_user(
        self,
        user_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
        since: Optional[datetime] = None,
        unread_only: bool = False,
    ) -> List[Notification]:
        """
        The user's notifications, newest first.

        Args:
            limit: Page size; defaults to notification_page_size and is
                   clamped to notification_page_max.
            offset: Rows to skip.
            since: Only rows created strictly after this instant.
            unread_only: Only rows not yet marked read.
        """
        page = min(limit or settings.notification_page_size, settings.notification_page_max)
        query = select(Notification).where(*self._visible(user_id))
        if since is not None:
            query = query.where(Notification.created_at > since)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(page)
            .offset(max(offset, 0))
        )
        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing notifications for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not retrieve notifications. Please try again.",
                context={"user_id": user_id},
            )

    async def unread_count(self, user_id: int) -> int:
        query = select(func.count(Notification.id)).where(
            *self._visible(user_id), Notification.is_read.is_(False)
        )
        try:
            result = await self.db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            logger.error("Database error counting notifications for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not count notifications. Please try again.",
                context={"user_id": user_id},
            )

    async def mark_read(self, user_id: int, notification_ids: Sequence[int]) -> int:
        """Mark the given notifications read; ids owned by other users are ignored."""
        if not notification_ids:
            raise ValidationError(
                message="notification_ids must contain at least one id",
                field="notification_ids",
            )
        return await self._update_read(
            user_id, Notification.id.in_(list(notification_ids))
        )

    async def mark_all_read(self, user_id: int) -> int:
        return await self._update_read(user_id, Notification.is_read.is_(False))

    async def _update_read(self, user_id: int, condition) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, condition)
            .values(is_read=True, read_at=self._clock())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            return result.rowcount or 0
        except Exception as e:
            logger.error("Database error marking notifications read for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not update notifications. Please try again.",
                context={"user_id": user_id},
            )

    async def clear_all(self, user_id: int) -> int:
        """Delete every notification belonging to the user."""
        stmt = (
            delete(Notification)
            .where(Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            return result.rowcount or 0
        except Exception as e:
            logger.error("Database error clearing notifications for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not clear notifications. Please try again.",
                context={"user_id": user_id},
            )

    async def _owned(self, user_id: int, notification_id: int) -> Notification:
        try:
            result = await self.db.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
            notification = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching notification %s: %s", notification_id, e)
            raise DatabaseError(
                message="Could not retrieve the notification. Please try again.",
                context={"notification_id": notification_id},
            )
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        return notification

    async def snooze(
        self,
        user_id: int,
        notification_id: int,
        until: Optional[datetime] = None,
        minutes: Optional[int] = None,
    ) -> datetime:
        """
        Hide a notification until `until`, or for `minutes` from now.

        Returns:
            The effective snoozed_until instant.
        """
        if until is None and not minutes:
            raise ValidationError(message="snooze_until or minutes is required", field="snooze_until")
        if until is None:
            until = self._clock() + timedelta(minutes=minutes)

        notification = await self._owned(user_id, notification_id)
        notification.snoozed_until = until
        await self.db.flush()
        return until

    async def dismiss(self, user_id: int, notification_id: int) -> None:
        notification = await self._owned(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.flush()

    # ── Retention ─────────────────────────────────────────────────────────

    async def cleanup_read(self, retention_days: Optional[int] = None) -> int:
        """
        Delete read notifications older than the retention window.

        Returns:
            Number of rows removed.
        """
        days = retention_days or settings.notification_retention_days
        cutoff = self._clock() - timedelta(days=days)
        stmt = (
            delete(Notification)
            .where(Notification.is_read.is_(True), Notification.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
        except Exception as e:
            logger.error("Database error during notification cleanup: %s", e)
            raise DatabaseError(
                message="Notification cleanup failed. Please try again.",
                context={"retention_days": days},
            )
        removed = result.rowcount or 0
        logger.info("Notification cleanup removed %d read notifications older than %d days",
                    removed, days)
        return removed


class InAppDelivery(NotificationDelivery):
    """
    NotificationDelivery that writes in-app rows in a session of its own.

    Each call commits independently of the caller's transaction, so the
    entity write that triggered the notification neither waits on nor is
    rolled back by notification failures.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        clock: Optional[Clock] = None,
    ):
        if session_factory is None:
            from app.database import async_session_factory
            session_factory = async_session_factory
        self._session_factory = session_factory
        self._clock = clock

    async def notify(
        self,
        recipient_user_id: int,
        template: Template,
        payload: Mapping[str, Any],
    ) -> Optional[Notification]:
        async with self._session_factory() as session:
            service = NotificationService(session, clock=self._clock)
            notification = await service.deliver(recipient_user_id, template, payload)
            await session.commit()
            return notification

    async def notify_audience(self, template: Template, payload: Mapping[str, Any]) -> int:
        spec = get_spec(template)
        async with self._session_factory() as session:
            service = NotificationService(session, clock=self._clock)
            if spec.audience_all:
                created = await service.deliver_to_all(template, payload)
            elif spec.audience_roles:
                created = await service.deliver_to_roles(spec.audience_roles, template, payload)
            else:
                raise ValidationError(
                    message=f"Template '{spec.key.value}' has no default audience",
                    field="template",
                )
            await session.commit()
        logger.info("Audience notification %s delivered to %d users", spec.key.value, created)
        return created
