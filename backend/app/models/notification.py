"""
AssetDesk Backend — Notification SQLAlchemy Models
====================================================

What:  In-app notification rows and per-user notification preferences.
Who:   Written by NotificationService (delivery, mark-read, snooze, cleanup)
       and PreferenceService; read by the notification routes.

Table Design:
    notifications
        - user_id: recipient (a users.id, never an employee id)
        - type: Asset | Ticket | System | Employee
        - entity_id: id of the ticket/asset/upgrade/employee the row is about
        - priority / category: copied from the template at delivery time
        - is_read + read_at, snoozed_until: per-user inbox state
        Index (user_id, created_at): "my newest notifications" query

    notification_preferences
        - one row per user, created lazily with every flag enabled
        - dnd_*: Do-Not-Disturb window, "HH:MM" strings, dnd_days uses
          0 = Sunday … 6 = Saturday; empty list means every day
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

NOTIFICATION_TYPES = ("Asset", "Ticket", "System", "Employee")
NOTIFICATION_PRIORITIES = ("info", "low", "medium", "high", "critical")
NOTIFICATION_CATEGORIES = (
    "assignments",
    "status_changes",
    "maintenance",
    "approvals",
    "announcements",
    "reminders",
    "alerts",
)


class Notification(Base):
    """
    A single in-app notification addressed to one user.

    Lifecycle:
        1. Created unread by NotificationService.deliver / create_direct
        2. Optionally snoozed (hidden from the inbox until snoozed_until)
        3. Marked read (read_at set) or dismissed (row deleted)
        4. Read rows older than the retention window are purged by cleanup
    """

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)

    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="medium",
        server_default=text("'medium'"),
    )

    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="alerts",
        server_default=text("'alerts'"),
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    snoozed_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, user_id={self.user_id}, "
            f"type='{self.type}', is_read={self.is_read})>"
        )


class NotificationPreference(Base):
    """Per-user switches for each notification family plus the DND window."""

    __tablename__ = "notification_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    ticket_assignments: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ticket_status_changes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    asset_assignments: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    maintenance_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    upgrade_requests: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_announcements: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    employee_changes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    dnd_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dnd_start_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    dnd_end_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    dnd_days: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<NotificationPreference(user_id={self.user_id}, dnd={self.dnd_enabled})>"


# Preference columns a template can be gated on
PREFERENCE_FLAGS = (
    "ticket_assignments",
    "ticket_status_changes",
    "asset_assignments",
    "maintenance_alerts",
    "upgrade_requests",
    "system_announcements",
    "employee_changes",
)
