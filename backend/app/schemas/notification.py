"""
AssetDesk Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the notification API contract.
How:   FastAPI uses these models to validate request bodies, serialize
       responses, and generate OpenAPI documentation.
Who:   Notification, preference and health route handlers.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.notification import (
    NOTIFICATION_CATEGORIES,
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_TYPES,
)
from app.models.user import USER_ROLES

_HHMM_HELP = "24-hour time, HH:MM"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NotificationResponse(BaseModel):
    """One in-app notification as shown in the notification bell."""

    id: int = Field(description="Notification identifier")
    user_id: int = Field(description="Recipient user id")
    title: str
    message: str
    type: str = Field(description="Asset, Ticket, System or Employee")
    entity_id: Optional[int] = Field(default=None, description="Related entity id, if any")
    priority: str
    category: str
    is_read: bool
    read_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    unread: int = Field(description="Number of unread, non-snoozed notifications")


class MessageResponse(BaseModel):
    """Generic acknowledgement for state-changing endpoints."""

    message: str
    affected: Optional[int] = Field(default=None, description="Rows changed, where meaningful")


class SnoozeResponse(BaseModel):
    message: str = "Notification snoozed"
    snoozed_until: datetime


class BroadcastResponse(BaseModel):
    message: str
    target_role: Optional[str] = None
    recipients: int = Field(description="Users the announcement was delivered to")
    title: str


class PreferencesResponse(BaseModel):
    """A user's notification switches and Do-Not-Disturb window."""

    user_id: int
    ticket_assignments: bool
    ticket_status_changes: bool
    asset_assignments: bool
    maintenance_alerts: bool
    upgrade_requests: bool
    system_announcements: bool
    employee_changes: bool
    dnd_enabled: bool
    dnd_start_time: Optional[str] = None
    dnd_end_time: Optional[str] = None
    dnd_days: List[int] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class MarkReadRequest(BaseModel):
    notification_ids: List[int] = Field(description="Ids of the caller's notifications to mark read")


class SnoozeRequest(BaseModel):
    """Either an absolute time or a number of minutes from now."""

    snooze_until: Optional[datetime] = None
    minutes: Optional[int] = Field(default=None, ge=1, le=60 * 24 * 30)


class CreateNotificationRequest(BaseModel):
    """Admin-authored notification for a single user (bypasses preferences)."""

    user_id: int
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: str = Field(description="Asset, Ticket, System or Employee")
    entity_id: Optional[int] = None
    priority: str = "medium"
    category: str = "alerts"

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in NOTIFICATION_TYPES:
            raise ValueError(f"Invalid type '{v}'. Must be one of: {NOTIFICATION_TYPES}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if v not in NOTIFICATION_PRIORITIES:
            raise ValueError(f"Invalid priority '{v}'. Must be one of: {NOTIFICATION_PRIORITIES}")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in NOTIFICATION_CATEGORIES:
            raise ValueError(f"Invalid category '{v}'. Must be one of: {NOTIFICATION_CATEGORIES}")
        return v


class BroadcastRequest(BaseModel):
    """System announcement to one role, or to everyone when target_role is 'all'/absent."""

    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    target_role: Optional[str] = None

    @field_validator("target_role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "all":
            return None
        if v not in USER_ROLES:
            raise ValueError(f"Invalid role '{v}'. Must be one of: {USER_ROLES} or 'all'")
        return v


class CleanupRequest(BaseModel):
    retention_days: Optional[int] = Field(default=None, ge=1, le=3650)


class PreferencesUpdate(BaseModel):
    """
    Partial update: only fields present in the body are changed.

    DND times accept null to clear them; flags and dnd_days do not.
    """

    ticket_assignments: Optional[bool] = None
    ticket_status_changes: Optional[bool] = None
    asset_assignments: Optional[bool] = None
    maintenance_alerts: Optional[bool] = None
    upgrade_requests: Optional[bool] = None
    system_announcements: Optional[bool] = None
    employee_changes: Optional[bool] = None
    dnd_enabled: Optional[bool] = None
    dnd_start_time: Optional[str] = Field(default=None, description=_HHMM_HELP)
    dnd_end_time: Optional[str] = Field(default=None, description=_HHMM_HELP)
    dnd_days: Optional[List[int]] = Field(default=None, description="0 = Sunday … 6 = Saturday")

    @field_validator(
        "ticket_assignments", "ticket_status_changes", "asset_assignments",
        "maintenance_alerts", "upgrade_requests", "system_announcements",
        "employee_changes", "dnd_enabled", "dnd_days",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    @field_validator("dnd_start_time", "dnd_end_time")
    @classmethod
    def validate_hhmm(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        parts = v.split(":")
        if (
            len(parts) != 2
            or not all(p.isdigit() and len(p) == 2 for p in parts)
            or int(parts[0]) > 23
            or int(parts[1]) > 59
        ):
            raise ValueError(f"Invalid time '{v}'. Expected {_HHMM_HELP}")
        return v

    @field_validator("dnd_days")
    @classmethod
    def validate_days(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is None:
            return v
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("dnd_days entries must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "notification with ID '12' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
