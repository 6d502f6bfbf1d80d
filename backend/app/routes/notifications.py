"""
AssetDesk Backend — Notification Route Handlers
=================================================

What:  The notification bell API: list, count, mark read, snooze, dismiss,
       clear; plus admin create, broadcast and cleanup.
How:   Every handler resolves the caller from the identity header and
       delegates to NotificationService on the request's session. The
       session dependency commits when the handler returns.
Who:   The frontend notification bell and the admin console.

Route Ordering:
    Fixed paths (/unread-count, /mark-read, /clear-all, /broadcast,
    /cleanup) are declared before the /{notification_id} routes.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.models.user import User
from app.routes.dependencies import get_current_user_id, require_admin
from app.schemas.notification import (
    BroadcastRequest,
    BroadcastResponse,
    CleanupRequest,
    CreateNotificationRequest,
    ErrorResponse,
    MarkReadRequest,
    MessageResponse,
    NotificationResponse,
    SnoozeRequest,
    SnoozeResponse,
    UnreadCountResponse,
)
from app.services.notification_service import NotificationService
from app.services.templates import Template

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid caller identity", "model": ErrorResponse},
}
_ADMIN_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Caller is not an admin", "model": ErrorResponse},
}


# ── Inbox ─────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=List[NotificationResponse],
    responses=_AUTH_ERRORS,
    summary="List the caller's notifications",
    description=(
        "Newest first. Notifications snoozed into the future are hidden until "
        "their snooze expires."
    ),
)
async def list_notifications(
    limit: Optional[int] = Query(default=None, ge=1, description="Page size (capped server-side)"),
    offset: int = Query(default=0, ge=0),
    since: Optional[datetime] = Query(
        default=None, description="Only notifications created after this instant (ISO 8601)"
    ),
    unread_only: bool = Query(default=False),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    service = NotificationService(db)
    rows = await service.list_for_user(
        user_id, limit=limit, offset=offset, since=since, unread_only=unread_only
    )
    return [NotificationResponse.model_validate(row) for row in rows]


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    responses=_AUTH_ERRORS,
    summary="Count unread notifications",
)
async def unread_count(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread=await NotificationService(db).unread_count(user_id))


@router.post(
    "/mark-read",
    response_model=MessageResponse,
    responses={**_AUTH_ERRORS, 400: {"description": "Empty id list", "model": ErrorResponse}},
    summary="Mark selected notifications as read",
)
async def mark_read(
    body: MarkReadRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    affected = await NotificationService(db).mark_read(user_id, body.notification_ids)
    return MessageResponse(message="Notifications marked as read", affected=affected)


@router.post(
    "/mark-all-read",
    response_model=MessageResponse,
    responses=_AUTH_ERRORS,
    summary="Mark every notification as read",
)
async def mark_all_read(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    affected = await NotificationService(db).mark_all_read(user_id)
    return MessageResponse(message="All notifications marked as read", affected=affected)


@router.delete(
    "/clear-all",
    response_model=MessageResponse,
    responses=_AUTH_ERRORS,
    summary="Delete all of the caller's notifications",
)
async def clear_all(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    affected = await NotificationService(db).clear_all(user_id)
    return MessageResponse(message="All notifications cleared", affected=affected)


# ── Admin ─────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_ADMIN_ERRORS, 404: {"description": "Recipient not found", "model": ErrorResponse}},
    summary="Create a notification for one user (admin)",
)
async def create_notification(
    body: CreateNotificationRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    notification = await NotificationService(db).create_direct(
        user_id=body.user_id,
        title=body.title,
        message=body.message,
        type=body.type,
        entity_id=body.entity_id,
        priority=body.priority,
        category=body.category,
    )
    logger.info("Admin %s created notification %s for user %s",
                admin.username, notification.id, body.user_id)
    return NotificationResponse.model_validate(notification)


@router.post(
    "/broadcast",
    response_model=BroadcastResponse,
    responses=_ADMIN_ERRORS,
    summary="Send a system announcement (admin)",
    description="Delivers to every active user, or only to users holding target_role.",
)
async def broadcast(
    body: BroadcastRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> BroadcastResponse:
    service = NotificationService(db)
    payload = {"title": body.title, "message": body.message}
    if body.target_role:
        recipients = await service.deliver_to_roles(
            [body.target_role], Template.SYSTEM_ANNOUNCEMENT, payload
        )
    else:
        recipients = await service.deliver_to_all(Template.SYSTEM_ANNOUNCEMENT, payload)

    logger.info("Admin %s broadcast '%s' to %d users (role=%s)",
                admin.username, body.title, recipients, body.target_role or "all")
    return BroadcastResponse(
        message="Announcement sent",
        target_role=body.target_role,
        recipients=recipients,
        title=body.title,
    )


@router.post(
    "/cleanup",
    response_model=MessageResponse,
    responses=_ADMIN_ERRORS,
    summary="Delete old read notifications (admin)",
)
async def cleanup(
    body: Optional[CleanupRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    retention_days = body.retention_days if body else None
    removed = await NotificationService(db).cleanup_read(retention_days)
    return MessageResponse(message="Old read notifications removed", affected=removed)


# ── Single notification ───────────────────────────────────────────────────

@router.post(
    "/{notification_id}/snooze",
    response_model=SnoozeResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "Neither snooze_until nor minutes given", "model": ErrorResponse},
        404: {"description": "Notification not found", "model": ErrorResponse},
    },
    summary="Hide a notification until later",
)
async def snooze(
    notification_id: int,
    body: SnoozeRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SnoozeResponse:
    until = await NotificationService(db).snooze(
        user_id, notification_id, until=body.snooze_until, minutes=body.minutes
    )
    return SnoozeResponse(snoozed_until=until)


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    responses={**_AUTH_ERRORS, 404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Dismiss (delete) one notification",
)
async def dismiss(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await NotificationService(db).dismiss(user_id, notification_id)
    return MessageResponse(message="Notification dismissed", affected=1)
