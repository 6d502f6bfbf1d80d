"""
AssetDesk Backend — Shared Route Dependencies
===============================================

What:  FastAPI dependencies for caller identity, admin checks and the
       notification dispatcher.
How:   The caller's user id arrives in the header named by
       `settings.user_id_header` (X-User-ID by default), set by the
       authenticating proxy in front of this service.
Who:   Notification and preference routes; entity write paths that need
       a NotificationDispatcher.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import AuthenticationError, PermissionDeniedError
from app.models.user import User
from app.services.directory import SqlDirectory
from app.services.dispatcher import NotificationDispatcher
from app.services.notification_service import InAppDelivery

logger = logging.getLogger(__name__)


async def get_current_user_id(request: Request) -> int:
    """
    Caller's users.id from the identity header.

    Raises:
        AuthenticationError: header missing or not a positive integer.
    """
    raw = request.headers.get(settings.user_id_header)
    if not raw:
        raise AuthenticationError(context={"header": settings.user_id_header})
    try:
        user_id = int(raw)
    except ValueError:
        raise AuthenticationError(
            message=f"Invalid {settings.user_id_header} header",
            context={"header": settings.user_id_header},
        )
    if user_id <= 0:
        raise AuthenticationError(
            message=f"Invalid {settings.user_id_header} header",
            context={"header": settings.user_id_header},
        )
    return user_id


async def require_admin(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """The calling user, provided they are an active admin."""
    user = await db.get(User, user_id)
    if user is None or not user.is_active or user.role != "admin":
        logger.warning("User %s denied access to an admin endpoint", user_id)
        raise PermissionDeniedError(required_role="admin", context={"user_id": user_id})
    return user


async def get_dispatcher(db: AsyncSession = Depends(get_db_session)) -> NotificationDispatcher:
    """
    Dispatcher for entity write paths.

    Lookups share the request's session; notifications are written through
    InAppDelivery in sessions of their own.
    """
    return NotificationDispatcher(directory=SqlDirectory(db), delivery=InAppDelivery())
