"""
AssetDesk Backend — Notification Preference Routes
====================================================

What:  GET/PUT /api/notifications/preferences for the calling user.
How:   Reading creates the default (everything enabled, DND off) row on
       first access; PUT applies only the fields present in the body.
Who:   The frontend notification settings dialog.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.routes.dependencies import get_current_user_id
from app.schemas.notification import ErrorResponse, PreferencesResponse, PreferencesUpdate
from app.services.preference_service import PreferenceService

router = APIRouter(prefix="/api/notifications/preferences", tags=["Preferences"])


@router.get(
    "",
    response_model=PreferencesResponse,
    responses={401: {"description": "Missing or invalid caller identity", "model": ErrorResponse}},
    summary="Get notification preferences",
)
async def get_preferences(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PreferencesResponse:
    prefs = await PreferenceService(db).get_or_create(user_id)
    return PreferencesResponse.model_validate(prefs)


@router.put(
    "",
    response_model=PreferencesResponse,
    responses={401: {"description": "Missing or invalid caller identity", "model": ErrorResponse}},
    summary="Update notification preferences",
)
async def update_preferences(
    body: PreferencesUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PreferencesResponse:
    prefs = await PreferenceService(db).update(user_id, body.model_dump(exclude_unset=True))
    return PreferencesResponse.model_validate(prefs)
