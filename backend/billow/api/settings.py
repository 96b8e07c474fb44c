"""Profile and preference endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.rate_limit import enforce_rate_limit
from billow.database import get_db
from billow.dependencies import get_current_user
from billow.models.user import User, UserPreferences
from billow.schemas.user import (
    PreferencesOut, PreferencesUpdate, PreferencesUpdateResponse,
    ProfileUpdate, ProfileUpdateResponse, UserOut,
)
from billow.services.auth import default_preferences, get_user_by_email

router = APIRouter(prefix="/settings", tags=["settings"], dependencies=[Depends(enforce_rate_limit)])


async def get_preferences_row(db: AsyncSession, user_id: str) -> UserPreferences | None:
    result = await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("/profile", response_model=UserOut)
async def get_profile(user: User = Depends(get_current_user)):
    return UserOut.model_validate(user)


@router.post("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.email and body.email != user.email:
        existing = await get_user_by_email(db, body.email)
        if existing and existing.id != user.id:
            raise HTTPException(status_code=400, detail="Email already in use")
        user.email = body.email
    if body.display_name:
        user.display_name = body.display_name
    if body.profile_image:
        user.profile_image = body.profile_image

    await db.commit()
    return ProfileUpdateResponse(message="Profile updated successfully", user=UserOut.model_validate(user))


@router.get("/preferences", response_model=PreferencesOut)
async def get_preferences(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    preferences = await get_preferences_row(db, user.id)
    if not preferences:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return PreferencesOut.model_validate(preferences)


@router.post("/preferences", response_model=PreferencesUpdateResponse)
async def update_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preferences = await get_preferences_row(db, user.id)
    if preferences is None:
        preferences = default_preferences(user.id)
        db.add(preferences)

    for field, value in body.model_dump().items():
        # blank strings and unset flags keep the stored value
        if value is None or value == "":
            continue
        setattr(preferences, field, value)

    await db.commit()
    return PreferencesUpdateResponse(
        message="Preferences updated successfully",
        preferences=PreferencesOut.model_validate(preferences),
    )
