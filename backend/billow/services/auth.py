"""Identity service - user lookup and sync from the external identity provider.

The provider owns credentials. This service only mirrors its users, keyed by
``clerk_id``, and bootstraps the per-user rows a new account needs.
"""

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import AnalyticsData, Subscription, UsageLog
from billow.billing.service import create_default_subscription
from billow.ids import new_preferences_id, new_user_id
from billow.models.client import Client
from billow.models.invoice import Invoice
from billow.models.user import User, UserPreferences

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_clerk_id(db: AsyncSession, clerk_id: str) -> User | None:
    result = await db.execute(select(User).where(User.clerk_id == clerk_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def default_preferences(user_id: str) -> UserPreferences:
    return UserPreferences(
        id=new_preferences_id(),
        user_id=user_id,
        theme="light",
        language="en",
        email_notifications=True,
        push_notifications=True,
        marketing_emails=False,
        weekly_reports=True,
        security_alerts=True,
        currency="USD",
        timezone="UTC",
    )


async def create_user(
    db: AsyncSession, clerk_id: str, email: str, display_name: str = "", profile_image: str = "",
) -> User:
    """New user plus trial subscription and default preferences, in the caller's transaction."""
    user = User(
        id=new_user_id(),
        clerk_id=clerk_id,
        email=email,
        display_name=display_name or "",
        profile_image=profile_image or "",
    )
    db.add(user)
    await db.flush()

    await create_default_subscription(db, user.id)
    db.add(default_preferences(user.id))
    await db.flush()
    return user


async def sync_user(
    db: AsyncSession, clerk_id: str, email: str, display_name: str = "", profile_image: str = "",
) -> tuple[User, bool]:
    """Create or refresh the local mirror of a provider user. Returns (user, is_new)."""
    user = await get_user_by_clerk_id(db, clerk_id)
    if user is None:
        # Same email under a new provider id: relink rather than duplicate
        user = await get_user_by_email(db, email)
        if user is not None:
            logger.info("user_relinked", user_id=user.id, clerk_id=clerk_id)
            user.clerk_id = clerk_id

    if user is None:
        user = await create_user(db, clerk_id, email, display_name, profile_image)
        logger.info("user_synced", user_id=user.id, clerk_id=clerk_id, is_new=True)
        return user, True

    user.email = email
    user.display_name = display_name or ""
    user.profile_image = profile_image or ""
    await db.flush()
    logger.info("user_synced", user_id=user.id, clerk_id=clerk_id, is_new=False)
    return user, False


async def delete_user(db: AsyncSession, user: User) -> None:
    """Remove the user and every row it owns."""
    for model in (Invoice, Client, UsageLog, AnalyticsData, UserPreferences, Subscription):
        await db.execute(delete(model).where(model.user_id == user.id))
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user.id, clerk_id=user.clerk_id)


def webhook_display_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()
