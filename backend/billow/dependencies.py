"""FastAPI dependency injection."""

import structlog
from fastapi import Depends, HTTPException, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import Plan, Subscription
from billow.billing.service import get_subscription_with_plan
from billow.database import get_db
from billow.models.user import User
from billow.services.auth import get_user_by_clerk_id, get_user_by_id


async def _lookup_user(db: AsyncSession, clerk_id: str | None, user_id: str | None) -> User | None:
    if clerk_id:
        return await get_user_by_clerk_id(db, clerk_id)
    if user_id:
        return await get_user_by_id(db, user_id)
    return None


async def get_current_user(
    request: Request,
    x_clerk_id: str | None = Header(None, alias="X-Clerk-ID"),
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the identity headers; X-Clerk-ID wins over X-User-ID."""
    if not x_clerk_id and not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Authentication required",
                "message": "Please provide X-User-ID or X-Clerk-ID header",
            },
        )

    user = await _lookup_user(db, x_clerk_id, x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "User not found",
                "message": "Please sign in to continue. If you just signed up, please try refreshing the page.",
                "clerk_id": x_clerk_id or "",
                "user_id": x_user_id or "",
            },
        )

    request.state.user_id = user.id
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


async def get_optional_user(
    x_clerk_id: str | None = Header(None, alias="X-Clerk-ID"),
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    return await _lookup_user(db, x_clerk_id, x_user_id)


async def require_active_subscription(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Subscription, Plan]:
    pair = await get_subscription_with_plan(db, user.id)
    if pair is None or not pair[0].is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Active subscription required",
                "message": "Please upgrade your plan to access this feature",
            },
        )
    return pair


class PlanAccess:
    """Dependency that admits only subscribers on one of the named plans."""

    def __init__(self, *plan_names: str):
        self.plan_names = list(plan_names)

    async def __call__(
        self,
        subscription: tuple[Subscription, Plan] = Depends(require_active_subscription),
    ) -> tuple[Subscription, Plan]:
        _, plan = subscription
        if any(plan.name.lower() == name.lower() for name in self.plan_names):
            return subscription

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Plan upgrade required",
                "message": "This feature requires a higher plan",
                "current_plan": plan.name,
                "required_plans": self.plan_names,
            },
        )


def require_plan(*plan_names: str) -> PlanAccess:
    return PlanAccess(*plan_names)
