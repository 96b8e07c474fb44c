"""Per-plan, per-endpoint request limits over a trailing window.

Every admitted request is stored as a UsageLog row with feature type
``api_request_<path>``; the limiter counts those rows. The user row is
locked while counting so concurrent requests from one user serialize.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog
from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import FEATURE_TYPE_LENGTH, UsageLog
from billow.billing.service import get_subscription_with_plan, record_usage
from billow.config import get_settings
from billow.database import as_utc, get_db, utcnow
from billow.dependencies import get_current_user
from billow.models.user import User

logger = structlog.get_logger()

DEFAULT_PLAN = "starter"
DEFAULT_ENDPOINT = "default"

# requests per window, keyed by lower-cased plan name then request path
RATE_LIMITS: dict[str, dict[str, int]] = {
    "starter": {
        "/api/invoices": 50,
        "/api/clients": 20,
        "/api/dashboard": 100,
        "default": 30,
    },
    "pro": {
        "/api/invoices": 200,
        "/api/clients": 100,
        "/api/dashboard": 500,
        "default": 150,
    },
    "business": {
        "/api/invoices": 1000,
        "/api/clients": 500,
        "/api/dashboard": 2000,
        "default": 500,
    },
}


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_time: int  # unix seconds

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_time),
        }


def feature_key(path: str) -> str:
    """UsageLog feature type for ``path``, cut to the column width.

    Paths that only differ past the cut share one counter.
    """
    return f"api_request_{path}"[:FEATURE_TYPE_LENGTH]


def resolve_limit(plan_name: str | None, path: str) -> int:
    plan_limits = RATE_LIMITS.get((plan_name or "").lower(), RATE_LIMITS[DEFAULT_PLAN])
    return plan_limits.get(path, plan_limits[DEFAULT_ENDPOINT])


async def rate_limit_plan_name(db: AsyncSession, user_id: str) -> str:
    pair = await get_subscription_with_plan(db, user_id)
    if pair and pair[0].is_active:
        return pair[1].name.lower()
    return DEFAULT_PLAN


async def check_rate_limit(
    db: AsyncSession,
    user: User,
    path: str,
    method: str = "GET",
    now: datetime | None = None,
) -> RateLimitResult:
    """Count the window and, when admitted, log the request and commit."""
    settings = get_settings()
    now = now or utcnow()
    window = timedelta(seconds=settings.RATE_LIMIT_WINDOW_SECONDS)
    key = feature_key(path)

    # serialize concurrent checks for the same user
    await db.execute(select(User.id).where(User.id == user.id).with_for_update())

    limit = resolve_limit(await rate_limit_plan_name(db, user.id), path)
    row = (await db.execute(
        select(func.count(UsageLog.id), func.min(UsageLog.timestamp))
        .where(
            UsageLog.user_id == user.id,
            UsageLog.feature_type == key,
            UsageLog.timestamp >= now - window,
        )
    )).one()
    count, oldest = row[0], row[1]
    reset_at = (as_utc(oldest) if oldest else now) + window
    reset_time = int(reset_at.timestamp())

    if count >= limit:
        return RateLimitResult(allowed=False, limit=limit, remaining=0, reset_time=reset_time)

    await record_usage(db, user.id, key, metadata={"endpoint": path, "method": method}, force=True, at=now)
    await db.commit()
    return RateLimitResult(allowed=True, limit=limit, remaining=max(limit - count - 1, 0), reset_time=reset_time)


async def enforce_rate_limit(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RateLimitResult | None:
    """Router dependency: 429 when over the limit, rate headers otherwise."""
    if not get_settings().RATE_LIMITING_ENABLED:
        return None

    path = request.url.path
    result = await check_rate_limit(db, user, path, request.method)
    if not result.allowed:
        retry_after = max(result.reset_time - int(utcnow().timestamp()), 0)
        logger.warning("rate_limit_exceeded", user_id=user.id, path=path, limit=result.limit)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "Rate limit exceeded", "limit": result.limit, "reset_time": result.reset_time},
            headers={"Retry-After": str(retry_after), **result.headers()},
        )

    response.headers.update(result.headers())
    return result
