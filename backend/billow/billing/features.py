"""Plan feature gate."""

import structlog
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import Plan
from billow.billing.service import get_subscription_with_plan
from billow.config import get_settings
from billow.database import get_db
from billow.dependencies import get_current_user
from billow.models.user import User

logger = structlog.get_logger()

FEATURE_FLAGS = (
    "image_generation",
    "custom_voice",
    "priority_support",
    "advanced_analytics",
    "api_access",
    "white_label",
)


def has_feature(plan: Plan, feature: str, fail_open: bool | None = None) -> bool:
    """Whether ``plan`` grants ``feature``. Unknown names follow FEATURE_GATE_FAIL_OPEN."""
    if feature in FEATURE_FLAGS:
        return bool(getattr(plan, feature))

    if fail_open is None:
        fail_open = get_settings().FEATURE_GATE_FAIL_OPEN
    logger.warning("unknown_feature_gate", feature=feature, allowed=fail_open)
    return fail_open


async def check_feature(db: AsyncSession, user_id: str, feature: str) -> bool:
    pair = await get_subscription_with_plan(db, user_id)
    if pair is None or not pair[0].is_active:
        return False
    return has_feature(pair[1], feature)


class RequireFeature:
    """Dependency that rejects callers whose plan lacks ``feature``."""

    def __init__(self, feature: str):
        self.feature = feature

    async def __call__(
        self,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> Plan:
        pair = await get_subscription_with_plan(db, user.id)
        if pair is None or not pair[0].is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": "Subscription required", "feature": self.feature},
            )

        _, plan = pair
        if not has_feature(plan, self.feature):
            logger.info("feature_denied", user_id=user.id, feature=self.feature, plan=plan.name)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "Feature not available in your plan",
                    "feature": self.feature,
                    "current_plan": plan.name,
                    "upgrade_required": True,
                },
            )
        return plan


require_advanced_analytics = RequireFeature("advanced_analytics")
