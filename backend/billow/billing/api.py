"""Subscription and analytics endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.features import check_feature, require_advanced_analytics
from billow.billing.models import Plan
from billow.billing.plans import POPULAR_PLAN, get_plan, list_plans, plan_features
from billow.billing.rate_limit import enforce_rate_limit
from billow.billing.service import (
    cancel_subscription, change_subscription, get_current_month_stats,
    get_recent_analytics, get_subscription_with_plan, get_usage_metrics,
)
from billow.database import get_db
from billow.dependencies import get_current_user
from billow.models.user import User
from billow.schemas.billing import (
    AnalyticsDataOut, ChangeSubscriptionRequest, PlanListing, PlanOut, SubscriptionOut,
)
from billow.services import reports
from billow.services.clients import list_user_clients, list_user_invoices
from billow.services.currency import currency_breakdown

router = APIRouter(prefix="/subscription", tags=["subscription"], dependencies=[Depends(enforce_rate_limit)])
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(enforce_rate_limit)])


def subscription_out(subscription, plan: Plan | None) -> SubscriptionOut:
    out = SubscriptionOut.model_validate(subscription)
    if plan is not None:
        out = out.model_copy(update={"plan": PlanOut.model_validate(plan)})
    return out


# ── Subscription ─────────────────────────────────────────


@router.get("/status")
async def get_subscription_status(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    pair = await get_subscription_with_plan(db, user.id)
    if pair is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return {"subscription": subscription_out(*pair)}


@router.post("/change")
async def change_plan(
    body: ChangeSubscriptionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    subscription = await change_subscription(db, user.id, body.plan_id)
    if subscription is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    await db.commit()

    plan = await get_plan(db, subscription.plan_id)
    return {"message": "Subscription updated successfully", "subscription": subscription_out(subscription, plan)}


@router.post("/cancel")
async def cancel_plan(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    subscription = await cancel_subscription(db, user.id)
    if subscription is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    await db.commit()

    plan = await get_plan(db, subscription.plan_id)
    return {"message": "Subscription canceled", "subscription": subscription_out(subscription, plan)}


@router.get("/usage")
async def get_usage(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    metrics = await get_usage_metrics(db, user.id)
    if metrics is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return metrics


@router.get("/plans")
async def get_plans(db: AsyncSession = Depends(get_db)):
    plans = await list_plans(db)
    if not plans:
        raise HTTPException(status_code=404, detail="No plans available")

    return {
        "plans": [
            PlanListing(
                id=plan.id,
                name=plan.name,
                price=plan.price,
                currency=plan.currency,
                interval=plan.interval,
                features=plan_features(plan),
                popular=plan.name == POPULAR_PLAN,
            )
            for plan in plans
        ]
    }


# ── Analytics ────────────────────────────────────────────


@analytics_router.get("/usage")
async def get_usage_analytics(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    rows = await get_recent_analytics(db, user.id, days=30)
    if not rows:
        raise HTTPException(status_code=404, detail="No analytics data found")
    return {"analytics": [AnalyticsDataOut.model_validate(r) for r in rows]}


@analytics_router.get("/dashboard")
async def get_analytics_dashboard(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return {"dashboard": {"current_month": await get_current_month_stats(db, user.id)}}


@analytics_router.get("/advanced")
async def get_advanced_analytics(
    _plan: Plan = Depends(require_advanced_analytics),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoices = await list_user_invoices(db, user.id)
    clients = await list_user_clients(db, user.id)
    return {
        "summary": reports.reports_summary(clients, invoices),
        "currency_breakdown": currency_breakdown(invoices),
        "collection": reports.collection_rate(invoices),
    }


@analytics_router.get("/feature/{feature}")
async def feature_access(feature: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return {"feature": feature, "allowed": await check_feature(db, user.id, feature)}
