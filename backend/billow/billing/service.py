"""Billing service - subscriptions, usage tracking, plan limits, daily rollups.

Functions here never commit; the calling endpoint owns the transaction.
"""

import calendar
from datetime import date, datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import (
    UNLIMITED, AnalyticsData, FeatureType, Plan, Subscription, SubscriptionStatus, UsageLog,
)
from billow.billing.plans import DEFAULT_PLANS, build_plan, get_plan, seed_default_plans
from billow.config import get_settings
from billow.database import utcnow
from billow.ids import new_analytics_id, new_subscription_id, new_usage_log_id
from billow.models.client import Client
from billow.models.invoice import Invoice
from billow.services.currency import total_in_usd

logger = structlog.get_logger()


def is_usage_tracking_enabled() -> bool:
    return get_settings().USAGE_TRACKING_ENABLED


def month_start(now: datetime | None = None) -> datetime:
    now = now or utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    year, month = divmod(moment.year * 12 + (moment.month - 1) + months, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


async def record_usage(
    db: AsyncSession,
    user_id: str,
    feature_type: str,
    count: int = 1,
    metadata: dict | None = None,
    force: bool = False,
    at: datetime | None = None,
) -> UsageLog | None:
    """Append a usage event. Skipped when tracking is disabled unless ``force``."""
    if not force and not is_usage_tracking_enabled():
        return None

    log = UsageLog(
        id=new_usage_log_id(),
        user_id=user_id,
        feature_type=str(feature_type),
        count=count,
        metadata_extra=metadata,
        timestamp=at or utcnow(),
    )
    db.add(log)
    # Don't commit here - let the caller manage the transaction
    return log


# ── Subscriptions ────────────────────────────────────────


async def get_subscription(db: AsyncSession, user_id: str) -> Subscription | None:
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return result.scalar_one_or_none()


async def get_subscription_with_plan(
    db: AsyncSession, user_id: str,
) -> tuple[Subscription, Plan] | None:
    result = await db.execute(
        select(Subscription, Plan)
        .join(Plan, Plan.id == Subscription.plan_id)
        .where(Subscription.user_id == user_id)
    )
    row = result.first()
    if not row:
        return None
    return row[0], row[1]


def fallback_plan() -> Plan:
    """Transient Starter plan used when the catalog has not been seeded."""
    return build_plan(DEFAULT_PLANS[0])


async def resolve_plan(db: AsyncSession, user_id: str) -> Plan:
    """Plan governing limits: the active subscription's, else the default plan."""
    pair = await get_subscription_with_plan(db, user_id)
    if pair and pair[0].is_active:
        return pair[1]

    plan = await get_plan(db, get_settings().DEFAULT_PLAN_ID)
    return plan or fallback_plan()


async def create_default_subscription(
    db: AsyncSession, user_id: str, now: datetime | None = None,
) -> Subscription:
    """Trialing subscription on the default plan for a new user."""
    settings = get_settings()
    now = now or utcnow()

    if await get_plan(db, settings.DEFAULT_PLAN_ID) is None:
        await seed_default_plans(db)

    trial_end = now + timedelta(days=settings.TRIAL_DAYS)
    subscription = Subscription(
        id=new_subscription_id(),
        user_id=user_id,
        plan_id=settings.DEFAULT_PLAN_ID,
        status=SubscriptionStatus.TRIALING,
        current_period_end=trial_end,
        trial_end=trial_end,
    )
    db.add(subscription)
    return subscription


async def change_subscription(
    db: AsyncSession, user_id: str, plan_id: str, now: datetime | None = None,
) -> Subscription | None:
    """Move the user onto ``plan_id``. Returns None when the plan does not exist."""
    plan = await get_plan(db, plan_id)
    if plan is None:
        return None

    now = now or utcnow()
    period_end = add_months(now, 1)
    subscription = await get_subscription(db, user_id)
    previous_plan_id = subscription.plan_id if subscription else None

    if subscription is None:
        subscription = Subscription(
            id=new_subscription_id(),
            user_id=user_id,
            plan_id=plan.id,
            status=SubscriptionStatus.ACTIVE,
            current_period_end=period_end,
        )
        db.add(subscription)
    else:
        subscription.plan_id = plan.id
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.current_period_end = period_end
        subscription.trial_end = None
        subscription.canceled_at = None

    await record_usage(
        db, user_id, FeatureType.SUBSCRIPTION_CHANGED,
        metadata={"new_plan_id": plan.id, "previous_plan_id": previous_plan_id},
    )
    await db.flush()
    logger.info("subscription_changed", user_id=user_id, plan_id=plan.id, previous_plan_id=previous_plan_id)
    return subscription


async def cancel_subscription(
    db: AsyncSession, user_id: str, now: datetime | None = None,
) -> Subscription | None:
    subscription = await get_subscription(db, user_id)
    if subscription is None:
        return None

    subscription.status = SubscriptionStatus.CANCELED
    subscription.canceled_at = now or utcnow()
    await db.flush()
    logger.info("subscription_canceled", user_id=user_id, plan_id=subscription.plan_id)
    return subscription


# ── Plan limits ──────────────────────────────────────────


async def count_clients(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(select(func.count()).select_from(Client).where(Client.user_id == user_id))
    return result.scalar_one()


async def count_invoices_since(db: AsyncSession, user_id: str, since: datetime) -> int:
    result = await db.execute(
        select(func.count()).select_from(Invoice)
        .where(Invoice.user_id == user_id, Invoice.created_at >= since)
    )
    return result.scalar_one()


async def check_plan_limit(
    db: AsyncSession, user_id: str, resource: str, now: datetime | None = None,
) -> tuple[bool, str]:
    """
    Check whether the user may create one more ``resource`` ("client" or "invoice").
    Returns (allowed, reason).
    """
    plan = await resolve_plan(db, user_id)

    if resource == "client":
        limit = plan.client_limit
        if limit == UNLIMITED:
            return True, ""
        if await count_clients(db, user_id) >= limit:
            return False, f"Client limit reached ({limit} on the {plan.name} plan)"

    elif resource == "invoice":
        limit = plan.invoice_limit
        if limit == UNLIMITED:
            return True, ""
        if await count_invoices_since(db, user_id, month_start(now)) >= limit:
            return False, f"Monthly invoice limit reached ({limit} on the {plan.name} plan)"

    return True, ""


# ── Usage metrics and analytics ──────────────────────────


async def _usage_counts_since(db: AsyncSession, user_id: str, since: datetime) -> dict[str, int]:
    result = await db.execute(
        select(UsageLog.feature_type, func.coalesce(func.sum(UsageLog.count), 0))
        .where(UsageLog.user_id == user_id, UsageLog.timestamp >= since)
        .group_by(UsageLog.feature_type)
    )
    return {row[0]: int(row[1]) for row in result.all()}


async def get_usage_metrics(db: AsyncSession, user_id: str, now: datetime | None = None) -> dict | None:
    """Current month usage against plan limits. None when the user has no subscription."""
    pair = await get_subscription_with_plan(db, user_id)
    if pair is None:
        return None
    subscription, plan = pair

    start = month_start(now)
    usage = await _usage_counts_since(db, user_id, start)
    clients_created = (await db.execute(
        select(func.count()).select_from(Client)
        .where(Client.user_id == user_id, Client.created_at >= start)
    )).scalar_one()

    return {
        "current_usage": {
            "invoices_created": await count_invoices_since(db, user_id, start),
            "clients_created": clients_created,
            "messages_sent": usage.get(FeatureType.MESSAGE_SENT, 0),
            "images_generated": usage.get(FeatureType.IMAGE_GENERATED, 0),
        },
        "limits": {
            "invoice_limit": plan.invoice_limit,
            "client_limit": plan.client_limit,
            "messages_per_day": plan.messages_per_day,
            "image_generation": plan.image_generation,
            "custom_voice": plan.custom_voice,
            "priority_support": plan.priority_support,
            "advanced_analytics": plan.advanced_analytics,
            "api_access": plan.api_access,
            "white_label": plan.white_label,
        },
        "period": {
            "start": start,
            "end": subscription.current_period_end,
        },
    }


async def get_current_month_stats(db: AsyncSession, user_id: str, now: datetime | None = None) -> dict:
    """Counts since the first of the month; revenue is converted to USD before summing."""
    start = month_start(now)
    usage = await _usage_counts_since(db, user_id, start)
    clients_added = (await db.execute(
        select(func.count()).select_from(Client)
        .where(Client.user_id == user_id, Client.created_at >= start)
    )).scalar_one()
    invoices = (await db.execute(
        select(Invoice).where(Invoice.user_id == user_id, Invoice.created_at >= start)
    )).scalars().all()

    return {
        "invoices_created": len(invoices),
        "clients_added": clients_added,
        "messages_sent": usage.get(FeatureType.MESSAGE_SENT, 0),
        "revenue_generated": round(total_in_usd(invoices), 2),
    }


async def _locked_day_row(db: AsyncSession, user_id: str, day: date) -> AnalyticsData | None:
    result = await db.execute(
        select(AnalyticsData)
        .where(AnalyticsData.user_id == user_id, AnalyticsData.date == day)
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def record_daily_activity(
    db: AsyncSession,
    user_id: str,
    invoices: int = 0,
    clients: int = 0,
    revenue: float = 0.0,
    messages: int = 0,
    today: date | None = None,
) -> AnalyticsData:
    """Increment today's (UTC) rollup row, creating it when absent.

    The insert runs in a savepoint: when a concurrent request creates the
    day's row first, the unique (user_id, date) violation is rolled back and
    the existing row is locked and incremented instead.
    """
    today = today or datetime.now(timezone.utc).date()
    row = await _locked_day_row(db, user_id, today)
    if row is None:
        try:
            async with db.begin_nested():
                row = AnalyticsData(
                    id=new_analytics_id(),
                    user_id=user_id,
                    date=today,
                    invoices_created=0,
                    clients_added=0,
                    revenue_generated=0.0,
                    messages_count=0,
                )
                db.add(row)
        except IntegrityError:
            logger.debug("daily_activity_row_exists", user_id=user_id, date=str(today))
            row = await _locked_day_row(db, user_id, today)
            if row is None:
                raise

    row.invoices_created += invoices
    row.clients_added += clients
    row.revenue_generated += revenue
    row.messages_count += messages
    await db.flush()
    return row


async def get_recent_analytics(
    db: AsyncSession, user_id: str, days: int = 30, today: date | None = None,
) -> list[AnalyticsData]:
    today = today or datetime.now(timezone.utc).date()
    since = today - timedelta(days=days)
    result = await db.execute(
        select(AnalyticsData)
        .where(AnalyticsData.user_id == user_id, AnalyticsData.date >= since)
        .order_by(AnalyticsData.date.desc())
    )
    return list(result.scalars().all())
