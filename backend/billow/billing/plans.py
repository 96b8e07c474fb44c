"""Plan catalog - default tiers, seeding and the public feature list."""

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.models import UNLIMITED, Plan

logger = structlog.get_logger()

POPULAR_PLAN = "Pro"

DEFAULT_PLANS: list[dict] = [
    {
        "id": "PLN-STARTER",
        "name": "Starter",
        "price": 10.0,
        "invoice_limit": 50,
        "client_limit": 10,
        "messages_per_day": 100,
        "image_generation": False,
        "custom_voice": False,
        "priority_support": False,
        "advanced_analytics": False,
        "api_access": False,
        "white_label": False,
    },
    {
        "id": "PLN-PRO",
        "name": "Pro",
        "price": 29.0,
        "invoice_limit": UNLIMITED,
        "client_limit": UNLIMITED,
        "messages_per_day": 1000,
        "image_generation": True,
        "custom_voice": True,
        "priority_support": True,
        "advanced_analytics": True,
        "api_access": True,
        "white_label": False,
    },
    {
        "id": "PLN-BUSINESS",
        "name": "Business",
        "price": 99.0,
        "invoice_limit": UNLIMITED,
        "client_limit": UNLIMITED,
        "messages_per_day": UNLIMITED,
        "image_generation": True,
        "custom_voice": True,
        "priority_support": True,
        "advanced_analytics": True,
        "api_access": True,
        "white_label": True,
    },
]

# (flag, label) in display order
_FEATURE_LABELS = [
    ("image_generation", "AI image generation"),
    ("custom_voice", "Custom voice cloning"),
    ("priority_support", "Priority support"),
    ("advanced_analytics", "Advanced analytics"),
    ("api_access", "API access"),
    ("white_label", "White-label branding"),
]


def build_plan(values: dict) -> Plan:
    return Plan(currency="USD", interval="month", **values)


async def seed_default_plans(db: AsyncSession) -> int:
    """Insert the default catalog when the plans table is empty. Returns rows added.

    Flushes only; the caller owns the transaction.
    """
    count = (await db.execute(select(func.count()).select_from(Plan))).scalar_one()
    if count:
        return 0

    for values in DEFAULT_PLANS:
        db.add(build_plan(values))
    await db.flush()
    logger.info("plans_seeded", count=len(DEFAULT_PLANS))
    return len(DEFAULT_PLANS)


async def get_plan(db: AsyncSession, plan_id: str) -> Plan | None:
    result = await db.execute(select(Plan).where(Plan.id == plan_id))
    return result.scalar_one_or_none()


async def list_plans(db: AsyncSession) -> list[Plan]:
    result = await db.execute(select(Plan).order_by(Plan.price))
    return list(result.scalars().all())


def plan_features(plan: Plan) -> list[str]:
    """Human readable feature list for the pricing page."""
    features = []

    if plan.invoice_limit == UNLIMITED:
        features.append("Unlimited invoices")
    else:
        features.append(f"Up to {plan.invoice_limit} invoices/month")

    if plan.client_limit == UNLIMITED:
        features.append("Unlimited clients")
    else:
        features.append(f"Up to {plan.client_limit} clients")

    if plan.messages_per_day == UNLIMITED:
        features.append("Unlimited messages")
    else:
        features.append(f"{plan.messages_per_day} messages/day")

    for flag, label in _FEATURE_LABELS:
        if getattr(plan, flag):
            features.append(label)

    return features
