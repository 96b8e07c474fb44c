"""SQLAlchemy models - import all for Alembic auto-detection."""

from billow.database import Base
from billow.models.user import User, UserPreferences
from billow.models.client import Client
from billow.models.invoice import Invoice, InvoiceStatus
from billow.billing.models import (
    AnalyticsData, FeatureType, Plan, Subscription,
    SubscriptionStatus, UsageLog,
)

__all__ = [
    "Base",
    "User", "UserPreferences",
    "Client",
    "Invoice", "InvoiceStatus",
    "Plan", "Subscription", "SubscriptionStatus",
    "UsageLog", "FeatureType", "AnalyticsData",
]
