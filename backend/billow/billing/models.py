"""Billing models - plans, subscriptions, usage logs, daily analytics."""

from datetime import date as date_type, datetime
from enum import StrEnum

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, Enum, Float, ForeignKey,
    Index, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from billow.database import Base, utcnow

UNLIMITED = -1
FEATURE_TYPE_LENGTH = 255


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class FeatureType(StrEnum):
    INVOICE_CREATED = "invoice_created"
    CLIENT_CREATED = "client_created"
    MESSAGE_SENT = "message_sent"
    IMAGE_GENERATED = "image_generated"
    SUBSCRIPTION_CHANGED = "subscription_changed"


class Plan(Base):
    """Pricing tier. Numeric limits use -1 for unlimited."""
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    interval: Mapped[str] = mapped_column(String(10), default="month")  # month, year
    invoice_limit: Mapped[int] = mapped_column(Integer, default=UNLIMITED)
    client_limit: Mapped[int] = mapped_column(Integer, default=UNLIMITED)
    messages_per_day: Mapped[int] = mapped_column(Integer, default=UNLIMITED)

    # Feature flags
    image_generation: Mapped[bool] = mapped_column(Boolean, default=False)
    custom_voice: Mapped[bool] = mapped_column(Boolean, default=False)
    priority_support: Mapped[bool] = mapped_column(Boolean, default=False)
    advanced_analytics: Mapped[bool] = mapped_column(Boolean, default=False)
    api_access: Mapped[bool] = mapped_column(Boolean, default=False)
    white_label: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Subscription(Base):
    """Binding of a user to a plan."""
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(30), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    plan_id: Mapped[str] = mapped_column(String(30), ForeignKey("plans.id"), nullable=False)
    status: Mapped[SubscriptionStatus] = mapped_column(Enum(SubscriptionStatus, native_enum=False, values_callable=_enum_values), default=SubscriptionStatus.ACTIVE)
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    trial_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class UsageLog(Base):
    """Append-only usage event, also counted by the rate limiter."""
    __tablename__ = "usage_logs"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(30), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_type: Mapped[str] = mapped_column(String(FEATURE_TYPE_LENGTH), nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=1)
    metadata_extra: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_usage_user_feature_time", "user_id", "feature_type", "timestamp"),
    )


class AnalyticsData(Base):
    """Per-user daily rollup."""
    __tablename__ = "analytics_data"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(30), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    invoices_created: Mapped[int] = mapped_column(Integer, default=0)
    clients_added: Mapped[int] = mapped_column(Integer, default=0)
    revenue_generated: Mapped[float] = mapped_column(Float, default=0.0)
    messages_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_analytics_user_date"),
    )
