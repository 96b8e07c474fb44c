"""Plan, subscription and analytics schemas."""

from datetime import date as date_type, datetime

from pydantic import BaseModel

from billow.billing.models import SubscriptionStatus


class PlanOut(BaseModel):
    id: str
    name: str
    price: float
    currency: str
    interval: str
    invoice_limit: int
    client_limit: int
    messages_per_day: int
    image_generation: bool
    custom_voice: bool
    priority_support: bool
    advanced_analytics: bool
    api_access: bool
    white_label: bool

    model_config = {"from_attributes": True}


class PlanListing(BaseModel):
    id: str
    name: str
    price: float
    currency: str
    interval: str
    features: list[str]
    popular: bool


class SubscriptionOut(BaseModel):
    id: str
    user_id: str
    plan_id: str
    status: SubscriptionStatus
    current_period_end: datetime
    trial_end: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    plan: PlanOut | None = None

    model_config = {"from_attributes": True}


class ChangeSubscriptionRequest(BaseModel):
    plan_id: str


class AnalyticsDataOut(BaseModel):
    id: str
    user_id: str
    date: date_type
    invoices_created: int
    clients_added: int
    revenue_generated: float
    messages_count: int
    created_at: datetime

    model_config = {"from_attributes": True}
