"""Client schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = ""
    payment_delay: int = Field(default=0, ge=0)
    avatar: str = ""


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    payment_delay: int | None = Field(default=None, ge=0)
    avatar: str | None = None


class ClientOut(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    total_invoiced: float
    total_paid: float
    invoice_count: int
    average_invoice: float
    payment_delay: int
    avatar: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientRevenueData(BaseModel):
    client_id: str
    months: int
    revenue_data: list[float]
