"""Invoice schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from billow.models.invoice import InvoiceStatus


def _check_date(value: str) -> str:
    # strptime alone accepts unpadded fields such as 2024-1-5
    if value and datetime.strptime(value, "%Y-%m-%d").strftime("%Y-%m-%d") != value:
        raise ValueError(value)
    return value


class InvoiceBase(BaseModel):
    client_id: str = ""
    client_name: str = ""  # legacy: resolved to a client by name
    invoice_date: str = ""
    due_date: str = ""
    currency_type: str = Field(default="USD", max_length=3)

    @field_validator("invoice_date", "due_date")
    @classmethod
    def iso_date(cls, value: str) -> str:
        try:
            return _check_date(value)
        except ValueError:
            raise ValueError("must be a YYYY-MM-DD date")

    @field_validator("currency_type")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        return (value or "USD").strip().upper()


class InvoiceCreate(InvoiceBase):
    amount: float = Field(ge=0)
    status: InvoiceStatus = InvoiceStatus.UNPAID


class InvoiceUpdate(BaseModel):
    client_id: str | None = None
    client_name: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = Field(default=None, ge=0)
    currency_type: str | None = Field(default=None, max_length=3)
    status: InvoiceStatus | None = None

    @field_validator("invoice_date", "due_date")
    @classmethod
    def iso_date(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            return _check_date(value)
        except ValueError:
            raise ValueError("must be a YYYY-MM-DD date")

    @field_validator("currency_type")
    @classmethod
    def upper_currency(cls, value: str | None) -> str | None:
        return value.strip().upper() if value else value


class InvoiceOut(BaseModel):
    id: str
    user_id: str
    client_id: str
    client_name: str
    invoice_date: str
    amount: float
    currency_type: str
    status: InvoiceStatus
    due_date: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
