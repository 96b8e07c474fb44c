"""Invoice model."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from billow.database import Base, utcnow


class InvoiceStatus(StrEnum):
    PAID = "paid"
    UNPAID = "unpaid"
    OVERDUE = "overdue"
    PROCESSING = "processing"


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(30), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id: Mapped[str] = mapped_column(String(30), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    client_name: Mapped[str] = mapped_column(String(255), default="")
    invoice_date: Mapped[str] = mapped_column(String(10), default="")  # YYYY-MM-DD
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    currency_type: Mapped[str] = mapped_column(String(3), default="USD")
    status: Mapped[InvoiceStatus] = mapped_column(Enum(InvoiceStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]), default=InvoiceStatus.UNPAID)
    due_date: Mapped[str] = mapped_column(String(10), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_invoices_user_created", "user_id", "created_at"),
    )
