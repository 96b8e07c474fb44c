"""Dashboard and reports endpoints, scoped to the caller's own data."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billow.billing.rate_limit import enforce_rate_limit
from billow.database import get_db, utcnow
from billow.dependencies import get_current_user
from billow.models.invoice import Invoice
from billow.models.user import User
from billow.schemas.invoice import InvoiceOut
from billow.services import reports
from billow.services.clients import list_user_clients, list_user_invoices
from billow.services.currency import primary_currency

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(enforce_rate_limit)])


@router.get("/kpi")
async def get_kpi(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Totals in the primary currency, each rounded to cents.

    ``outstanding`` is the plain difference of the two rounded totals and is not
    rounded again, so it can carry float noise such as 0.19999999999999998.
    """
    invoices = await list_user_invoices(db, user.id)
    clients = await list_user_clients(db, user.id)
    return reports.compute_kpi(invoices, len(clients))


@router.get("/revenue-chart")
async def get_revenue_chart(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    invoices = await list_user_invoices(db, user.id)
    return reports.revenue_chart(invoices, utcnow())


@router.get("/top-clients")
async def get_top_clients(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    invoices = await list_user_invoices(db, user.id)
    clients = await list_user_clients(db, user.id)
    return reports.top_clients(clients, invoices)


@router.get("/recent-invoices", response_model=list[InvoiceOut])
async def get_recent_invoices(
    limit: int = Query(default=5, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Invoice)
        .where(Invoice.user_id == user.id)
        .order_by(Invoice.created_at.desc())
        .limit(limit)
    )
    return [InvoiceOut.model_validate(i) for i in result.scalars().all()]


@router.get("/reports-summary")
async def get_reports_summary(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    invoices = await list_user_invoices(db, user.id)
    clients = await list_user_clients(db, user.id)
    return reports.reports_summary(clients, invoices)


@router.get("/collection-rate")
async def get_collection_rate(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Totals in USD."""
    invoices = await list_user_invoices(db, user.id)
    return reports.collection_rate(invoices)


@router.get("/top-revenue-month")
async def get_top_revenue_month(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Revenue in USD."""
    invoices = await list_user_invoices(db, user.id)
    month, revenue = reports.top_revenue_month(invoices)
    return {"top_month": reports.format_month(month), "top_month_revenue": reports.money(revenue)}


@router.get("/primary-currency")
async def get_primary_currency(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    invoices = await list_user_invoices(db, user.id)
    return {"primary_currency": primary_currency(invoices)}
