"""Dashboard and report aggregation.

Pure functions over already-loaded invoice and client rows. Totals are
computed in USD and presented in the primary currency of the set unless
stated otherwise. Money values are rounded to cents on output.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from billow.services.currency import (
    convert_from_usd, convert_to_usd, primary_currency, total_in_usd,
)

PAID = "paid"
TOP_CLIENTS_LIMIT = 5
CHART_MONTHS = 12
NO_TOP_MONTH = "Current Month"


class InvoiceLike(Protocol):
    client_id: str
    amount: float
    currency_type: str
    status: str
    invoice_date: str


class ClientLike(Protocol):
    id: str
    name: str


def money(value: float) -> float:
    return round(value, 2)


def is_paid(invoice: InvoiceLike) -> bool:
    return invoice.status == PAID


def invoice_month(invoice_date: str | None) -> str | None:
    """``YYYY-MM`` key for a ``YYYY-MM-DD`` date string, None when unparseable."""
    if not invoice_date:
        return None
    try:
        return datetime.strptime(invoice_date, "%Y-%m-%d").strftime("%Y-%m")
    except ValueError:
        return None


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    y, m = divmod(year * 12 + (month - 1) + delta, 12)
    return y, m + 1


def trailing_months(now: datetime, count: int = CHART_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs for the last ``count`` months, oldest first."""
    return [shift_month(now.year, now.month, -offset) for offset in range(count - 1, -1, -1)]


def monthly_revenue_usd(invoices: Iterable[InvoiceLike]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for inv in invoices:
        key = invoice_month(inv.invoice_date)
        if key is not None:
            totals[key] += convert_to_usd(inv.amount, inv.currency_type)
    return dict(totals)


def compute_kpi(invoices: Sequence[InvoiceLike], client_count: int) -> dict:
    """``outstanding`` is total_invoiced - total_paid exactly, after rounding each total."""
    primary = primary_currency(invoices)
    total_invoiced = money(convert_from_usd(total_in_usd(invoices), primary))
    total_paid = money(convert_from_usd(total_in_usd(i for i in invoices if is_paid(i)), primary))
    return {
        "total_invoiced": total_invoiced,
        "total_paid": total_paid,
        "outstanding": total_invoiced - total_paid,
        "client_count": client_count,
        "primary_currency": primary,
    }


def revenue_chart(invoices: Sequence[InvoiceLike], now: datetime) -> list[dict]:
    paid = [inv for inv in invoices if is_paid(inv)]
    primary = primary_currency(paid)
    by_month = monthly_revenue_usd(paid)

    chart = []
    for year, month in trailing_months(now):
        key = f"{year:04d}-{month:02d}"
        chart.append({
            "month": datetime(year, month, 1).strftime("%b"),
            "revenue": money(convert_from_usd(by_month.get(key, 0.0), primary)),
        })
    return chart


def paid_revenue_by_client_usd(invoices: Iterable[InvoiceLike]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for inv in invoices:
        if is_paid(inv):
            totals[inv.client_id] += convert_to_usd(inv.amount, inv.currency_type)
    return dict(totals)


def top_clients(
    clients: Sequence[ClientLike],
    invoices: Sequence[InvoiceLike],
    limit: int = TOP_CLIENTS_LIMIT,
) -> list[dict]:
    """Clients ranked by paid revenue; clients without revenue still qualify."""
    primary = primary_currency(invoices)
    revenue = paid_revenue_by_client_usd(invoices)
    ranked = sorted(clients, key=lambda c: revenue.get(c.id, 0.0), reverse=True)
    return [
        {"name": c.name, "revenue": money(convert_from_usd(revenue.get(c.id, 0.0), primary))}
        for c in ranked[:limit]
    ]


def top_revenue_month(invoices: Iterable[InvoiceLike]) -> tuple[str | None, float]:
    """Best month of paid revenue in USD; the earliest month wins a tie."""
    best_key, best_total = None, 0.0
    for key, total in sorted(monthly_revenue_usd(i for i in invoices if is_paid(i)).items()):
        if total > best_total:
            best_key, best_total = key, total
    return best_key, best_total


def format_month(key: str | None) -> str:
    if key is None:
        return NO_TOP_MONTH
    return datetime.strptime(key, "%Y-%m").strftime("%B %Y")


def collection_rate(invoices: Sequence[InvoiceLike]) -> dict:
    total_invoiced = total_in_usd(invoices)
    total_paid = total_in_usd(i for i in invoices if is_paid(i))
    rate = (total_paid / total_invoiced) * 100 if total_invoiced > 0 else 0.0
    return {
        "collection_rate": round(rate, 2),
        "total_invoiced": money(total_invoiced),
        "total_paid": money(total_paid),
    }


def reports_summary(clients: Sequence[ClientLike], invoices: Sequence[InvoiceLike]) -> dict:
    primary = primary_currency(invoices)
    total_usd = total_in_usd(invoices)
    paid_usd = total_in_usd(i for i in invoices if is_paid(i))
    total_revenue = convert_from_usd(total_usd, primary)

    top_name, top_revenue_usd = "", 0.0
    revenue = paid_revenue_by_client_usd(invoices)
    for client in clients:
        client_usd = revenue.get(client.id, 0.0)
        if client_usd > top_revenue_usd:
            top_name, top_revenue_usd = client.name, client_usd

    client_count = len(clients)
    best_month, _ = top_revenue_month(invoices)

    return {
        "total_revenue": money(total_revenue),
        "collection_rate": round((paid_usd / total_usd) * 100, 2) if total_usd > 0 else 0.0,
        "top_client": top_name,
        "top_client_revenue": money(convert_from_usd(top_revenue_usd, primary)),
        "top_revenue_month": format_month(best_month),
        "client_count": client_count,
        "average_per_client": money(total_revenue / client_count) if client_count else 0.0,
        "primary_currency": primary,
    }
