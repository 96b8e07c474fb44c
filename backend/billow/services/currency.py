"""Static-rate currency normalization.

Amounts are converted to USD with a fixed rate table, summed, and may be
converted back into the "primary" currency, i.e. the one used by the most
invoices in the set. Rates are constants, not market data.
"""

from collections import Counter
from collections.abc import Iterable
from typing import Protocol

BASE_CURRENCY = "USD"

# Units of USD per one unit of the currency
CURRENCY_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 1.09,
    "GBP": 1.27,
    "INR": 0.012,
    "CAD": 0.74,
    "AUD": 0.66,
}


class Priced(Protocol):
    amount: float
    currency_type: str


def normalize_currency(code: str | None) -> str:
    return (code or BASE_CURRENCY).strip().upper() or BASE_CURRENCY


def rate_for(code: str | None) -> float:
    """Rate of ``code`` against USD; unknown currencies are treated as USD."""
    return CURRENCY_RATES.get(normalize_currency(code), 1.0)


def convert_to_usd(amount: float, currency: str | None) -> float:
    return amount * rate_for(currency)


def convert_from_usd(amount_usd: float, currency: str | None) -> float:
    return amount_usd / rate_for(currency)


def primary_currency(invoices: Iterable[Priced]) -> str:
    """Most frequent currency in the set; first seen wins a tie, USD when empty."""
    counts = Counter(normalize_currency(inv.currency_type) for inv in invoices)
    if not counts:
        return BASE_CURRENCY
    return counts.most_common(1)[0][0]


def total_in_usd(invoices: Iterable[Priced]) -> float:
    return sum(convert_to_usd(inv.amount, inv.currency_type) for inv in invoices)


def total_in_currency(invoices: Iterable[Priced], currency: str | None) -> float:
    return convert_from_usd(total_in_usd(invoices), currency)


def currency_breakdown(invoices: Iterable[Priced]) -> dict[str, dict]:
    """Per-currency invoice count, native total and USD total."""
    breakdown: dict[str, dict] = {}
    for inv in invoices:
        code = normalize_currency(inv.currency_type)
        entry = breakdown.setdefault(code, {"count": 0, "amount": 0.0, "amount_usd": 0.0})
        entry["count"] += 1
        entry["amount"] += inv.amount
        entry["amount_usd"] += convert_to_usd(inv.amount, code)
    for entry in breakdown.values():
        entry["amount"] = round(entry["amount"], 2)
        entry["amount_usd"] = round(entry["amount_usd"], 2)
    return breakdown
