"""Human-readable prefixed identifiers.

IDs look like ``INV-20241215-143052-123456``: prefix, UTC date, UTC time and
the microsecond of the clock reading. Readings are serialized through a
process-wide lock and forced to be strictly increasing, so two calls in the
same clock tick never return the same ID within one process.
"""

import threading
from datetime import datetime, timedelta, timezone

INVOICE = "INV"
CLIENT = "CLI"
USER = "USR"
SUBSCRIPTION = "SUB"
PLAN = "PLN"
PREFERENCES = "PRF"
USAGE_LOG = "ULG"
ANALYTICS = "ANL"

_lock = threading.Lock()
_last: datetime | None = None


def _next_instant(now: datetime | None = None) -> datetime:
    global _last
    with _lock:
        current = now or datetime.now(timezone.utc)
        if _last is not None and current <= _last:
            current = _last + timedelta(microseconds=1)
        _last = current
        return current


def format_id(prefix: str, instant: datetime) -> str:
    return f"{prefix}-{instant:%Y%m%d}-{instant:%H%M%S}-{instant.microsecond:06d}"


def generate_id(prefix: str, now: datetime | None = None) -> str:
    return format_id(prefix, _next_instant(now))


def new_invoice_id() -> str:
    return generate_id(INVOICE)


def new_client_id() -> str:
    return generate_id(CLIENT)


def new_user_id() -> str:
    return generate_id(USER)


def new_subscription_id() -> str:
    return generate_id(SUBSCRIPTION)


def new_preferences_id() -> str:
    return generate_id(PREFERENCES)


def new_usage_log_id() -> str:
    return generate_id(USAGE_LOG)


def new_analytics_id() -> str:
    return generate_id(ANALYTICS)
