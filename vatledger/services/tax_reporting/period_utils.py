"""Filing period date math.

Resolves filing periods into half-open ``[start, end)`` instants in the
business timezone and computes statutory filing deadlines. The business
timezone is a single fixed UTC offset (no daylight saving), so every
boundary is exactly midnight local time.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

from vatledger.core.config import settings
from vatledger.core.exceptions import InvalidPeriodError
from vatledger.models.ledger import FilingPeriod

FILING_DEADLINE_DAY = 15


def business_timezone(offset_hours: Optional[int] = None) -> timezone:
    """Return the fixed-offset business timezone (default from settings)."""
    hours = settings.BUSINESS_UTC_OFFSET_HOURS if offset_hours is None else offset_hours
    return timezone(timedelta(hours=hours))


def _next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """Return ``(year, month)`` of the calendar month before the given one."""
    if not 1 <= month <= 12:
        raise InvalidPeriodError("month must be 1-12", month=month)
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _month_start(year: int, month: int, tz: timezone) -> datetime:
    return datetime(year, month, 1, tzinfo=tz)


def month_bounds(year: int, month: int, tz: Optional[timezone] = None) -> Tuple[datetime, datetime]:
    """Half-open bounds of one calendar month in the business timezone."""
    if not 1 <= month <= 12:
        raise InvalidPeriodError("month must be 1-12", month=month)
    tz = tz or business_timezone()
    return _month_start(year, month, tz), _month_start(*_next_month(year, month), tz)


def resolve_period_bounds(
    period: FilingPeriod,
    tz: Optional[timezone] = None,
) -> Tuple[datetime, datetime]:
    """Resolve a filing period to ``(start, end)`` with ``end`` exclusive.

    Example:
        quarterly(2025, 4) -> (2025-10-01T00:00+09:00, 2026-01-01T00:00+09:00)
    """
    tz = tz or business_timezone()
    start = _month_start(period.year, period.first_month, tz)
    end = _month_start(*_next_month(period.year, period.last_month), tz)
    return start, end


def fiscal_year_bounds(year: int, tz: Optional[timezone] = None) -> Tuple[datetime, datetime]:
    """Calendar fiscal year, Jan 1 to the following Jan 1."""
    tz = tz or business_timezone()
    return datetime(year, 1, 1, tzinfo=tz), datetime(year + 1, 1, 1, tzinfo=tz)


def filing_deadline(period: FilingPeriod) -> date:
    """Return the 15th of the month following the period's last month.

    - Monthly (January 2027): 15 February 2027
    - Quarterly (Q4 2026, Oct-Dec): 15 January 2027
    """
    year, month = _next_month(period.year, period.last_month)
    return date(year, month, FILING_DEADLINE_DAY)


def local_today(tz: Optional[timezone] = None) -> date:
    """Today's date in the business timezone."""
    return datetime.now(tz or business_timezone()).date()


def to_local(moment: datetime, tz: Optional[timezone] = None) -> datetime:
    """Convert an instant to business-local time; naive values are UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz or business_timezone())
