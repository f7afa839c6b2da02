"""Tax Reporting Module.

Period arithmetic shared by the VAT return, monthly report and audit export.

Sub-modules:
- period_utils: period boundaries, filing deadlines, business timezone
"""
from .period_utils import (
    FILING_DEADLINE_DAY,
    business_timezone,
    filing_deadline,
    fiscal_year_bounds,
    local_today,
    month_bounds,
    previous_month,
    resolve_period_bounds,
    to_local,
)

__all__ = [
    "FILING_DEADLINE_DAY",
    "business_timezone",
    "filing_deadline",
    "fiscal_year_bounds",
    "local_today",
    "month_bounds",
    "previous_month",
    "resolve_period_bounds",
    "to_local",
]
