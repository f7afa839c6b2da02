"""Tests for filing period resolution and deadlines."""
from datetime import date, datetime, timedelta, timezone

import pytest

from vatledger.core.exceptions import InvalidPeriodError
from vatledger.models.ledger import FilingFrequency, FilingPeriod
from vatledger.services.tax_reporting import (
    business_timezone,
    filing_deadline,
    fiscal_year_bounds,
    month_bounds,
    previous_month,
    resolve_period_bounds,
    to_local,
)

DILI = timezone(timedelta(hours=9))


def test_business_timezone_defaults_to_dili():
    assert business_timezone().utcoffset(None) == timedelta(hours=9)


def test_quarter_four_bounds():
    start, end = resolve_period_bounds(FilingPeriod.quarterly(2025, 4))
    assert start == datetime(2025, 10, 1, tzinfo=DILI)
    assert end == datetime(2026, 1, 1, tzinfo=DILI)


def test_monthly_bounds_december_rolls_year():
    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 12))
    assert start == datetime(2026, 12, 1, tzinfo=DILI)
    assert end == datetime(2027, 1, 1, tzinfo=DILI)


def test_monthly_start_is_midnight_local():
    start, _ = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    # 2026-02-01 00:00 in Dili is 2026-01-31 15:00 UTC
    assert start.astimezone(timezone.utc) == datetime(2026, 1, 31, 15, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("year", [2024, 2025, 2026])
def test_twelve_months_tile_the_year(year):
    ranges = [resolve_period_bounds(FilingPeriod.monthly(year, m)) for m in range(1, 13)]
    year_start, year_end = fiscal_year_bounds(year)

    assert ranges[0][0] == year_start
    assert ranges[-1][1] == year_end
    for (_, prev_end), (next_start, _) in zip(ranges, ranges[1:]):
        assert prev_end == next_start
    for start, end in ranges:
        assert end > start


def test_four_quarters_tile_the_year():
    quarters = [resolve_period_bounds(FilingPeriod.quarterly(2026, q)) for q in range(1, 5)]
    assert quarters[0][0] == datetime(2026, 1, 1, tzinfo=DILI)
    assert quarters[-1][1] == datetime(2027, 1, 1, tzinfo=DILI)
    for (_, prev_end), (next_start, _) in zip(quarters, quarters[1:]):
        assert prev_end == next_start


def test_quarter_matches_its_months():
    q_start, q_end = resolve_period_bounds(FilingPeriod.quarterly(2026, 2))
    assert q_start == month_bounds(2026, 4)[0]
    assert q_end == month_bounds(2026, 6)[1]


def test_filing_deadline_monthly():
    assert filing_deadline(FilingPeriod.monthly(2027, 1)) == date(2027, 2, 15)


def test_filing_deadline_quarterly_crosses_year():
    assert filing_deadline(FilingPeriod.quarterly(2026, 4)) == date(2027, 1, 15)


def test_filing_deadline_december():
    assert filing_deadline(FilingPeriod.monthly(2026, 12)) == date(2027, 1, 15)


@pytest.mark.parametrize("month", [0, 13, -1])
def test_invalid_month_rejected(month):
    with pytest.raises(InvalidPeriodError) as exc_info:
        FilingPeriod.monthly(2026, month)
    assert exc_info.value.code == "TAX310"
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("quarter", [0, 5])
def test_invalid_quarter_rejected(quarter):
    with pytest.raises(InvalidPeriodError):
        FilingPeriod.quarterly(2026, quarter)


@pytest.mark.parametrize("year", [0, 1, 9999])
def test_out_of_range_year_rejected(year):
    with pytest.raises(InvalidPeriodError):
        FilingPeriod.monthly(year, 1)


def test_earliest_january_has_representable_bounds():
    start, end = resolve_period_bounds(FilingPeriod.monthly(2, 1))
    assert start.astimezone(timezone.utc) == datetime(1, 12, 31, 15, 0, tzinfo=timezone.utc)
    assert end == datetime(2, 2, 1, tzinfo=DILI)


def test_mixed_period_rejected():
    with pytest.raises(InvalidPeriodError):
        FilingPeriod(FilingFrequency.MONTHLY, 2026, month=2, quarter=1)


def test_bool_month_rejected():
    with pytest.raises(InvalidPeriodError):
        FilingPeriod.monthly(2026, True)


def test_period_labels():
    q4 = FilingPeriod.quarterly(2025, 4)
    assert q4.tax_period == "2025-Q4"
    assert q4.label == "Q4 2025 (October-December)"
    assert q4.label_tl == "Q4 2025 (Outubru-Dezembru)"

    feb = FilingPeriod.monthly(2026, 2)
    assert feb.tax_period == "2026-02"
    assert feb.label == "February 2026"
    assert feb.label_tl == "Fevereiru 2026"
    assert feb.frequency_label == "Monthly / Mensal"


def test_previous_month_wraps_january():
    assert previous_month(2026, 1) == (2025, 12)
    assert previous_month(2026, 7) == (2026, 6)


def test_to_local_treats_naive_as_utc():
    local = to_local(datetime(2026, 1, 31, 15, 0))
    assert local == datetime(2026, 2, 1, 0, 0, tzinfo=DILI)
    assert local.day == 1
