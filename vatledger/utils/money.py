"""Centralised money handling.

Every currency figure is summed as an exact ``Decimal`` and rounded once,
here, before it is displayed or serialised.

Usage
-----
    from vatledger.utils.money import round_money, fmt_amount, to_decimal

    round_money(Decimal("2.345"))   # Decimal("2.35")
    round_money(Decimal("-2.345"))  # Decimal("-2.35"), half away from zero
    fmt_amount(Decimal("110"))      # "110.00"
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0")
TOLERANCE = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str | None, default: Decimal = ZERO) -> Decimal:
    """Convert *value* to ``Decimal`` without binary float artefacts.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    ``None`` and empty strings map to *default*.
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a money amount")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a money amount: {value!r}") from exc


def round_money(amount: Decimal | int | float | str) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def fmt_amount(amount: Decimal | int | float | str) -> str:
    """Two-decimal string with no currency symbol or grouping: ``1234.50``."""
    return f"{round_money(amount):.2f}"


def fmt_usd(amount: Decimal | int | float | str) -> str:
    """Dollar string used on receipts and returns: ``$1234.50``."""
    return f"${fmt_amount(amount)}"


def fmt_rate(rate: Decimal | int | float | str) -> str:
    """Render a percentage rate without trailing zeros: ``10``, ``2.5``."""
    value = to_decimal(rate).normalize()
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value, "f")


def amounts_match(left: Decimal, right: Decimal, tolerance: Decimal = TOLERANCE) -> bool:
    """True when two amounts differ by no more than *tolerance*."""
    return abs(left - right) <= tolerance
