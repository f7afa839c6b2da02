"""
Pydantic response schemas for the reporting routes.
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class VATReturnFigures(BaseModel):
    """Four-box VAT return figures (already rounded to cents)."""

    tax_period: str = Field(..., description="2026-02 or 2025-Q4")
    frequency: str
    period_label: str
    period_label_tl: str

    total_taxable_sales: float
    standard_rate_vat_on_sales: float
    reduced_rate_sales: float
    zero_rated_sales: float
    exempt_sales: float
    total_output_vat: float

    total_taxable_purchases: float
    vat_on_purchases: float
    total_input_vat: float

    net_vat_payable: float = Field(..., description="Negative when refundable")
    is_refund: bool

    total_transactions: int
    total_revenue: float
    total_expenses: float

    standard_rate: float
    filing_deadline: str = Field(..., description="ISO date, 15th of the following month")


class VATReturnOut(BaseModel):
    figures: VATReturnFigures
    text: str


class CategoryTotalOut(BaseModel):
    category: str
    total: float


class MonthComparisonOut(BaseModel):
    profit_delta: float
    percent_change: int


class MonthlyReportFigures(BaseModel):
    year: int
    month: int
    month_label: str
    month_label_tl: str
    total_in: float
    total_out: float
    profit: float
    tx_count: int
    vat_collected: float
    top_categories: list[CategoryTotalOut]
    prev_month_profit: float | None = None
    comparison: MonthComparisonOut | None = None


class MonthlyReportOut(BaseModel):
    figures: MonthlyReportFigures
    text: str


class ReceiptNumberOut(BaseModel):
    receipt_number: str
