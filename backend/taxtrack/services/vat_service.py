"""Rolling 12-month VAT registration threshold tracker."""

import calendar
import re
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Tuple, Union

from taxtrack.models.transaction import TransactionType, BusinessType
from taxtrack.services.tax_rates import TaxRates, get_rates

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")

MonthLike = Union[str, Tuple[int, int], date]


@dataclass(frozen=True)
class VatStatus:
    total_income: Decimal
    threshold: Decimal
    percent_of_threshold: int
    status: str  # safe, approaching, danger or exceeded
    window_start: str
    window_end: str
    monthly_breakdown: Dict[str, Decimal]
    remaining: Decimal


def parse_month(value: MonthLike) -> Tuple[int, int]:
    """Accepts 'YYYY-MM', a (year, month) pair or a date."""
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    if isinstance(value, tuple):
        year, month = value
    else:
        match = MONTH_PATTERN.match(value or "")
        if not match:
            raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
        year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    return year, month


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def vat_status_for(total_income: Decimal, rates: TaxRates) -> str:
    if total_income >= rates.vat_threshold:
        return "exceeded"
    if total_income >= rates.vat_danger:
        return "danger"
    if total_income >= rates.vat_approaching:
        return "approaching"
    return "safe"


def compute_vat_status(
    transactions: Iterable,
    ending_month: MonthLike,
    rates: Optional[TaxRates] = None
) -> VatStatus:
    """
    Business income over the twelve months ending with ending_month
    (inclusive). Only money in counts: refunds booked against income do not
    reduce the turnover test. Each call sums its own window from scratch.
    """
    rates = rates or get_rates()
    end_year, end_month = parse_month(ending_month)
    start_year, start_month = shift_month(end_year, end_month, -11)

    window_start = date(start_year, start_month, 1)
    window_end = date(end_year, end_month, calendar.monthrange(end_year, end_month)[1])

    breakdown: Dict[str, Decimal] = OrderedDict()
    for offset in range(12):
        breakdown[month_key(*shift_month(start_year, start_month, offset))] = Decimal("0")

    total = Decimal("0")
    for txn in transactions:
        if txn.type != TransactionType.business or txn.business_type != BusinessType.income:
            continue
        day = txn.date.date() if isinstance(txn.date, datetime) else txn.date
        if day < window_start or day > window_end:
            continue
        amount = txn.amount if isinstance(txn.amount, Decimal) else Decimal(str(txn.amount))
        if amount <= 0:
            continue
        breakdown[month_key(day.year, day.month)] += amount
        total += amount

    percent = int((total / rates.vat_threshold * 100).to_integral_value(rounding=ROUND_HALF_UP))

    return VatStatus(
        total_income=total,
        threshold=rates.vat_threshold,
        percent_of_threshold=percent,
        status=vat_status_for(total, rates),
        window_start=month_key(start_year, start_month),
        window_end=month_key(end_year, end_month),
        monthly_breakdown=dict(breakdown),
        remaining=max(Decimal("0"), rates.vat_threshold - total),
    )
