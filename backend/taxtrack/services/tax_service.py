"""
Self-assessment tax calculations for a sole trader.

Pure functions over Decimal money. Nothing here reads the clock or the
database: callers pass the transactions, the period and an as-of date.
Transactions are any objects exposing date, amount, type, business_type,
category, tags and description.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from taxtrack.models.transaction import TransactionType, BusinessType
from taxtrack.services.tax_rates import TaxRates, get_rates

PENNY = Decimal("0.01")
ZERO = Decimal("0")

# Journal and balance-sheet movements that never count towards profit
EXCLUDED_CATEGORIES = [
    "Opening Balance",
    "Drawings",
    "Capital Injection",
    "Balance Adjustment",
    "Bank Transfer (Internal)",
    "Personal Use Adjustment",
    "Bank Transfer",
    "Closing Entry",
]

JOURNAL_TAG = "journal:entry"
OTHER_EXPENSES_BOX = "30"
WEEKS_PER_MONTH = Decimal("4.33")

# (minimum hours per month, monthly flat rate), highest band first
USE_OF_HOME_RATES = [
    (Decimal("101"), Decimal("26")),
    (Decimal("51"), Decimal("18")),
    (Decimal("25"), Decimal("10")),
]


def _money(value: Decimal) -> Decimal:
    return value.quantize(PENNY, rounding=ROUND_HALF_UP)


def _decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# --- Tax years ---------------------------------------------------------------

def tax_year_start_for(day) -> int:
    """UK tax years run 6 April to 5 April; returns the starting calendar year."""
    day = _day(day)
    if (day.month, day.day) < (4, 6):
        return day.year - 1
    return day.year


def tax_year_bounds(start_year: int) -> Tuple[date, date]:
    return date(start_year, 4, 6), date(start_year + 1, 4, 5)


def tax_year_label(start_year: int) -> str:
    """2024 -> '2024-25'"""
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def parse_tax_year_label(label: str) -> int:
    """'2024-25' -> 2024"""
    parts = (label or "").split("-")
    if len(parts) != 2 or not all(p.isdigit() for p in parts) or len(parts[0]) != 4:
        raise ValueError(f"Invalid tax year '{label}', expected e.g. 2024-25")
    start_year = int(parts[0])
    if int(parts[1]) != (start_year + 1) % 100:
        raise ValueError(f"Invalid tax year '{label}', expected e.g. 2024-25")
    return start_year


def available_tax_years(transactions: Iterable) -> List[str]:
    """Labels of every tax year that has transactions, most recent first."""
    years = {tax_year_start_for(txn.date) for txn in transactions}
    return [tax_year_label(year) for year in sorted(years, reverse=True)]


# --- Profit ------------------------------------------------------------------

def is_journal_entry(transaction) -> bool:
    tags = getattr(transaction, "tags", None) or []
    description = getattr(transaction, "description", None) or ""
    return JOURNAL_TAG in tags or description.startswith("[Journal]")


def is_included_in_profit(transaction) -> bool:
    """Default profit predicate: drops journals, transfers and balance movements."""
    if transaction.category and transaction.category in EXCLUDED_CATEGORIES:
        return False
    if is_journal_entry(transaction):
        return False
    if transaction.business_type == BusinessType.transfer:
        return False
    return True


def filter_period(transactions: Iterable, start: Optional[date] = None, end: Optional[date] = None) -> List:
    """Transactions whose calendar date falls within [start, end]."""
    result = []
    for txn in transactions:
        day = _day(txn.date)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        result.append(txn)
    return result


@dataclass(frozen=True)
class ProfitSummary:
    income: Decimal
    expenses: Decimal

    @property
    def profit(self) -> Decimal:
        return self.income - self.expenses


def net_profit(
    transactions: Iterable,
    start: Optional[date] = None,
    end: Optional[date] = None,
    include: Optional[Callable[[object], bool]] = is_included_in_profit,
    extra_expenses: Decimal = ZERO
) -> ProfitSummary:
    """
    Business income less business expenses within the period. Both sides are
    summed by absolute value. extra_expenses carries allowances that are not
    bank transactions (mileage, use of home).
    """
    income = ZERO
    expenses = ZERO

    for txn in filter_period(transactions, start, end):
        if txn.type != TransactionType.business:
            continue
        if include is not None and not include(txn):
            continue
        amount = abs(_decimal(txn.amount))
        if txn.business_type == BusinessType.income:
            income += amount
        elif txn.business_type == BusinessType.expense:
            expenses += amount

    return ProfitSummary(income=income, expenses=expenses + _decimal(extra_expenses))


# --- Liabilities -------------------------------------------------------------

@dataclass(frozen=True)
class TaxBand:
    name: str
    rate: Decimal
    taxable: Decimal
    tax: Decimal


@dataclass(frozen=True)
class IncomeTaxBreakdown:
    bands: List[TaxBand]

    @property
    def total(self) -> Decimal:
        return _money(sum((band.tax for band in self.bands), ZERO))

    def band(self, name: str) -> TaxBand:
        return next(b for b in self.bands if b.name == name)


def income_tax(profit: Decimal, rates: TaxRates) -> IncomeTaxBreakdown:
    """
    Progressive income tax. Each band taxes only the slice of profit inside
    it, min(max(profit - floor, 0), width), so the total never drops as
    profit rises.
    """
    profit = _decimal(profit)
    band_table = [
        ("basic", rates.personal_allowance, rates.basic_rate_limit, rates.basic_rate),
        ("higher", rates.basic_rate_limit, rates.higher_rate_limit, rates.higher_rate),
        ("additional", rates.higher_rate_limit, None, rates.additional_rate),
    ]

    bands = []
    for name, floor, ceiling, rate in band_table:
        taxable = max(profit - floor, ZERO)
        if ceiling is not None:
            taxable = min(taxable, ceiling - floor)
        bands.append(TaxBand(name=name, rate=rate, taxable=taxable, tax=taxable * rate))

    return IncomeTaxBreakdown(bands=bands)


def class4_ni(
    profit: Decimal,
    rates: TaxRates,
    main_rate: Optional[Decimal] = None,
    upper_rate: Optional[Decimal] = None
) -> Decimal:
    """Class 4 NI: main rate between the limits, upper rate above."""
    profit = _decimal(profit)
    if profit <= rates.class4_lower_limit:
        return ZERO

    main_rate = rates.class4_main_rate if main_rate is None else main_rate
    upper_rate = rates.class4_upper_rate if upper_rate is None else upper_rate

    main_band = min(profit, rates.class4_upper_limit) - rates.class4_lower_limit
    upper_band = max(profit - rates.class4_upper_limit, ZERO)
    return _money(main_band * main_rate + upper_band * upper_rate)


def class2_ni(profit: Decimal, rates: TaxRates) -> Decimal:
    """Flat weekly Class 2 for a full year once profit exceeds the small profits threshold."""
    if _decimal(profit) > rates.class2_small_profits_threshold:
        return _money(rates.class2_annual)
    return ZERO


def effective_rate(total_tax: Decimal, profit: Decimal) -> Decimal:
    """Total tax as a percentage of profit; 0 when there is no profit."""
    profit = _decimal(profit)
    if profit <= 0:
        return ZERO
    return _money(_decimal(total_tax) / profit * 100)


@dataclass(frozen=True)
class TaxBreakdown:
    income: Decimal
    expenses: Decimal
    profit: Decimal
    personal_allowance: Decimal
    taxable_income: Decimal
    income_tax: IncomeTaxBreakdown
    class4_ni: Decimal
    class2_ni: Decimal
    total_tax: Decimal
    effective_rate: Decimal
    tax_year_start: int


def compute_tax_breakdown_for_profit(
    profit: Decimal,
    rates: Optional[TaxRates] = None,
    income: Optional[Decimal] = None,
    expenses: Optional[Decimal] = None,
    class4_main_rate: Optional[Decimal] = None
) -> TaxBreakdown:
    rates = rates or get_rates()
    profit = _decimal(profit)

    tax = income_tax(profit, rates)
    class4 = class4_ni(profit, rates, main_rate=class4_main_rate)
    class2 = class2_ni(profit, rates)
    total = tax.total + class4 + class2

    return TaxBreakdown(
        income=_money(profit if income is None else income),
        expenses=_money(ZERO if expenses is None else expenses),
        profit=_money(profit),
        personal_allowance=rates.personal_allowance,
        taxable_income=_money(max(profit - rates.personal_allowance, ZERO)),
        income_tax=tax,
        class4_ni=class4,
        class2_ni=class2,
        total_tax=total,
        effective_rate=effective_rate(total, profit),
        tax_year_start=rates.tax_year_start,
    )


def compute_tax_breakdown(
    transactions: Iterable,
    start: Optional[date] = None,
    end: Optional[date] = None,
    rates: Optional[TaxRates] = None,
    include: Optional[Callable[[object], bool]] = is_included_in_profit,
    extra_expenses: Decimal = ZERO,
    class4_main_rate: Optional[Decimal] = None
) -> TaxBreakdown:
    """Profit for the period and every liability that follows from it."""
    if rates is None:
        rates = get_rates(tax_year_start_for(start) if start else None)

    summary = net_profit(transactions, start, end, include=include, extra_expenses=extra_expenses)
    return compute_tax_breakdown_for_profit(
        summary.profit,
        rates=rates,
        income=summary.income,
        expenses=summary.expenses,
        class4_main_rate=class4_main_rate,
    )


# --- Payment schedule ----------------------------------------------------------

DUE_SOON_DAYS = 30


@dataclass(frozen=True)
class ScheduledPayment:
    due_date: date
    amount: Decimal
    description: str
    status: Optional[str] = None  # overdue, due or upcoming; None without an as-of date


@dataclass(frozen=True)
class PaymentSchedule:
    tax_year_end_year: int
    balancing_payment: ScheduledPayment
    first_poa: ScheduledPayment
    second_poa: ScheduledPayment

    @property
    def total_due_jan(self) -> Decimal:
        return self.balancing_payment.amount + self.first_poa.amount

    @property
    def total_due_jul(self) -> Decimal:
        return self.second_poa.amount

    @property
    def annual_total(self) -> Decimal:
        return self.total_due_jan + self.total_due_jul


def payment_status(due_date: date, as_of: date) -> str:
    if due_date < as_of:
        return "overdue"
    if (due_date - as_of).days <= DUE_SOON_DAYS:
        return "due"
    return "upcoming"


def compute_payment_schedule(
    total_tax: Decimal,
    tax_year_end_year: int,
    as_of: Optional[date] = None
) -> PaymentSchedule:
    """
    Balancing payment for the year ending 5 April tax_year_end_year, plus the
    two payments on account towards the following year, each half the bill
    rounded to whole pounds.
    """
    total_tax = _money(_decimal(total_tax))
    half = (total_tax / 2).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    as_of = _day(as_of) if as_of is not None else None

    year_label = tax_year_label(tax_year_end_year - 1)
    next_year_label = tax_year_label(tax_year_end_year)

    def scheduled(due: date, amount: Decimal, description: str) -> ScheduledPayment:
        status = payment_status(due, as_of) if as_of is not None else None
        return ScheduledPayment(due_date=due, amount=amount, description=description, status=status)

    return PaymentSchedule(
        tax_year_end_year=tax_year_end_year,
        balancing_payment=scheduled(
            date(tax_year_end_year + 1, 1, 31), total_tax, f"Balancing payment for {year_label}"
        ),
        first_poa=scheduled(
            date(tax_year_end_year + 1, 1, 31), half, f"First Payment on Account for {next_year_label}"
        ),
        second_poa=scheduled(
            date(tax_year_end_year + 1, 7, 31), half, f"Second Payment on Account for {next_year_label}"
        ),
    )


# --- Allowable expenses not taken from the bank feed -------------------------

@dataclass(frozen=True)
class MileageAllowance:
    miles: Decimal
    miles_at_full_rate: Decimal
    miles_at_reduced_rate: Decimal
    allowance: Decimal


def mileage_allowance(miles: Decimal, rates: TaxRates) -> MileageAllowance:
    """Simplified mileage: full rate up to the annual limit, reduced rate after."""
    miles = _decimal(miles)
    full = min(miles, rates.mileage_rate_limit)
    reduced = max(miles - rates.mileage_rate_limit, ZERO)
    return MileageAllowance(
        miles=miles,
        miles_at_full_rate=full,
        miles_at_reduced_rate=reduced,
        allowance=_money(full * rates.mileage_rate + reduced * rates.mileage_reduced_rate),
    )


def use_of_home_flat_rate(hours_per_week: Decimal, months: int = 12) -> Decimal:
    """HMRC simplified use-of-home flat rate for the given number of months."""
    hours_per_month = _decimal(hours_per_week) * WEEKS_PER_MONTH
    for minimum_hours, monthly_rate in USE_OF_HOME_RATES:
        if hours_per_month >= minimum_hours:
            return monthly_rate * months
    return ZERO


def expense_breakdown(
    transactions: Iterable,
    category_boxes: Mapping[str, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    include: Optional[Callable[[object], bool]] = is_included_in_profit
) -> Dict[str, Decimal]:
    """
    Business expenses totalled by SA103F box (17-30). Categories without a
    box, including legacy labels, land in box 30.
    """
    totals: Dict[str, Decimal] = {str(box): ZERO for box in range(17, 31)}

    for txn in filter_period(transactions, start, end):
        if txn.type != TransactionType.business or txn.business_type != BusinessType.expense:
            continue
        if include is not None and not include(txn):
            continue
        box = category_boxes.get(txn.category or "") or OTHER_EXPENSES_BOX
        if box not in totals:
            box = OTHER_EXPENSES_BOX
        totals[box] += abs(_decimal(txn.amount))

    return totals
