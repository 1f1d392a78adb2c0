"""Making Tax Digital quarterly summaries."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from taxtrack.services.tax_service import is_included_in_profit, net_profit

# (start month, start day, end month, end day); Q3 and Q4 end in the next calendar year
QUARTER_SLICES = [
    (4, 6, 7, 5),
    (7, 6, 10, 5),
    (10, 6, 1, 5),
    (1, 6, 4, 5),
]

FILING_DAY = 7


@dataclass(frozen=True)
class MtdQuarter:
    quarter: int
    name: str
    start: date
    end: date
    income: Decimal
    expenses: Decimal
    due_date: date
    status: str  # upcoming, due or past_due

    @property
    def profit(self) -> Decimal:
        return self.income - self.expenses

    @property
    def period(self) -> str:
        return f"{self.start:%d %b %Y} - {self.end:%d %b %Y}"


def quarter_dates(tax_year_start_year: int) -> List[tuple]:
    """(start, end) for each quarter of the tax year starting 6 April."""
    quarters = []
    for index, (start_month, start_day, end_month, end_day) in enumerate(QUARTER_SLICES):
        start_year = tax_year_start_year if index < 3 else tax_year_start_year + 1
        end_year = tax_year_start_year if index < 2 else tax_year_start_year + 1
        quarters.append((date(start_year, start_month, start_day), date(end_year, end_month, end_day)))
    return quarters


def quarter_due_date(quarter_end: date) -> date:
    """The 7th of the month one calendar month after the quarter ends (5 Jul -> 7 Aug)."""
    if quarter_end.month == 12:
        return date(quarter_end.year + 1, 1, FILING_DAY)
    return date(quarter_end.year, quarter_end.month + 1, FILING_DAY)


def quarter_status(end: date, due_date: date, as_of: date) -> str:
    # Marking a quarter as submitted needs a filing record kept elsewhere
    if as_of <= end:
        return "upcoming"
    if as_of <= due_date:
        return "due"
    return "past_due"


def compute_mtd_quarters(
    transactions: Iterable,
    tax_year_start_year: int,
    as_of: date,
    include: Optional[Callable[[object], bool]] = is_included_in_profit
) -> List[MtdQuarter]:
    transactions = list(transactions)
    quarters = []

    for number, (start, end) in enumerate(quarter_dates(tax_year_start_year), start=1):
        summary = net_profit(transactions, start, end, include=include)
        due = quarter_due_date(end)
        quarters.append(MtdQuarter(
            quarter=number,
            name=f"Q{number}",
            start=start,
            end=end,
            income=summary.income,
            expenses=summary.expenses,
            due_date=due,
            status=quarter_status(end, due, as_of),
        ))

    return quarters
