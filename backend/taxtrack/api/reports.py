"""
Tax report API endpoints.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.models.category import Category
from taxtrack.models.mileage_trip import MileageTrip
from taxtrack.models.transaction import Transaction, TransactionType
from taxtrack.schemas.report import (
    TaxBandResponse,
    TaxBreakdownResponse,
    VatStatusResponse,
    MtdQuarterResponse,
    ScheduledPaymentResponse,
    PaymentScheduleResponse,
    ExpenseBoxTotal,
    ExpenseBreakdownResponse,
)
from taxtrack.services import mtd_service, tax_service, vat_service
from taxtrack.services.tax_rates import get_rates

router = APIRouter(prefix="/reports", tags=["reports"])


def _resolve_tax_year(tax_year: Optional[str]) -> int:
    if tax_year is None:
        return tax_service.tax_year_start_for(date.today())
    try:
        return tax_service.parse_tax_year_label(tax_year)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _business_transactions(db: Session, start: Optional[date] = None, end: Optional[date] = None):
    query = db.query(Transaction).filter(Transaction.type == TransactionType.business)
    if start:
        query = query.filter(Transaction.date >= datetime.combine(start, time.min))
    if end:
        query = query.filter(Transaction.date < datetime.combine(end + timedelta(days=1), time.min))
    return query.order_by(Transaction.date).all()


def _mileage_for_year(db: Session, start: date, end: date):
    return db.query(MileageTrip).filter(
        MileageTrip.date >= datetime.combine(start, time.min),
        MileageTrip.date < datetime.combine(end + timedelta(days=1), time.min)
    ).all()


def _breakdown_for_year(
    db: Session,
    start_year: int,
    include_mileage: bool = False,
    home_hours_per_week: Optional[Decimal] = None
):
    start, end = tax_service.tax_year_bounds(start_year)
    rates = get_rates(start_year)

    extra_expenses = Decimal("0")
    if include_mileage:
        miles = sum((trip.miles for trip in _mileage_for_year(db, start, end)), Decimal("0"))
        extra_expenses += tax_service.mileage_allowance(miles, rates).allowance
    if home_hours_per_week is not None:
        extra_expenses += tax_service.use_of_home_flat_rate(home_hours_per_week)

    return tax_service.compute_tax_breakdown(
        _business_transactions(db, start, end),
        start,
        end,
        rates=rates,
        extra_expenses=extra_expenses
    )


@router.get("/tax-years")
def list_tax_years(db: Session = Depends(get_db)):
    """Tax years that have transactions, most recent first"""
    transactions = db.query(Transaction.date).all()
    years = tax_service.available_tax_years(transactions)
    current = tax_service.tax_year_label(tax_service.tax_year_start_for(date.today()))
    return {"tax_years": years, "current": current}


@router.get("/tax-breakdown", response_model=TaxBreakdownResponse)
def get_tax_breakdown(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    include_mileage: bool = False,
    home_hours_per_week: Optional[Decimal] = Query(None, ge=0),
    db: Session = Depends(get_db)
):
    """
    Profit and liabilities for a tax year.
    Optionally adds the mileage allowance and the use-of-home flat rate to expenses.
    """
    start_year = _resolve_tax_year(tax_year)
    start, end = tax_service.tax_year_bounds(start_year)
    breakdown = _breakdown_for_year(db, start_year, include_mileage, home_hours_per_week)

    return TaxBreakdownResponse(
        tax_year=tax_service.tax_year_label(start_year),
        period_start=start,
        period_end=end,
        income=breakdown.income,
        expenses=breakdown.expenses,
        profit=breakdown.profit,
        personal_allowance=breakdown.personal_allowance,
        taxable_income=breakdown.taxable_income,
        income_tax=breakdown.income_tax.total,
        income_tax_bands=[
            TaxBandResponse(name=b.name, rate=b.rate, taxable=b.taxable, tax=b.tax)
            for b in breakdown.income_tax.bands
        ],
        class4_ni=breakdown.class4_ni,
        class2_ni=breakdown.class2_ni,
        total_tax=breakdown.total_tax,
        effective_rate=breakdown.effective_rate
    )


@router.get("/vat-tracker", response_model=VatStatusResponse)
def get_vat_tracker(
    month: Optional[str] = Query(None, description="Last month of the window, YYYY-MM"),
    db: Session = Depends(get_db)
):
    """Business income over the rolling 12 months against the VAT threshold"""
    try:
        year, m = vat_service.parse_month(month or date.today())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    start_year, start_month = vat_service.shift_month(year, m, -11)
    status = vat_service.compute_vat_status(
        _business_transactions(db, start=date(start_year, start_month, 1)),
        (year, m),
        get_rates()
    )

    return VatStatusResponse(
        total_income=status.total_income,
        threshold=status.threshold,
        percent_of_threshold=status.percent_of_threshold,
        status=status.status,
        window_start=status.window_start,
        window_end=status.window_end,
        monthly_breakdown=status.monthly_breakdown,
        remaining=status.remaining
    )


@router.get("/mtd-quarters", response_model=list[MtdQuarterResponse])
def get_mtd_quarters(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    as_of: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Quarterly income and expenses with submission deadlines"""
    start_year = _resolve_tax_year(tax_year)
    start, end = tax_service.tax_year_bounds(start_year)
    quarters = mtd_service.compute_mtd_quarters(
        _business_transactions(db, start, end),
        start_year,
        as_of or date.today()
    )

    return [
        MtdQuarterResponse(
            quarter=q.quarter,
            name=q.name,
            period=q.period,
            start=q.start,
            end=q.end,
            income=q.income,
            expenses=q.expenses,
            profit=q.profit,
            due_date=q.due_date,
            status=q.status
        )
        for q in quarters
    ]


@router.get("/payment-schedule", response_model=PaymentScheduleResponse)
def get_payment_schedule(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    as_of: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Balancing payment and payments on account for a tax year's bill"""
    start_year = _resolve_tax_year(tax_year)
    breakdown = _breakdown_for_year(db, start_year)
    schedule = tax_service.compute_payment_schedule(
        breakdown.total_tax, start_year + 1, as_of or date.today()
    )

    def payment(p):
        return ScheduledPaymentResponse(
            due_date=p.due_date, amount=p.amount, description=p.description, status=p.status
        )

    return PaymentScheduleResponse(
        tax_year_end_year=schedule.tax_year_end_year,
        total_tax=breakdown.total_tax,
        balancing_payment=payment(schedule.balancing_payment),
        first_poa=payment(schedule.first_poa),
        second_poa=payment(schedule.second_poa),
        total_due_jan=schedule.total_due_jan,
        total_due_jul=schedule.total_due_jul,
        annual_total=schedule.annual_total
    )


@router.get("/expense-breakdown", response_model=ExpenseBreakdownResponse)
def get_expense_breakdown(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    db: Session = Depends(get_db)
):
    """Business expenses totalled by SA103F box"""
    start_year = _resolve_tax_year(tax_year)
    start, end = tax_service.tax_year_bounds(start_year)

    categories = db.query(Category).filter(Category.hmrc_box.isnot(None)).all()
    category_boxes = {c.label: c.hmrc_box for c in categories}
    box_labels = {c.hmrc_box: c.label for c in categories}

    totals = tax_service.expense_breakdown(_business_transactions(db, start, end), category_boxes, start, end)

    return ExpenseBreakdownResponse(
        tax_year=tax_service.tax_year_label(start_year),
        boxes=[
            ExpenseBoxTotal(box=box, label=box_labels.get(box), amount=amount)
            for box, amount in totals.items()
        ],
        total=sum(totals.values(), Decimal("0"))
    )
