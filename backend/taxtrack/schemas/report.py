"""
Tax report schemas.
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional


class TaxBandResponse(BaseModel):
    name: str
    rate: Decimal
    taxable: Decimal
    tax: Decimal


class TaxBreakdownResponse(BaseModel):
    tax_year: str
    period_start: Optional[date]
    period_end: Optional[date]
    income: Decimal
    expenses: Decimal
    profit: Decimal
    personal_allowance: Decimal
    taxable_income: Decimal
    income_tax: Decimal
    income_tax_bands: List[TaxBandResponse]
    class4_ni: Decimal
    class2_ni: Decimal
    total_tax: Decimal
    effective_rate: Decimal


class VatStatusResponse(BaseModel):
    total_income: Decimal
    threshold: Decimal
    percent_of_threshold: int
    status: str
    window_start: str
    window_end: str
    monthly_breakdown: Dict[str, Decimal]
    remaining: Decimal


class MtdQuarterResponse(BaseModel):
    quarter: int
    name: str
    period: str
    start: date
    end: date
    income: Decimal
    expenses: Decimal
    profit: Decimal
    due_date: date
    status: str


class ScheduledPaymentResponse(BaseModel):
    due_date: date
    amount: Decimal
    description: str
    status: Optional[str]


class PaymentScheduleResponse(BaseModel):
    tax_year_end_year: int
    total_tax: Decimal
    balancing_payment: ScheduledPaymentResponse
    first_poa: ScheduledPaymentResponse
    second_poa: ScheduledPaymentResponse
    total_due_jan: Decimal
    total_due_jul: Decimal
    annual_total: Decimal


class ExpenseBoxTotal(BaseModel):
    box: str
    label: Optional[str]
    amount: Decimal


class ExpenseBreakdownResponse(BaseModel):
    tax_year: str
    boxes: List[ExpenseBoxTotal]
    total: Decimal
