"""Tests for the rolling 12-month VAT threshold tracker."""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from taxtrack.models.transaction import TransactionType, BusinessType
from taxtrack.services.tax_rates import RATES_2024_25
from taxtrack.services.vat_service import compute_vat_status, parse_month, shift_month


def _income(day, amount, type=TransactionType.business, business_type=BusinessType.income):
    return SimpleNamespace(
        date=datetime.combine(day, datetime.min.time()),
        amount=Decimal(amount),
        type=type,
        business_type=business_type,
    )


class TestMonths:
    """Test month parsing and arithmetic."""

    def test_parse_month_forms(self):
        assert parse_month("2024-03") == (2024, 3)
        assert parse_month((2024, 3)) == (2024, 3)
        assert parse_month(date(2024, 3, 17)) == (2024, 3)

    @pytest.mark.parametrize("value", ["2024-13", "2024-3", "March", ""])
    def test_parse_month_invalid(self, value):
        with pytest.raises(ValueError):
            parse_month(value)

    def test_shift_month_across_years(self):
        assert shift_month(2024, 3, -11) == (2023, 4)
        assert shift_month(2024, 12, 1) == (2025, 1)


class TestVatStatus:
    """Test status thresholds and the rolling window."""

    def test_exactly_threshold_is_exceeded(self):
        status = compute_vat_status([_income(date(2024, 6, 15), "90000.00")], "2024-12", RATES_2024_25)
        assert status.status == "exceeded"
        assert status.percent_of_threshold == 100
        assert status.remaining == Decimal("0")

    def test_just_below_threshold_is_danger(self):
        status = compute_vat_status([_income(date(2024, 6, 15), "89999.99")], "2024-12", RATES_2024_25)
        assert status.status == "danger"
        assert status.remaining == Decimal("0.01")

    @pytest.mark.parametrize("amount,expected", [
        ("74999.99", "safe"),
        ("75000.00", "approaching"),
        ("84999.99", "approaching"),
        ("85000.00", "danger"),
    ])
    def test_status_bands(self, amount, expected):
        status = compute_vat_status([_income(date(2024, 6, 15), amount)], "2024-12", RATES_2024_25)
        assert status.status == expected

    def test_window_is_twelve_months_inclusive(self):
        txns = [
            _income(date(2023, 12, 31), "1000.00"),
            _income(date(2024, 1, 1), "200.00"),
            _income(date(2024, 12, 31), "300.00"),
            _income(date(2025, 1, 1), "4000.00"),
        ]
        status = compute_vat_status(txns, "2024-12", RATES_2024_25)

        assert status.total_income == Decimal("500.00")
        assert status.window_start == "2024-01"
        assert status.window_end == "2024-12"
        assert list(status.monthly_breakdown) == [f"2024-{m:02d}" for m in range(1, 13)]
        assert status.monthly_breakdown["2024-01"] == Decimal("200.00")
        assert status.monthly_breakdown["2024-06"] == Decimal("0")

    def test_each_window_recomputed(self):
        txns = [_income(date(2024, 1, 10), "1000.00"), _income(date(2024, 2, 10), "500.00")]

        assert compute_vat_status(txns, "2024-01", RATES_2024_25).total_income == Decimal("1000.00")
        assert compute_vat_status(txns, "2024-02", RATES_2024_25).total_income == Decimal("1500.00")
        assert compute_vat_status(txns, "2025-01", RATES_2024_25).total_income == Decimal("500.00")

    def test_only_business_income_counts(self):
        txns = [
            _income(date(2024, 5, 1), "100.00"),
            _income(date(2024, 5, 1), "-30.00", business_type=BusinessType.expense),
            _income(date(2024, 5, 1), "999.00", type=TransactionType.personal),
            _income(date(2024, 5, 1), "-50.00"),
        ]
        assert compute_vat_status(txns, "2024-05", RATES_2024_25).total_income == Decimal("100.00")
