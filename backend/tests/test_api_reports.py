"""Tests for tax report and mileage API endpoints."""

from datetime import datetime
from decimal import Decimal

import pytest

from taxtrack.models.transaction import TransactionType, BusinessType


@pytest.fixture
def business_year(make_transaction, sample_category):
    """Profit of exactly 50,270 in 2024-25, plus one personal payment."""
    make_transaction(date=datetime(2024, 6, 1), amount="50370.00", description="CLIENT A",
                     type=TransactionType.business, business_type=BusinessType.income, category="Sales")
    make_transaction(date=datetime(2024, 7, 1), amount="-100.00", description="TRAIN",
                     type=TransactionType.business, business_type=BusinessType.expense,
                     category="Travel & Vehicle")
    make_transaction(date=datetime(2024, 7, 2), amount="-999.00", description="HOLIDAY",
                     type=TransactionType.personal)


class TestTaxReports:
    """Test tax year reports."""

    def test_tax_years(self, client, business_year):
        data = client.get("/api/v1/reports/tax-years").json()
        assert data["tax_years"] == ["2024-25"]
        assert "current" in data

    def test_tax_breakdown(self, client, business_year):
        response = client.get("/api/v1/reports/tax-breakdown", params={"tax_year": "2024-25"})
        assert response.status_code == 200
        data = response.json()

        assert Decimal(data["profit"]) == Decimal("50270.00")
        assert Decimal(data["income_tax"]) == Decimal("7540.00")
        assert Decimal(data["class4_ni"]) == Decimal("2262.00")
        assert Decimal(data["class2_ni"]) == Decimal("179.40")
        assert Decimal(data["total_tax"]) == Decimal("9981.40")
        assert [b["name"] for b in data["income_tax_bands"]] == ["basic", "higher", "additional"]

    def test_tax_breakdown_with_allowances(self, client, business_year):
        client.post("/api/v1/mileage", json={
            "date": "2024-08-01T00:00:00", "description": "Client visit", "miles": "100"
        })
        data = client.get("/api/v1/reports/tax-breakdown", params={
            "tax_year": "2024-25", "include_mileage": "true", "home_hours_per_week": "25"
        }).json()

        # 45.00 mileage and 312 use of home
        assert Decimal(data["expenses"]) == Decimal("457.00")

    def test_invalid_tax_year(self, client):
        response = client.get("/api/v1/reports/tax-breakdown", params={"tax_year": "2024"})
        assert response.status_code == 400

    def test_vat_tracker(self, client, business_year):
        data = client.get("/api/v1/reports/vat-tracker", params={"month": "2025-03"}).json()

        assert Decimal(data["total_income"]) == Decimal("50370.00")
        assert data["status"] == "safe"
        assert data["window_start"] == "2024-04"
        assert len(data["monthly_breakdown"]) == 12

    def test_vat_tracker_invalid_month(self, client):
        response = client.get("/api/v1/reports/vat-tracker", params={"month": "2025-13"})
        assert response.status_code == 400

    def test_mtd_quarters(self, client, business_year):
        data = client.get("/api/v1/reports/mtd-quarters", params={
            "tax_year": "2024-25", "as_of": "2024-08-01"
        }).json()

        assert [q["status"] for q in data] == ["due", "upcoming", "upcoming", "upcoming"]
        assert Decimal(data[0]["income"]) == Decimal("50370.00")
        assert Decimal(data[0]["expenses"]) == Decimal("100.00")
        assert Decimal(data[1]["income"]) == Decimal("0")
        assert data[0]["due_date"] == "2024-08-07"

    def test_payment_schedule(self, client, business_year):
        data = client.get("/api/v1/reports/payment-schedule", params={
            "tax_year": "2024-25", "as_of": "2025-06-01"
        }).json()

        assert data["tax_year_end_year"] == 2025
        assert data["balancing_payment"]["due_date"] == "2026-01-31"
        assert Decimal(data["first_poa"]["amount"]) == Decimal("4991")
        assert data["second_poa"]["due_date"] == "2026-07-31"
        assert data["second_poa"]["status"] == "upcoming"

    def test_expense_breakdown(self, client, business_year):
        data = client.get("/api/v1/reports/expense-breakdown", params={"tax_year": "2024-25"}).json()

        boxes = {b["box"]: b for b in data["boxes"]}
        assert len(boxes) == 14
        assert Decimal(boxes["20"]["amount"]) == Decimal("100.00")
        assert boxes["20"]["label"] == "Travel & Vehicle"
        assert Decimal(data["total"]) == Decimal("100.00")


class TestMileageAPI:
    """Test mileage endpoints."""

    def test_create_list_and_summary(self, client):
        response = client.post("/api/v1/mileage", json={
            "date": "2024-05-01T00:00:00", "description": "Client visit", "miles": "10500"
        })
        assert response.status_code == 201

        trips = client.get("/api/v1/mileage", params={"tax_year": "2024-25"}).json()
        assert len(trips) == 1

        summary = client.get("/api/v1/mileage/summary", params={"tax_year": "2024-25"}).json()
        assert summary["trips"] == 1
        assert Decimal(summary["allowance"]) == Decimal("4625.00")

    def test_invalid_miles(self, client):
        response = client.post("/api/v1/mileage", json={
            "date": "2024-05-01T00:00:00", "description": "Nowhere", "miles": "0"
        })
        assert response.status_code == 422

    def test_unknown_transaction(self, client):
        response = client.post("/api/v1/mileage", json={
            "date": "2024-05-01T00:00:00", "description": "Visit", "miles": "5",
            "transaction_id": "missing"
        })
        assert response.status_code == 404

    def test_delete(self, client):
        trip = client.post("/api/v1/mileage", json={
            "date": "2024-05-01T00:00:00", "description": "Visit", "miles": "5"
        }).json()
        assert client.delete(f"/api/v1/mileage/{trip['id']}").status_code == 204
        assert client.delete(f"/api/v1/mileage/{trip['id']}").status_code == 404
