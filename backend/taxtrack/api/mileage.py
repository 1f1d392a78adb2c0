"""
Mileage API endpoints.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.models.mileage_trip import MileageTrip
from taxtrack.models.transaction import Transaction
from taxtrack.schemas.mileage import MileageTripCreate, MileageTripResponse, MileageSummary
from taxtrack.services import tax_service
from taxtrack.services.tax_rates import get_rates

router = APIRouter(prefix="/mileage", tags=["mileage"])


def _year_trips(db: Session, start_year: int):
    start, end = tax_service.tax_year_bounds(start_year)
    return db.query(MileageTrip).filter(
        MileageTrip.date >= datetime.combine(start, time.min),
        MileageTrip.date < datetime.combine(end + timedelta(days=1), time.min)
    ).order_by(MileageTrip.date).all()


def _start_year(tax_year: Optional[str]) -> int:
    if tax_year is None:
        return tax_service.tax_year_start_for(date.today())
    try:
        return tax_service.parse_tax_year_label(tax_year)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[MileageTripResponse])
def list_trips(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    db: Session = Depends(get_db)
):
    """List business journeys for a tax year"""
    return _year_trips(db, _start_year(tax_year))


@router.post("", response_model=MileageTripResponse, status_code=201)
def create_trip(trip: MileageTripCreate, db: Session = Depends(get_db)):
    """Record a business journey"""
    if trip.transaction_id and not db.query(Transaction).filter(Transaction.id == trip.transaction_id).first():
        raise HTTPException(status_code=404, detail="Transaction not found")

    db_trip = MileageTrip(**trip.model_dump())
    db.add(db_trip)
    db.commit()
    db.refresh(db_trip)
    return db_trip


@router.get("/summary", response_model=MileageSummary)
def get_summary(
    tax_year: Optional[str] = Query(None, description="e.g. 2024-25"),
    db: Session = Depends(get_db)
):
    """Total miles and the simplified mileage allowance for a tax year"""
    start_year = _start_year(tax_year)
    trips = _year_trips(db, start_year)
    miles = sum((trip.miles for trip in trips), Decimal("0"))
    allowance = tax_service.mileage_allowance(miles, get_rates(start_year))

    return MileageSummary(
        tax_year=tax_service.tax_year_label(start_year),
        trips=len(trips),
        miles=allowance.miles,
        miles_at_full_rate=allowance.miles_at_full_rate,
        miles_at_reduced_rate=allowance.miles_at_reduced_rate,
        allowance=allowance.allowance
    )


@router.delete("/{trip_id}", status_code=204)
def delete_trip(trip_id: str, db: Session = Depends(get_db)):
    """Delete a journey"""
    trip = db.query(MileageTrip).filter(MileageTrip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    db.delete(trip)
    db.commit()
    return None
