"""
Mileage trip schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class MileageTripCreate(BaseModel):
    date: datetime
    description: str = Field(..., min_length=1)
    miles: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, allow_inf_nan=False)
    transaction_id: Optional[str] = None


class MileageTripResponse(MileageTripCreate):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class MileageSummary(BaseModel):
    tax_year: str
    trips: int
    miles: Decimal
    miles_at_full_rate: Decimal
    miles_at_reduced_rate: Decimal
    allowance: Decimal
