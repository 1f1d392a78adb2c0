"""
Transaction schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from taxtrack.models.transaction import TransactionType, BusinessType, TransactionStatus


class TransactionBase(BaseModel):
    date: datetime
    description: str = Field(..., min_length=1)
    merchant: Optional[str] = None
    reference: Optional[str] = None
    # Decimal with allow_inf_nan off: NaN, Infinity and a third decimal place are rejected
    amount: Decimal = Field(..., max_digits=12, decimal_places=2, allow_inf_nan=False)
    type: TransactionType = TransactionType.unreviewed
    business_type: Optional[BusinessType] = None
    category: Optional[str] = None
    status: TransactionStatus = TransactionStatus.cleared
    tags: List[str] = []
    notes: Optional[str] = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("description must not be blank")
        return value


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(BaseModel):
    date: Optional[datetime] = None
    description: Optional[str] = Field(None, min_length=1)
    merchant: Optional[str] = None
    reference: Optional[str] = None
    amount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2, allow_inf_nan=False)
    type: Optional[TransactionType] = None
    business_type: Optional[BusinessType] = None
    category: Optional[str] = None
    status: Optional[TransactionStatus] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class TransactionResponse(BaseModel):
    id: str
    fingerprint: Optional[str]
    date: datetime
    description: str
    merchant: str
    reference: Optional[str]
    amount: Decimal
    type: TransactionType
    business_type: Optional[BusinessType]
    category: Optional[str]
    status: TransactionStatus
    tags: List[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int


class DuplicateResponse(BaseModel):
    decision: str
    fingerprint: str
    matched_transaction_id: Optional[str] = None
    reason: Optional[str] = None
