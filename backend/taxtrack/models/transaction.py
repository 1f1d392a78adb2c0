"""
Transaction database model.
"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum, JSON, Numeric, Text, Index
from taxtrack.database import Base


class TransactionType(str, enum.Enum):
    """Top-level classification of a transaction."""
    business = "Business"
    personal = "Personal"
    unreviewed = "Unreviewed"


class BusinessType(str, enum.Enum):
    """Business sub-classification, meaningful only for Business rows."""
    income = "Income"
    expense = "Expense"
    transfer = "Transfer"


class TransactionStatus(str, enum.Enum):
    """Settlement status reported by the source."""
    pending = "Pending"
    cleared = "Cleared"


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fingerprint = Column(String(32), unique=True, nullable=True, index=True)  # Null for legacy rows
    date = Column(DateTime, nullable=False, index=True)  # Naive UTC
    description = Column(Text, nullable=False)
    merchant = Column(String(255), nullable=False)
    reference = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = money out, positive = money in
    type = Column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TransactionType.unreviewed
    )
    business_type = Column(
        Enum(BusinessType, values_callable=lambda e: [m.value for m in e]),
        nullable=True
    )
    category = Column(String(100), nullable=True)
    status = Column(
        Enum(TransactionStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TransactionStatus.cleared
    )
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_type_date", "type", "date"),
    )

    def has_tag(self, tag: str) -> bool:
        return tag in (self.tags or [])
