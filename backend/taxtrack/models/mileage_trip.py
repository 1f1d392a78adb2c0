"""
Mileage trip database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
from taxtrack.database import Base


class MileageTrip(Base):
    """Business journey used for the HMRC mileage allowance."""

    __tablename__ = "mileage_trips"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    date = Column(DateTime, nullable=False, index=True)
    description = Column(Text, nullable=False)
    miles = Column(Numeric(10, 2), nullable=False)
    transaction_id = Column(String(36), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transaction = relationship("Transaction")
