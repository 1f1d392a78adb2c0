"""
Categorization rule database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum
from taxtrack.database import Base
from taxtrack.models.transaction import TransactionType, BusinessType


class CategorizationRule(Base):
    """Keyword rule that auto-assigns type, business type and category."""

    __tablename__ = "categorization_rules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    keyword = Column(String(255), nullable=False)
    type = Column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    business_type = Column(
        Enum(BusinessType, values_callable=lambda e: [m.value for m in e]),
        nullable=True
    )
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
