"""
Excluded fingerprint database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric, Text
from taxtrack.database import Base


class ExcludedFingerprint(Base):
    """Fingerprint of a deleted transaction that must never be re-imported."""

    __tablename__ = "excluded_fingerprints"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fingerprint = Column(String(32), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False)
    reason = Column(String(255), nullable=True, default="User deleted")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
