"""
Category database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from taxtrack.database import Base


class Category(Base):
    """Income or SA103F expense category, editable by the user."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(20), unique=True, nullable=False)
    label = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)  # Income or Expense
    hmrc_box = Column(String(4), nullable=True)  # SA103F box 17-30 for expenses
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
