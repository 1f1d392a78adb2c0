"""
Seed script for default categories.

Income categories I1-I6 and the fourteen SA103F expense boxes (17-30).
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from taxtrack.database import SessionLocal, init_db
from taxtrack.models import Category

logger = logging.getLogger(__name__)

INCOME_CATEGORIES = [
    {"code": "I1", "label": "Sales", "description": "Sales of goods or services"},
    {"code": "I2", "label": "Consulting", "description": "Consulting and freelance fees"},
    {"code": "I3", "label": "Commission", "description": "Commission received"},
    {"code": "I4", "label": "Grants", "description": "Grants and support payments"},
    {"code": "I5", "label": "Refunds", "description": "Refunds of business costs"},
    {"code": "I6", "label": "Other Income", "description": "Other business income"},
]

EXPENSE_CATEGORIES = [
    {"code": "E17", "hmrc_box": "17", "label": "Cost of Goods", "description": "Cost of goods bought for resale or goods used"},
    {"code": "E18", "hmrc_box": "18", "label": "Subcontractor Costs", "description": "Construction industry payments to subcontractors"},
    {"code": "E19", "hmrc_box": "19", "label": "Staff Costs", "description": "Wages, salaries and other staff costs"},
    {"code": "E20", "hmrc_box": "20", "label": "Travel & Vehicle", "description": "Car, van and travel expenses"},
    {"code": "E21", "hmrc_box": "21", "label": "Premises Costs", "description": "Rent, rates, power and insurance costs"},
    {"code": "E22", "hmrc_box": "22", "label": "Repairs & Maintenance", "description": "Repairs and maintenance of property and equipment"},
    {"code": "E23", "hmrc_box": "23", "label": "Office Costs", "description": "Phone, fax, stationery and other office costs"},
    {"code": "E24", "hmrc_box": "24", "label": "Advertising", "description": "Advertising and business entertainment costs"},
    {"code": "E25", "hmrc_box": "25", "label": "Loan Interest", "description": "Interest on bank and other loans"},
    {"code": "E26", "hmrc_box": "26", "label": "Bank Charges", "description": "Bank, credit card and other financial charges"},
    {"code": "E27", "hmrc_box": "27", "label": "Bad Debts", "description": "Irrecoverable debts written off"},
    {"code": "E28", "hmrc_box": "28", "label": "Professional Fees", "description": "Accountancy, legal and other professional fees"},
    {"code": "E29", "hmrc_box": "29", "label": "Depreciation", "description": "Depreciation and loss or profit on sale of assets"},
    {"code": "E30", "hmrc_box": "30", "label": "Other Expenses", "description": "Other business expenses"},
]


def default_categories():
    """All default categories as column dicts."""
    rows = [dict(c, type="Income", hmrc_box=None) for c in INCOME_CATEGORIES]
    rows.extend(dict(c, type="Expense") for c in EXPENSE_CATEGORIES)
    return rows


def seed_categories(db: Optional[Session] = None) -> int:
    """Insert any default categories that are missing. Returns the number created."""
    owns_session = db is None
    if owns_session:
        db = SessionLocal()

    try:
        existing = {code for (code,) in db.query(Category.code).all()}
        created = 0
        for data in default_categories():
            if data["code"] in existing:
                continue
            db.add(Category(**data))
            created += 1
        db.commit()

        logger.info("Seeded %d categories (%d already present)", created, len(existing))
        return created
    except Exception:
        db.rollback()
        raise
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    seed_categories()
