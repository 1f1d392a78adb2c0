"""
Database models package.
"""

from taxtrack.models.transaction import Transaction, TransactionType, BusinessType, TransactionStatus
from taxtrack.models.category import Category
from taxtrack.models.categorization_rule import CategorizationRule
from taxtrack.models.excluded_fingerprint import ExcludedFingerprint
from taxtrack.models.import_log import ImportLog, ImportStatus
from taxtrack.models.mileage_trip import MileageTrip

__all__ = [
    "Transaction",
    "TransactionType",
    "BusinessType",
    "TransactionStatus",
    "Category",
    "CategorizationRule",
    "ExcludedFingerprint",
    "ImportLog",
    "ImportStatus",
    "MileageTrip",
]
