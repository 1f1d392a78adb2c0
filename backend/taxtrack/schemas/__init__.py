"""
Pydantic schemas package.
"""

from taxtrack.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryList,
)
from taxtrack.schemas.import_file import (
    ColumnMapping,
    ImportUploadResponse,
    ImportConfirmRequest,
    ImportStatusResponse,
    ImportLogResponse,
    SkippedTransaction,
)
from taxtrack.schemas.mileage import (
    MileageTripCreate,
    MileageTripResponse,
    MileageSummary,
)
from taxtrack.schemas.report import (
    TaxBreakdownResponse,
    VatStatusResponse,
    MtdQuarterResponse,
    PaymentScheduleResponse,
    ExpenseBreakdownResponse,
)
from taxtrack.schemas.rule import (
    RuleCreate,
    RuleUpdate,
    RuleResponse,
    ApplyRulesResponse,
)
from taxtrack.schemas.transaction import (
    TransactionBase,
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionListResponse,
    DuplicateResponse,
)

__all__ = [
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryList",
    "ColumnMapping",
    "ImportUploadResponse",
    "ImportConfirmRequest",
    "ImportStatusResponse",
    "ImportLogResponse",
    "SkippedTransaction",
    "MileageTripCreate",
    "MileageTripResponse",
    "MileageSummary",
    "TaxBreakdownResponse",
    "VatStatusResponse",
    "MtdQuarterResponse",
    "PaymentScheduleResponse",
    "ExpenseBreakdownResponse",
    "RuleCreate",
    "RuleUpdate",
    "RuleResponse",
    "ApplyRulesResponse",
    "TransactionBase",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionListResponse",
    "DuplicateResponse",
]
