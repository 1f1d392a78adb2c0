"""
Import file schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal

from taxtrack.models.import_log import ImportStatus


class ColumnMapping(BaseModel):
    date_col: int = Field(..., description="Column index for date")
    amount_col: Optional[int] = Field(None, description="Column index for amount")
    description_col: int = Field(..., description="Column index for description / counter party")
    reference_col: Optional[int] = Field(None, description="Column index for reference (if present)")
    debit_col: Optional[int] = Field(None, description="Column index for debit (if separate)")
    credit_col: Optional[int] = Field(None, description="Column index for credit (if separate)")


class ImportUploadResponse(BaseModel):
    import_id: str
    filename: str
    row_count: int
    headers: List[str]
    preview_rows: List[List[str]]
    detected_format: Optional[Dict[str, Any]] = None


class ImportConfirmRequest(BaseModel):
    column_mapping: Optional[ColumnMapping] = None  # Detected from the header when omitted
    date_format: str = "%d/%m/%Y"


class SkippedTransaction(BaseModel):
    date: str
    description: str
    amount: Decimal
    reason: str


class ImportStatusResponse(BaseModel):
    import_id: str
    status: ImportStatus
    filename: str
    transactions_imported: int = 0
    transactions_skipped: int = 0
    transactions_categorized: int = 0
    errors: List[str] = []
    skipped_transactions: List[SkippedTransaction] = []


class ImportLogResponse(BaseModel):
    id: str
    filename: str
    source: str
    status: ImportStatus
    transactions_imported: int
    transactions_skipped: int
    transactions_categorized: int
    error_message: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
