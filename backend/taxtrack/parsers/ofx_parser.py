"""
OFX/QFX statement parser.
"""

import logging
from pathlib import Path
from typing import List, Dict, Any, Tuple, Optional

from ofxparse import OfxParser as OFXParseLib

from taxtrack.parsers.base import BaseParser, validate_amount

logger = logging.getLogger(__name__)


class OFXParser(BaseParser):
    """Parser for OFX/QFX bank exports"""

    source = "ofx"

    def can_parse(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in ['.ofx', '.qfx']

    def _load(self, file_path: Path):
        with open(file_path, 'rb') as f:
            return OFXParseLib.parse(f)

    def get_preview(
        self,
        file_path: Path,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return headers and preview rows for OFX"""
        headers = ['Date', 'Amount', 'Description', 'Reference', 'ID']

        preview_rows = []
        for account in self._load(file_path).accounts:
            for txn in account.statement.transactions:
                if len(preview_rows) >= rows:
                    return headers, preview_rows
                preview_rows.append([
                    txn.date.strftime('%Y-%m-%d'),
                    str(txn.amount),
                    txn.payee or txn.memo or '',
                    txn.memo or '',
                    txn.id
                ])

        return headers, preview_rows

    def count_rows(self, file_path: Path) -> int:
        return sum(len(acc.statement.transactions) for acc in self._load(file_path).accounts)

    def parse(
        self,
        file_path: Path,
        column_mapping: Optional[Dict[str, Any]] = None,
        date_format: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Parse OFX and return transaction dicts"""
        transactions = []
        self.errors = []

        for account in self._load(file_path).accounts:
            for txn in account.statement.transactions:
                description = (txn.payee or txn.memo or f"Transaction {txn.id}").strip()
                # The memo only adds information when the payee carried the description
                reference = txn.memo.strip() if txn.payee and txn.memo else None

                try:
                    amount = validate_amount(txn.amount)
                except ValueError as e:
                    logger.warning("Skipping OFX transaction %s: %s", txn.id, e)
                    self.errors.append(f"Transaction {txn.id}: {e}")
                    continue

                transactions.append({
                    'date': txn.date,
                    'amount': amount,
                    'description': description,
                    'reference': reference,
                })

        return transactions
