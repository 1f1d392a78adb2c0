"""
CSV statement parser.
"""

import csv
import logging
import re
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Dict, Any, Tuple, Optional

from taxtrack.parsers.base import BaseParser, validate_amount

logger = logging.getLogger(__name__)

# Starling statement export: Date, Counter Party, Reference, Type, Amount (GBP), Balance (GBP), ...
STARLING_DATE_FORMAT = "%d/%m/%Y"


def detect_column_mapping(headers: List[str]) -> Optional[Dict[str, Any]]:
    """Recognise the Starling statement layout from its header row."""
    lowered = [h.strip().lower() for h in headers]
    if 'date' not in lowered or 'counter party' not in lowered:
        return None

    amount_col = next((i for i, h in enumerate(lowered) if h.startswith('amount')), None)
    if amount_col is None:
        return None

    mapping = {
        'date_col': lowered.index('date'),
        'description_col': lowered.index('counter party'),
        'amount_col': amount_col,
    }
    if 'reference' in lowered:
        mapping['reference_col'] = lowered.index('reference')
    return mapping


class CSVParser(BaseParser):
    """Parser for CSV bank statement exports"""

    source = "csv"

    def can_parse(self, file_path: Path) -> bool:
        return file_path.suffix.lower() == '.csv'

    def _open_reader(self, f):
        sample = f.read(8192)
        f.seek(0)
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        return csv.reader(f, dialect)

    def get_preview(
        self,
        file_path: Path,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return headers and preview rows"""
        with open(file_path, 'r', encoding='utf-8-sig') as f:
            reader = self._open_reader(f)
            headers = next(reader, [])

            preview_rows = []
            for i, row in enumerate(reader):
                if i >= rows:
                    break
                preview_rows.append(row)

            return headers, preview_rows

    def count_rows(self, file_path: Path) -> int:
        with open(file_path, 'r', encoding='utf-8-sig') as f:
            reader = self._open_reader(f)
            next(reader, None)
            return sum(1 for row in reader if row and any(cell.strip() for cell in row))

    def parse(
        self,
        file_path: Path,
        column_mapping: Optional[Dict[str, Any]] = None,
        date_format: str = STARLING_DATE_FORMAT
    ) -> List[Dict[str, Any]]:
        """Parse CSV and return transaction dicts"""
        transactions = []
        self.errors = []

        with open(file_path, 'r', encoding='utf-8-sig') as f:
            reader = self._open_reader(f)
            headers = next(reader, [])

            mapping = column_mapping or detect_column_mapping(headers)
            if mapping is None:
                raise ValueError("Unrecognised CSV layout; a column mapping is required")

            # Line numbers are 1-based and include the header
            for line_no, row in enumerate(reader, start=2):
                if not row or all(cell.strip() == '' for cell in row):
                    continue

                try:
                    transactions.append(self._parse_row(row, mapping, date_format))
                except (ValueError, IndexError) as e:
                    logger.warning("Skipping CSV line %d: %s", line_no, e)
                    self.errors.append(f"Line {line_no}: {e}")

        return transactions

    def _parse_row(
        self,
        row: List[str],
        mapping: Dict[str, Any],
        date_format: str
    ) -> Dict[str, Any]:
        """Parse a single row into a transaction dict"""

        date_str = row[mapping['date_col']].strip()
        try:
            txn_date = datetime.strptime(date_str, date_format)
        except ValueError:
            raise ValueError(f"Invalid date '{date_str}'")

        amount = self._parse_amount(row, mapping)

        description = row[mapping['description_col']].strip()
        if not description:
            raise ValueError("Missing description")

        reference = None
        if mapping.get('reference_col') is not None and mapping['reference_col'] < len(row):
            reference = row[mapping['reference_col']].strip() or None

        return {
            'date': txn_date,
            'amount': amount,
            'description': description,
            'reference': reference,
        }

    def _parse_amount(
        self,
        row: List[str],
        mapping: Dict[str, Any]
    ) -> Decimal:
        """Parse amount handling separate debit/credit columns"""

        if mapping.get('debit_col') is not None and mapping.get('credit_col') is not None:
            debit = self._clean_amount(row[mapping['debit_col']])
            credit = self._clean_amount(row[mapping['credit_col']])

            if debit and debit > 0:
                return -debit
            elif credit and credit > 0:
                return credit
            raise ValueError("Missing amount")

        amount = self._clean_amount(row[mapping['amount_col']])
        if amount is None:
            raise ValueError("Missing amount")
        return amount

    def _clean_amount(self, amount_str: str) -> Optional[Decimal]:
        """Clean and validate an amount string; None when the cell is empty"""
        if not amount_str or not amount_str.strip():
            return None

        amount_str = amount_str.strip()

        if amount_str.startswith('(') and amount_str.endswith(')'):
            amount_str = '-' + amount_str[1:-1]

        amount_str = re.sub(r'[£$,\s]', '', amount_str)

        return validate_amount(amount_str)
