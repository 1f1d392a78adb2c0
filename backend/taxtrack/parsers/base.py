"""
Base parser class for statement files.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Tuple
from pathlib import Path

MAX_AMOUNT = Decimal("10000000000")  # Numeric(12, 2)


def validate_amount(value: Any) -> Decimal:
    """
    Convert a parsed amount to Decimal, rejecting anything that is not a
    finite number with at most two decimal places.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    # Checked before quantize, which fails past the context precision
    if abs(amount) >= MAX_AMOUNT:
        raise ValueError(f"Amount out of range: {value!r}")
    if amount.as_tuple().exponent < -2 and amount != amount.quantize(Decimal("0.01")):
        raise ValueError(f"Amount has more than two decimal places: {value!r}")
    return amount.quantize(Decimal("0.01"))


class BaseParser(ABC):
    """Base class for file parsers"""

    source = "file"

    def __init__(self):
        self.errors: List[str] = []

    @property
    def tag(self) -> str:
        """Provenance tag stored on every imported row."""
        return f"import:{self.source}"

    @abstractmethod
    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file"""
        pass

    @abstractmethod
    def parse(
        self,
        file_path: Path,
        column_mapping: Dict[str, Any],
        date_format: str = "%d/%m/%Y"
    ) -> List[Dict[str, Any]]:
        """
        Parse file and return list of transaction dicts.
        Each dict has: date, amount, description, reference.
        Rows that fail validation are skipped and described in self.errors.
        """
        pass

    @abstractmethod
    def get_preview(
        self,
        file_path: Path,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return (headers, preview_rows) for format confirmation"""
        pass

    @abstractmethod
    def count_rows(self, file_path: Path) -> int:
        pass
