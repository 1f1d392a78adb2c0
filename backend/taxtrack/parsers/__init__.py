"""
Statement file parsers package.
"""

from taxtrack.parsers.base import BaseParser, validate_amount
from taxtrack.parsers.csv_parser import CSVParser
from taxtrack.parsers.ofx_parser import OFXParser

__all__ = ['BaseParser', 'CSVParser', 'OFXParser', 'validate_amount']
