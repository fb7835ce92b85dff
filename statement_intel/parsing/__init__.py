"""
Statement parsing: text extraction, bank identification and the
per-bank strategies.
"""

# Base classes
from .base import BaseStatementParser, infer_sign, parse_uk_amount, parse_uk_date

# Configuration
from .config.layout import BankProfile
from .config.registry import BankRegistry, UNKNOWN_BANK

# Banks
from .banks import PARSERS, BarclaysStatementParser, HSBCStatementParser, NatWestStatementParser

# Extractors
from .extractors.generic import GenericStatementParser
from .extractors.text import extract_pdf_text, flatten_token_tree, load_statement_text

# Errors
from .exceptions import ParseTimeoutError, StatementParseError

# Pipeline
from .pipeline import StatementParser

__all__ = [
    'BaseStatementParser',
    'infer_sign',
    'parse_uk_amount',
    'parse_uk_date',
    'BankProfile',
    'BankRegistry',
    'UNKNOWN_BANK',
    'PARSERS',
    'BarclaysStatementParser',
    'HSBCStatementParser',
    'NatWestStatementParser',
    'GenericStatementParser',
    'extract_pdf_text',
    'flatten_token_tree',
    'load_statement_text',
    'ParseTimeoutError',
    'StatementParseError',
    'StatementParser',
]
