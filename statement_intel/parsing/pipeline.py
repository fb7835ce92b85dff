"""
Statement Parser

Identifies the bank behind a statement text blob and dispatches to the
matching strategy, falling back to the generic parser.
"""
from typing import Any, List, Optional, Tuple

from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import StatementMetadata, Transaction
from .banks import PARSERS
from .config.registry import BankRegistry
from .extractors.generic import GenericStatementParser

logger = get_logger(__name__)


class StatementParser:
    """
    Entry point of the parsing layer.

    Usage:
        parser = StatementParser()
        transactions, metadata = parser.parse(text, owner_id="user-1")
    """

    def __init__(self, registry: Optional[BankRegistry] = None):
        self.registry = registry or BankRegistry()

    def identify(self, text: str) -> str:
        return self.registry.identify(text)

    def get_parser(self, bank: str):
        parser_cls = PARSERS.get(bank)
        if parser_cls:
            logger.info(f"Using specialized parser: {parser_cls.__name__}", parser_type="specialized", bank=bank)
            return parser_cls()
        logger.info(f"Using GenericStatementParser for bank: {bank}", parser_type="generic", bank=bank)
        return GenericStatementParser(bank_name=bank)

    def parse(self, text: str, bank: Optional[str] = None,
              owner_id: Any = "") -> Tuple[List[Transaction], StatementMetadata]:
        """
        Args:
            text: Flattened statement text
            bank: Bank identifier; detected from the text when omitted
            owner_id: Included in every transaction fingerprint
        """
        bank = bank or self.identify(text)
        return self.get_parser(bank).parse(text, owner_id=owner_id)
