"""
Base Class for Statement Parsers

Every bank strategy subclasses BaseStatementParser and only implements
extract_transactions(); the template method parse() handles metadata,
failure policy, in-statement deduplication and fingerprinting.
"""
import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import StatementMetadata, StatementPeriod, Transaction
from statement_intel.core.grouper import description_similarity
from statement_intel.core.normalizer import transaction_hash

logger = get_logger(__name__)

# Two-decimal amount, optionally with thousands separators: 45.00, 1,234.56
AMOUNT_PATTERN = r"\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2}"
# Same, decimals optional (column layouts that print whole pounds)
LOOSE_AMOUNT_PATTERN = r"\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?"
UK_DATE_PATTERN = r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"

MONTHS = {
    'JAN': 1, 'FEB': 2, 'MAR': 3, 'APR': 4, 'MAY': 5, 'JUN': 6,
    'JUL': 7, 'AUG': 8, 'SEP': 9, 'OCT': 10, 'NOV': 11, 'DEC': 12,
}

# Untagged amounts below this are assumed to be debits
UNTAGGED_DEBIT_LIMIT = 1000
CREDIT_KEYWORDS = ('SALARY', 'CREDIT')

DUPLICATE_AMOUNT_EPSILON = 0.01
# Fuzzy ratio (0-100) from which same-day, same-amount rows are one payment
DUPLICATE_DESCRIPTION_SIMILARITY = 60

_DEBIT_TAG = re.compile(r"(?<![\w/])(?:DR|O/D)(?![\w/])")
_CREDIT_TAG = re.compile(r"(?<![\w/])CR(?![\w/])")
SIGN_TAGS = re.compile(r"(?<![\w/])(?:DR|CR|O/D)(?![\w/])")

_ACCOUNT_RE = re.compile(r"Account\s+Number[:\s]+(\d{6,12})", re.IGNORECASE)
_SORT_CODE_RE = re.compile(r"Sort\s+Code[:\s]+(\d{2}[-\s]?\d{2}[-\s]?\d{2})", re.IGNORECASE)
STATEMENT_PERIOD_RE = re.compile(
    r"Statement\s+Period[:\s]+(%s)\s+to\s+(%s)" % (UK_DATE_PATTERN, UK_DATE_PATTERN), re.IGNORECASE)
# Summary rows that carry an amount but are not transactions
BALANCE_HEADER_RE = re.compile(
    r"\b(?:Opening|Closing)\s+Balance\b|\bBalance\s+(?:brought|carried)\s+forward\b", re.IGNORECASE)


def parse_uk_date(text: str) -> Optional[date]:
    """
    Parse DD/MM/YYYY, DD/MM/YY or the dash-separated equivalents.

    Two-digit years below 50 are read as 20xx, the rest as 19xx.
    Returns None for anything that is not a real calendar date.
    """
    parts = re.split(r"[/-]", (text or "").strip())
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None
    if year < 100:
        year += 2000 if year < 50 else 1900
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_month_name_date(day: str, month: str, year: str) -> Optional[date]:
    """Parse '15', 'Oct', '2023' (or a two-digit year) into a date."""
    month_num = MONTHS.get((month or "")[:3].upper())
    if not month_num:
        return None
    try:
        year_num = int(year)
        if year_num < 100:
            year_num += 2000
        return date(year_num, month_num, int(day))
    except ValueError:
        return None


def parse_uk_amount(amount_str) -> float:
    """
    Parses a UK currency string to an absolute float.
    Examples:
        "1,234.56" -> 1234.56
        "£45.00" -> 45.0
    """
    if amount_str is None:
        return 0.0
    if isinstance(amount_str, (float, int)):
        return abs(float(amount_str))
    clean_str = str(amount_str).replace(',', '').replace('£', '').strip()
    try:
        return abs(float(clean_str))
    except ValueError:
        return 0.0


def infer_sign(amount: float, sign: Optional[str] = None, context: str = "") -> float:
    """
    Signed amount for an absolute value.

    Explicit tags win: a leading '-' or a DR / O/D marker in the context
    means debit, a leading '+' or a CR marker means credit. Untagged
    amounts are guessed: below UNTAGGED_DEBIT_LIMIT they are debits unless
    the context mentions SALARY or CREDIT. The guess is best-effort only;
    untagged refunds and large payments will be misclassified.
    """
    amount = abs(amount)
    context = (context or "").upper()

    if sign == '-' or _DEBIT_TAG.search(context):
        return -amount
    if sign == '+' or _CREDIT_TAG.search(context):
        return amount
    if amount < UNTAGGED_DEBIT_LIMIT and not any(k in context for k in CREDIT_KEYWORDS):
        return -amount
    return amount


def clean_description(text: str) -> str:
    """Drop sign tags and collapse whitespace."""
    return " ".join(SIGN_TAGS.sub(" ", text or "").split())


class BaseStatementParser(ABC):
    """
    Abstract Base Class for all statement parsers.

    Returns:
        Tuple[List[Transaction], StatementMetadata]
    """
    bank_name = 'Unknown'

    def __init__(self, bank_name: Optional[str] = None):
        if bank_name:
            self.bank_name = bank_name

    def parse(self, text: str, owner_id: Any = "") -> Tuple[List[Transaction], StatementMetadata]:
        """
        Template method: never raises for bad input, an unparsable statement
        yields an empty transaction list.
        """
        metadata = self.extract_metadata(text or "")
        if not text or not text.strip():
            logger.warning("Empty statement text.", parser=self.__class__.__name__)
            return [], metadata

        try:
            rows = self.extract_transactions(text)
        except Exception as e:
            logger.error(f"Parse Error in {self.__class__.__name__}: {e}", exc_info=True,
                         parser=self.__class__.__name__)
            return [], metadata

        rows = [
            r for r in rows
            if r.get('date') and (r.get('description') or '').strip() and r.get('amount') is not None
        ]
        rows = self.deduplicate(sorted(rows, key=lambda r: r['date']))

        transactions = []
        for i, row in enumerate(rows):
            description = " ".join(row['description'].split())
            transactions.append(Transaction(
                date=row['date'],
                description=description,
                amount=row['amount'],
                reference=row.get('reference'),
                balance=row.get('balance'),
                original_text=row.get('original_text', ''),
                hash=transaction_hash(owner_id, row['amount'], description),
                internal_id=i,
            ))

        if transactions:
            logger.info("Statement parsed.", parser=self.__class__.__name__,
                        bank=self.bank_name, tx_count=len(transactions))
        else:
            logger.warning("No transactions found in statement.", parser=self.__class__.__name__,
                           bank=self.bank_name, sample=text[:100])
        return transactions, metadata

    @abstractmethod
    def extract_transactions(self, text: str) -> List[Dict[str, Any]]:
        """
        Raw rows with 'date', 'description', 'amount' (signed) and optionally
        'balance', 'reference', 'original_text'.
        Must be implemented by subclasses.
        """
        raise NotImplementedError

    def extract_metadata(self, text: str) -> StatementMetadata:
        metadata = StatementMetadata(bank=self.bank_name)

        account_match = _ACCOUNT_RE.search(text)
        if account_match:
            metadata.account_number = f"****{account_match.group(1)[-4:]}"

        sort_code_match = _SORT_CODE_RE.search(text)
        if sort_code_match:
            digits = re.sub(r"\D", "", sort_code_match.group(1))
            metadata.sort_code = f"{digits[0:2]}-{digits[2:4]}-{digits[4:6]}"

        period_match = STATEMENT_PERIOD_RE.search(text)
        if period_match:
            start = parse_uk_date(period_match.group(1))
            end = parse_uk_date(period_match.group(2))
            if start and end:
                metadata.statement_period = StatementPeriod(start=start, end=end)

        return metadata

    def deduplicate(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Coalesce rows with the same date and near-identical absolute amount,
        keeping the first one seen.

        Rows are only coalesced when their descriptions are also similar, so
        two different payees charging the same amount on the same day (DD
        NETFLIX 10.99, DD SPOTIFY 10.99) both survive.
        """
        kept: List[Dict[str, Any]] = []
        seen: Dict[date, List[Tuple[float, str]]] = {}
        for row in rows:
            amount = abs(row['amount'])
            same_day = seen.setdefault(row['date'], [])
            if any(abs(amount - other) < DUPLICATE_AMOUNT_EPSILON
                   and description_similarity(row['description'], text) >= DUPLICATE_DESCRIPTION_SIMILARITY
                   for other, text in same_day):
                logger.debug("Dropping duplicate statement row.", date=row['date'], amount=row['amount'])
                continue
            same_day.append((amount, row['description']))
            kept.append(row)
        return kept
