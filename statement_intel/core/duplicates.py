"""
Cross-import duplicate detection.

File-level, statement-level and transaction-level fingerprints used by the
surrounding application to refuse re-imports. Nothing here touches storage:
callers pass in the fingerprints they already know about.
"""
import hashlib
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import Transaction
from .normalizer import transaction_hash

logger = get_logger(__name__)


def file_fingerprint(buffer: bytes) -> str:
    """SHA-256 of the uploaded file."""
    return hashlib.sha256(buffer or b"").hexdigest()


def statement_fingerprint(owner_id, start: date, end: date, account_number: Optional[str] = "") -> str:
    """SHA-256 over owner, statement period and (masked) account number."""
    hash_input = f"{owner_id}{start.isoformat()}{end.isoformat()}{account_number or ''}"
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()


@dataclass
class DuplicateSplit:
    new: List[Transaction] = field(default_factory=list)
    duplicates: List[Transaction] = field(default_factory=list)


class DuplicateDetector:
    """
    Splits a freshly parsed statement into new and already-imported
    transactions, keyed by the transaction fingerprint.
    """

    def __init__(self, owner_id=None):
        self.owner_id = owner_id

    def fingerprint(self, transaction: Transaction) -> str:
        if transaction.hash:
            return transaction.hash
        return transaction_hash(self.owner_id, transaction.amount, transaction.description)

    def split(self, transactions: Iterable[Transaction], known_hashes: Iterable[str]) -> DuplicateSplit:
        """
        Transactions whose fingerprint is in known_hashes are duplicates of a
        previous import. Repeats inside this batch are all kept.
        """
        known = set(known_hashes or ())
        result = DuplicateSplit()
        for tx in transactions:
            if self.fingerprint(tx) in known:
                result.duplicates.append(tx)
            else:
                result.new.append(tx)

        if result.duplicates:
            logger.info("Skipping previously imported transactions.",
                        duplicates=len(result.duplicates), new=len(result.new))
        return result
