from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class Transaction:
    """
    Canonical representation of a bank statement transaction.
    Created once by a statement parser and treated as immutable input
    by the clustering and scoring stages.
    """
    date: date
    description: str
    amount: float  # Negative for debits, positive for credits
    reference: Optional[str] = None
    balance: Optional[float] = None
    original_text: str = ""
    hash: str = ""  # Fingerprint for cross-import duplicate detection
    internal_id: Optional[int] = None  # Sequence number within its statement

    @property
    def is_debit(self) -> bool:
        return self.amount < 0

    def to_dict(self):
        return {
            'date': self.date,
            'description': self.description,
            'reference': self.reference,
            'amount': self.amount,
            'balance': self.balance,
            'original_text': self.original_text,
            'hash': self.hash,
            'internal_id': self.internal_id,
        }


@dataclass(frozen=True)
class StatementPeriod:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass
class StatementMetadata:
    """Header details recovered from a statement, all optional."""
    bank: str = "Unknown"
    account_number: Optional[str] = None  # Masked, e.g. ****1234
    sort_code: Optional[str] = None  # NN-NN-NN
    statement_period: Optional[StatementPeriod] = None

    def to_dict(self):
        period = None
        if self.statement_period:
            period = {'start': self.statement_period.start, 'end': self.statement_period.end}
        return {
            'bank': self.bank,
            'account_number': self.account_number,
            'sort_code': self.sort_code,
            'statement_period': period,
        }


@dataclass
class TransactionCluster:
    """
    Ephemeral group of transactions believed to be the same payee.
    The first member is the representative every candidate is compared to.
    """
    members: List[Transaction] = field(default_factory=list)

    @property
    def representative(self) -> Transaction:
        return self.members[0]

    @property
    def size(self) -> int:
        return len(self.members)

    def add(self, transaction: Transaction) -> None:
        self.members.append(transaction)

    def sorted_by_date(self) -> List[Transaction]:
        return sorted(self.members, key=lambda t: t.date)


@dataclass(frozen=True)
class DomainSuggestion:
    domain: str
    confidence: float
    record_type: str
    reasoning: str

    def to_dict(self):
        return {
            'domain': self.domain,
            'confidence': self.confidence,
            'record_type': self.record_type,
            'reasoning': self.reasoning,
        }


@dataclass
class RecurringPattern:
    """
    A cluster promoted to a recurring payment candidate.
    Derived data: recomputing from the same transactions yields the same pattern.
    """
    payee: str
    normalized_description: str
    frequency: str
    average_amount: float
    amount_variance: float
    min_amount: float
    max_amount: float
    confidence: float
    occurrences: int
    first_seen: date
    last_seen: date
    suggested_domain: str
    suggested_record_type: str
    member_transaction_ids: List[int] = field(default_factory=list)
    category: str = "other"
    subcategory: Optional[str] = None
    provider: Optional[str] = None
    typical_amount: float = 0.0  # Signed median
    title: str = ""
    entry_type: str = "other"

    def to_dict(self):
        return {
            'payee': self.payee,
            'normalized_description': self.normalized_description,
            'frequency': self.frequency,
            'average_amount': self.average_amount,
            'amount_variance': self.amount_variance,
            'min_amount': self.min_amount,
            'max_amount': self.max_amount,
            'confidence': self.confidence,
            'occurrences': self.occurrences,
            'first_seen': self.first_seen,
            'last_seen': self.last_seen,
            'suggested_domain': self.suggested_domain,
            'suggested_record_type': self.suggested_record_type,
            'member_transaction_ids': list(self.member_transaction_ids),
            'category': self.category,
            'subcategory': self.subcategory,
            'provider': self.provider,
            'typical_amount': self.typical_amount,
            'title': self.title,
            'entry_type': self.entry_type,
        }


@dataclass(frozen=True)
class ProcessingStatistics:
    total_transactions: int = 0
    recurring_detected: int = 0
    date_range_days: int = 0
    total_debits: float = 0.0
    total_credits: float = 0.0

    def to_dict(self):
        return {
            'total_transactions': self.total_transactions,
            'recurring_detected': self.recurring_detected,
            'date_range_days': self.date_range_days,
            'total_debits': self.total_debits,
            'total_credits': self.total_credits,
        }


@dataclass
class ProcessingResult:
    """Everything one statement run produces."""
    transactions: List[Transaction] = field(default_factory=list)
    patterns: List[RecurringPattern] = field(default_factory=list)
    domain_suggestions: List[DomainSuggestion] = field(default_factory=list)
    statistics: ProcessingStatistics = field(default_factory=ProcessingStatistics)
    bank: str = "Unknown"
    metadata: StatementMetadata = field(default_factory=StatementMetadata)

    def to_dict(self):
        return {
            'transactions': [t.to_dict() for t in self.transactions],
            'patterns': [p.to_dict() for p in self.patterns],
            'domain_suggestions': [s.to_dict() for s in self.domain_suggestions],
            'statistics': self.statistics.to_dict(),
            'bank': self.bank,
            'metadata': self.metadata.to_dict(),
        }
