"""
Recurring Payment Detector

Runs the detection stages over one set of transactions:

    group (similar description + amount)
      -> frequency analysis and rule matching per cluster
      -> confidence score
      -> domain suggestion

Every stage is a pure function of its inputs, so running the detector
twice over the same transactions gives the same patterns.
"""
import statistics
from typing import Iterable, List, Optional, Sequence

from rapidfuzz import fuzz

from statement_intel.classification.domains import DomainClassifier
from statement_intel.classification.rules import DetectionRuleSet, RuleMatch, RuleMatcher
from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import (DomainSuggestion, RecurringPattern, Transaction,
                                           TransactionCluster)
from statement_intel.common.settings import DetectionSettings
from .confidence import NEUTRAL_PATTERN_SCORE, ConfidenceInputs, ConfidenceScorer, amount_consistency
from .consolidator import TransactionConsolidator
from .frequency import EXPECTED_INTERVALS, FrequencyAnalyzer
from .grouper import SimilarityGrouper
from .normalizer import extract_payee, normalize_description

logger = get_logger(__name__)

# Cross-import detection needs a little more history than a single statement
MIN_CROSS_IMPORT_TRANSACTIONS = 3

# Extra relative slack on top of a pattern's own amount spread
MATCH_AMOUNT_SLACK = 0.1

ENTRY_TYPES = {
    'utilities': 'utility',
    'council_tax': 'utility',
    'telecoms': 'utility',
    'subscription': 'utility',
    'bills': 'utility',
    'insurance': 'policy',
}


def typical_amount(amounts: Sequence[float]) -> float:
    """Median of the signed amounts."""
    if not amounts:
        return 0.0
    return statistics.median(amounts)


def entry_title(rule: RuleMatch, payee: str) -> str:
    if rule.provider and rule.subcategory:
        return f"{rule.provider} - {rule.subcategory}"
    if rule.provider:
        return rule.provider
    category = 'Service' if rule.category == 'other' else rule.category
    return f"{payee} - {category}"


def entry_type(category: Optional[str]) -> str:
    return ENTRY_TYPES.get(category or 'other', 'other')


def _sort_key(tx: Transaction):
    return (tx.date, tx.internal_id if tx.internal_id is not None else -1)


class RecurringDetector:
    """
    Args:
        rule_set: Provider rules and detection settings; an empty rule set
            is valid and leaves classification to the keyword tables
        settings: Overrides the rule set's own settings
        classifier: Domain classifier (defaults to the UK tables)
    """

    def __init__(self, rule_set: Optional[DetectionRuleSet] = None,
                 settings: Optional[DetectionSettings] = None,
                 classifier: Optional[DomainClassifier] = None):
        self.rule_set = rule_set or DetectionRuleSet()
        self.settings = settings or self.rule_set.settings
        self.matcher = RuleMatcher(self.rule_set, threshold=self.settings.rule_match_threshold)
        self.grouper = SimilarityGrouper(
            similarity_threshold=self.settings.similarity_threshold,
            amount_tolerance=self.settings.amount_variance_tolerance,
        )
        self.frequency = FrequencyAnalyzer(self.settings.irregularity_tolerance)
        self.scorer = ConfidenceScorer()
        self.classifier = classifier or DomainClassifier()

    def detect(self, transactions: Iterable[Transaction]) -> List[RecurringPattern]:
        """
        Patterns at or above min_confidence_threshold, highest confidence
        first (ties keep cluster order).
        """
        ordered = sorted(transactions, key=_sort_key)
        clusters = self.grouper.group(ordered)

        patterns = []
        for cluster in clusters:
            pattern = self.analyze_cluster(cluster)
            if pattern.confidence >= self.settings.min_confidence_threshold:
                patterns.append(pattern)
            else:
                logger.debug("Pattern below confidence threshold.", payee=pattern.payee,
                             confidence=round(pattern.confidence, 3))

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        logger.info("Recurring detection finished.", transactions=len(ordered),
                    clusters=len(clusters), patterns=len(patterns))
        return patterns

    def analyze_cluster(self, cluster: TransactionCluster) -> RecurringPattern:
        members = cluster.sorted_by_date()
        representative = cluster.representative
        occurrences = len(members)

        freq = self.frequency.analyze_dates([t.date for t in members])
        rule = self.matcher.match(representative.description)

        absolute = [abs(t.amount) for t in members]
        average = sum(absolute) / occurrences
        spread = (max(absolute) - min(absolute)) / average if average else 0.0

        confidence = self.scorer.score(ConfidenceInputs(
            frequency_consistency=freq.consistency,
            amount_consistency=amount_consistency(absolute),
            pattern_match=rule.score if rule.matched else NEUTRAL_PATTERN_SCORE,
            occurrences=occurrences,
            rule_boost=rule.boost_for(occurrences),
        ))

        payee = rule.provider or extract_payee(representative.description)
        typical = typical_amount([t.amount for t in members])
        suggestion = self.classifier.suggest(payee, rule.category, rule.subcategory, typical)

        return RecurringPattern(
            payee=payee,
            normalized_description=normalize_description(representative.description),
            frequency=freq.frequency,
            average_amount=average,
            amount_variance=spread,
            min_amount=min(absolute),
            max_amount=max(absolute),
            confidence=confidence,
            occurrences=occurrences,
            first_seen=members[0].date,
            last_seen=members[-1].date,
            suggested_domain=suggestion.domain,
            suggested_record_type=suggestion.record_type,
            member_transaction_ids=[t.internal_id for t in members if t.internal_id is not None],
            category=rule.category,
            subcategory=rule.subcategory,
            provider=rule.provider,
            typical_amount=typical,
            title=entry_title(rule, payee),
            entry_type=entry_type(rule.category),
        )

    def suggest_domain(self, pattern: RecurringPattern) -> DomainSuggestion:
        return self.classifier.suggest(pattern.payee, pattern.category, pattern.subcategory,
                                       pattern.typical_amount)

    def detect_across_imports(self, batches: Sequence[Sequence[Transaction]]) -> List[RecurringPattern]:
        """
        Detect over the merged transactions of several imports. Member ids
        refer to positions in the consolidated, date-ordered set.
        """
        df = TransactionConsolidator.consolidate(batches)
        if len(df) < MIN_CROSS_IMPORT_TRANSACTIONS:
            logger.info("Not enough transactions for cross-import detection.", transactions=len(df))
            return []
        return self.detect(TransactionConsolidator.to_transactions(df))

    def is_stale(self, pattern: RecurringPattern, on_date) -> bool:
        """
        A pattern stops accepting matches once it has been silent for longer
        than the detection window plus one cadence interval.
        """
        allowed = self.settings.frequency_detection_window_days + EXPECTED_INTERVALS.get(pattern.frequency, 0)
        return (on_date - pattern.last_seen).days > allowed

    def match_transaction(self, transaction: Transaction,
                          patterns: Iterable[RecurringPattern]) -> Optional[RecurringPattern]:
        """
        The highest-confidence pattern the transaction belongs to, or None.
        """
        normalized = normalize_description(transaction.description)
        amount = abs(transaction.amount)
        candidates = sorted(
            (p for p in patterns if p.confidence >= self.settings.min_confidence_threshold),
            key=lambda p: p.confidence, reverse=True,
        )

        for pattern in candidates:
            if self.is_stale(pattern, transaction.date):
                continue
            similarity = fuzz.ratio(normalized, pattern.normalized_description)
            if similarity < self.grouper.similarity_threshold:
                continue
            expected = abs(pattern.average_amount)
            if expected:
                amount_diff = abs(amount - expected) / expected
            else:
                amount_diff = 0.0 if amount == 0 else float('inf')
            if amount_diff <= pattern.amount_variance + MATCH_AMOUNT_SLACK:
                logger.debug("Transaction matched pattern.", payee=pattern.payee, similarity=similarity)
                return pattern
        return None
