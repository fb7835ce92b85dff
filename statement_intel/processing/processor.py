"""
Statement Processor

Runs one statement through every stage in order:

    pdf_parsing -> transaction_extraction -> pattern_analysis
      -> suggestion_generation -> complete

Stages run sequentially in the calling thread. Cancellation is cooperative
and only checked between stages.
"""
import threading
from typing import Any, Callable, List, Optional

import pandas as pd

from statement_intel.classification.domains import DomainClassifier
from statement_intel.classification.rules import DetectionRuleSet
from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import (ProcessingResult, ProcessingStatistics, RecurringPattern,
                                           Transaction)
from statement_intel.common.settings import DetectionSettings
from statement_intel.core.detector import RecurringDetector
from statement_intel.parsing.extractors.text import load_statement_text
from statement_intel.parsing.pipeline import StatementParser
from .exceptions import ProcessingCancelled

logger = get_logger(__name__)

PDF_PARSING = 'pdf_parsing'
TRANSACTION_EXTRACTION = 'transaction_extraction'
PATTERN_ANALYSIS = 'pattern_analysis'
SUGGESTION_GENERATION = 'suggestion_generation'
COMPLETE = 'complete'

STAGES = (PDF_PARSING, TRANSACTION_EXTRACTION, PATTERN_ANALYSIS, SUGGESTION_GENERATION, COMPLETE)


def compute_statistics(transactions: List[Transaction], patterns: List[RecurringPattern]) -> ProcessingStatistics:
    """Totals rounded to pennies; the date range is 0 for fewer than two transactions."""
    if not transactions:
        return ProcessingStatistics(recurring_detected=len(patterns))

    df = pd.DataFrame([{'date': t.date, 'amount': t.amount} for t in transactions])
    dates = pd.to_datetime(df['date'])

    total_debits = df.loc[df['amount'] < 0, 'amount'].abs().sum()
    total_credits = df.loc[df['amount'] > 0, 'amount'].sum()
    date_range_days = (dates.max() - dates.min()).days if len(df) > 1 else 0

    return ProcessingStatistics(
        total_transactions=len(df),
        recurring_detected=len(patterns),
        date_range_days=int(date_range_days),
        total_debits=round(float(total_debits), 2),
        total_credits=round(float(total_credits), 2),
    )


class StatementProcessor:
    """
    Args:
        rule_set: Provider rules and settings injected by the caller
        settings: Overrides the rule set's settings
        parser: Statement parser (bank identification + strategies)
        classifier: Domain classifier
    """

    def __init__(self, rule_set: Optional[DetectionRuleSet] = None,
                 settings: Optional[DetectionSettings] = None,
                 parser: Optional[StatementParser] = None,
                 classifier: Optional[DomainClassifier] = None):
        self.rule_set = rule_set or DetectionRuleSet()
        self.settings = settings or self.rule_set.settings
        self.parser = parser or StatementParser()
        self.detector = RecurringDetector(self.rule_set, self.settings, classifier)

    def process(self, buffer, owner_id: Any = "", filename: Optional[str] = None,
                on_stage: Optional[Callable[[str], None]] = None,
                cancel_event: Optional[threading.Event] = None) -> ProcessingResult:
        """
        Raises:
            ParseTimeoutError: PDF text extraction exceeded parse_timeout_seconds
            ProcessingCancelled: cancel_event was set before a stage started
        """

        def enter(stage: str) -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Run cancelled.", stage=stage)
                raise ProcessingCancelled(stage)
            if on_stage:
                on_stage(stage)
            logger.debug(f"Entering stage {stage}", stage=stage)

        enter(PDF_PARSING)
        text = load_statement_text(buffer, timeout=self.settings.parse_timeout_seconds, filename=filename)

        enter(TRANSACTION_EXTRACTION)
        bank = self.parser.identify(text)
        transactions, metadata = self.parser.parse(text, bank=bank, owner_id=owner_id)

        enter(PATTERN_ANALYSIS)
        patterns = self.detector.detect(transactions)

        enter(SUGGESTION_GENERATION)
        suggestions = [self.detector.suggest_domain(p) for p in patterns]
        statistics = compute_statistics(transactions, patterns)

        enter(COMPLETE)
        logger.info("Statement processed.", bank=bank, transactions=statistics.total_transactions,
                    recurring=statistics.recurring_detected)
        return ProcessingResult(
            transactions=transactions,
            patterns=patterns,
            domain_suggestions=suggestions,
            statistics=statistics,
            bank=bank,
            metadata=metadata,
        )


def process_statement(buffer, rule_set: Optional[DetectionRuleSet] = None, owner_id: Any = "",
                      filename: Optional[str] = None) -> ProcessingResult:
    """One-shot processing of a statement buffer with the given rule set."""
    return StatementProcessor(rule_set).process(buffer, owner_id=owner_id, filename=filename)
