"""
Unit tests for RecurringDetector

Tests cover:
- End-to-end detection over one statement
- Confidence ordering and threshold filtering
- Determinism under input reordering
- Matching new transactions against known patterns
- Detection across several imports
"""
from datetime import date

import pytest

from statement_intel.classification.rules import NO_MATCH, DetectionRuleSet, RuleMatch
from statement_intel.common.settings import DetectionSettings
from statement_intel.core.detector import RecurringDetector, entry_title, entry_type, typical_amount


@pytest.fixture
def detector(default_rules):
    return RecurringDetector(default_rules)


@pytest.fixture
def netflix_transactions(make_transaction):
    return [
        make_transaction(date(2024, 1, 5), "DD NETFLIX.COM", -10.99, internal_id=3),
        make_transaction(date(2024, 2, 5), "DD NETFLIX.COM", -10.99, internal_id=4),
    ]


# =============================================================================
# DETECTION
# =============================================================================

class TestDetect:

    def test_british_gas_is_monthly(self, detector, british_gas_transactions):
        patterns = detector.detect(british_gas_transactions)

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.frequency == "monthly"
        assert pattern.confidence >= 0.6
        assert pattern.suggested_domain == "property"
        assert pattern.suggested_record_type == "utility-gas"
        assert pattern.provider == "British Gas"
        assert pattern.payee == "British Gas"
        assert pattern.occurrences == 3
        assert pattern.member_transaction_ids == [0, 1, 2]
        assert pattern.first_seen == date(2024, 1, 1)
        assert pattern.last_seen == date(2024, 3, 1)

    def test_pattern_amounts(self, detector, british_gas_transactions):
        pattern = detector.detect(british_gas_transactions)[0]

        assert pattern.average_amount == pytest.approx(45.1)
        assert pattern.min_amount == 44.8
        assert pattern.max_amount == 45.5
        assert pattern.amount_variance == pytest.approx(0.7 / 45.1)
        assert pattern.typical_amount == -45.0

    def test_pattern_labels(self, detector, british_gas_transactions):
        pattern = detector.detect(british_gas_transactions)[0]

        assert pattern.category == "utilities"
        assert pattern.title == "British Gas - gas"
        assert pattern.entry_type == "utility"

    def test_without_rules(self, british_gas_transactions):
        pattern = RecurringDetector().detect(british_gas_transactions)[0]

        assert pattern.category == "other"
        assert pattern.provider is None
        assert pattern.payee == "British Gas"
        assert pattern.suggested_domain == "property"
        assert pattern.title == "British Gas - Service"
        assert 0.6 <= pattern.confidence < 1.0

    def test_singletons_are_not_patterns(self, detector, british_gas_transactions, make_transaction):
        tesco = make_transaction(date(2024, 1, 15), "VIS TESCO STORES", -23.10, internal_id=9)
        patterns = detector.detect(british_gas_transactions + [tesco])

        assert len(patterns) == 1
        assert 9 not in patterns[0].member_transaction_ids

    def test_amount_drift_breaks_pattern(self, detector, make_transaction):
        txs = [
            make_transaction(date(2024, 1, 1), "SKY DIGITAL", -100.00, internal_id=0),
            make_transaction(date(2024, 2, 1), "SKY DIGITAL", -130.00, internal_id=1),
        ]
        assert detector.detect(txs) == []

    def test_empty(self, detector):
        assert detector.detect([]) == []

    def test_sorted_by_confidence(self, detector, british_gas_transactions, netflix_transactions):
        patterns = detector.detect(netflix_transactions + british_gas_transactions)

        assert [p.provider for p in patterns] == ["British Gas", "Netflix"]
        assert patterns[0].confidence == 1.0
        # (0.6 * 0.3 + 0.25 + 0.35 + 0.04 + 0.3) * 0.8
        assert patterns[1].confidence == pytest.approx(0.896)

    def test_threshold_filters_patterns(self, default_rules, british_gas_transactions, netflix_transactions):
        detector = RecurringDetector(default_rules, settings=DetectionSettings(min_confidence_threshold=0.95))
        patterns = detector.detect(british_gas_transactions + netflix_transactions)

        assert [p.provider for p in patterns] == ["British Gas"]

    def test_deterministic(self, detector, british_gas_transactions, netflix_transactions):
        txs = british_gas_transactions + netflix_transactions
        first = [p.to_dict() for p in detector.detect(txs)]
        again = [p.to_dict() for p in detector.detect(list(reversed(txs)))]
        assert first == again

    def test_suggest_domain(self, detector, british_gas_transactions):
        pattern = detector.detect(british_gas_transactions)[0]
        suggestion = detector.suggest_domain(pattern)

        assert suggestion.domain == "property"
        assert suggestion.confidence == 0.95


# =============================================================================
# MATCHING NEW TRANSACTIONS
# =============================================================================

class TestMatchTransaction:

    @pytest.fixture
    def patterns(self, detector, british_gas_transactions):
        return detector.detect(british_gas_transactions)

    def test_matches_next_occurrence(self, detector, patterns, make_transaction):
        tx = make_transaction(date(2024, 4, 1), "DD BRITISH GAS", -46.00)
        assert detector.match_transaction(tx, patterns) is patterns[0]

    def test_stale_pattern_is_skipped(self, detector, patterns, make_transaction):
        # 184 days after last_seen, beyond 90 + 30
        tx = make_transaction(date(2024, 9, 1), "DD BRITISH GAS", -45.00)
        assert detector.match_transaction(tx, patterns) is None

    def test_inside_window(self, detector, patterns, make_transaction):
        tx = make_transaction(date(2024, 6, 28), "DD BRITISH GAS", -45.00)
        assert detector.match_transaction(tx, patterns) is patterns[0]

    def test_amount_too_different(self, detector, patterns, make_transaction):
        tx = make_transaction(date(2024, 4, 1), "DD BRITISH GAS", -90.00)
        assert detector.match_transaction(tx, patterns) is None

    def test_description_too_different(self, detector, patterns, make_transaction):
        tx = make_transaction(date(2024, 4, 1), "DD NETFLIX.COM", -45.00)
        assert detector.match_transaction(tx, patterns) is None

    def test_no_patterns(self, detector, make_transaction):
        tx = make_transaction(date(2024, 4, 1), "DD BRITISH GAS", -45.00)
        assert detector.match_transaction(tx, []) is None


# =============================================================================
# ACROSS IMPORTS
# =============================================================================

class TestAcrossImports:

    def test_reimported_transactions_are_not_double_counted(self, detector, make_transaction):
        january = make_transaction(date(2024, 1, 1), "DD BRITISH GAS", -45.00, internal_id=0)
        february = make_transaction(date(2024, 2, 1), "DD BRITISH GAS", -45.50, internal_id=1)
        march = make_transaction(date(2024, 3, 1), "DD BRITISH GAS", -44.80, internal_id=1)

        patterns = detector.detect_across_imports([[january, february], [february, march]])

        assert len(patterns) == 1
        assert patterns[0].occurrences == 3
        assert patterns[0].member_transaction_ids == [0, 1, 2]

    def test_needs_three_transactions(self, detector, make_transaction):
        batch = [
            make_transaction(date(2024, 1, 1), "DD BRITISH GAS", -45.00, internal_id=0),
            make_transaction(date(2024, 2, 1), "DD BRITISH GAS", -45.00, internal_id=1),
        ]
        assert detector.detect_across_imports([batch]) == []

    def test_no_imports(self, detector):
        assert detector.detect_across_imports([]) == []


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    def test_typical_amount_is_signed_median(self):
        assert typical_amount([-45.0, -45.5, -44.8]) == -45.0
        assert typical_amount([]) == 0.0

    def test_entry_title(self):
        assert entry_title(NO_MATCH, "Acme") == "Acme - Service"
        assert entry_title(RuleMatch(category="telecoms", rule_name="x"), "Acme") == "Acme - telecoms"
        assert entry_title(RuleMatch(provider="Sky", rule_name="x"), "Sky Digital") == "Sky"

    @pytest.mark.parametrize("category,expected", [
        ("utilities", "utility"),
        ("bills", "utility"),
        ("insurance", "policy"),
        ("other", "other"),
        (None, "other"),
    ])
    def test_entry_type(self, category, expected):
        assert entry_type(category) == expected

    def test_empty_rule_set_is_accepted(self):
        assert RecurringDetector(DetectionRuleSet()).matcher.match("DD BRITISH GAS") is NO_MATCH
