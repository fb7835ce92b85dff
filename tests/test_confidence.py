"""
Unit tests for ConfidenceScorer
"""
import itertools

import pytest

from statement_intel.core.confidence import ConfidenceInputs, ConfidenceScorer, amount_consistency


@pytest.fixture
def scorer():
    return ConfidenceScorer()


class TestScore:

    def test_perfect_signals(self, scorer):
        inputs = ConfidenceInputs(1.0, 1.0, 1.0, occurrences=5)
        assert scorer.score(inputs) == pytest.approx(1.0)

    def test_low_occurrence_penalty(self, scorer):
        # (0.15 + 0.125 + 0.175 + 0.04) * 0.8
        inputs = ConfidenceInputs(0.5, 0.5, 0.5, occurrences=2)
        assert scorer.score(inputs) == pytest.approx(0.392)

    def test_rule_boost_applied_before_penalty(self, scorer):
        # (0.18 + 0.25 + 0.175 + 0.04 + 0.2) * 0.8
        inputs = ConfidenceInputs(0.6, 1.0, 0.5, occurrences=2, rule_boost=0.2)
        assert scorer.score(inputs) == pytest.approx(0.676)

    def test_occurrences_saturate(self, scorer):
        five = scorer.score(ConfidenceInputs(0.5, 0.5, 0.5, occurrences=5))
        fifty = scorer.score(ConfidenceInputs(0.5, 0.5, 0.5, occurrences=50))
        assert five == fifty

    def test_clipped_to_one(self, scorer):
        inputs = ConfidenceInputs(1.0, 1.0, 1.0, occurrences=10, rule_boost=0.3)
        assert scorer.score(inputs) == 1.0

    def test_clipped_to_zero(self, scorer):
        inputs = ConfidenceInputs(0.0, 0.0, 0.0, occurrences=0, rule_boost=-0.5)
        assert scorer.score(inputs) == 0.0

    def test_always_within_bounds(self, scorer):
        levels = (0.0, 0.5, 1.0)
        for f, a, p, occ, boost in itertools.product(levels, levels, levels, (1, 2, 3, 12), (0.0, 0.3)):
            score = scorer.score(ConfidenceInputs(f, a, p, occurrences=occ, rule_boost=boost))
            assert 0.0 <= score <= 1.0


class TestAmountConsistency:

    def test_small_spread(self):
        # mean 100, stddev 10 -> cv 0.1
        assert amount_consistency([90, 110]) == pytest.approx(0.8)

    def test_large_spread_floors_at_zero(self):
        assert amount_consistency([100, 300]) == 0.0

    def test_identical_amounts(self):
        assert amount_consistency([-45.0, -45.0, -45.0]) == 1.0

    def test_single_amount(self):
        assert amount_consistency([12.0]) == 1.0
