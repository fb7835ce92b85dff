"""
Unit tests for SimilarityGrouper

Tests cover:
- Description similarity and amount tolerance
- Singleton clusters are dropped
- Arrival-order dependence of greedy clustering
"""
from datetime import date

import pytest

from statement_intel.core.grouper import SimilarityGrouper, amount_variance, description_similarity


@pytest.fixture
def grouper():
    return SimilarityGrouper()


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    def test_amount_variance_uses_absolute_values(self):
        assert amount_variance(-100, 130) == pytest.approx(30 / 130)

    def test_amount_variance_zero_amounts(self):
        assert amount_variance(0, 0) == 0.0

    def test_similarity_ignores_payment_prefixes(self):
        assert description_similarity("DD BRITISH GAS", "British Gas Ltd") == 100.0


# =============================================================================
# CLUSTERING
# =============================================================================

class TestGrouping:

    def test_identical_transactions_share_a_cluster(self, grouper, british_gas_transactions):
        clusters = grouper.group(british_gas_transactions)

        assert len(clusters) == 1
        assert clusters[0].size == 3
        assert clusters[0].representative.internal_id == 0

    def test_amount_outside_tolerance_splits(self, grouper, make_transaction):
        txs = [
            make_transaction(date(2024, 1, 1), "SKY DIGITAL", -100.00, internal_id=0),
            make_transaction(date(2024, 2, 1), "SKY DIGITAL", -130.00, internal_id=1),
        ]

        assert amount_variance(-100, -130) == pytest.approx(0.2308, abs=1e-4)
        assert grouper.group(txs) == []
        assert len(grouper.cluster_all(txs)) == 2

    def test_different_payees_do_not_merge(self, grouper, make_transaction):
        txs = [
            make_transaction(date(2024, 1, 1), "DD BRITISH GAS", -45.00),
            make_transaction(date(2024, 1, 2), "DD NETFLIX.COM", -45.00),
        ]
        assert len(grouper.cluster_all(txs)) == 2

    def test_singletons_are_excluded(self, grouper, british_gas_transactions, make_transaction):
        tesco = make_transaction(date(2024, 1, 15), "VIS TESCO STORES", -23.10, internal_id=3)
        clusters = grouper.group(british_gas_transactions + [tesco])

        assert len(clusters) == 1
        assert tesco not in clusters[0].members

    def test_empty_input(self, grouper):
        assert grouper.group([]) == []

    def test_order_dependence(self, grouper, make_transaction):
        """
        Candidates are compared with the representative only, so the
        same three transactions cluster differently by arrival order.
        """
        r = make_transaction(date(2024, 1, 1), "GYM MEMBERSHIP", -100.00, internal_id=0)
        t1 = make_transaction(date(2024, 2, 1), "GYM MEMBERSHIP", -112.00, internal_id=1)
        t2 = make_transaction(date(2024, 3, 1), "GYM MEMBERSHIP", -126.00, internal_id=2)

        # 126 vs 100 is 20.6% apart, so T2 cannot join R's cluster
        clusters = grouper.cluster_all([r, t1, t2])
        assert [c.members for c in clusters] == [[r, t1], [t2]]

        # With T1 as representative every member is within 15%
        clusters = grouper.cluster_all([t1, r, t2])
        assert [c.members for c in clusters] == [[t1, r, t2]]
