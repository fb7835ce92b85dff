"""
Unit tests for DomainClassifier

Tests cover:
- Provider (0.95) and keyword (0.75) tiers
- Category boost capped at 0.95
- Tie-breaking by domain priority
- Default suggestion
"""
import pytest

from statement_intel.classification.domains import (DOMAIN_PATTERNS, DOMAIN_PRIORITY, Domain,
                                                    DomainClassifier)


@pytest.fixture
def classifier():
    return DomainClassifier()


class TestTables:

    def test_priority_covers_every_domain_once(self):
        assert len(DOMAIN_PRIORITY) == len(set(DOMAIN_PRIORITY))
        assert set(DOMAIN_PRIORITY) == set(Domain)

    def test_every_domain_has_patterns(self):
        assert set(DOMAIN_PATTERNS) == set(Domain)


class TestSuggest:

    def test_provider_match(self, classifier):
        suggestion = classifier.suggest("British Gas")

        assert suggestion.domain == "property"
        assert suggestion.confidence == 0.95
        assert suggestion.record_type == "utility-gas"
        assert suggestion.reasoning == 'provider match: "british gas"'

    def test_category_boost_is_capped(self, classifier):
        suggestion = classifier.suggest("British Gas", category="utilities", subcategory="gas")
        assert suggestion.confidence == 0.95

    def test_keyword_match(self, classifier):
        suggestion = classifier.suggest("Acme Water Co")

        assert suggestion.domain == "property"
        assert suggestion.confidence == 0.75
        assert suggestion.record_type == "utility-water"
        assert suggestion.reasoning.startswith("keyword match")

    def test_keyword_match_with_category_boost(self, classifier):
        suggestion = classifier.suggest("Acme Water Co", category="utilities")
        assert suggestion.confidence == pytest.approx(0.85)

    def test_default_suggestion(self, classifier):
        suggestion = classifier.suggest("Zzyzx Ltd")

        assert suggestion.domain == "finance"
        assert suggestion.confidence == 0.3
        assert suggestion.record_type == "other"
        assert suggestion.reasoning == "Default (no specific match found)"

    def test_empty_payee(self, classifier):
        assert classifier.suggest(None).domain == "finance"

    def test_employment(self, classifier):
        suggestion = classifier.suggest("ACME LTD SALARY", amount=2500.0)

        assert suggestion.domain == "employment"
        assert suggestion.record_type == "salary"

    def test_services_with_subscription_category(self, classifier):
        suggestion = classifier.suggest("Netflix", category="subscription", subcategory="streaming")

        assert suggestion.domain == "services"
        assert suggestion.confidence == 0.95

    def test_tie_goes_to_earlier_domain(self, classifier):
        # "direct line" is a vehicles provider, "direct line pet" an insurance one
        suggestion = classifier.suggest("Direct Line Pet")
        assert suggestion.domain == "vehicles"

    def test_priority_is_configurable(self):
        priority = (Domain.INSURANCE,) + tuple(d for d in DOMAIN_PRIORITY if d != Domain.INSURANCE)
        suggestion = DomainClassifier(priority=priority).suggest("Direct Line Pet")

        assert suggestion.domain == "insurance"
        assert suggestion.record_type == "pet-insurance"

    def test_confidence_never_exceeds_cap(self, classifier):
        for category in ("utilities", "insurance", "subscription", "bills", None):
            assert classifier.suggest("British Gas", category=category).confidence <= 0.95

    def test_suggest_many(self, classifier):
        suggestions = classifier.suggest_many([
            {'payee': 'British Gas'},
            {'payee': 'Spotify', 'category': 'subscription'},
        ])
        assert [s.domain for s in suggestions] == ["property", "services"]
