"""
Domain Classifier

Maps a payee (plus optional category/subcategory) to a life domain and a
record type using UK provider and keyword tables.

Matching is two-tier per domain: a provider substring hit scores 0.95, a
keyword hit scores 0.75, otherwise the domain scores nothing. Domains are
visited in DOMAIN_PRIORITY and a later domain only replaces the current
best when it scores strictly higher, so ties go to the earlier domain.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import DomainSuggestion

logger = get_logger(__name__)


class Domain(str, Enum):
    PROPERTY = 'property'
    VEHICLES = 'vehicles'
    FINANCE = 'finance'
    INSURANCE = 'insurance'
    GOVERNMENT = 'government'
    SERVICES = 'services'
    EMPLOYMENT = 'employment'
    LEGAL = 'legal'


DOMAIN_PRIORITY: Tuple[Domain, ...] = (
    Domain.PROPERTY,
    Domain.VEHICLES,
    Domain.FINANCE,
    Domain.INSURANCE,
    Domain.GOVERNMENT,
    Domain.SERVICES,
    Domain.EMPLOYMENT,
    Domain.LEGAL,
)

PROVIDER_CONFIDENCE = 0.95
KEYWORD_CONFIDENCE = 0.75
DEFAULT_CONFIDENCE = 0.3
CATEGORY_BOOST = 0.1
MAX_CONFIDENCE = 0.95

DEFAULT_DOMAIN = Domain.FINANCE
DEFAULT_RECORD_TYPE = 'other'


@dataclass(frozen=True)
class DomainPatterns:
    providers: Tuple[str, ...]
    keywords: Tuple[str, ...]
    # Ordered keyword -> record type pairs
    record_types: Tuple[Tuple[str, str], ...]
    # Caller categories that name this domain exactly
    categories: Tuple[str, ...] = ()


DOMAIN_PATTERNS: Dict[Domain, DomainPatterns] = {
    Domain.PROPERTY: DomainPatterns(
        providers=(
            # Energy
            'british gas', 'bg energy', 'eon', 'e.on', 'edf', 'edf energy', 'octopus energy',
            'bulb', 'ovo energy', 'scottish power', 'sse', 'shell energy', 'utilita',
            # Water
            'thames water', 'severn trent', 'united utilities', 'yorkshire water',
            'south west water', 'anglian water', 'wessex water', 'northumbrian water',
            # Council tax
            'council tax', 'borough council', 'city council', 'county council',
            # Home broadband and phone
            'bt broadband', 'sky broadband', 'virgin media', 'talktalk', 'plusnet',
            # Home insurance and mortgage
            'home insurance', 'buildings insurance', 'contents insurance',
            'nationwide mortgage', 'halifax mortgage', 'santander mortgage', 'hsbc mortgage',
        ),
        keywords=(
            'electric', 'electricity', 'gas', 'energy', 'power', 'utility', 'utilities',
            'water', 'sewerage', 'council tax', 'rates', 'broadband', 'internet', 'wifi',
            'mortgage', 'home insurance', 'buildings', 'contents',
        ),
        record_types=(
            ('energy', 'utility-electric'),
            ('electric', 'utility-electric'),
            ('gas', 'utility-gas'),
            ('water', 'utility-water'),
            ('council', 'council-tax'),
            ('broadband', 'utility-broadband'),
            ('internet', 'utility-broadband'),
            ('mortgage', 'mortgage'),
            ('insurance', 'home-insurance'),
        ),
        categories=('utilities', 'bills', 'council_tax'),
    ),
    Domain.VEHICLES: DomainPatterns(
        providers=(
            # Car insurance
            'admiral', 'direct line', 'aviva', 'axa', 'churchill', 'esure', 'hastings direct',
            'lv=', 'more than', 'rac', 'aa insurance', 'confused.com', 'comparethemarket',
            # Vehicle finance
            'black horse', 'santander consumer', 'motonovo', 'hitachi capital', 'pcp finance',
            # MOT and servicing
            'kwik fit', 'halfords', 'ats euromaster', 'mot test', 'garage', 'servicing',
            # Fuel
            'shell', 'bp', 'esso', 'tesco fuel', 'sainsburys fuel', 'asda fuel', 'morrisons fuel',
        ),
        keywords=(
            'car insurance', 'motor insurance', 'vehicle', 'mot', 'road tax', 'dvla',
            'car finance', 'pcp', 'hp finance', 'lease', 'fuel', 'petrol', 'diesel',
            'breakdown', 'recovery', 'garage', 'servicing', 'tyres',
        ),
        record_types=(
            ('insurance', 'insurance'),
            ('mot', 'mot'),
            ('tax', 'road-tax'),
            ('finance', 'finance'),
            ('fuel', 'fuel'),
            ('service', 'service'),
        ),
    ),
    Domain.FINANCE: DomainPatterns(
        providers=(
            'hsbc', 'barclays', 'lloyds', 'halifax', 'natwest', 'rbs', 'santander',
            'nationwide', 'first direct', 'metro bank', 'monzo', 'starling', 'revolut',
            'amex', 'american express', 'mastercard', 'visa', 'capital one', 'mbna',
            'zopa', 'vanquis', 'aqua', 'lending works', 'funding circle',
        ),
        keywords=(
            'bank', 'current account', 'savings', 'isa', 'credit card', 'loan',
            'overdraft', 'interest', 'transfer', 'payment', 'balance',
        ),
        record_types=(
            ('current', 'current-account'),
            ('savings', 'savings'),
            ('credit', 'credit-card'),
            ('loan', 'loan'),
            ('isa', 'isa'),
        ),
    ),
    Domain.INSURANCE: DomainPatterns(
        providers=(
            'legal & general', 'aviva life', 'zurich', 'prudential', 'scottish widows',
            'bupa', 'axa health', 'vitality health', 'benenden health', 'simply health',
            'post office travel', 'staysure', 'age uk travel', 'moneysupermarket travel',
            'pet plan', 'direct line pet', 'bought by many', 'animal friends',
        ),
        keywords=(
            'life insurance', 'life cover', 'critical illness', 'income protection',
            'health insurance', 'private health', 'dental', 'travel insurance',
            'pet insurance', 'protection',
        ),
        record_types=(
            ('life', 'life-insurance'),
            ('health', 'health-insurance'),
            ('travel', 'travel-insurance'),
            ('income', 'income-protection'),
            ('pet', 'pet-insurance'),
        ),
        categories=('insurance',),
    ),
    Domain.GOVERNMENT: DomainPatterns(
        providers=(
            'dvla', 'hm passport', 'passport office', 'hmrc', 'self assessment',
            'tv licensing', 'tv licence', 'bbc', 'post office', 'gov.uk',
        ),
        keywords=(
            'passport', 'driving licence', 'photocard', 'tv licence', 'tax return',
            'self assessment', 'hmrc', 'vat', 'national insurance', 'ni contributions',
        ),
        record_types=(
            ('passport', 'passport'),
            ('driving', 'driving-licence'),
            ('tv', 'tv-licence'),
            ('tax', 'tax-return'),
            ('ni', 'ni-contributions'),
        ),
    ),
    Domain.SERVICES: DomainPatterns(
        providers=(
            'netflix', 'amazon prime', 'disney+', 'apple tv', 'spotify', 'youtube premium',
            'puregym', 'david lloyd', 'virgin active', 'nuffield health', 'the gym',
            'aa membership', 'rac membership', 'which?', 'nationwide flex',
        ),
        keywords=(
            'subscription', 'membership', 'streaming', 'gym', 'fitness', 'professional',
            'breakdown cover', 'magazine', 'software', 'cloud storage',
        ),
        record_types=(
            ('streaming', 'subscription'),
            ('gym', 'membership'),
            ('breakdown', 'breakdown-cover'),
            ('professional', 'professional-membership'),
        ),
        categories=('subscription',),
    ),
    Domain.EMPLOYMENT: DomainPatterns(
        providers=(
            'salary', 'wages', 'payroll', 'paye', 'pension', 'nest pension',
            'workplace pension', 'auto enrolment', 'employee benefits',
        ),
        keywords=(
            'salary', 'wages', 'payroll', 'employer', 'pension contribution',
            'workplace pension', 'benefits', 'income',
        ),
        record_types=(
            ('salary', 'salary'),
            ('pension', 'pension'),
            ('benefits', 'benefits'),
        ),
    ),
    Domain.LEGAL: DomainPatterns(
        providers=(
            'solicitor', 'solicitors', 'law firm', 'legal services', 'will writing',
            'co-op legal', 'which? legal',
        ),
        keywords=(
            'solicitor', 'legal', 'will', 'power of attorney', 'probate',
            'legal advice', 'conveyancing', 'estate planning',
        ),
        record_types=(
            ('will', 'will'),
            ('solicitor', 'legal-service'),
            ('power', 'power-of-attorney'),
        ),
    ),
}

_missing = set(Domain) - set(DOMAIN_PATTERNS)
if _missing or set(DOMAIN_PRIORITY) != set(Domain):
    raise RuntimeError(f"Domain tables incomplete: {sorted(d.value for d in _missing)}")


def _first_hit(needles: Iterable[str], *haystacks: str) -> Optional[str]:
    for needle in needles:
        if any(needle in h for h in haystacks if h):
            return needle
    return None


class DomainClassifier:

    def __init__(self, patterns: Optional[Dict[Domain, DomainPatterns]] = None,
                 priority: Tuple[Domain, ...] = DOMAIN_PRIORITY):
        self.patterns = patterns or DOMAIN_PATTERNS
        self.priority = priority

    def _score_domain(self, config: DomainPatterns, payee: str, category: str, subcategory: str):
        provider = _first_hit(config.providers, payee)
        if provider:
            record_type = DEFAULT_RECORD_TYPE
            for keyword, rtype in config.record_types:
                if keyword in payee or (category and keyword in category):
                    record_type = rtype
                    break
            return PROVIDER_CONFIDENCE, record_type, f'provider match: "{provider}"'

        keyword = _first_hit(config.keywords, payee, category, subcategory)
        if keyword:
            record_type = DEFAULT_RECORD_TYPE
            for key, rtype in config.record_types:
                if key in keyword:
                    record_type = rtype
                    break
            return KEYWORD_CONFIDENCE, record_type, f'keyword match: "{keyword}"'

        return 0.0, DEFAULT_RECORD_TYPE, ''

    def suggest(self, payee: str, category: Optional[str] = None,
                subcategory: Optional[str] = None, amount: Optional[float] = None) -> DomainSuggestion:
        payee_lower = (payee or '').lower()
        category_lower = (category or '').lower()
        subcategory_lower = (subcategory or '').lower()

        best_domain = DEFAULT_DOMAIN
        best_confidence = DEFAULT_CONFIDENCE
        best_record_type = DEFAULT_RECORD_TYPE
        reasoning = 'Default (no specific match found)'

        for domain in self.priority:
            confidence, record_type, why = self._score_domain(
                self.patterns[domain], payee_lower, category_lower, subcategory_lower)
            if confidence > best_confidence:
                best_domain, best_confidence = domain, confidence
                best_record_type, reasoning = record_type, why

        if category_lower and category_lower in self.patterns[best_domain].categories \
                and best_confidence > DEFAULT_CONFIDENCE:
            best_confidence = min(MAX_CONFIDENCE, best_confidence + CATEGORY_BOOST)

        logger.debug("Domain suggested.", payee=payee, domain=best_domain.value,
                     confidence=best_confidence, amount=amount)
        return DomainSuggestion(
            domain=best_domain.value,
            confidence=best_confidence,
            record_type=best_record_type,
            reasoning=reasoning,
        )

    def suggest_many(self, items) -> list:
        """Suggestions for an iterable of mappings with payee/category/subcategory/amount keys."""
        return [
            self.suggest(i.get('payee'), i.get('category'), i.get('subcategory'), i.get('amount'))
            for i in items
        ]
