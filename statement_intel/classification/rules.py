"""
Provider Rules and Rule Matcher

A DetectionRuleSet groups ProviderRules by category. Groups are evaluated
in RULE_GROUP_ORDER and rules in their declared order inside a group; the
first rule whose patterns match a description wins, so more specific
rules must be declared before generic ones.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rapidfuzz import fuzz

from statement_intel.common.logging_config import get_logger
from statement_intel.common.settings import DetectionSettings

logger = get_logger(__name__)

RULE_GROUP_ORDER: Tuple[str, ...] = (
    'utility_rules',
    'council_tax_rules',
    'telecoms_rules',
    'subscription_rules',
    'insurance_rules',
    'general_rules',
)

VALID_FREQUENCIES = ('weekly', 'monthly', 'quarterly', 'annually')

DEFAULT_MATCH_THRESHOLD = 0.75

_REGEX_HINT = re.compile(r"[\^$*+?\[\]|()\\]")


@dataclass(frozen=True)
class ProviderRule:
    """
    Attributes:
        name: Human-readable rule name (e.g. "British Gas Energy")
        patterns: Ordered keyword or regex strings
        category: Rule category (utilities, council_tax, telecoms, ...)
        confidence_boost: Added to the confidence of matching patterns
        min_occurrences: Cluster size needed before the boost applies
        expected_frequency: Typical cadence for this provider
    """
    name: str
    patterns: Tuple[str, ...]
    category: str
    subcategory: Optional[str] = None
    provider: Optional[str] = None
    confidence_boost: float = 0.1
    min_occurrences: int = 2
    expected_frequency: str = 'monthly'
    active: bool = True

    def __post_init__(self):
        if not self.name:
            raise ValueError("Provider rule requires a name")
        if not self.patterns:
            raise ValueError(f"Provider rule '{self.name}' has no patterns")
        if self.expected_frequency not in VALID_FREQUENCIES:
            raise ValueError(
                f"Provider rule '{self.name}' has invalid expected_frequency '{self.expected_frequency}'")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProviderRule":
        patterns = data.get('patterns') or []
        if isinstance(patterns, str):
            patterns = [patterns]
        return cls(
            name=data.get('name', ''),
            patterns=tuple(str(p) for p in patterns),
            category=data.get('category', 'other'),
            subcategory=data.get('subcategory'),
            provider=data.get('provider'),
            confidence_boost=float(data.get('confidence_boost', 0.1)),
            min_occurrences=int(data.get('min_occurrences', 2)),
            expected_frequency=data.get('expected_frequency', 'monthly'),
            active=bool(data.get('active', True)),
        )


@dataclass(frozen=True)
class DetectionRuleSet:
    name: str = "empty"
    version: str = "1.0"
    description: str = ""
    utility_rules: Tuple[ProviderRule, ...] = ()
    council_tax_rules: Tuple[ProviderRule, ...] = ()
    telecoms_rules: Tuple[ProviderRule, ...] = ()
    subscription_rules: Tuple[ProviderRule, ...] = ()
    insurance_rules: Tuple[ProviderRule, ...] = ()
    general_rules: Tuple[ProviderRule, ...] = ()
    settings: DetectionSettings = field(default_factory=DetectionSettings)

    def ordered_rules(self) -> List[ProviderRule]:
        """Active rules, concatenated in RULE_GROUP_ORDER."""
        rules = []
        for group in RULE_GROUP_ORDER:
            rules.extend(r for r in getattr(self, group) if r.active)
        return rules

    @property
    def is_empty(self) -> bool:
        return not self.ordered_rules()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DetectionRuleSet":
        if not data:
            return cls()
        groups = {}
        for group in RULE_GROUP_ORDER:
            groups[group] = tuple(ProviderRule.from_dict(r) for r in (data.get(group) or []))
        return cls(
            name=data.get('name', 'unnamed'),
            version=str(data.get('version', '1.0')),
            description=data.get('description', ''),
            settings=DetectionSettings.from_dict(data.get('settings')),
            **groups,
        )


@dataclass(frozen=True)
class RuleMatch:
    category: str = 'other'
    subcategory: Optional[str] = None
    provider: Optional[str] = None
    confidence_boost: float = 0.0
    score: float = 0.0
    rule_name: Optional[str] = None
    matched_pattern: Optional[str] = None
    min_occurrences: int = 0
    expected_frequency: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.rule_name is not None

    def boost_for(self, occurrences: int) -> float:
        """Rule boost, withheld until the rule's occurrence minimum is met."""
        if occurrences < self.min_occurrences:
            return 0.0
        return self.confidence_boost


NO_MATCH = RuleMatch()


def _regex_hit(pattern: str, text: str) -> bool:
    if not _REGEX_HINT.search(pattern):
        return False
    try:
        return re.search(pattern, text, re.IGNORECASE) is not None
    except re.error:
        return False


class RuleMatcher:
    """
    Matches a description against the ordered, active rules of a rule set.

    Exact substring hits (either direction) or a regex hit score 1.0;
    otherwise the best fuzzy ratio across the rule's patterns must reach
    the threshold.
    """

    def __init__(self, rule_set: Optional[DetectionRuleSet] = None, threshold: Optional[float] = None):
        self.rule_set = rule_set or DetectionRuleSet()
        if threshold is None:
            threshold = self.rule_set.settings.rule_match_threshold
        self.threshold = threshold
        self._rules = self.rule_set.ordered_rules()

    def match_patterns(self, description: str, patterns) -> Tuple[bool, float, Optional[str]]:
        text = (description or '').upper().strip()
        if not text or not patterns:
            return False, 0.0, None

        best_score = 0.0
        best_pattern = None
        for pattern in patterns:
            pattern_upper = pattern.upper()
            if pattern_upper in text or text in pattern_upper or _regex_hit(pattern, text):
                return True, 1.0, pattern

            score = fuzz.ratio(text, pattern_upper) / 100
            if score > best_score:
                best_score = score
                best_pattern = pattern

        return best_score >= self.threshold, best_score, best_pattern

    def match(self, description: str) -> RuleMatch:
        for rule in self._rules:
            matched, score, pattern = self.match_patterns(description, rule.patterns)
            if matched:
                logger.debug(f"Rule matched: {rule.name}", rule=rule.name, score=score)
                return RuleMatch(
                    category=rule.category,
                    subcategory=rule.subcategory,
                    provider=rule.provider,
                    confidence_boost=rule.confidence_boost,
                    score=score,
                    rule_name=rule.name,
                    matched_pattern=pattern,
                    min_occurrences=rule.min_occurrences,
                    expected_frequency=rule.expected_frequency,
                )
        return NO_MATCH


def rules_to_dict(rule_set: DetectionRuleSet) -> Dict[str, Any]:
    """Serialisable form of a rule set, the inverse of DetectionRuleSet.from_dict."""
    data: Dict[str, Any] = {
        'name': rule_set.name,
        'version': rule_set.version,
        'description': rule_set.description,
        'settings': rule_set.settings.to_dict(),
    }
    for group in RULE_GROUP_ORDER:
        data[group] = [
            {
                'name': r.name,
                'patterns': list(r.patterns),
                'category': r.category,
                'subcategory': r.subcategory,
                'provider': r.provider,
                'confidence_boost': r.confidence_boost,
                'min_occurrences': r.min_occurrences,
                'expected_frequency': r.expected_frequency,
                'active': r.active,
            }
            for r in getattr(rule_set, group)
        ]
    return data
