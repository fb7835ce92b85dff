"""
Provider rules, domain classification and domain record builders.
"""
from .rules import (DetectionRuleSet, NO_MATCH, ProviderRule, RULE_GROUP_ORDER, RuleMatch,
                    RuleMatcher)
from .registry import RuleSetRegistry, load_default_rules, load_rule_file
from .domains import DOMAIN_PATTERNS, DOMAIN_PRIORITY, Domain, DomainClassifier
from .records import build_record

__all__ = [
    'DetectionRuleSet',
    'NO_MATCH',
    'ProviderRule',
    'RULE_GROUP_ORDER',
    'RuleMatch',
    'RuleMatcher',
    'RuleSetRegistry',
    'load_default_rules',
    'load_rule_file',
    'DOMAIN_PATTERNS',
    'DOMAIN_PRIORITY',
    'Domain',
    'DomainClassifier',
    'build_record',
]
