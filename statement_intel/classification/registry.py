"""
Rule Set Registry

Manages loading of detection rule sets from YAML/JSON configuration files.
"""
import os
import json
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from statement_intel.common.logging_config import get_logger
from .rules import DetectionRuleSet, rules_to_dict

logger = get_logger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "uk_default_rules.yaml"
RULE_FILE_SUFFIXES = ('.yaml', '.yml', '.json')


def load_rule_file(path) -> DetectionRuleSet:
    """
    Load one rule set file.

    Raises:
        ValueError: if the file is not a mapping or holds an invalid rule
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return DetectionRuleSet(name=path.stem)
    if not isinstance(data, dict):
        raise ValueError(f"Rule file {path.name} must contain a mapping")
    return DetectionRuleSet.from_dict(data)


def load_default_rules() -> DetectionRuleSet:
    """The packaged UK provider rule set."""
    return load_rule_file(DEFAULT_RULES_PATH)


class RuleSetRegistry:
    """
    Registry of named rule sets.

    Scans a directory for .yaml/.yml/.json rule files. A missing directory
    or an unreadable file is logged and skipped; lookups that find nothing
    fall back to an empty rule set so detection is never blocked.
    """

    def __init__(self, rules_dir: Optional[str] = None, default_name: Optional[str] = None):
        """
        Args:
            rules_dir: Directory containing rule set files
            default_name: Name of the rule set returned by get_default()
        """
        self.rules_dir = rules_dir
        self.default_name = default_name
        self.rule_sets: Dict[str, DetectionRuleSet] = {}
        if rules_dir:
            self._load_rule_sets()

    def _load_rule_sets(self) -> None:
        """Scans the directory and loads all rule files."""
        if not os.path.isdir(self.rules_dir):
            logger.warning(f"Rules directory not found: {self.rules_dir}")
            return

        for fname in sorted(os.listdir(self.rules_dir)):
            if not fname.endswith(RULE_FILE_SUFFIXES):
                continue
            fpath = os.path.join(self.rules_dir, fname)
            try:
                rule_set = load_rule_file(fpath)
            except (OSError, ValueError, yaml.YAMLError, json.JSONDecodeError) as e:
                logger.error(f"Error loading rule set {fname}: {e}", file=fname)
                continue
            self.rule_sets[rule_set.name] = rule_set
            logger.debug(f"Loaded rule set: {fname}", rule_set=rule_set.name)

    def register(self, rule_set: DetectionRuleSet) -> None:
        self.rule_sets[rule_set.name] = rule_set

    def get(self, name: str) -> Optional[DetectionRuleSet]:
        return self.rule_sets.get(name)

    def get_default(self) -> DetectionRuleSet:
        if self.default_name and self.default_name in self.rule_sets:
            return self.rule_sets[self.default_name]
        if self.rule_sets:
            return self.rule_sets[sorted(self.rule_sets)[0]]
        logger.warning("No detection rules available, using an empty rule set")
        return DetectionRuleSet()

    def list_rule_sets(self) -> List[str]:
        return sorted(self.rule_sets)

    def save_rule_set(self, rule_set: DetectionRuleSet, filename: Optional[str] = None) -> bool:
        """
        Save a rule set to the registry directory as YAML and register it.

        Returns:
            bool: True if saved successfully
        """
        if not self.rules_dir:
            logger.error("Cannot save rule set without a rules directory")
            return False
        try:
            if not filename:
                safe_name = "".join(c for c in rule_set.name if c.isalnum() or c in (' ', '-', '_')).strip()
                filename = f"{safe_name.replace(' ', '_').lower() or 'rules'}.yaml"

            os.makedirs(self.rules_dir, exist_ok=True)
            fpath = os.path.join(self.rules_dir, filename)
            with open(fpath, 'w', encoding='utf-8') as f:
                yaml.safe_dump(rules_to_dict(rule_set), f, sort_keys=False, allow_unicode=True)

            self.register(rule_set)
            logger.info(f"Saved rule set to {fpath}")
            return True
        except OSError as e:
            logger.error(f"Failed to save rule set: {e}")
            return False
