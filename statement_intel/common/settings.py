"""
Detection Settings

Tunable thresholds for the detection pipeline. Values are injected by the
caller (rule set file, mapping or environment); the pipeline never reads
them from anywhere else.
"""
import os
from dataclasses import dataclass, fields, asdict
from typing import Any, Mapping, Optional

ENV_PREFIX = "STATEMENT_INTEL_"


@dataclass(frozen=True)
class DetectionSettings:
    """
    Attributes:
        min_confidence_threshold: Patterns scoring below this are dropped
        fuzzy_match_threshold: Description similarity (0-1) needed to join a cluster
        amount_variance_tolerance: Max relative amount difference within a cluster
        frequency_detection_window_days: Look-back used when matching new
            transactions against known patterns
        irregularity_tolerance: stddev/mean ratio above which a cadence is irregular
        rule_match_threshold: Fuzzy score (0-1) a provider rule pattern must reach
        parse_timeout_seconds: Upper bound for PDF text extraction
    """
    min_confidence_threshold: float = 0.6
    fuzzy_match_threshold: float = 0.8
    amount_variance_tolerance: float = 0.1
    frequency_detection_window_days: int = 90
    irregularity_tolerance: float = 0.3
    rule_match_threshold: float = 0.75
    parse_timeout_seconds: float = 30.0

    def __post_init__(self):
        for name in ('min_confidence_threshold', 'fuzzy_match_threshold',
                     'amount_variance_tolerance', 'rule_match_threshold'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.frequency_detection_window_days <= 0:
            raise ValueError("frequency_detection_window_days must be positive")
        if self.irregularity_tolerance <= 0:
            raise ValueError("irregularity_tolerance must be positive")
        if self.parse_timeout_seconds <= 0:
            raise ValueError("parse_timeout_seconds must be positive")

    @property
    def similarity_threshold(self) -> float:
        """Fuzzy threshold on the 0-100 scale used by the grouper."""
        return self.fuzzy_match_threshold * 100

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DetectionSettings":
        """Build settings from a mapping, ignoring unknown keys."""
        if not data:
            return cls()
        known = {f.name: f.type for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key in known and value is not None:
                values[key] = _coerce(cls, key, value)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DetectionSettings":
        """Build settings from STATEMENT_INTEL_* environment variables."""
        environ = os.environ if environ is None else environ
        data = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None and raw.strip():
                data[f.name] = raw.strip()
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)


def _coerce(cls, key: str, value: Any):
    default = getattr(cls, key)
    try:
        if isinstance(default, int) and not isinstance(default, bool):
            return int(float(value))
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {key}: {value!r}")
