"""
Confidence Scorer

Combines the weak signals gathered for a cluster into one score in [0, 1]:

    score = frequency * 0.3 + amount * 0.25 + pattern * 0.35
            + min(occurrences / 5, 1) * 0.1
    score += rule boost
    score *= 0.8 when occurrences < 3
    score  = clip(score, 0, 1)
"""
import math
from dataclasses import dataclass
from typing import Sequence

FREQUENCY_WEIGHT = 0.3
AMOUNT_WEIGHT = 0.25
PATTERN_WEIGHT = 0.35
OCCURRENCE_WEIGHT = 0.1
OCCURRENCE_SATURATION = 5
LOW_OCCURRENCE_LIMIT = 3
LOW_OCCURRENCE_PENALTY = 0.8

# Pattern score used when no provider rule matched
NEUTRAL_PATTERN_SCORE = 0.5


@dataclass(frozen=True)
class ConfidenceInputs:
    frequency_consistency: float = 0.5
    amount_consistency: float = 0.5
    pattern_match: float = NEUTRAL_PATTERN_SCORE
    occurrences: int = 2
    rule_boost: float = 0.0


def amount_consistency(amounts: Sequence[float]) -> float:
    """max(0, 1 - 2 * coefficient of variation) over absolute amounts."""
    if len(amounts) < 2:
        return 1.0
    values = [abs(a) for a in amounts]
    average = sum(values) / len(values)
    if average == 0:
        return 1.0
    variance = sum((v - average) ** 2 for v in values) / len(values)
    coefficient_of_variation = math.sqrt(variance) / average
    return max(0.0, 1 - coefficient_of_variation * 2)


class ConfidenceScorer:

    def score(self, inputs: ConfidenceInputs) -> float:
        base = (
            inputs.frequency_consistency * FREQUENCY_WEIGHT +
            inputs.amount_consistency * AMOUNT_WEIGHT +
            inputs.pattern_match * PATTERN_WEIGHT +
            min(inputs.occurrences / OCCURRENCE_SATURATION, 1) * OCCURRENCE_WEIGHT
        )
        base += inputs.rule_boost

        if inputs.occurrences < LOW_OCCURRENCE_LIMIT:
            base *= LOW_OCCURRENCE_PENALTY

        return min(max(base, 0.0), 1.0)
