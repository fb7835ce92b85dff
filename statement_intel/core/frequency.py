"""
Frequency Analyzer

Infers payment cadence from the day gaps between consecutive occurrences.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

WEEKLY = 'weekly'
MONTHLY = 'monthly'
QUARTERLY = 'quarterly'
ANNUALLY = 'annually'
IRREGULAR = 'irregular'

# (frequency, min mean gap, max mean gap, canonical interval in days)
FREQUENCY_BANDS = (
    (WEEKLY, 5, 10, 7),
    (MONTHLY, 25, 35, 30),
    (QUARTERLY, 85, 100, 91),
    (ANNUALLY, 350, 400, 365),
)

EXPECTED_INTERVALS = {name: interval for name, _, _, interval in FREQUENCY_BANDS}

SMALL_SAMPLE_SCORE = 0.6
IRREGULAR_SCORE = 0.3


@dataclass(frozen=True)
class FrequencyResult:
    frequency: str
    consistency: float
    mean_interval: float
    stddev_interval: float
    intervals: tuple


def day_gaps(dates: Sequence[date]) -> List[int]:
    """Gaps in days between consecutive dates (dates must be sorted)."""
    return [(dates[i] - dates[i - 1]).days for i in range(1, len(dates))]


class FrequencyAnalyzer:
    """
    Args:
        irregularity_tolerance: A cadence is irregular when
            stddev > mean * irregularity_tolerance
    """

    def __init__(self, irregularity_tolerance: float = 0.3):
        self.irregularity_tolerance = irregularity_tolerance

    def classify(self, intervals: Sequence[float]) -> str:
        if not intervals:
            return IRREGULAR

        mean = sum(intervals) / len(intervals)
        variance = sum((i - mean) ** 2 for i in intervals) / len(intervals)
        stddev = math.sqrt(variance)

        if stddev > mean * self.irregularity_tolerance:
            return IRREGULAR

        for name, low, high, _ in FREQUENCY_BANDS:
            if low <= mean <= high:
                return name
        return IRREGULAR

    def consistency(self, intervals: Sequence[float], frequency: str) -> float:
        """
        1 - 2 * mean absolute relative deviation from the canonical interval,
        floored at 0. Fewer than three occurrences get a fixed score.
        """
        if len(intervals) < 2:
            return SMALL_SAMPLE_SCORE

        expected = EXPECTED_INTERVALS.get(frequency)
        if not expected:
            return IRREGULAR_SCORE

        deviations = [abs(i - expected) / expected for i in intervals]
        average_deviation = sum(deviations) / len(deviations)
        return max(0.0, 1 - average_deviation * 2)

    def analyze_intervals(self, intervals: Sequence[float]) -> FrequencyResult:
        intervals = tuple(intervals)
        frequency = self.classify(intervals)
        if intervals:
            mean = sum(intervals) / len(intervals)
            stddev = math.sqrt(sum((i - mean) ** 2 for i in intervals) / len(intervals))
        else:
            mean = stddev = 0.0
        return FrequencyResult(
            frequency=frequency,
            consistency=self.consistency(intervals, frequency),
            mean_interval=mean,
            stddev_interval=stddev,
            intervals=intervals,
        )

    def analyze_dates(self, dates: Sequence[date]) -> FrequencyResult:
        return self.analyze_intervals(day_gaps(sorted(dates)))
