"""
Band conversion and combination rules.

Every combination step rounds to the nearest half band with ties going up,
i.e. floor(x * 2 + 0.5) / 2. This matches the stored historical results
(6.25 -> 6.5, 6.75 -> 7.0) and differs from Python's built-in round(),
which rounds ties to even.

Two overall-band rules exist side by side:

- strict_overall_band: requires reading, listening and writing bands. This
  is the value persisted on sessions as the calculated overall band.
- lenient_overall_band: averages whichever of those bands are above zero.
  Used by list views.

They are not interchangeable; callers pick one through OverallBandRule.
"""

import enum
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

MIN_BAND = 0.0
MAX_BAND = 9.0
BAND_STEP = 0.5

# Writing task 2 carries twice the weight of task 1
WRITING_TASK1_WEIGHT = 1
WRITING_TASK2_WEIGHT = 2


@dataclass(frozen=True)
class BandRange:
    """A raw-score threshold and the band awarded at or above it."""

    min_score: int
    band: float


# Default table offered when authoring a 40-question reading test
DEFAULT_BAND_SCORE_RANGES: Sequence[BandRange] = (
    BandRange(39, 9.0),
    BandRange(37, 8.5),
    BandRange(35, 8.0),
    BandRange(33, 7.5),
    BandRange(30, 7.0),
    BandRange(27, 6.5),
    BandRange(23, 6.0),
    BandRange(19, 5.5),
    BandRange(15, 5.0),
    BandRange(13, 4.5),
    BandRange(10, 4.0),
    BandRange(7, 3.5),
    BandRange(4, 3.0),
    BandRange(3, 2.5),
    BandRange(1, 2.0),
    BandRange(0, 0.0),
)


class OverallBandRule(str, enum.Enum):
    """Which overall-band rule a caller wants."""

    STRICT = "strict"
    LENIENT = "lenient"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values."""
    return math.floor(value + 0.5)


def round_to_half_band(value: float) -> float:
    """Round a band average to the nearest 0.5, ties going up."""
    return math.floor(value * 2 + 0.5) / 2


def is_valid_band(value: float) -> bool:
    """True for 0, 0.5, 1, ..., 9."""
    return MIN_BAND <= value <= MAX_BAND and (value * 2) == int(value * 2)


def accuracy_percentage(correct: int, total: int) -> int:
    """
    Whole-number accuracy percentage.

    Returns 0 when total is 0 rather than dividing by zero.
    """
    if total <= 0:
        return 0
    return round_half_up(correct / total * 100)


def sort_band_table(table: Iterable[BandRange]) -> List[BandRange]:
    """Order a band table highest threshold first."""
    return sorted(table, key=lambda entry: entry.min_score, reverse=True)


def band_for_raw_score(raw_score: float, table: Iterable[BandRange]) -> float:
    """
    Look up the band for a raw score.

    The table is sorted at the use site, so stored order does not matter.
    The first entry whose min_score is at or below the raw score wins; a
    score below every threshold, or an empty table, yields 0.
    """
    for entry in sort_band_table(table):
        if raw_score >= entry.min_score:
            return float(entry.band)
    return MIN_BAND


def combine_writing_task_bands(
    task1_band: Optional[float], task2_band: Optional[float]
) -> Optional[float]:
    """
    Combine writing task bands into the writing module band.

    Both present: weighted mean with task 2 counted twice, rounded to half.
    One present: that band is used unchanged. None present: None.
    """
    if task1_band is not None and task2_band is not None:
        weighted = (
            task1_band * WRITING_TASK1_WEIGHT + task2_band * WRITING_TASK2_WEIGHT
        ) / (WRITING_TASK1_WEIGHT + WRITING_TASK2_WEIGHT)
        return round_to_half_band(weighted)
    if task1_band is not None:
        return task1_band
    if task2_band is not None:
        return task2_band
    return None


@dataclass(frozen=True)
class WritingCriteria:
    """The four public IELTS writing assessment criteria."""

    task_achievement: float
    coherence_cohesion: float
    lexical_resource: float
    grammatical_range: float

    def as_list(self) -> List[float]:
        return [
            self.task_achievement,
            self.coherence_cohesion,
            self.lexical_resource,
            self.grammatical_range,
        ]


def criteria_band(criteria: Optional[WritingCriteria]) -> Optional[float]:
    """Mean of the four writing criteria rounded to half, or None if absent."""
    if criteria is None:
        return None
    scores = criteria.as_list()
    return round_to_half_band(sum(scores) / len(scores))


def strict_overall_band(
    reading: Optional[float], listening: Optional[float], writing: Optional[float]
) -> Optional[float]:
    """
    Overall band across reading, listening and writing.

    Returns None unless all three bands are present.
    """
    bands = [band for band in (reading, listening, writing) if band is not None]
    if len(bands) != 3:
        return None
    return round_to_half_band(sum(bands) / len(bands))


def lenient_overall_band(
    listening: Optional[float], reading: Optional[float], writing: Optional[float]
) -> Optional[float]:
    """Average of whichever bands are above zero, or None when none are."""
    bands = [
        band for band in (listening, reading, writing) if band is not None and band > 0
    ]
    if not bands:
        return None
    return round_to_half_band(sum(bands) / len(bands))


def combine_overall_band(
    bands: Dict[str, Optional[float]], rule: OverallBandRule
) -> Optional[float]:
    """
    Apply the named overall-band rule to a mapping of module name to band.

    Keys are module names ("reading", "listening", "writing"); other keys
    such as "speaking" are ignored by both rules.
    """
    reading = bands.get("reading")
    listening = bands.get("listening")
    writing = bands.get("writing")
    if rule is OverallBandRule.STRICT:
        return strict_overall_band(reading, listening, writing)
    if rule is OverallBandRule.LENIENT:
        return lenient_overall_band(listening, reading, writing)
    raise ValueError(f"Unknown overall band rule: {rule!r}")


def describe_band(band: Optional[float]) -> str:
    """IELTS user description for a band."""
    if band is None:
        return "Did not attempt"
    if band >= 9.0:
        return "Expert User"
    if band >= 8.0:
        return "Very Good User"
    if band >= 7.0:
        return "Good User"
    if band >= 6.0:
        return "Competent User"
    if band >= 5.0:
        return "Modest User"
    if band >= 4.0:
        return "Limited User"
    if band >= 3.0:
        return "Extremely Limited User"
    if band >= 2.0:
        return "Intermittent User"
    if band >= 1.0:
        return "Non User"
    return "Did not attempt"
