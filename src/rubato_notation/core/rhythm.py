"""
Rhythm primitives - duration values, TimeSignature and rest filling.

All durations are measured in quarter-note units and computed with
Fraction so measure sums are exact. Models store floats; comparisons
against a measure's capacity use DURATION_TOLERANCE.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from fractions import Fraction
from typing import ClassVar

from rubato_notation.constants import DURATION_TOLERANCE, STANDARD_TIME_SIGNATURES, NoteDuration
from rubato_notation.errors import FormatError

# Quarter-note units per duration class
NOTE_VALUES: dict[NoteDuration, Fraction] = {
    NoteDuration.WHOLE: Fraction(4),
    NoteDuration.HALF: Fraction(2),
    NoteDuration.QUARTER: Fraction(1),
    NoteDuration.EIGHTH: Fraction(1, 2),
    NoteDuration.SIXTEENTH: Fraction(1, 4),
    NoteDuration.THIRTY_SECOND: Fraction(1, 8),
}

# Largest first, for greedy rest filling
REST_FILL_ORDER: tuple[NoteDuration, ...] = (
    NoteDuration.WHOLE,
    NoteDuration.HALF,
    NoteDuration.QUARTER,
    NoteDuration.EIGHTH,
    NoteDuration.SIXTEENTH,
)

_TIME_SIGNATURE_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


def is_valid_duration(duration: object) -> bool:
    try:
        NoteDuration(duration)
    except ValueError:
        return False
    return True


def dot_multiplier(dots: int) -> Fraction:
    """1 for no dots, 3/2 for one, 7/4 for two."""
    return 2 - Fraction(1, 2**dots)


def note_value(duration: NoteDuration | str, dots: int = 0) -> Fraction:
    """
    Length of a note in quarter units, dots included.

    Raises:
        FormatError: if the duration class is unknown
    """
    if not is_valid_duration(duration):
        raise FormatError(f"Invalid duration: {duration!r}")
    return NOTE_VALUES[NoteDuration(duration)] * dot_multiplier(dots)


def fits(total: float | Fraction, capacity: float | Fraction) -> bool:
    """True when total does not exceed capacity (within tolerance)."""
    return float(total) <= float(capacity) + DURATION_TOLERANCE


def same_duration(a: float | Fraction, b: float | Fraction) -> bool:
    return abs(float(a) - float(b)) <= DURATION_TOLERANCE


@dataclass(frozen=True)
class TimeSignature:
    """
    A time signature: beats per bar over a beat unit.

    Examples:
        TimeSignature(4, 4) = 4/4, four quarter units per measure
        TimeSignature(6, 8) = 6/8, three quarter units per measure
    """

    beats: int
    unit: int

    COMMON_TIME: ClassVar[TimeSignature]

    def __post_init__(self) -> None:
        if self.beats <= 0:
            raise FormatError(f"Beats per bar must be positive, got {self.beats}")
        if self.unit not in (1, 2, 4, 8, 16, 32):
            raise FormatError(f"Beat unit must be a power of two up to 32, got {self.unit}")

    @property
    def capacity(self) -> Fraction:
        """Measure length in quarter units: beats x 4 / unit."""
        return Fraction(self.beats * 4, self.unit)

    @property
    def is_standard(self) -> bool:
        return str(self) in STANDARD_TIME_SIGNATURES

    def __str__(self) -> str:
        return f"{self.beats}/{self.unit}"

    @classmethod
    def parse(cls, text: str | TimeSignature) -> TimeSignature:
        """Parse a signature like '6/8'."""
        if isinstance(text, TimeSignature):
            return text
        match = _TIME_SIGNATURE_RE.match(text) if isinstance(text, str) else None
        if match is None:
            raise FormatError(f"Invalid time signature: {text!r}")
        return cls(int(match.group(1)), int(match.group(2)))


TimeSignature.COMMON_TIME = TimeSignature(4, 4)


def expected_measure_duration(time_signature: str | TimeSignature) -> Fraction:
    """Quarter units one measure holds under a time signature."""
    return TimeSignature.parse(time_signature).capacity


def rest_durations(gap: float | Fraction) -> list[NoteDuration]:
    """
    Greedy rest values that fill a gap, largest first.

    Any remainder shorter than a sixteenth is left unfilled.
    """
    remaining = Fraction(gap).limit_denominator(64)
    result: list[NoteDuration] = []
    for duration in REST_FILL_ORDER:
        value = NOTE_VALUES[duration]
        while remaining >= value:
            result.append(duration)
            remaining -= value
    return result


def available_durations(difficulty: int) -> list[NoteDuration]:
    """Duration classes the base generators draw from at a difficulty."""
    if difficulty <= 3:
        return [NoteDuration.WHOLE, NoteDuration.HALF, NoteDuration.QUARTER]
    if difficulty <= 6:
        return [NoteDuration.HALF, NoteDuration.QUARTER, NoteDuration.EIGHTH]
    return [NoteDuration.QUARTER, NoteDuration.EIGHTH, NoteDuration.SIXTEENTH]
