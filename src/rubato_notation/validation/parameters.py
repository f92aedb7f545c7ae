"""
Exercise parameter validation.

Collects every violated constraint instead of stopping at the first, so a
caller can fix all of them in one round trip.
"""

from __future__ import annotations

from rubato_notation.constants import (
    CLEF_RANGES,
    MAX_DIFFICULTY,
    MAX_MEASURES,
    MAX_OCTAVES,
    MAX_TEMPO,
    MIN_DIFFICULTY,
    MIN_MEASURES,
    MIN_OCTAVES,
    MIN_TEMPO,
    Clef,
    ExerciseType,
    Instrument,
    MelodicMotion,
    NoteDuration,
    TechnicalType,
)
from rubato_notation.core.chord import ChordType
from rubato_notation.core.keys import parse_key_signature
from rubato_notation.core.pitch import Pitch, note_to_midi
from rubato_notation.core.rhythm import NOTE_VALUES, TimeSignature
from rubato_notation.core.scale import ScaleType
from rubato_notation.errors import FormatError, ValidationError
from rubato_notation.models.exercise import ExerciseParameters, NoteRange

MAX_HANON_DEGREE = 15
MAX_GUITAR_POSITION = 12

# Shortest value generated measures are built and padded from
MEASURE_GRAIN = NOTE_VALUES[NoteDuration.SIXTEENTH]


def _enum_ok(enum_cls: type, value: object) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def parse_range(note_range: NoteRange) -> tuple[int, int] | None:
    """MIDI bounds of a range, or None if either end is malformed."""
    try:
        return Pitch.parse(note_range.lowest).midi, Pitch.parse(note_range.highest).midi
    except FormatError:
        return None


def clef_range_intersection(note_range: NoteRange, clef: str) -> tuple[int, int] | None:
    """
    Intersect a requested range with a clef's natural range.

    Returns:
        (lowest, highest) MIDI bounds, or None if they do not overlap
    """
    bounds = parse_range(note_range)
    if bounds is None:
        return None
    clef_low, clef_high = (note_to_midi(n) for n in CLEF_RANGES[Clef(clef)])
    lowest = max(bounds[0], clef_low)
    highest = min(bounds[1], clef_high)
    if lowest > highest:
        return None
    return lowest, highest


def validate_exercise_parameters(params: ExerciseParameters) -> list[str]:
    """
    Check exercise parameters.

    Returns:
        Every violated constraint as a message; empty when valid
    """
    errors: list[str] = []

    if not _enum_ok(ExerciseType, params.exercise_type):
        errors.append(f"Invalid exercise type: {params.exercise_type}")

    try:
        parse_key_signature(params.key_signature)
    except FormatError:
        errors.append(f"Invalid key signature: {params.key_signature}")

    try:
        time_signature = TimeSignature.parse(params.time_signature)
    except FormatError:
        errors.append(f"Invalid time signature: {params.time_signature}")
    else:
        if time_signature.capacity % MEASURE_GRAIN:
            errors.append(
                f"Time signature {time_signature} cannot be filled with sixteenth notes"
            )

    clef_ok = _enum_ok(Clef, params.clef)
    if not clef_ok:
        errors.append(f"Invalid clef: {params.clef}")

    bounds = parse_range(params.range)
    if bounds is None:
        errors.append("Invalid note range format")
    elif bounds[0] > bounds[1]:
        errors.append("Range lowest note must not be above the highest note")
    elif clef_ok and clef_range_intersection(params.range, params.clef) is None:
        low, high = CLEF_RANGES[Clef(params.clef)]
        errors.append(
            f"Range {params.range.lowest}-{params.range.highest} does not overlap "
            f"the {params.clef} clef range {low}-{high}"
        )

    if not MIN_DIFFICULTY <= params.difficulty <= MAX_DIFFICULTY:
        errors.append(f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}")
    if not MIN_MEASURES <= params.measures <= MAX_MEASURES:
        errors.append(f"Measures must be between {MIN_MEASURES} and {MAX_MEASURES}")
    if not MIN_TEMPO <= params.tempo <= MAX_TEMPO:
        errors.append(f"Tempo must be between {MIN_TEMPO} and {MAX_TEMPO} BPM")

    if params.technical_type is not None and not _enum_ok(TechnicalType, params.technical_type):
        errors.append(f"Invalid technical type: {params.technical_type}")
    if not _enum_ok(ScaleType, params.scale_type):
        errors.append(f"Invalid scale type: {params.scale_type}")
    if not _enum_ok(ChordType, params.arpeggio_type):
        errors.append(f"Invalid arpeggio type: {params.arpeggio_type}")
    if params.hanon_pattern is not None:
        if not params.hanon_pattern:
            errors.append("Hanon pattern must contain at least one degree")
        elif any(not 1 <= d <= MAX_HANON_DEGREE for d in params.hanon_pattern):
            errors.append(f"Hanon pattern degrees must be between 1 and {MAX_HANON_DEGREE}")
    if not MIN_OCTAVES <= params.octaves <= MAX_OCTAVES:
        errors.append(f"Octaves must be between {MIN_OCTAVES} and {MAX_OCTAVES}")

    if not _enum_ok(Instrument, params.instrument):
        errors.append(f"Invalid instrument: {params.instrument}")
    if not 1 <= params.guitar_position <= MAX_GUITAR_POSITION:
        errors.append(f"Guitar position must be between 1 and {MAX_GUITAR_POSITION}")
    if params.melodic_motion is not None and not _enum_ok(MelodicMotion, params.melodic_motion):
        errors.append(f"Invalid melodic motion: {params.melodic_motion}")

    return errors


def ensure_valid_parameters(params: ExerciseParameters) -> None:
    """
    Raises:
        ValidationError: listing every violated constraint
    """
    errors = validate_exercise_parameters(params)
    if errors:
        raise ValidationError(errors)
