"""
Shared generator helpers.

Free functions every generator composes: parameter resolution, note
construction, key-signature application, rest completion and packing
a note stream into measures.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction

from rubato_notation.constants import REST_KEY, Clef, NoteDuration
from rubato_notation.core.keys import (
    KeySignature,
    get_key_signature_alterations,
    parse_key_signature,
)
from rubato_notation.core.pitch import Pitch
from rubato_notation.core.rhythm import NOTE_VALUES, TimeSignature, rest_durations
from rubato_notation.errors import ValidationError
from rubato_notation.models.exercise import ExerciseParameters
from rubato_notation.models.flat import FlatMeasure, FlatNote
from rubato_notation.validation.parameters import (
    clef_range_intersection,
    ensure_valid_parameters,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationContext:
    """Validated parameters with every token parsed and the range constrained."""

    params: ExerciseParameters
    key: KeySignature
    time_signature: TimeSignature
    clef: Clef
    lowest: int
    highest: int

    @property
    def capacity(self) -> Fraction:
        return self.time_signature.capacity

    def in_range(self, midi_note: int) -> bool:
        return self.lowest <= midi_note <= self.highest


def resolve(params: ExerciseParameters) -> GenerationContext:
    """
    Validate parameters and constrain the range to the clef.

    Raises:
        ValidationError: if any parameter is invalid or the range misses the clef
    """
    ensure_valid_parameters(params)
    bounds = clef_range_intersection(params.range, params.clef)
    if bounds is None:
        raise ValidationError([f"Range does not overlap the {params.clef} clef"])
    return GenerationContext(
        params=params,
        key=parse_key_signature(params.key_signature),
        time_signature=TimeSignature.parse(params.time_signature),
        clef=Clef(params.clef),
        lowest=bounds[0],
        highest=bounds[1],
    )


def lowest_root(tonic: str, ctx: GenerationContext) -> Pitch | None:
    """The lowest placement of a tonic at or above the range floor."""
    letter, accidental = tonic[0], tonic[1:]
    for octave in range(10):
        root = Pitch(letter, accidental, octave)
        if root.midi >= ctx.lowest:
            return root if root.midi <= ctx.highest else None
    return None


def make_note(
    pitch: Pitch,
    duration: NoteDuration,
    time: float = 0.0,
    fingering: str | None = None,
    dots: int = 0,
) -> FlatNote:
    return FlatNote(
        keys=[pitch.key],
        duration=duration.value,
        time=time,
        fingering=fingering,
        dots=dots,
    )


def make_rest(duration: NoteDuration, time: float = 0.0) -> FlatNote:
    return FlatNote(keys=[REST_KEY], duration=duration.value, time=time, rest=True)


def apply_key_signature(note: FlatNote, key: str | KeySignature) -> FlatNote:
    """
    Mark the accidental a key signature implies for a note.

    A natural-spelled note whose letter the key sharpens (or flattens)
    gets '#' (or 'b'). Rests and notes spelled with any accidental of
    their own are returned unchanged.
    """
    if note.rest or not note.keys:
        return note
    pitch = Pitch.parse_key(note.keys[0])
    accidental = get_key_signature_alterations(key).accidental_for(pitch.letter)
    if accidental is None or pitch.accidental:
        return note
    return note.model_copy(update={"accidental": accidental})


def sort_notes(notes: Iterable[FlatNote]) -> list[FlatNote]:
    return sorted(notes, key=lambda n: n.time)


def complete_with_rests(notes: list[FlatNote], capacity: Fraction) -> list[FlatNote]:
    """Append greedy rests after the last note until the measure is full."""
    used = sum((n.value for n in notes), Fraction(0))
    result = list(notes)
    time = used
    for duration in rest_durations(capacity - used):
        result.append(make_rest(duration, float(time)))
        time += NOTE_VALUES[duration]
    return result


def new_measure(number: int, ctx: GenerationContext, notes: list[FlatNote]) -> FlatMeasure:
    """Build a measure; the first carries time, key, clef and tempo."""
    if number == 1:
        return FlatMeasure(
            number=number,
            notes=notes,
            time_signature=str(ctx.time_signature),
            key_signature=ctx.key.value,
            clef=ctx.clef.value,
            tempo=ctx.params.tempo,
        )
    return FlatMeasure(number=number, notes=notes)


def rest_measure(number: int, ctx: GenerationContext) -> FlatMeasure:
    return new_measure(number, ctx, complete_with_rests([], ctx.capacity))


def pack_notes(
    notes: Iterable[FlatNote],
    ctx: GenerationContext,
    measure_count: int | None = None,
) -> list[FlatMeasure]:
    """
    Pack a stream of notes into measures.

    Notes are laid end to end. A note that would overflow the current
    measure closes it (padded with rests) and starts the next one. The
    stream is consumed lazily and stops once measure_count measures exist;
    the result is padded with rest measures to exactly that count.
    """
    count = measure_count if measure_count is not None else ctx.params.measures
    capacity = ctx.capacity
    measures: list[FlatMeasure] = []
    current: list[FlatNote] = []
    used = Fraction(0)

    def close() -> None:
        nonlocal current, used
        measures.append(
            new_measure(len(measures) + 1, ctx, complete_with_rests(current, capacity))
        )
        current = []
        used = Fraction(0)

    for note in notes:
        if len(measures) >= count:
            break
        value = note.value
        if value > capacity:
            logger.debug(
                "Skipping %s note longer than a %s measure", note.duration, ctx.time_signature
            )
            continue
        if current and used + value > capacity:
            close()
            if len(measures) >= count:
                break
        current.append(note.model_copy(update={"time": float(used)}))
        used += value
        if used >= capacity:
            close()

    if current and len(measures) < count:
        close()
    while len(measures) < count:
        measures.append(rest_measure(len(measures) + 1, ctx))
    return measures[:count]

