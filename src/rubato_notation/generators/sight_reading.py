"""
Sight-reading generator - short melodies with progressive difficulty.

Each measure is built in four passes: a melody over the key's scale tones,
rhythmic variation, musical markings, then key-signature accidentals and
rest completion. All randomness comes from one random.Random, seeded from
the parameters when a seed is given.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from fractions import Fraction

from rubato_notation.constants import (
    Articulation,
    DynamicMarking,
    Instrument,
    MelodicMotion,
    NoteDuration,
)
from rubato_notation.core.keys import key_info
from rubato_notation.core.pitch import Pitch, PitchClass
from rubato_notation.core.rhythm import NOTE_VALUES, available_durations
from rubato_notation.core.scale import key_scale, spell_in_key
from rubato_notation.generators.base import (
    GenerationContext,
    apply_key_signature,
    complete_with_rests,
    make_note,
    new_measure,
    resolve,
    sort_notes,
)
from rubato_notation.generators.fingering import guitar_fingering
from rubato_notation.models.exercise import ExerciseParameters
from rubato_notation.models.flat import FlatMeasure, FlatNote

LEAP_STEPS: tuple[int, ...] = (2, 3, 4)  # thirds to fifths, in scale steps
STEPWISE_PROBABILITY = 0.7
DOT_PROBABILITY = 0.3
SPLIT_PROBABILITY = 0.3
ARTICULATION_PROBABILITY = 0.3
ACCIDENTAL_PROBABILITY = 0.1

# Letters whose chromatic neighbour is a plain black key
_RAISABLE = frozenset("CDFGA")
_LOWERABLE = frozenset("DEGAB")


@dataclass(frozen=True)
class SightReadingOptions:
    """Sight-reading switches, defaulted from difficulty when unset."""

    melodic_motion: MelodicMotion
    include_dynamics: bool
    include_articulations: bool
    include_accidentals: bool

    @classmethod
    def from_params(cls, params: ExerciseParameters) -> SightReadingOptions:
        difficulty = params.difficulty
        motion = params.melodic_motion or (
            MelodicMotion.STEPWISE if difficulty <= 3 else MelodicMotion.MIXED
        )
        return cls(
            melodic_motion=MelodicMotion(motion),
            include_dynamics=(
                params.include_dynamics
                if params.include_dynamics is not None
                else difficulty > 5
            ),
            include_articulations=(
                params.include_articulations
                if params.include_articulations is not None
                else difficulty > 6
            ),
            include_accidentals=(
                params.include_accidentals
                if params.include_accidentals is not None
                else difficulty > 3
            ),
        )


def _scale_classes(ctx: GenerationContext) -> set[int]:
    return {PitchClass.parse(name).value for name in key_scale(ctx.key)}


class _Melody:
    """Walks the in-range scale tones of a key."""

    def __init__(self, ctx: GenerationContext, options: SightReadingOptions, rng: random.Random):
        self.ctx = ctx
        self.options = options
        self.rng = rng
        tones = [m for m in range(ctx.lowest, ctx.highest + 1) if m % 12 in _scale_classes(ctx)]
        self.tones = tones or list(range(ctx.lowest, ctx.highest + 1))
        self.index: int | None = None

    def _nearest(self, midi_note: int) -> int:
        return min(range(len(self.tones)), key=lambda i: abs(self.tones[i] - midi_note))

    def _step(self, index: int) -> int:
        direction = self.rng.choice((-1, 1))
        target = index + direction
        if not 0 <= target < len(self.tones):
            target = index - direction
        return max(0, min(len(self.tones) - 1, target))

    def _leap(self, index: int) -> int:
        size = self.rng.choice(LEAP_STEPS)
        if index < size:
            direction = 1
        elif index >= len(self.tones) - size:
            direction = -1
        else:
            direction = self.rng.choice((-1, 1))
        return max(0, min(len(self.tones) - 1, index + direction * size))

    def next(self) -> Pitch:
        if self.index is None:
            self.index = self._nearest((self.ctx.lowest + self.ctx.highest) // 2)
        elif self.options.melodic_motion == MelodicMotion.STEPWISE:
            self.index = self._step(self.index)
        elif self.options.melodic_motion == MelodicMotion.LEAPS:
            self.index = self._leap(self.index)
        elif self.rng.random() < STEPWISE_PROBABILITY:
            self.index = self._step(self.index)
        else:
            self.index = self._leap(self.index)
        return spell_in_key(self.tones[self.index], self.ctx.key)


def _fingering(ctx: GenerationContext, pitch: Pitch) -> str | None:
    params = ctx.params
    if params.include_fingerings and Instrument(params.instrument) == Instrument.GUITAR:
        return guitar_fingering(pitch.midi, params.guitar_position)
    return None


def _melody_notes(
    ctx: GenerationContext, melody: _Melody, rng: random.Random
) -> list[FlatNote]:
    """Fill one measure with melody notes drawn from the difficulty's durations."""
    difficulty = ctx.params.difficulty
    durations = available_durations(difficulty)
    capacity = ctx.capacity
    used = Fraction(0)
    notes: list[FlatNote] = []

    while used < capacity:
        remaining = capacity - used
        candidates = [d for d in durations if NOTE_VALUES[d] <= remaining]
        if not candidates:
            break
        duration = rng.choice(candidates)
        value = NOTE_VALUES[duration]
        dots = 0
        if (
            difficulty >= 5
            and duration != NoteDuration.SIXTEENTH
            and rng.random() < DOT_PROBABILITY
            and value * Fraction(3, 2) <= remaining
        ):
            dots = 1
            value = value * Fraction(3, 2)

        pitch = melody.next()
        notes.append(make_note(pitch, duration, float(used), _fingering(ctx, pitch), dots))
        used += value
    return notes


def _vary_rhythm(
    ctx: GenerationContext, notes: list[FlatNote], melody: _Melody, rng: random.Random
) -> list[FlatNote]:
    """Split some undotted whole and half notes at higher difficulties."""
    difficulty = ctx.params.difficulty
    if difficulty <= 2:
        return notes

    varied: list[FlatNote] = []
    for note in notes:
        if (
            note.duration == NoteDuration.WHOLE.value
            and note.dots == 0
            and difficulty > 3
            and rng.random() < SPLIT_PROBABILITY
        ):
            half = NoteDuration.HALF.value
            second = melody.next()
            varied.append(note.model_copy(update={"duration": half}))
            varied.append(
                make_note(second, NoteDuration.HALF, note.time + 2, _fingering(ctx, second))
            )
        elif (
            note.duration == NoteDuration.HALF.value
            and note.dots == 0
            and difficulty > 5
            and rng.random() < SPLIT_PROBABILITY
        ):
            quarter = NoteDuration.QUARTER.value
            varied.append(note.model_copy(update={"duration": quarter}))
            varied.append(note.model_copy(update={"duration": quarter, "time": note.time + 1}))
        else:
            varied.append(note)
    return varied


def _chromatic(
    ctx: GenerationContext, note: FlatNote, rng: random.Random
) -> FlatNote:
    """Occasionally raise (or, in flat keys, lower) an unaltered natural note."""
    if rng.random() >= ACCIDENTAL_PROBABILITY:
        return note
    pitch = Pitch.parse_key(note.keys[0])
    if pitch.accidental:
        return note
    flats = key_info(ctx.key).prefers_flats
    if flats and pitch.letter in _LOWERABLE:
        altered = Pitch(pitch.letter, "b", pitch.octave)
    elif not flats and pitch.letter in _RAISABLE:
        altered = Pitch(pitch.letter, "#", pitch.octave)
    else:
        return note
    if not ctx.in_range(altered.midi) or altered.midi % 12 in _scale_classes(ctx):
        return note
    return note.model_copy(update={"keys": [altered.key], "accidental": altered.accidental})


def _articulation(difficulty: int, rng: random.Random) -> str:
    choices = [Articulation.STACCATO, Articulation.ACCENT]
    if difficulty > 7:
        choices += [Articulation.TENUTO, Articulation.MARCATO]
    return rng.choice(choices).value


def _dynamic(difficulty: int, rng: random.Random) -> str:
    choices = [DynamicMarking.MF]
    if difficulty > 4:
        choices += [DynamicMarking.F, DynamicMarking.P]
    if difficulty > 7:
        choices += [DynamicMarking.FF, DynamicMarking.PP]
    return rng.choice(choices).value


def _add_markings(
    ctx: GenerationContext,
    notes: list[FlatNote],
    options: SightReadingOptions,
    rng: random.Random,
) -> list[FlatNote]:
    result: list[FlatNote] = []
    for note in notes:
        if options.include_accidentals:
            note = _chromatic(ctx, note, rng)
        if options.include_articulations and rng.random() < ARTICULATION_PROBABILITY:
            note = note.model_copy(
                update={"articulation": _articulation(ctx.params.difficulty, rng)}
            )
        result.append(note)
    return result


def generate_sight_reading(
    params: ExerciseParameters, rng: random.Random | None = None
) -> list[FlatMeasure]:
    """
    Generate sight-reading measures.

    Args:
        params: Exercise parameters; params.seed makes the output repeatable
        rng: Optional random source, overriding the seed

    Returns:
        Exactly params.measures measures, each filling its time signature
    """
    ctx = resolve(params)
    rng = rng or random.Random(params.seed)
    options = SightReadingOptions.from_params(params)
    melody = _Melody(ctx, options, rng)

    measures: list[FlatMeasure] = []
    for number in range(1, params.measures + 1):
        notes = _melody_notes(ctx, melody, rng)
        notes = _vary_rhythm(ctx, notes, melody, rng)
        notes = _add_markings(ctx, notes, options, rng)
        notes = [apply_key_signature(n, ctx.key) for n in notes]
        notes = complete_with_rests(sort_notes(notes), ctx.capacity)

        measure = new_measure(number, ctx, notes)
        if number == 1 and options.include_dynamics:
            measure = measure.model_copy(update={"dynamics": _dynamic(params.difficulty, rng)})
        measures.append(measure)
    return measures
