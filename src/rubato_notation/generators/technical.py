"""
Technical exercise generators - scales, arpeggios, Hanon patterns, mixed.

Each generator builds a note stream from the key's tonic placed at the
bottom of the constrained range and hands it to pack_notes.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from rubato_notation.constants import NoteDuration
from rubato_notation.core.chord import CHORD_INTERVALS, ChordType, spell_chord
from rubato_notation.core.keys import get_key_root
from rubato_notation.core.pitch import Pitch
from rubato_notation.core.scale import (
    SCALE_INTERVALS,
    ScaleType,
    key_scale_type,
    place_pitch,
    spell_scale,
)
from rubato_notation.generators.base import (
    GenerationContext,
    apply_key_signature,
    lowest_root,
    make_note,
    pack_notes,
    resolve,
)
from rubato_notation.generators.fingering import fingering_for
from rubato_notation.models.exercise import ExerciseParameters
from rubato_notation.models.flat import FlatMeasure, FlatNote

DEFAULT_HANON_PATTERN: tuple[int, ...] = (1, 3, 5, 6, 5, 3)


def scale_duration(difficulty: int) -> NoteDuration:
    if difficulty <= 3:
        return NoteDuration.QUARTER
    if difficulty <= 6:
        return NoteDuration.EIGHTH
    return NoteDuration.SIXTEENTH


def arpeggio_duration(difficulty: int) -> NoteDuration:
    if difficulty <= 4:
        return NoteDuration.QUARTER
    if difficulty <= 7:
        return NoteDuration.EIGHTH
    return NoteDuration.SIXTEENTH


def degree_pitch(
    names: Sequence[str],
    intervals: Sequence[int],
    root: Pitch,
    index: int,
    ctx: GenerationContext,
) -> Pitch | None:
    """The index-th step of a pattern above root, or None when out of range."""
    size = len(names)
    midi_note = root.midi + 12 * (index // size) + intervals[index % size]
    if not ctx.in_range(midi_note):
        return None
    return place_pitch(names[index % size], midi_note)


def _with_descent(run: list[tuple[Pitch, int]], ctx: GenerationContext) -> list[tuple[Pitch, int]]:
    if ctx.params.include_descending:
        return run + list(reversed(run))
    return run


def scale_run(ctx: GenerationContext) -> list[tuple[Pitch, int]]:
    """Ascending (and optionally descending) scale as (pitch, degree index)."""
    scale_type = ScaleType(ctx.params.scale_type)
    tonic = get_key_root(ctx.key)
    root = lowest_root(tonic, ctx)
    if root is None:
        return []

    names = spell_scale(tonic, scale_type)
    intervals = SCALE_INTERVALS[scale_type]
    size = len(names)
    run: list[tuple[Pitch, int]] = []
    for index in range(size * ctx.params.octaves):
        pitch = degree_pitch(names, intervals, root, index, ctx)
        if pitch is not None:
            run.append((pitch, index % size))

    top = root.midi + 12 * ctx.params.octaves
    if ctx.in_range(top):
        run.append((place_pitch(names[0], top), size))
    return _with_descent(run, ctx)


def arpeggio_run(ctx: GenerationContext) -> list[tuple[Pitch, int]]:
    """Ascending (and optionally descending) chord tones as (pitch, tone index)."""
    chord_type = ChordType(ctx.params.arpeggio_type)
    tonic = get_key_root(ctx.key)
    root = lowest_root(tonic, ctx)
    if root is None:
        return []

    names = spell_chord(tonic, chord_type)
    intervals = CHORD_INTERVALS[chord_type]
    size = len(names)
    run: list[tuple[Pitch, int]] = []
    for index in range(size * ctx.params.octaves):
        pitch = degree_pitch(names, intervals, root, index, ctx)
        if pitch is not None:
            run.append((pitch, index % size))

    top = root.midi + 12 * ctx.params.octaves
    if ctx.in_range(top):
        run.append((place_pitch(names[0], top), 0))
    return _with_descent(run, ctx)


def _notes(
    run: list[tuple[Pitch, int]],
    duration: NoteDuration,
    ctx: GenerationContext,
    chord_type: ChordType | None = None,
) -> list[FlatNote]:
    params = ctx.params
    notes: list[FlatNote] = []
    for pitch, index in run:
        fingering = None
        if params.include_fingerings:
            fingering = fingering_for(
                params.instrument,
                pitch.midi,
                scale_degree=index if chord_type is None else None,
                chord_type=chord_type,
                chord_tone=index if chord_type is not None else None,
                guitar_position=params.guitar_position,
            )
        notes.append(apply_key_signature(make_note(pitch, duration, fingering=fingering), ctx.key))
    return notes


def generate_scale(params: ExerciseParameters) -> list[FlatMeasure]:
    """
    Scale exercise: the key's scale up through the requested octaves,
    closing on the top tonic, then back down when include_descending.
    """
    ctx = resolve(params)
    notes = _notes(scale_run(ctx), scale_duration(params.difficulty), ctx)
    return pack_notes(notes, ctx)


def generate_arpeggio(params: ExerciseParameters) -> list[FlatMeasure]:
    """Arpeggio exercise over the key's tonic chord of the requested type."""
    ctx = resolve(params)
    chord_type = ChordType(params.arpeggio_type)
    notes = _notes(arpeggio_run(ctx), arpeggio_duration(params.difficulty), ctx, chord_type)
    return pack_notes(notes, ctx)


def hanon_cells(ctx: GenerationContext) -> list[tuple[Pitch, int]]:
    """
    One pass of the Hanon pattern starting on each scale degree in turn.

    For start degree s and pattern step p the note is scale index s + p - 1,
    wrapping into higher octaves. Out-of-range notes are dropped.
    """
    tonic = get_key_root(ctx.key)
    root = lowest_root(tonic, ctx)
    if root is None:
        return []

    scale_type = key_scale_type(ctx.key)
    names = spell_scale(tonic, scale_type)
    intervals = SCALE_INTERVALS[scale_type]
    pattern = ctx.params.hanon_pattern or DEFAULT_HANON_PATTERN
    cells: list[tuple[Pitch, int]] = []
    for start in range(len(names)):
        for step in pattern:
            index = start + step - 1
            pitch = degree_pitch(names, intervals, root, index, ctx)
            if pitch is not None:
                cells.append((pitch, index % len(names)))
    return cells


def _cycle(notes: list[FlatNote]) -> Iterator[FlatNote]:
    while notes:
        yield from notes


def generate_hanon(params: ExerciseParameters) -> list[FlatMeasure]:
    """
    Hanon-style exercise in sixteenth notes.

    The pattern is repeated from successive start degrees, cycling back to
    the first degree, and stops as soon as the requested measures are full.
    """
    ctx = resolve(params)
    notes = _notes(hanon_cells(ctx), NoteDuration.SIXTEENTH, ctx)
    # A cycled stream must contain a note that fits, or packing never ends
    notes = [n for n in notes if n.value <= ctx.capacity]
    return pack_notes(_cycle(notes), ctx)


def generate_mixed(params: ExerciseParameters) -> list[FlatMeasure]:
    """
    First half (rounded down) scale measures, remainder arpeggio measures,
    numbered continuously.
    """
    ctx = resolve(params)
    half = params.measures // 2
    measures: list[FlatMeasure] = []
    if half > 0:
        measures.extend(generate_scale(params.model_copy(update={"measures": half})))

    arpeggio = generate_arpeggio(params.model_copy(update={"measures": params.measures - half}))
    for index, measure in enumerate(arpeggio):
        if half > 0:
            measure = measure.model_copy(
                update={
                    "number": half + index + 1,
                    "time_signature": None,
                    "key_signature": None,
                    "clef": None,
                    "tempo": None,
                }
            )
        measures.append(measure)
    return measures[: ctx.params.measures]
