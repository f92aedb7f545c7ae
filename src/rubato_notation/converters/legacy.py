"""
Flat <-> multi-voice conversion.

flat_to_multi_voice lifts a single-voice SheetMusic document into a Score:
one part, and either one 'main' staff or a treble/bass grand staff split
by octave. multi_voice_to_flat collapses a Score back to one note list per
measure, merging simultaneous notes into chords.

Both directions are pure: they build new trees, skip malformed notes and
record what they skipped in an optional ConversionReport.
"""

from __future__ import annotations

import logging
from fractions import Fraction

from rubato_notation.constants import REST_KEY, Clef, DifficultyBand, Instrument, NoteDuration
from rubato_notation.core.pitch import Pitch, is_valid_key
from rubato_notation.core.rhythm import (
    NOTE_VALUES,
    TimeSignature,
    is_valid_duration,
    note_value,
    rest_durations,
)
from rubato_notation.errors import FormatError
from rubato_notation.models.exercise import GeneratedExercise
from rubato_notation.models.flat import FlatMeasure, FlatNote, SheetMusic
from rubato_notation.models.score import Measure, Note, Part, Score, ScoreMetadata, Staff, Voice

logger = logging.getLogger(__name__)

LEGACY_SOURCE = "Legacy format conversion"
MAIN_ID = "main"
TREBLE_ID = "treble"
BASS_ID = "bass"
RIGHT_HAND = "rightHand"
LEFT_HAND = "leftHand"

# Simultaneity window for chord grouping, in quarter units
SIMULTANEITY = 1e-6

_NOTE_FIELDS = (
    "keys",
    "duration",
    "time",
    "accidental",
    "dots",
    "stem",
    "beam",
    "articulation",
    "dynamic",
    "fingering",
    "rest",
    "tie",
)
_MARKING_FIELDS = set(_NOTE_FIELDS) - {"keys", "duration", "dots", "time", "rest"}


class ConversionReport:
    """Warnings collected while converting a document."""

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def _note_problem(keys: list[str], duration: str, dots: int, rest: bool) -> str | None:
    """Describe why a note cannot be converted, or None if it can."""
    if not is_valid_duration(duration):
        return f"invalid duration {duration!r}"
    if dots < 0:
        return f"invalid dots {dots}"
    if rest:
        return None
    if not keys:
        return "no keys"
    bad = [k for k in keys if not is_valid_key(k)]
    if bad:
        return f"invalid keys {bad}"
    return None


# --- flat -> multi-voice -----------------------------------------------------


def _lift(note: FlatNote, voice_id: str, staff_id: str) -> Note:
    data = note.model_dump(include=set(_NOTE_FIELDS))
    if note.rest:
        placeable = note.keys and all(map(is_valid_key, note.keys))
        data["keys"] = list(note.keys) if placeable else [REST_KEY]
    return Note(**data, voice_id=voice_id, staff_id=staff_id)


def _fill_gaps(notes: list[Note], capacity: Fraction, voice_id: str, staff_id: str) -> list[Note]:
    """Insert rests wherever a voice is silent so it spans the whole measure."""
    result: list[Note] = []
    cursor = Fraction(0)

    def rests_until(end: Fraction) -> None:
        nonlocal cursor
        for duration in rest_durations(end - cursor):
            result.append(
                Note(
                    keys=[REST_KEY],
                    duration=duration.value,
                    time=float(cursor),
                    rest=True,
                    voice_id=voice_id,
                    staff_id=staff_id,
                )
            )
            cursor += NOTE_VALUES[duration]

    for note in sorted(notes, key=lambda n: n.time):
        start = Fraction(note.time).limit_denominator(64)
        if start > cursor:
            rests_until(start)
        result.append(note)
        cursor = max(cursor, start + note.value)
    if cursor < capacity:
        rests_until(capacity)
    return result


def _is_bass(note: FlatNote) -> bool:
    """Notes below middle C's octave go to the bass staff."""
    return Pitch.parse_key(note.keys[0]).octave < 4


def flat_to_multi_voice(doc: SheetMusic, report: ConversionReport | None = None) -> Score:
    """
    Convert a flat document to a multi-voice Score.

    A document with any grand-staff measure becomes a treble/bass grand
    staff: rests and notes whose first key sits in octave 4 or higher go
    to the right hand, the rest to the left hand, and each hand's gaps are
    filled with rests. Otherwise every measure gets one 'main' staff with
    one 'main' voice.
    """
    report = report if report is not None else ConversionReport()
    grand = any(m.clef == Clef.GRAND_STAFF.value for m in doc.measures)

    part = Part(
        id=MAIN_ID,
        name=doc.instrument,
        instrument=doc.instrument.lower(),
        staves=[TREBLE_ID, BASS_ID] if grand else [MAIN_ID],
    )

    time_signature = doc.time_signature
    key_signature = doc.key_signature
    clef = Clef.TREBLE.value
    measures: list[Measure] = []
    for flat in doc.measures:
        time_signature = flat.time_signature or time_signature
        key_signature = flat.key_signature or key_signature
        if flat.clef and flat.clef != Clef.GRAND_STAFF.value:
            clef = flat.clef

        notes: list[FlatNote] = []
        for index, note in enumerate(flat.notes):
            problem = _note_problem(note.keys, note.duration, note.dots, note.rest)
            if problem:
                report.warn(f"Measure {flat.number} note {index} skipped: {problem}")
                continue
            notes.append(note)

        if grand:
            try:
                capacity = TimeSignature.parse(time_signature).capacity
            except FormatError:
                report.warn(f"Measure {flat.number}: invalid time signature {time_signature!r}")
                capacity = TimeSignature.COMMON_TIME.capacity
            staves = _grand_staves(notes, capacity)
        else:
            voice = Voice(
                id=MAIN_ID,
                name="Main Voice",
                notes=[_lift(n, MAIN_ID, MAIN_ID) for n in notes],
            )
            staves = [Staff(id=MAIN_ID, clef=clef, voices=[voice])]

        measures.append(
            Measure(
                number=flat.number,
                staves=staves,
                time_signature=time_signature,
                key_signature=key_signature,
                tempo=flat.tempo,
                dynamics=flat.dynamics,
                rehearsal_mark=flat.rehearsal_mark,
                bar_line=flat.bar_line,
                repeat_count=flat.repeat_count,
            )
        )

    return Score(
        title=doc.title,
        composer=doc.composer,
        parts=[part],
        measures=measures,
        metadata=ScoreMetadata(
            id=doc.id,
            source=LEGACY_SOURCE,
            tags=list(doc.tags),
            difficulty=doc.difficulty_level,
            duration=doc.duration_seconds,
        ),
    )


def _grand_staves(notes: list[FlatNote], capacity: Fraction) -> list[Staff]:
    right = [_lift(n, RIGHT_HAND, TREBLE_ID) for n in notes if n.rest or not _is_bass(n)]
    left = [_lift(n, LEFT_HAND, BASS_ID) for n in notes if not n.rest and _is_bass(n)]

    treble_voices = []
    if right:
        treble_voices.append(
            Voice(
                id=RIGHT_HAND,
                name="Right Hand",
                stem_direction="up",
                notes=_fill_gaps(right, capacity, RIGHT_HAND, TREBLE_ID),
            )
        )
    bass_voices = []
    if left:
        bass_voices.append(
            Voice(
                id=LEFT_HAND,
                name="Left Hand",
                stem_direction="down",
                notes=_fill_gaps(left, capacity, LEFT_HAND, BASS_ID),
            )
        )
    return [
        Staff(id=TREBLE_ID, clef=Clef.TREBLE.value, voices=treble_voices),
        Staff(id=BASS_ID, clef=Clef.BASS.value, voices=bass_voices),
    ]


def exercise_to_score(exercise: GeneratedExercise, report: ConversionReport | None = None) -> Score:
    """Convert a generated exercise's measures to a Score."""
    score = flat_to_multi_voice(exercise.to_sheet_music(), report)
    score.metadata.tags = list(dict.fromkeys([*score.metadata.tags, "exercise"]))
    return score


# --- multi-voice -> flat -----------------------------------------------------


def _merge_simultaneous(
    notes: list[Note], measure_number: int, report: ConversionReport
) -> list[FlatNote]:
    """
    Collapse notes sharing a start time into one chord note.

    The chord keeps the first note's duration and markings. Keys are the
    ordered union of the pitched notes' keys; the chord is a rest only if
    every grouped note is.
    """
    groups: list[list[Note]] = []
    for note in notes:
        if groups and abs(groups[-1][0].time - note.time) <= SIMULTANEITY:
            groups[-1].append(note)
        else:
            groups.append([note])

    flat: list[FlatNote] = []
    for group in groups:
        first = group[0]
        pitched = [n for n in group if not n.rest]
        if len({note_value(n.duration, n.dots) for n in group}) > 1:
            report.warn(
                f"Measure {measure_number}: notes at time {first.time:g} have different "
                f"durations; chord takes {first.duration!r}"
            )
        lead = pitched[0] if pitched else first
        if pitched:
            keys = list(dict.fromkeys(k for n in pitched for k in n.keys))
        else:
            keys = list(first.keys) or [REST_KEY]
        flat.append(
            FlatNote(
                **lead.model_dump(include=_MARKING_FIELDS),
                keys=keys,
                duration=first.duration,
                dots=first.dots,
                time=first.time,
                rest=not pitched,
            )
        )
    return flat


def _flat_clef(measure: Measure) -> str:
    clefs = [s.clef for s in measure.staves]
    if clefs == [Clef.TREBLE.value, Clef.BASS.value]:
        return Clef.GRAND_STAFF.value
    return clefs[0] if clefs else Clef.TREBLE.value


def _band(level: int | None) -> str:
    if level is None:
        return DifficultyBand.INTERMEDIATE.value
    if level <= 3:
        return DifficultyBand.BEGINNER.value
    if level <= 6:
        return DifficultyBand.INTERMEDIATE.value
    return DifficultyBand.ADVANCED.value


def multi_voice_to_flat(score: Score, report: ConversionReport | None = None) -> SheetMusic:
    """
    Convert a Score to a flat document.

    Per measure: every voice's notes are pooled, malformed notes skipped,
    times shifted so the earliest note starts at 0, notes sharing a start
    time merged into chords, and an empty measure given one whole rest.
    Time and key signatures are carried forward from earlier measures. A
    score without measures yields a single whole-rest measure in 4/4.
    """
    report = report if report is not None else ConversionReport()
    time_signature = "4/4"
    key_signature = "C_MAJOR"
    first_time: str | None = None
    first_key: str | None = None
    first_tempo: int | None = None

    measures: list[FlatMeasure] = []
    for measure in score.measures:
        if measure.time_signature:
            time_signature = measure.time_signature
            first_time = first_time or time_signature
        if measure.key_signature:
            key_signature = measure.key_signature
            first_key = first_key or key_signature
        if measure.tempo is not None and first_tempo is None:
            first_tempo = measure.tempo

        pooled: list[Note] = []
        for staff in measure.staves:
            for voice in staff.voices:
                for index, note in enumerate(voice.notes):
                    problem = _note_problem(note.keys, note.duration, note.dots, note.rest)
                    if problem:
                        report.warn(
                            f"Measure {measure.number} staff {staff.id} voice {voice.id} "
                            f"note {index} skipped: {problem}"
                        )
                        continue
                    pooled.append(note)

        if pooled:
            pooled.sort(key=lambda n: n.time)
            origin = pooled[0].time
            if origin:
                pooled = [n.model_copy(update={"time": n.time - origin}) for n in pooled]
            notes = _merge_simultaneous(pooled, measure.number, report)
        else:
            notes = [FlatNote(keys=[REST_KEY], duration=NoteDuration.WHOLE.value, rest=True)]

        measures.append(
            FlatMeasure(
                number=measure.number,
                notes=notes,
                time_signature=time_signature,
                key_signature=key_signature,
                clef=_flat_clef(measure),
                tempo=measure.tempo,
                dynamics=measure.dynamics,
                rehearsal_mark=measure.rehearsal_mark,
                bar_line=measure.bar_line,
                repeat_count=measure.repeat_count,
            )
        )

    if not measures:
        measures.append(
            FlatMeasure(
                number=1,
                notes=[FlatNote(keys=[REST_KEY], duration=NoteDuration.WHOLE.value, rest=True)],
                time_signature="4/4",
                key_signature="C_MAJOR",
                clef=Clef.TREBLE.value,
            )
        )

    instrument = Instrument.PIANO.value
    if score.parts and (score.parts[0].instrument or "").upper() == Instrument.GUITAR.value:
        instrument = Instrument.GUITAR.value

    metadata = score.metadata
    return SheetMusic(
        id=metadata.id or f"converted-{_slug(score.title)}",
        title=score.title,
        composer=score.composer or "Unknown",
        instrument=instrument,
        difficulty=_band(metadata.difficulty),
        difficulty_level=metadata.difficulty or 5,
        duration_seconds=int(metadata.duration or 60),
        time_signature=first_time or "4/4",
        key_signature=first_key or "C_MAJOR",
        suggested_tempo=first_tempo or 120,
        tags=list(metadata.tags),
        measures=measures,
    )


def _slug(text: str) -> str:
    slug = "".join(c if c.isalnum() else "-" for c in text.lower()).strip("-")
    return "-".join(part for part in slug.split("-") if part) or "score"
