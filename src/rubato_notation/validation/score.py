"""
Score Validator - structural checks over the multi-voice tree.

Validates:
- Note pitch strings, duration classes and rendering vocabularies
- Voice ordering and voice duration against the governing time signature
- Staff clefs and voice-id uniqueness
- Part MIDI settings and staff references
- Measure signatures, tempo, bar lines and numbering

Every check reports through a ValidationResult; nothing here raises.
"""

from __future__ import annotations

from fractions import Fraction

from rubato_notation.constants import (
    MAX_PAN,
    MAX_TEMPO,
    MIN_PAN,
    MIN_TEMPO,
    Articulation,
    BarLineType,
    Clef,
    DynamicMarking,
    OrnamentType,
    StemDirection,
    TieType,
)
from rubato_notation.core.keys import parse_key_signature
from rubato_notation.core.pitch import is_valid_key
from rubato_notation.core.rhythm import TimeSignature, is_valid_duration, note_value, same_duration
from rubato_notation.errors import FormatError
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice
from rubato_notation.validation.result import ValidationResult

VALID_ACCIDENTALS = frozenset({"#", "b", "n", "##", "bb"})
MAX_DOTS = 3

_STAFF_CLEFS = frozenset(c.value for c in Clef if c != Clef.GRAND_STAFF)


def _in(value: str, enum_cls: type) -> bool:
    return value in {member.value for member in enum_cls}


def _parse_time_signature(text: str | TimeSignature | None) -> TimeSignature | None:
    if text is None:
        return None
    try:
        return TimeSignature.parse(text)
    except FormatError:
        return None


def calculate_voice_duration(
    voice: Voice, time_signature: str | TimeSignature
) -> tuple[float, float]:
    """
    Compare a voice's length with its measure's capacity.

    Notes with an unknown duration class contribute nothing.

    Returns:
        (expected, actual) in quarter units
    """
    expected = TimeSignature.parse(time_signature).capacity
    actual = Fraction(0)
    for note in voice.notes:
        if is_valid_duration(note.duration) and 0 <= note.dots <= MAX_DOTS:
            actual += note_value(note.duration, note.dots)
    return float(expected), float(actual)


class ScoreValidator:
    """Validates score structure at every level of the tree."""

    def validate_note(self, note: Note, entity: str = "note") -> ValidationResult:
        result = ValidationResult()

        if not note.keys:
            result.add_error("EMPTY_KEYS", "Note must have at least one key", entity)
        elif not note.rest:
            for key in note.keys:
                if not is_valid_key(key):
                    result.add_error("INVALID_KEY", f"Invalid key format: {key!r}", entity)

        if not is_valid_duration(note.duration):
            result.add_error("INVALID_DURATION", f"Invalid duration: {note.duration!r}", entity)
        if note.time < 0:
            result.add_error("NEGATIVE_TIME", f"Note time must be >= 0, got {note.time}", entity)
        if not 0 <= note.dots <= MAX_DOTS:
            result.add_error("INVALID_DOTS", f"Dots must be 0-{MAX_DOTS}, got {note.dots}", entity)
        if note.stem is not None and not _in(note.stem, StemDirection):
            result.add_error("INVALID_STEM", f"Invalid stem direction: {note.stem!r}", entity)
        if note.tie is not None and not _in(note.tie, TieType):
            result.add_error("INVALID_TIE", f"Invalid tie type: {note.tie!r}", entity)
        if note.accidental is not None and note.accidental not in VALID_ACCIDENTALS:
            result.add_error(
                "INVALID_ACCIDENTAL", f"Invalid accidental: {note.accidental!r}", entity
            )
        for ornament in note.ornaments:
            if not _in(ornament.type, OrnamentType):
                result.add_error(
                    "INVALID_ORNAMENT", f"Invalid ornament type: {ornament.type!r}", entity
                )

        if note.articulation is not None and not _in(note.articulation, Articulation):
            result.add_warning(
                "UNKNOWN_ARTICULATION", f"Unknown articulation: {note.articulation!r}", entity
            )
        if note.dynamic is not None and not _in(note.dynamic, DynamicMarking):
            result.add_warning("UNKNOWN_DYNAMIC", f"Unknown dynamic: {note.dynamic!r}", entity)
        if note.rest and note.grace is not None:
            result.add_warning("GRACE_REST", "Rests cannot be grace notes", entity)

        return result

    def validate_voice(
        self,
        voice: Voice,
        time_signature: str | TimeSignature | None = None,
        entity: str | None = None,
    ) -> ValidationResult:
        """
        Validate a voice and, given a time signature, its total duration.
        """
        result = ValidationResult()
        entity = entity or f"voice {voice.id}"

        if not voice.id:
            result.add_error("MISSING_ID", "Voice must have an ID", entity)
        if voice.stem_direction is not None and not _in(voice.stem_direction, StemDirection):
            result.add_error(
                "INVALID_STEM", f"Invalid stem direction: {voice.stem_direction!r}", entity
            )

        previous_time = float("-inf")
        out_of_order = False
        for index, note in enumerate(voice.notes):
            result.merge(self.validate_note(note, f"{entity} note {index}"))
            if note.voice_id is not None and note.voice_id != voice.id:
                result.add_warning(
                    "VOICE_MISMATCH",
                    f"Note declares voice {note.voice_id!r} but belongs to {voice.id!r}",
                    f"{entity} note {index}",
                )
            if note.time < previous_time:
                out_of_order = True
            previous_time = note.time

        if out_of_order:
            result.add_warning(
                "UNORDERED_NOTES",
                f"Notes in voice {voice.id} may not be in chronological order",
                entity,
            )

        parsed = _parse_time_signature(time_signature)
        if time_signature is not None and parsed is None:
            result.add_error(
                "INVALID_TIME_SIGNATURE", f"Invalid time signature: {time_signature!r}", entity
            )
        elif parsed is not None:
            expected, actual = calculate_voice_duration(voice, parsed)
            if not same_duration(expected, actual):
                result.add_error(
                    "DURATION_MISMATCH",
                    f"Voice {voice.id} lasts {actual:g} quarter notes but "
                    f"{time_signature} requires {expected:g}",
                    entity,
                )

        return result

    def validate_staff(
        self,
        staff: Staff,
        time_signature: str | TimeSignature | None = None,
        entity: str | None = None,
    ) -> ValidationResult:
        result = ValidationResult()
        entity = entity or f"staff {staff.id}"

        if not staff.id:
            result.add_error("MISSING_ID", "Staff must have an ID", entity)
        if staff.clef not in _STAFF_CLEFS:
            result.add_error("INVALID_CLEF", f"Invalid clef: {staff.clef!r}", entity)

        voice_ids = [v.id for v in staff.voices]
        if len(voice_ids) != len(set(voice_ids)):
            result.add_error("DUPLICATE_VOICE", "Staff contains duplicate voice IDs", entity)

        for voice in staff.voices:
            result.merge(
                self.validate_voice(voice, time_signature, f"{entity} voice {voice.id}")
            )
        return result

    def validate_part(self, part: Part, entity: str | None = None) -> ValidationResult:
        result = ValidationResult()
        entity = entity or f"part {part.id}"

        if not part.id:
            result.add_error("MISSING_ID", "Part must have an ID", entity)
        if not part.name:
            result.add_error("MISSING_NAME", "Part must have a name", entity)
        if not part.staves:
            result.add_error("NO_STAVES", "Part must reference at least one staff", entity)
        if len(part.staves) != len(set(part.staves)):
            result.add_error("DUPLICATE_STAFF_REF", "Part references a staff twice", entity)
        if part.midi_program is not None and not 0 <= part.midi_program <= 127:
            result.add_error(
                "INVALID_PROGRAM", "MIDI program must be between 0 and 127", entity
            )
        if part.volume is not None and not 0 <= part.volume <= 127:
            result.add_error("INVALID_VOLUME", "Volume must be between 0 and 127", entity)
        if part.pan is not None and not MIN_PAN <= part.pan <= MAX_PAN:
            result.add_error("INVALID_PAN", f"Pan must be between {MIN_PAN} and {MAX_PAN}", entity)
        return result

    def validate_measure(
        self,
        measure: Measure,
        time_signature: str | TimeSignature | None = None,
        entity: str | None = None,
    ) -> ValidationResult:
        """
        Validate a measure.

        The measure's own time signature governs when present; otherwise
        time_signature (carried from earlier measures) does.
        """
        result = ValidationResult()
        entity = entity or f"measure {measure.number}"

        if measure.number < 1:
            result.add_error(
                "INVALID_NUMBER", f"Measure number must be >= 1, got {measure.number}", entity
            )

        governing: str | TimeSignature | None = time_signature
        if measure.time_signature is not None:
            parsed = _parse_time_signature(measure.time_signature)
            if parsed is None:
                result.add_error(
                    "INVALID_TIME_SIGNATURE",
                    f"Invalid time signature: {measure.time_signature!r}",
                    entity,
                )
                governing = None
            else:
                governing = parsed
                if not parsed.is_standard:
                    result.add_warning(
                        "NONSTANDARD_TIME_SIGNATURE",
                        f"Non-standard time signature: {measure.time_signature}",
                        entity,
                    )

        if measure.key_signature is not None:
            try:
                parse_key_signature(measure.key_signature)
            except FormatError:
                result.add_error(
                    "INVALID_KEY_SIGNATURE",
                    f"Invalid key signature: {measure.key_signature!r}",
                    entity,
                )

        if measure.tempo is not None and not MIN_TEMPO <= measure.tempo <= MAX_TEMPO:
            result.add_warning(
                "TEMPO_RANGE", f"Tempo should be between {MIN_TEMPO} and {MAX_TEMPO} BPM", entity
            )
        if measure.bar_line is not None and not _in(measure.bar_line, BarLineType):
            result.add_error("INVALID_BAR_LINE", "Invalid bar line type", entity)
        if measure.repeat_count is not None and measure.repeat_count < 1:
            result.add_error("INVALID_REPEAT", "Repeat count must be at least 1", entity)

        staff_ids = [s.id for s in measure.staves]
        if len(staff_ids) != len(set(staff_ids)):
            result.add_error("DUPLICATE_STAFF", "Measure contains duplicate staff IDs", entity)

        for staff in measure.staves:
            result.merge(self.validate_staff(staff, governing, f"{entity} staff {staff.id}"))
        return result

    def validate(self, score: Score) -> ValidationResult:
        """
        Validate a whole score.

        Args:
            score: The score to validate

        Returns:
            ValidationResult with any issues found
        """
        result = ValidationResult()

        self._validate_header(score, result)
        self._validate_parts(score, result)
        self._validate_measures(score, result)
        self._validate_references(score, result)

        return result

    def _validate_header(self, score: Score, result: ValidationResult) -> None:
        if not score.title:
            result.add_warning("MISSING_TITLE", "Score has no title", "score")
        if not score.parts:
            result.add_error("NO_PARTS", "Score must have at least one part", "score")
        if not score.measures:
            result.add_warning("NO_MEASURES", "Score has no measures", "score")

    def _validate_parts(self, score: Score, result: ValidationResult) -> None:
        part_ids = [p.id for p in score.parts]
        if len(part_ids) != len(set(part_ids)):
            result.add_error("DUPLICATE_PART", "Score contains duplicate part IDs", "score")
        for part in score.parts:
            result.merge(self.validate_part(part))

    def _validate_measures(self, score: Score, result: ValidationResult) -> None:
        governing: str | TimeSignature = TimeSignature.COMMON_TIME
        previous_number: int | None = None
        for measure in score.measures:
            result.merge(self.validate_measure(measure, governing))
            parsed = _parse_time_signature(measure.time_signature)
            if parsed is not None:
                governing = parsed
            if previous_number is not None and measure.number != previous_number + 1:
                result.add_warning(
                    "MEASURE_ORDER",
                    "Measures may not be in sequential order",
                    f"measure {measure.number}",
                )
            previous_number = measure.number

    def _validate_references(self, score: Score, result: ValidationResult) -> None:
        referenced: set[str] = set()
        for part in score.parts:
            referenced.update(part.staves)
            for measure in score.measures:
                present = {s.id for s in measure.staves}
                for staff_id in part.staves:
                    if staff_id not in present:
                        result.add_error(
                            "MISSING_STAFF",
                            f"Part {part.id} references non-existent staff {staff_id}",
                            f"measure {measure.number}",
                        )

        for staff_id in score.staff_ids():
            if staff_id not in referenced:
                result.add_warning(
                    "ORPHAN_STAFF", f"Staff {staff_id} is not owned by any part", "score"
                )


_validator = ScoreValidator()


def validate_note(note: Note) -> ValidationResult:
    return _validator.validate_note(note)


def validate_voice(
    voice: Voice, time_signature: str | TimeSignature | None = None
) -> ValidationResult:
    return _validator.validate_voice(voice, time_signature)


def validate_staff(
    staff: Staff, time_signature: str | TimeSignature | None = None
) -> ValidationResult:
    return _validator.validate_staff(staff, time_signature)


def validate_part(part: Part) -> ValidationResult:
    return _validator.validate_part(part)


def validate_measure(
    measure: Measure, time_signature: str | TimeSignature | None = None
) -> ValidationResult:
    return _validator.validate_measure(measure, time_signature)


def validate_score(score: Score) -> ValidationResult:
    """Convenience function to validate a score."""
    return _validator.validate(score)


def validate_measure_timing(
    measure: Measure, time_signature: str | TimeSignature | None = None
) -> ValidationResult:
    """
    Check only that every voice of a measure fills its time signature.
    """
    result = ValidationResult()
    entity = f"measure {measure.number}"
    governing = _parse_time_signature(measure.time_signature)
    if governing is None and measure.time_signature is None:
        governing = (
            _parse_time_signature(time_signature)
            if time_signature is not None
            else TimeSignature.COMMON_TIME
        )
    if governing is None:
        bad = measure.time_signature if measure.time_signature is not None else time_signature
        result.add_error("INVALID_TIME_SIGNATURE", f"Invalid time signature: {bad!r}", entity)
        return result
    for staff in measure.staves:
        for voice in staff.voices:
            expected, actual = calculate_voice_duration(voice, governing)
            if not same_duration(expected, actual):
                result.add_error(
                    "DURATION_MISMATCH",
                    f"Voice {voice.id} lasts {actual:g} quarter notes but "
                    f"{governing} requires {expected:g}",
                    f"measure {measure.number} staff {staff.id} voice {voice.id}",
                )
    return result
