"""
Tests for structural score validation and exercise parameter validation.
"""

import pytest

from rubato_notation.errors import StructuralError, ValidationError
from rubato_notation.models.exercise import ExerciseParameters, NoteRange
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice
from rubato_notation.validation import (
    ValidationResult,
    calculate_voice_duration,
    clef_range_intersection,
    ensure_valid_parameters,
    validate_exercise_parameters,
    validate_measure,
    validate_measure_timing,
    validate_note,
    validate_part,
    validate_score,
    validate_staff,
    validate_voice,
)


def codes(result: ValidationResult) -> set[str]:
    return {issue.code for issue in result.issues}


def quarter(key: str, time: float) -> Note:
    return Note(keys=[key], duration="q", time=time)


def full_voice(voice_id: str = "v1") -> Voice:
    return Voice(id=voice_id, notes=[quarter("c/4", t) for t in (0, 1, 2, 3)])


def simple_score(**measure_fields) -> Score:
    return Score(
        title="Test",
        parts=[Part(id="p1", name="Piano", staves=["treble"])],
        measures=[
            Measure(
                number=1,
                staves=[Staff(id="treble", voices=[full_voice()])],
                **measure_fields,
            )
        ],
    )


class TestValidateNote:
    """Tests for note-level checks."""

    def test_valid_note(self) -> None:
        """A plain quarter note passes."""
        assert validate_note(quarter("c/4", 0)).is_valid

    def test_empty_keys(self) -> None:
        """Every note needs a key, rests included."""
        result = validate_note(Note(keys=[], duration="q"))
        assert "EMPTY_KEYS" in codes(result)

    def test_invalid_key(self) -> None:
        """Uppercase pitch strings are rejected."""
        result = validate_note(Note(keys=["C/4"], duration="q"))
        assert not result.is_valid
        assert "INVALID_KEY" in codes(result)

    def test_rest_keys_not_checked(self) -> None:
        """A rest's placement key is not validated as a pitch."""
        assert validate_note(Note(keys=["r"], duration="q", rest=True)).is_valid

    def test_invalid_duration(self) -> None:
        """Unknown duration classes are errors."""
        assert "INVALID_DURATION" in codes(validate_note(Note(keys=["c/4"], duration="64")))

    def test_negative_time(self) -> None:
        """Notes cannot start before the measure."""
        assert "NEGATIVE_TIME" in codes(validate_note(quarter("c/4", -1)))

    def test_invalid_vocabularies(self) -> None:
        """Stem, tie and accidental must come from their vocabularies."""
        note = Note(keys=["c/4"], duration="q", stem="sideways", tie="begin", accidental="x")
        result = validate_note(note)
        assert {"INVALID_STEM", "INVALID_TIE", "INVALID_ACCIDENTAL"} <= codes(result)

    def test_unknown_articulation_is_warning(self) -> None:
        """Unknown articulations and dynamics only warn."""
        note = Note(keys=["c/4"], duration="q", articulation="slap", dynamic="mezzo")
        result = validate_note(note)
        assert result.is_valid
        assert {"UNKNOWN_ARTICULATION", "UNKNOWN_DYNAMIC"} <= codes(result)


class TestValidateVoice:
    """Tests for voice-level checks."""

    def test_full_measure(self) -> None:
        """Four quarters fill 4/4."""
        assert validate_voice(full_voice(), "4/4").is_valid

    def test_duration_mismatch(self) -> None:
        """Three quarters do not fill 4/4."""
        voice = Voice(id="v1", notes=[quarter("c/4", t) for t in (0, 1, 2)])
        result = validate_voice(voice, "4/4")
        assert "DURATION_MISMATCH" in codes(result)

    def test_no_time_signature_skips_duration(self) -> None:
        """Without a time signature only structure is checked."""
        voice = Voice(id="v1", notes=[quarter("c/4", 0)])
        assert validate_voice(voice).is_valid

    def test_compound_time(self) -> None:
        """Two dotted quarters fill 6/8."""
        voice = Voice(
            id="v1",
            notes=[
                Note(keys=["c/4"], duration="q", dots=1, time=0),
                Note(keys=["d/4"], duration="q", dots=1, time=1.5),
            ],
        )
        assert validate_voice(voice, "6/8").is_valid

    def test_unordered_notes_warn(self) -> None:
        """Out-of-order notes only warn."""
        voice = Voice(id="v1", notes=[quarter("c/4", 1), quarter("d/4", 0)])
        result = validate_voice(voice)
        assert result.is_valid
        assert "UNORDERED_NOTES" in codes(result)

    def test_calculate_voice_duration(self) -> None:
        """Expected and actual lengths in quarter units."""
        voice = Voice(id="v1", notes=[Note(keys=["c/4"], duration="h", dots=1)])
        assert calculate_voice_duration(voice, "3/4") == (3.0, 3.0)


class TestValidateStaffAndPart:
    """Tests for staff and part checks."""

    def test_grand_staff_is_not_a_staff_clef(self) -> None:
        """A single staff cannot use the grand_staff layout."""
        result = validate_staff(Staff(id="s", clef="grand_staff"))
        assert "INVALID_CLEF" in codes(result)

    def test_duplicate_voice_ids(self) -> None:
        """Voice ids are unique within a staff."""
        staff = Staff(id="s", voices=[full_voice("a"), full_voice("a")])
        assert "DUPLICATE_VOICE" in codes(validate_staff(staff, "4/4"))

    def test_part_without_staves(self) -> None:
        """A part owns at least one staff."""
        assert "NO_STAVES" in codes(validate_part(Part(id="p", name="Piano")))

    def test_part_midi_ranges(self) -> None:
        """Program, volume and pan are range checked."""
        part = Part(id="p", name="Piano", staves=["s"], midi_program=128, volume=-1, pan=64)
        result = validate_part(part)
        assert {"INVALID_PROGRAM", "INVALID_VOLUME", "INVALID_PAN"} <= codes(result)


class TestValidateMeasure:
    """Tests for measure checks."""

    def test_measure_signature_governs(self) -> None:
        """A measure's own time signature overrides the carried one."""
        measure = Measure(
            number=1,
            time_signature="3/4",
            staves=[
                Staff(
                    id="s",
                    voices=[Voice(id="v", notes=[Note(keys=["c/4"], duration="h", dots=1)])],
                )
            ],
        )
        assert validate_measure(measure, "4/4").is_valid

    def test_invalid_signatures(self) -> None:
        """Malformed time and key signatures are errors."""
        measure = Measure(number=1, time_signature="4-4", key_signature="H_MAJOR")
        result = validate_measure(measure)
        assert {"INVALID_TIME_SIGNATURE", "INVALID_KEY_SIGNATURE"} <= codes(result)

    def test_nonstandard_time_signature_warns(self) -> None:
        """Unusual signatures warn without failing."""
        result = validate_measure(Measure(number=1, time_signature="11/8"))
        assert result.is_valid
        assert "NONSTANDARD_TIME_SIGNATURE" in codes(result)

    def test_tempo_out_of_range_warns(self) -> None:
        """Tempo outside 20-300 BPM warns."""
        result = validate_measure(Measure(number=1, tempo=400))
        assert result.is_valid
        assert "TEMPO_RANGE" in codes(result)

    def test_timing_only(self) -> None:
        """validate_measure_timing defaults to common time."""
        measure = Measure(
            number=1, staves=[Staff(id="s", voices=[Voice(id="v", notes=[quarter("c/4", 0)])])]
        )
        result = validate_measure_timing(measure)
        assert [i.code for i in result.errors] == ["DURATION_MISMATCH"]


class TestValidateScore:
    """Tests for whole-score validation."""

    def test_valid_score(self) -> None:
        """A single full measure is valid."""
        result = validate_score(simple_score())
        assert result.is_valid
        assert not result.warnings

    def test_no_parts(self) -> None:
        """Scores need a part."""
        result = validate_score(Score(title="Empty"))
        assert "NO_PARTS" in codes(result)
        assert "NO_MEASURES" in codes(result)

    def test_missing_staff_reference(self) -> None:
        """Parts must reference staves present in every measure."""
        score = simple_score()
        score.parts[0].staves.append("bass")
        result = validate_score(score)
        assert "MISSING_STAFF" in codes(result)

    def test_orphan_staff_warns(self) -> None:
        """Staves no part owns produce a warning."""
        score = simple_score()
        score.measures[0].staves.append(Staff(id="extra", voices=[full_voice()]))
        result = validate_score(score)
        assert result.is_valid
        assert "ORPHAN_STAFF" in codes(result)

    def test_time_signature_carries_forward(self) -> None:
        """A 3/4 declaration governs later measures."""
        three = Voice(id="v1", notes=[quarter("c/4", t) for t in (0, 1, 2)])
        score = Score(
            title="Waltz",
            parts=[Part(id="p1", name="Piano", staves=["treble"])],
            measures=[
                Measure(
                    number=1, time_signature="3/4", staves=[Staff(id="treble", voices=[three])]
                ),
                Measure(number=2, staves=[Staff(id="treble", voices=[three])]),
            ],
        )
        assert validate_score(score).is_valid

    def test_measure_order_warns(self) -> None:
        """Non-sequential numbering warns."""
        score = simple_score()
        second = score.measures[0].model_copy(update={"number": 3})
        score.measures.append(second)
        result = validate_score(score)
        assert "MEASURE_ORDER" in codes(result)

    def test_raise_for_errors(self) -> None:
        """Callers can opt into an exception."""
        result = validate_score(Score(title="Empty"))
        with pytest.raises(StructuralError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.issues

    def test_validators_never_raise(self) -> None:
        """Garbage values are reported, not raised."""
        note = Note(keys=["zz"], duration="x", dots=9, time=-3)
        result = validate_note(note)
        assert len(result.errors) == 4

    def test_malformed_time_signature_reported(self) -> None:
        """A garbage time signature is an error, never an exception."""
        voice = full_voice()
        measure = Measure(number=1, staves=[Staff(id="s", voices=[voice])])

        assert "INVALID_TIME_SIGNATURE" in codes(validate_voice(voice, "garbage"))
        assert "INVALID_TIME_SIGNATURE" in codes(validate_staff(measure.staves[0], "x"))
        assert "INVALID_TIME_SIGNATURE" in codes(validate_measure(measure, "x"))
        assert codes(validate_measure_timing(measure, "x")) == {"INVALID_TIME_SIGNATURE"}

        own = Measure(number=1, time_signature="4-4", staves=[Staff(id="s", voices=[voice])])
        assert codes(validate_measure_timing(own)) == {"INVALID_TIME_SIGNATURE"}


class TestExerciseParameters:
    """Tests for exercise parameter validation."""

    def test_defaults_are_valid(self) -> None:
        """Default parameters pass."""
        assert validate_exercise_parameters(ExerciseParameters()) == []

    def test_time_signature_must_hold_sixteenths(self) -> None:
        """Measures must be a whole number of sixteenths long."""
        for time_signature in ("1/32", "3/32"):
            errors = validate_exercise_parameters(
                ExerciseParameters(time_signature=time_signature)
            )
            assert errors == [
                f"Time signature {time_signature} cannot be filled with sixteenth notes"
            ]
        assert validate_exercise_parameters(ExerciseParameters(time_signature="2/32")) == []
        assert validate_exercise_parameters(ExerciseParameters(time_signature="7/16")) == []

    def test_collects_every_error(self) -> None:
        """All violated constraints are reported together."""
        params = ExerciseParameters(
            key_signature="H_MAJOR",
            time_signature="4-4",
            difficulty=11,
            measures=0,
            tempo=10,
        )
        errors = validate_exercise_parameters(params)
        assert len(errors) == 5
        assert "Invalid key signature: H_MAJOR" in errors

    def test_inverted_range(self) -> None:
        """The lowest note must not be above the highest."""
        params = ExerciseParameters(range=NoteRange(lowest="C6", highest="C4"))
        assert validate_exercise_parameters(params) == [
            "Range lowest note must not be above the highest note"
        ]

    def test_range_outside_clef(self) -> None:
        """A range that misses the clef entirely is rejected."""
        params = ExerciseParameters(clef="bass", range=NoteRange(lowest="C6", highest="C7"))
        errors = validate_exercise_parameters(params)
        assert len(errors) == 1
        assert "does not overlap" in errors[0]

    def test_clef_range_intersection(self) -> None:
        """Requested range is clipped to the clef's range."""
        assert clef_range_intersection(NoteRange(lowest="C3", highest="C6"), "treble") == (60, 84)
        assert clef_range_intersection(NoteRange(lowest="C6", highest="C7"), "bass") is None

    def test_ensure_valid_raises(self) -> None:
        """ensure_valid_parameters raises with every message."""
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid_parameters(ExerciseParameters(octaves=9, instrument="HARP"))
        assert len(exc_info.value.errors) == 2

    def test_from_dict_rejects_unknown_fields(self) -> None:
        """Structural problems surface as ValidationError."""
        with pytest.raises(ValidationError):
            ExerciseParameters.from_dict({"difficulty": "hard", "colour": "blue"})
