"""
Tests for voice operations: extraction, merging, transposition and playback state.
"""

import pytest

from rubato_notation.converters import (
    audible_voices,
    extract_staff,
    extract_voice,
    merge_scores,
    merge_voices,
    mute_voice,
    solo_voice,
    transpose_voice,
)
from rubato_notation.errors import FormatError
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice


def whole(key: str, voice_id: str, staff_id: str) -> Note:
    return Note(keys=[key], duration="w", voice_id=voice_id, staff_id=staff_id)


def satb_score(measures: int = 2) -> Score:
    def measure(number: int) -> Measure:
        return Measure(
            number=number,
            time_signature="4/4" if number == 1 else None,
            staves=[
                Staff(
                    id="treble",
                    voices=[
                        Voice(id="soprano", notes=[whole("e/5", "soprano", "treble")]),
                        Voice(id="alto", notes=[whole("c/5", "alto", "treble")]),
                    ],
                ),
                Staff(
                    id="bass",
                    clef="bass",
                    voices=[
                        Voice(id="tenor", notes=[whole("g/3", "tenor", "bass")]),
                        Voice(id="bass", notes=[whole("c/3", "bass", "bass")]),
                    ],
                ),
            ],
        )

    return Score(
        title="Chorale",
        parts=[Part(id="choir", name="Choir", staves=["treble", "bass"])],
        measures=[measure(n) for n in range(1, measures + 1)],
    )


def piano_score(title: str, key: str, measures: int = 1) -> Score:
    return Score(
        title=title,
        parts=[Part(id="main", name="Piano", staves=["main"])],
        measures=[
            Measure(
                number=n,
                time_signature="4/4" if n == 1 else None,
                staves=[
                    Staff(id="main", voices=[Voice(id="main", notes=[whole(key, "main", "main")])])
                ],
            )
            for n in range(1, measures + 1)
        ],
    )


class TestExtract:
    """Tests for voice and staff extraction."""

    def test_extract_voice(self) -> None:
        """Only the chosen voice and its staff remain."""
        alto = extract_voice(satb_score(), "alto")

        assert alto.voice_ids() == ["alto"]
        assert alto.staff_ids() == ["treble"]
        assert alto.parts[0].staves == ["treble"]
        assert len(alto.measures) == 2

    def test_extract_bass_voice(self) -> None:
        """Extracting a bass-staff voice keeps only the bass staff."""
        bass = extract_voice(satb_score(), "bass")
        assert bass.staff_ids() == ["bass"]
        assert bass.parts[0].staves == ["bass"]

    def test_extract_unknown_voice(self) -> None:
        """An unknown voice leaves empty measures and no parts."""
        empty = extract_voice(satb_score(), "descant")
        assert empty.parts == []
        assert all(m.staves == [] for m in empty.measures)

    def test_input_unchanged(self) -> None:
        """Extraction does not modify its input."""
        score = satb_score()
        extract_voice(score, "alto")
        assert score.voice_ids() == ["soprano", "alto", "tenor", "bass"]
        assert score.parts[0].staves == ["treble", "bass"]

    def test_extract_staff(self) -> None:
        """A staff keeps all of its voices."""
        lower = extract_staff(satb_score(), "bass")
        assert lower.voice_ids() == ["tenor", "bass"]
        assert lower.parts[0].staves == ["bass"]


class TestMergeVoices:
    """Tests for merging voices within staves."""

    def test_merge_two_voices(self) -> None:
        """Soprano and alto become one voice in the soprano's place."""
        merged = merge_voices(satb_score(), ["soprano", "alto"])
        treble = merged.measures[0].get_staff("treble")

        assert [v.id for v in treble.voices] == ["soprano-alto"]
        voice = treble.voices[0]
        assert voice.name == "soprano + alto"
        assert [n.keys[0] for n in voice.notes] == ["e/5", "c/5"]
        assert all(n.voice_id == "soprano-alto" for n in voice.notes)
        assert [v.id for v in merged.measures[0].get_staff("bass").voices] == ["tenor", "bass"]

    def test_custom_name(self) -> None:
        """An explicit name labels the merged voice."""
        merged = merge_voices(satb_score(), ["tenor", "bass"], name="Men")
        assert merged.measures[0].get_staff("bass").voices[0].name == "Men"

    def test_needs_two_voices(self) -> None:
        """Merging a single voice is an error."""
        with pytest.raises(ValueError, match="At least two voices"):
            merge_voices(satb_score(), ["alto"])

    def test_notes_ordered_by_time(self) -> None:
        """Merged notes are sorted by start time."""
        staff = Staff(
            id="s",
            voices=[
                Voice(id="a", notes=[Note(keys=["c/4"], duration="h", time=2.0)]),
                Voice(id="b", notes=[Note(keys=["e/4"], duration="h", time=0.0)]),
            ],
        )
        score = Score(
            title="T",
            parts=[Part(id="p", name="P", staves=["s"])],
            measures=[Measure(number=1, staves=[staff])],
        )
        voice = merge_voices(score, ["a", "b"]).measures[0].staves[0].voices[0]
        assert [n.time for n in voice.notes] == [0.0, 2.0]

    def test_input_unchanged(self) -> None:
        """Merged notes are fresh copies of the input notes."""
        score = satb_score()
        merged = merge_voices(score, ["soprano", "alto"])
        merged.measures[0].staves[0].voices[0].notes[0].keys.append("g/4")

        treble = score.measures[0].get_staff("treble")
        assert treble.get_voice("soprano").notes[0].keys == ["e/5"]
        assert treble.get_voice("alto").notes[0].keys == ["c/5"]


class TestTranspose:
    """Tests for voice transposition."""

    def test_transpose_one_voice(self) -> None:
        """Only the chosen voice moves."""
        score = transpose_voice(satb_score(), "soprano", 2)
        treble = score.measures[0].get_staff("treble")
        assert treble.get_voice("soprano").notes[0].keys == ["f#/5"]
        assert treble.get_voice("alto").notes[0].keys == ["c/5"]

    def test_rests_unchanged(self) -> None:
        """Rests keep their placement key."""
        score = piano_score("Rest", "c/4")
        rest = Note(keys=["b/4"], duration="w", rest=True)
        score.measures[0].staves[0].voices[0].notes = [rest]
        transposed = transpose_voice(score, "main", 5)
        assert transposed.measures[0].staves[0].voices[0].notes[0] == rest

    def test_accidental_cleared(self) -> None:
        """Transposed notes drop their old accidental marking."""
        score = piano_score("Acc", "f#/4")
        score.measures[0].staves[0].voices[0].notes = [
            Note(keys=["f#/4"], duration="w", accidental="#")
        ]
        note = transpose_voice(score, "main", -1).measures[0].staves[0].voices[0].notes[0]
        assert note.keys == ["f/4"]
        assert note.accidental is None

    def test_out_of_range(self) -> None:
        """Leaving the MIDI range raises."""
        with pytest.raises(FormatError):
            transpose_voice(piano_score("High", "g/9"), "main", 1)

    def test_input_unchanged(self) -> None:
        """Transposed notes and rests share nothing with the input."""
        score = piano_score("Rest", "c/4")
        rest = Note(keys=["b/4"], duration="h", rest=True)
        note = Note(keys=["c/4"], duration="h", time=2.0)
        score.measures[0].staves[0].voices[0].notes = [rest, note]

        notes = transpose_voice(score, "main", 2).measures[0].staves[0].voices[0].notes
        assert notes[0] is not rest
        notes[0].keys.append("d/4")
        notes[1].keys.append("g/4")

        assert rest.keys == ["b/4"]
        assert note.keys == ["c/4"]


class TestPlayback:
    """Tests for mute and solo state."""

    def test_mute(self) -> None:
        """Muted voices are not audible."""
        score = mute_voice(satb_score(), "alto")
        assert score.metadata.muted_voices == ["alto"]
        assert audible_voices(score) == ["soprano", "tenor", "bass"]

    def test_unmute(self) -> None:
        """Unmuting restores the voice."""
        score = mute_voice(mute_voice(satb_score(), "alto"), "alto", muted=False)
        assert score.metadata.muted_voices == []

    def test_mute_twice_is_idempotent(self) -> None:
        """A voice is listed once however often it is muted."""
        score = mute_voice(mute_voice(satb_score(), "alto"), "alto")
        assert score.metadata.muted_voices == ["alto"]

    def test_solo_wins(self) -> None:
        """A soloed voice is the only audible one."""
        score = solo_voice(mute_voice(satb_score(), "alto"), "tenor")
        assert audible_voices(score) == ["tenor"]
        assert audible_voices(solo_voice(score, None)) == ["soprano", "tenor", "bass"]


class TestMergeScores:
    """Tests for ensemble merging."""

    def test_merge_two_piano_scores(self) -> None:
        """Colliding staff ids are renamed and parts renumbered."""
        merged = merge_scores([piano_score("A", "c/4"), piano_score("B", "e/4")])

        assert merged.title == "A + B"
        assert [p.id for p in merged.parts] == ["part0", "part1"]
        assert [p.staves for p in merged.parts] == [["main"], ["main-1"]]
        assert merged.staff_ids() == ["main", "main-1"]
        second = merged.measures[0].get_staff("main-1")
        assert second.voices[0].notes[0].staff_id == "main-1"

    def test_metadata_and_header(self) -> None:
        """Merged metadata is tagged and the header comes from the first score."""
        first = piano_score("A", "c/4")
        first.metadata.id = "a"
        merged = merge_scores([first, piano_score("B", "e/4")])
        assert merged.metadata.tags == ["merged", "ensemble"]
        assert merged.metadata.id is None
        assert merged.measures[0].time_signature == "4/4"

    def test_uneven_lengths(self) -> None:
        """Shorter scores contribute nothing to later measures."""
        merged = merge_scores([piano_score("A", "c/4", measures=2), piano_score("B", "e/4")])
        assert [m.number for m in merged.measures] == [1, 2]
        assert [s.id for s in merged.measures[1].staves] == ["main"]

    def test_multi_part_score_ids(self) -> None:
        """Scores with several parts get indexed part ids."""
        score = satb_score(1)
        score.parts = [
            Part(id="upper", name="Upper", staves=["treble"]),
            Part(id="lower", name="Lower", staves=["bass"]),
        ]
        merged = merge_scores([piano_score("Piano", "c/4"), score])
        assert [p.id for p in merged.parts] == ["part0", "part1-0", "part1-1"]

    def test_empty_input(self) -> None:
        """Merging nothing is an error."""
        with pytest.raises(ValueError, match="No scores"):
            merge_scores([])

    def test_input_unchanged(self) -> None:
        """The merged score shares no notes or parts with its inputs."""
        first = piano_score("First", "c/4")
        second = piano_score("Second", "e/4")
        merged = merge_scores([first, second])

        for staff in merged.measures[0].staves:
            staff.voices[0].notes[0].keys.append("g/4")
        merged.parts[0].staves.append("extra")

        assert first.measures[0].staves[0].voices[0].notes[0].keys == ["c/4"]
        assert second.measures[0].staves[0].voices[0].notes[0].keys == ["e/4"]
        assert second.measures[0].staves[0].id == "main"
        assert first.parts[0].staves == ["main"]
