"""
MIDI export tests.

Scores go in, type-1 Standard MIDI Files come out: a conductor track
followed by one track per part.
"""

from pathlib import Path

import pytest
from mido import MidiFile, MidiTrack

from rubato_notation.converters import flat_to_multi_voice, mute_voice, solo_voice
from rubato_notation.export import TICKS_PER_BEAT, MidiEvent, append_events, score_to_midi
from rubato_notation.export.midi import DRUM_CHANNEL, channel_for, quarters_to_ticks
from rubato_notation.generators import create_exercise
from rubato_notation.models.exercise import ExerciseParameters
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice


def note_ons(track) -> list:
    return [msg for msg in track if msg.type == "note_on"]


def duet(**measure_fields) -> Score:
    """Two parts, two measures."""

    def measure(number: int) -> Measure:
        upper = Voice(
            id="melody",
            notes=[Note(keys=["e/5"], duration="h"), Note(keys=["g/5"], duration="h", time=2)],
        )
        lower = Voice(id="bassline", notes=[Note(keys=["c/3"], duration="w")])
        return Measure(
            number=number,
            time_signature="4/4" if number == 1 else None,
            tempo=90 if number == 1 else None,
            staves=[
                Staff(id="upper", voices=[upper]),
                Staff(id="lower", clef="bass", voices=[lower]),
            ],
            **measure_fields,
        )

    return Score(
        title="Duet",
        parts=[
            Part(id="flute", name="Flute", staves=["upper"], midi_program=73, volume=100, pan=-20),
            Part(id="cello", name="Cello", staves=["lower"], midi_program=42),
        ],
        measures=[measure(1), measure(2)],
    )


class TestMidiEvent:
    """Test MidiEvent dataclass."""

    def test_create_valid_event(self) -> None:
        """Can create a valid MIDI event."""
        event = MidiEvent(pitch=60, start_ticks=0, duration_ticks=480, velocity=100, channel=0)
        assert event.pitch == 60
        assert event.duration_ticks == 480

    def test_event_validation_pitch_range(self) -> None:
        """Pitch must be 0-127."""
        with pytest.raises(ValueError, match="Pitch must be 0-127"):
            MidiEvent(pitch=128, start_ticks=0, duration_ticks=480, velocity=100)

    def test_event_validation_velocity_range(self) -> None:
        """Velocity must be 0-127."""
        with pytest.raises(ValueError, match="Velocity must be 0-127"):
            MidiEvent(pitch=60, start_ticks=0, duration_ticks=480, velocity=128)

    def test_event_validation_channel_range(self) -> None:
        """Channel must be 0-15."""
        with pytest.raises(ValueError, match="Channel must be 0-15"):
            MidiEvent(pitch=60, start_ticks=0, duration_ticks=480, velocity=100, channel=16)


class TestHelpers:
    """Test utility functions."""

    def test_quarters_to_ticks(self) -> None:
        """Quarter units scale by ticks per beat."""
        assert quarters_to_ticks(0) == 0
        assert quarters_to_ticks(1) == TICKS_PER_BEAT
        assert quarters_to_ticks(1.5) == 720
        assert quarters_to_ticks(0.25) == 120

    def test_channels_skip_drums(self) -> None:
        """Part channels never land on the percussion channel."""
        channels = [channel_for(i) for i in range(15)]
        assert DRUM_CHANNEL not in channels
        assert channels[:3] == [0, 1, 2]
        assert channels[9] == 10

    def test_append_events_ordering(self) -> None:
        """Events become delta-timed messages in time order."""
        track = MidiTrack()
        append_events(
            track,
            [
                MidiEvent(pitch=60, start_ticks=480, duration_ticks=480, velocity=100),
                MidiEvent(pitch=64, start_ticks=0, duration_ticks=480, velocity=100),
            ],
        )
        assert [(m.type, m.note, m.time) for m in track] == [
            ("note_on", 64, 0),
            ("note_off", 64, 480),
            ("note_on", 60, 0),
            ("note_off", 60, 480),
        ]

    def test_repeated_pitch_reattacks(self) -> None:
        """A note_off precedes a note_on of the same pitch at the same tick."""
        track = MidiTrack()
        append_events(
            track,
            [
                MidiEvent(pitch=60, start_ticks=0, duration_ticks=480, velocity=100),
                MidiEvent(pitch=60, start_ticks=480, duration_ticks=480, velocity=100),
            ],
        )
        assert [m.type for m in track] == ["note_on", "note_off", "note_on", "note_off"]


class TestScoreToMidi:
    """Test score conversion."""

    def test_track_layout(self) -> None:
        """Conductor track plus one track per part."""
        mid = score_to_midi(duet())
        assert mid.type == 1
        assert mid.ticks_per_beat == TICKS_PER_BEAT
        assert len(mid.tracks) == 3
        assert mid.tracks[1].name == "Flute"
        assert mid.tracks[2].name == "Cello"

    def test_conductor_track(self) -> None:
        """Tempo and time signature come from the first measure that sets them."""
        conductor = score_to_midi(duet()).tracks[0]
        tempo = next(m for m in conductor if m.type == "set_tempo")
        signature = next(m for m in conductor if m.type == "time_signature")
        assert tempo.tempo == int(60_000_000 / 90)
        assert (signature.numerator, signature.denominator) == (4, 4)

    def test_part_settings(self) -> None:
        """Program, volume and pan are sent before the notes."""
        flute = score_to_midi(duet()).tracks[1]
        program = next(m for m in flute if m.type == "program_change")
        controls = {m.control: m.value for m in flute if m.type == "control_change"}
        assert program.program == 73
        assert controls == {7: 100, 10: 44}

    def test_measures_laid_end_to_end(self) -> None:
        """Second-measure notes start one measure later."""
        flute = score_to_midi(duet()).tracks[1]
        absolute = 0
        starts = []
        for msg in flute:
            absolute += msg.time
            if msg.type == "note_on":
                starts.append((msg.note, absolute))
        assert starts == [(76, 0), (79, 960), (76, 1920), (79, 2880)]

    def test_separate_channels(self) -> None:
        """Each part plays on its own channel."""
        mid = score_to_midi(duet())
        assert {m.channel for m in note_ons(mid.tracks[1])} == {0}
        assert {m.channel for m in note_ons(mid.tracks[2])} == {1}

    def test_dynamics_set_velocity(self) -> None:
        """Measure dynamics carry forward; note dynamics override."""
        score = duet(dynamics="p")
        melody = score.measures[0].staves[0].voices[0]
        melody.notes[0] = Note(keys=["e/5"], duration="h", dynamic="ff")
        velocities = [m.velocity for m in note_ons(score_to_midi(score).tracks[1])]
        assert velocities == [112, 49, 49, 49]

    def test_default_velocity(self) -> None:
        """Unmarked notes play at mezzo-forte."""
        velocities = {m.velocity for m in note_ons(score_to_midi(duet()).tracks[2])}
        assert velocities == {80}

    def test_rests_and_grace_notes_silent(self) -> None:
        """Rests and grace notes produce no events."""
        voice = Voice(
            id="v",
            notes=[
                Note(keys=["b/4"], duration="h", rest=True),
                Note(keys=["d/4"], duration="8", time=2, grace={"slash": True}),
                Note(keys=["c/4"], duration="h", time=2),
            ],
        )
        score = Score(
            title="Sparse",
            parts=[Part(id="p", name="Piano", staves=["s"])],
            measures=[Measure(number=1, staves=[Staff(id="s", voices=[voice])])],
        )
        assert [m.note for m in note_ons(score_to_midi(score).tracks[1])] == [60]

    def test_chords_sound_together(self) -> None:
        """Every key of a chord gets a note."""
        voice = Voice(id="v", notes=[Note(keys=["c/4", "e/4", "g/4"], duration="w")])
        score = Score(
            title="Chord",
            parts=[Part(id="p", name="Piano", staves=["s"])],
            measures=[Measure(number=1, staves=[Staff(id="s", voices=[voice])])],
        )
        ons = note_ons(score_to_midi(score).tracks[1])
        assert sorted(m.note for m in ons) == [60, 64, 67]
        assert all(m.time == 0 for m in ons)

    def test_muted_voice_silent(self) -> None:
        """Muted voices are not exported."""
        mid = score_to_midi(mute_voice(duet(), "melody"))
        assert note_ons(mid.tracks[1]) == []
        assert len(note_ons(mid.tracks[2])) == 2

    def test_solo_voice(self) -> None:
        """Only the soloed voice sounds."""
        mid = score_to_midi(solo_voice(duet(), "bassline"))
        assert note_ons(mid.tracks[1]) == []
        assert len(note_ons(mid.tracks[2])) == 2

    def test_empty_score(self) -> None:
        """A score with no parts still yields a conductor track."""
        mid = score_to_midi(Score(title="Nothing"))
        assert len(mid.tracks) == 1
        tempo = next(m for m in mid.tracks[0] if m.type == "set_tempo")
        assert tempo.tempo == 500000


class TestFiles:
    """Round trips through the file system."""

    def test_exercise_to_file(self, temp_midi_path: Path) -> None:
        """A generated exercise exports and reloads."""
        exercise = create_exercise(ExerciseParameters(measures=2), "user-1")
        mid = score_to_midi(flat_to_multi_voice(exercise.to_sheet_music()))
        mid.save(str(temp_midi_path))

        loaded = MidiFile(str(temp_midi_path))
        assert len(loaded.tracks) == 2
        assert len(note_ons(loaded.tracks[1])) == 8

    def test_same_score_same_bytes(self, temp_dir: Path) -> None:
        """Export is deterministic."""
        path1 = temp_dir / "one.mid"
        path2 = temp_dir / "two.mid"
        score_to_midi(duet()).save(str(path1))
        score_to_midi(duet()).save(str(path2))
        assert path1.read_bytes() == path2.read_bytes()
