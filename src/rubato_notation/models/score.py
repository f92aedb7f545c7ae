"""
Score model - the multi-voice notation tree.

A Score contains:
- Parts (instruments) that reference staves by id
- Measures, each holding one Staff per staff id
- Staves holding Voices, Voices holding Notes

Times are in quarter-note units relative to the start of the measure.
Vocabulary fields (duration, clef, stem, tie, bar line) are plain strings
so malformed documents can still be represented and reported by the
validators instead of failing at construction.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from fractions import Fraction

from pydantic import BaseModel, Field

from rubato_notation.constants import Clef
from rubato_notation.core.rhythm import note_value


class GraceNote(BaseModel):
    """Grace-note rendering hints."""

    model_config = {"frozen": True}

    slash: bool = False
    size: str | None = Field(None, description="Rendering size, e.g. 'small'")


class Ornament(BaseModel):
    """An ornament attached to a note."""

    model_config = {"frozen": True}

    type: str = Field(..., description="trill, mordent, turn or tremolo")
    accidental: str | None = None


class Note(BaseModel):
    """
    A single note, chord or rest within a voice.

    keys holds one pitch string per simultaneous pitch ('c/4', 'eb/4').
    """

    model_config = {"frozen": True}

    keys: list[str] = Field(default_factory=list)
    duration: str = Field(..., description="Duration class: w, h, q, 8, 16, 32")
    time: float = Field(0.0, description="Start offset in quarter units")
    voice_id: str | None = None
    staff_id: str | None = None
    accidental: str | None = None
    dots: int = 0
    stem: str | None = None
    beam: bool | None = None
    articulation: str | None = None
    dynamic: str | None = None
    fingering: str | None = None
    rest: bool = False
    tie: str | None = None
    grace: GraceNote | None = None
    ornaments: list[Ornament] = Field(default_factory=list)

    @property
    def is_chord(self) -> bool:
        return len(self.keys) > 1

    @property
    def value(self) -> Fraction:
        """Length in quarter units, dots included."""
        return note_value(self.duration, self.dots)

    @property
    def end(self) -> float:
        return self.time + float(self.value)


class Voice(BaseModel):
    """An independent melodic line within a staff."""

    id: str
    name: str | None = None
    stem_direction: str | None = None
    notes: list[Note] = Field(default_factory=list)


class Staff(BaseModel):
    """One staff of one measure."""

    id: str
    clef: str = Clef.TREBLE.value
    name: str | None = None
    voices: list[Voice] = Field(default_factory=list)

    def get_voice(self, voice_id: str) -> Voice | None:
        for voice in self.voices:
            if voice.id == voice_id:
                return voice
        return None


class Part(BaseModel):
    """An instrument, owning one or more staves by id."""

    id: str
    name: str
    instrument: str | None = None
    staves: list[str] = Field(default_factory=list)
    midi_program: int | None = None
    volume: int | None = None
    pan: int | None = None


class Volta(BaseModel):
    """Ending bracket over repeated measures."""

    number: int
    start: bool = False
    end: bool = False


class Measure(BaseModel):
    """A measure spanning every staff of the score."""

    number: int
    staves: list[Staff] = Field(default_factory=list)
    time_signature: str | None = None
    key_signature: str | None = None
    tempo: int | None = None
    dynamics: str | None = None
    rehearsal_mark: str | None = None
    bar_line: str | None = None
    repeat_count: int | None = None
    volta: Volta | None = None

    def get_staff(self, staff_id: str) -> Staff | None:
        for staff in self.staves:
            if staff.id == staff_id:
                return staff
        return None


class ScoreMetadata(BaseModel):
    """Document-level bookkeeping and playback state."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    modified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    id: str | None = None
    source: str | None = None
    original_filename: str | None = None
    encoding_software: str | None = None
    tags: list[str] = Field(default_factory=list)
    performance_notes: str | None = None
    difficulty: int | None = Field(None, description="Difficulty level 1-10")
    duration: float | None = Field(None, description="Estimated duration in seconds")
    muted_voices: list[str] = Field(default_factory=list)
    solo_voice: str | None = None


class Score(BaseModel):
    """A complete multi-part, multi-staff, multi-voice document."""

    title: str = "Untitled"
    composer: str | None = None
    arranger: str | None = None
    copyright: str | None = None
    parts: list[Part] = Field(default_factory=list)
    measures: list[Measure] = Field(default_factory=list)
    metadata: ScoreMetadata = Field(default_factory=ScoreMetadata)

    def iter_voices(self) -> Iterator[tuple[Measure, Staff, Voice]]:
        """Yield every (measure, staff, voice) in document order."""
        for measure in self.measures:
            for staff in measure.staves:
                for voice in staff.voices:
                    yield measure, staff, voice

    def voice_ids(self) -> list[str]:
        """Distinct voice ids in first-seen order."""
        seen: dict[str, None] = {}
        for _, _, voice in self.iter_voices():
            seen.setdefault(voice.id, None)
        return list(seen)

    def staff_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for measure in self.measures:
            for staff in measure.staves:
                seen.setdefault(staff.id, None)
        return list(seen)


# Preset voice layouts: staff id -> (clef, voice ids)
VOICE_CONFIGURATIONS: dict[str, dict[str, tuple[str, tuple[str, ...]]]] = {
    "piano": {
        "treble": (Clef.TREBLE.value, ("rightHand",)),
        "bass": (Clef.BASS.value, ("leftHand",)),
    },
    "satb": {
        "treble": (Clef.TREBLE.value, ("soprano", "alto")),
        "bass": (Clef.BASS.value, ("tenor", "bass")),
    },
}
