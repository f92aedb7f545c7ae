"""
Flat sheet-music model - the single-voice legacy format.

Each measure is one flat list of notes. Chords are notes with several
keys. Generated exercises are produced in this format and converted to
the multi-voice Score when needed.
"""

from __future__ import annotations

from fractions import Fraction

from pydantic import BaseModel, Field

from rubato_notation.constants import DifficultyBand, Instrument, StylePeriod
from rubato_notation.core.rhythm import note_value


class FlatNote(BaseModel):
    """A note, chord or rest in a flat measure."""

    model_config = {"frozen": True}

    keys: list[str] = Field(default_factory=list)
    duration: str
    time: float = 0.0
    accidental: str | None = None
    dots: int = 0
    stem: str | None = None
    beam: bool | None = None
    articulation: str | None = None
    dynamic: str | None = None
    fingering: str | None = None
    rest: bool = False
    tie: str | None = None

    @property
    def value(self) -> Fraction:
        return note_value(self.duration, self.dots)


class FlatMeasure(BaseModel):
    """A measure of the flat format."""

    number: int
    notes: list[FlatNote] = Field(default_factory=list)
    time_signature: str | None = None
    key_signature: str | None = None
    clef: str | None = None
    tempo: int | None = None
    dynamics: str | None = None
    rehearsal_mark: str | None = None
    bar_line: str | None = None
    repeat_count: int | None = None

    def total_duration(self) -> Fraction:
        """Sum of note lengths in quarter units."""
        return sum((n.value for n in self.notes), Fraction(0))


class SheetMusicMetadata(BaseModel):
    source: str | None = None
    license: str | None = None
    arranged_by: str | None = None
    year: int | None = None
    musical_form: str | None = None
    technical_focus: list[str] = Field(default_factory=list)


class SheetMusic(BaseModel):
    """A flat-format piece of sheet music."""

    id: str
    title: str
    composer: str = "Unknown"
    opus: str | None = None
    movement: str | None = None
    instrument: str = Instrument.PIANO.value
    difficulty: str = DifficultyBand.INTERMEDIATE.value
    difficulty_level: int = 5
    grade_level: str | None = None
    duration_seconds: int = 60
    time_signature: str = "4/4"
    key_signature: str = "C_MAJOR"
    tempo_marking: str | None = None
    suggested_tempo: int = 120
    style_period: str = StylePeriod.CLASSICAL.value
    tags: list[str] = Field(default_factory=list)
    measures: list[FlatMeasure] = Field(default_factory=list)
    metadata: SheetMusicMetadata | None = None
