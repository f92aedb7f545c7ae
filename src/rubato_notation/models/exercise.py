"""
Exercise and repertoire models.

ExerciseParameters is the input to every generator. Its vocabulary fields
are strings so that validate_exercise_parameters can report every bad
value at once rather than failing on the first.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from rubato_notation.constants import (
    ExerciseType,
    RecommendationType,
    RepertoireStatus,
)
from rubato_notation.errors import ValidationError
from rubato_notation.models.flat import FlatMeasure, SheetMusic


class NoteRange(BaseModel):
    """Inclusive pitch range as note names ('C4') or pitch strings ('c/4')."""

    model_config = {"frozen": True}

    lowest: str = "C4"
    highest: str = "C6"


class ExerciseParameters(BaseModel):
    """
    Everything a generator needs.

    The shared fields apply to all generators; the technical and
    sight-reading groups are read only by their generator.
    """

    model_config = {"extra": "forbid"}

    exercise_type: str = ExerciseType.TECHNICAL.value
    key_signature: str = "C_MAJOR"
    time_signature: str = "4/4"
    clef: str = "treble"
    range: NoteRange = Field(default_factory=NoteRange)
    difficulty: int = 3
    measures: int = 4
    tempo: int = 80

    # Technical exercises
    technical_type: str | None = None
    scale_type: str = "major"
    arpeggio_type: str = "major"
    hanon_pattern: list[int] | None = None
    include_descending: bool = True
    octaves: int = 1

    # Fingering
    include_fingerings: bool = False
    instrument: str = "PIANO"
    guitar_position: int = 1

    # Sight reading; None means derive from difficulty
    melodic_motion: str | None = None
    include_dynamics: bool | None = None
    include_articulations: bool | None = None
    include_accidentals: bool | None = None
    seed: int | None = None

    technical_elements: list[str] = Field(default_factory=list)
    dynamic_range: list[str] = Field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExerciseParameters:
        """
        Build parameters from untrusted input.

        Raises:
            ValidationError: listing every structural problem
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            messages = [
                f"{'.'.join(str(p) for p in err['loc']) or 'parameters'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError(messages) from e


class ExerciseMetadata(BaseModel):
    title: str
    description: str
    focus_areas: list[str] = Field(default_factory=list)
    estimated_duration: int = Field(..., description="Seconds")
    prerequisites: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class GeneratedExercise(BaseModel):
    """A generated exercise owned by a user."""

    id: str
    user_id: str
    type: ExerciseType
    parameters: ExerciseParameters
    measures: list[FlatMeasure]
    metadata: ExerciseMetadata
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now(UTC))

    def to_sheet_music(self) -> SheetMusic:
        """Wrap the measures in a flat document."""
        params = self.parameters
        return SheetMusic(
            id=self.id,
            title=self.metadata.title,
            composer="Generated",
            difficulty_level=params.difficulty,
            duration_seconds=self.metadata.estimated_duration,
            time_signature=params.time_signature,
            key_signature=params.key_signature,
            suggested_tempo=params.tempo,
            tags=list(self.metadata.tags),
            measures=list(self.measures),
        )


class PerformanceEntry(BaseModel):
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tempo: int
    accuracy: float = Field(..., ge=0, le=100)
    quality: int = Field(..., ge=1, le=5)
    notes: str | None = None


class SpacedRepetitionData(BaseModel):
    next_review_date: datetime
    interval: int = Field(..., description="Days")
    ease_factor: float = 2.5
    repetitions: int = 0
    lapses: int = 0


class UserRepertoire(BaseModel):
    """A user's relationship with one piece."""

    id: str
    user_id: str
    sheet_music_id: str
    status: RepertoireStatus = RepertoireStatus.LEARNING
    date_started: datetime | None = None
    date_memorized: datetime | None = None
    date_last_played: datetime | None = None
    total_practice_minutes: int = 0
    review_schedule: SpacedRepetitionData | None = None
    personal_notes: str | None = None
    difficulty_rating: int | None = Field(None, ge=1, le=5)
    performance_history: list[PerformanceEntry] = Field(default_factory=list)


class MusicRecommendation(BaseModel):
    id: str
    user_id: str
    sheet_music_id: str
    type: RecommendationType
    score: float = Field(..., ge=0, le=1)
    reasoning: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    acted_on: bool = False


class MusicSearchCriteria(BaseModel):
    """Search filters; also the search-cache key."""

    model_config = {"frozen": True}

    query: str | None = None
    instrument: str | None = None
    difficulty: str | None = None
    min_difficulty_level: int | None = None
    max_difficulty_level: int | None = None
    style_period: str | None = None
    composer: str | None = None
    tags: tuple[str, ...] = ()
    max_duration: int | None = None

    def cache_key(self) -> str:
        return self.model_dump_json(exclude_none=True)


class SearchResults(BaseModel):
    pieces: list[SheetMusic] = Field(default_factory=list)
    total_count: int = 0
