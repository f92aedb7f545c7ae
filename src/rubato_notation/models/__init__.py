"""
Pydantic models for scores, flat sheet music, exercises and repertoire.
"""

from rubato_notation.models.exercise import (
    ExerciseMetadata,
    ExerciseParameters,
    GeneratedExercise,
    MusicRecommendation,
    MusicSearchCriteria,
    NoteRange,
    PerformanceEntry,
    SearchResults,
    SpacedRepetitionData,
    UserRepertoire,
)
from rubato_notation.models.flat import FlatMeasure, FlatNote, SheetMusic, SheetMusicMetadata
from rubato_notation.models.score import (
    VOICE_CONFIGURATIONS,
    GraceNote,
    Measure,
    Note,
    Ornament,
    Part,
    Score,
    ScoreMetadata,
    Staff,
    Voice,
    Volta,
)

__all__ = [
    # Score
    "Note",
    "GraceNote",
    "Ornament",
    "Voice",
    "Staff",
    "Part",
    "Measure",
    "Volta",
    "Score",
    "ScoreMetadata",
    "VOICE_CONFIGURATIONS",
    # Flat
    "FlatNote",
    "FlatMeasure",
    "SheetMusic",
    "SheetMusicMetadata",
    # Exercise
    "NoteRange",
    "ExerciseParameters",
    "ExerciseMetadata",
    "GeneratedExercise",
    # Repertoire
    "UserRepertoire",
    "PerformanceEntry",
    "SpacedRepetitionData",
    "MusicRecommendation",
    "MusicSearchCriteria",
    "SearchResults",
]
