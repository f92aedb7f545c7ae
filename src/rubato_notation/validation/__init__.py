"""
Validation - structural score checks and exercise parameter checks.
"""

from rubato_notation.validation.parameters import (
    clef_range_intersection,
    ensure_valid_parameters,
    validate_exercise_parameters,
)
from rubato_notation.validation.result import (
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from rubato_notation.validation.score import (
    ScoreValidator,
    calculate_voice_duration,
    validate_measure,
    validate_measure_timing,
    validate_note,
    validate_part,
    validate_score,
    validate_staff,
    validate_voice,
)

__all__ = [
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "ScoreValidator",
    "validate_note",
    "validate_voice",
    "validate_staff",
    "validate_part",
    "validate_measure",
    "validate_score",
    "validate_measure_timing",
    "calculate_voice_duration",
    "validate_exercise_parameters",
    "ensure_valid_parameters",
    "clef_range_intersection",
]
