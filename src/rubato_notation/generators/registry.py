"""
Generator registry - strategy table dispatch.

Generators are plain functions from ExerciseParameters to flat measures,
keyed by GeneratorKind. generate() picks the strategy; create_exercise()
wraps the result with metadata and expiry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from rubato_notation.constants import ExerciseType, GeneratorKind, TechnicalType
from rubato_notation.generators.metadata import build_metadata
from rubato_notation.generators.sight_reading import generate_sight_reading
from rubato_notation.generators.technical import (
    generate_arpeggio,
    generate_hanon,
    generate_mixed,
    generate_scale,
)
from rubato_notation.models.exercise import ExerciseParameters, GeneratedExercise
from rubato_notation.models.flat import FlatMeasure
from rubato_notation.validation.parameters import ensure_valid_parameters

logger = logging.getLogger(__name__)

Generator = Callable[[ExerciseParameters], list[FlatMeasure]]

GENERATORS: dict[GeneratorKind, Generator] = {
    GeneratorKind.SCALE: generate_scale,
    GeneratorKind.ARPEGGIO: generate_arpeggio,
    GeneratorKind.HANON: generate_hanon,
    GeneratorKind.MIXED: generate_mixed,
    GeneratorKind.SIGHT_READING: generate_sight_reading,
}


def resolve_kind(params: ExerciseParameters) -> GeneratorKind:
    """
    Map exercise type and technical type to a generator.

    Raises:
        NotImplementedError: for exercise types with no generator
    """
    exercise_type = ExerciseType(params.exercise_type)
    if exercise_type == ExerciseType.SIGHT_READING:
        return GeneratorKind.SIGHT_READING
    if exercise_type == ExerciseType.TECHNICAL:
        technical = TechnicalType(params.technical_type or TechnicalType.SCALE)
        return GeneratorKind(technical.value)
    raise NotImplementedError(f"No generator for {exercise_type.value} exercises")


def generate(params: ExerciseParameters) -> list[FlatMeasure]:
    """
    Generate measures for an exercise.

    Raises:
        ValidationError: listing every invalid parameter
        NotImplementedError: for exercise types with no generator
    """
    ensure_valid_parameters(params)
    kind = resolve_kind(params)
    logger.debug("Generating %s exercise (%d measures)", kind.value, params.measures)
    return GENERATORS[kind](params)


def create_exercise(
    params: ExerciseParameters,
    user_id: str,
    *,
    now: datetime | None = None,
    expiration_days: int | None = 30,
    exercise_id: str | None = None,
) -> GeneratedExercise:
    """
    Generate an exercise and wrap it with metadata.

    Args:
        params: Exercise parameters
        user_id: Owner of the exercise
        now: Creation time (defaults to the current UTC time)
        expiration_days: Lifetime in days; None for no expiry
        exercise_id: Explicit id (defaults to a random one)
    """
    measures = generate(params)
    kind = resolve_kind(params)
    created = now or datetime.now(UTC)
    return GeneratedExercise(
        id=exercise_id or f"exercise_{uuid4().hex[:12]}",
        user_id=user_id,
        type=ExerciseType(params.exercise_type),
        parameters=params,
        measures=measures,
        metadata=build_metadata(params, kind),
        created_at=created,
        expires_at=created + timedelta(days=expiration_days) if expiration_days else None,
    )
