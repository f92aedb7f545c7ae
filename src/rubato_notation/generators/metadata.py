"""
Exercise metadata - deterministic titles, descriptions and tags.

Metadata depends only on the parameters, never on the generated notes,
so it is stable across seeds.
"""

from __future__ import annotations

import math

from rubato_notation.constants import GeneratorKind, TechnicalElement
from rubato_notation.core.chord import ChordType
from rubato_notation.core.keys import key_info, parse_key_signature
from rubato_notation.core.rhythm import TimeSignature
from rubato_notation.core.scale import ScaleType
from rubato_notation.models.exercise import ExerciseMetadata, ExerciseParameters

_FOCUS: dict[GeneratorKind, list[str]] = {
    GeneratorKind.SCALE: [TechnicalElement.SCALES.value],
    GeneratorKind.ARPEGGIO: [TechnicalElement.ARPEGGIOS.value],
    GeneratorKind.HANON: [TechnicalElement.SCALES.value, "finger_independence"],
    GeneratorKind.MIXED: [TechnicalElement.SCALES.value, TechnicalElement.ARPEGGIOS.value],
    GeneratorKind.SIGHT_READING: ["sight_reading", "note_recognition", "rhythm"],
}

_KIND_DESCRIPTIONS: dict[GeneratorKind, str] = {
    GeneratorKind.SCALE: "scale exercise",
    GeneratorKind.ARPEGGIO: "arpeggio exercise",
    GeneratorKind.HANON: "Hanon-style finger pattern",
    GeneratorKind.MIXED: "scale and arpeggio study",
    GeneratorKind.SIGHT_READING: "sight-reading melody",
}


def difficulty_band(difficulty: int) -> str:
    if difficulty <= 3:
        return "beginner"
    if difficulty <= 6:
        return "intermediate"
    return "advanced"


def estimate_duration(params: ExerciseParameters) -> int:
    """Seconds to play once through: measures x beats per measure x 60 / tempo."""
    beats = TimeSignature.parse(params.time_signature).beats
    return math.ceil(params.measures * beats * 60 / params.tempo)


def _label(value: str) -> str:
    return value.replace("_", " ").title()


def exercise_title(params: ExerciseParameters, kind: GeneratorKind) -> str:
    info = key_info(params.key_signature)
    key_name = f"{info.tonic} {info.mode.title()}"
    if kind == GeneratorKind.SCALE:
        return f"{info.tonic} {_label(ScaleType(params.scale_type).value)} Scale"
    if kind == GeneratorKind.ARPEGGIO:
        return f"{info.tonic} {_label(ChordType(params.arpeggio_type).value)} Arpeggio"
    if kind == GeneratorKind.HANON:
        return f"Hanon Pattern in {key_name}"
    if kind == GeneratorKind.MIXED:
        return f"{key_name} Scale and Arpeggio Study"
    return f"Sight-Reading in {key_name}"


def build_metadata(params: ExerciseParameters, kind: GeneratorKind) -> ExerciseMetadata:
    """Derive exercise metadata from parameters alone."""
    band = difficulty_band(params.difficulty)
    description = (
        f"{params.measures}-measure {_KIND_DESCRIPTIONS[kind]} in {params.time_signature} "
        f"at {params.tempo} BPM, difficulty {params.difficulty}/10 ({band})."
    )

    focus = list(_FOCUS[kind])
    if params.include_fingerings:
        focus.append("fingering")

    key = parse_key_signature(params.key_signature)
    tags = [kind.value, key.value.lower(), params.time_signature, params.clef, band]

    return ExerciseMetadata(
        title=exercise_title(params, kind),
        description=description,
        focus_areas=focus,
        estimated_duration=estimate_duration(params),
        prerequisites=[],
        tags=tags,
    )
