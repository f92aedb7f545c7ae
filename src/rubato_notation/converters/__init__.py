"""
Format converters and voice operations.

- legacy: flat SheetMusic <-> multi-voice Score
- voices: extract, merge, transpose, mute and solo voices
"""

from rubato_notation.converters.legacy import (
    ConversionReport,
    exercise_to_score,
    flat_to_multi_voice,
    multi_voice_to_flat,
)
from rubato_notation.converters.voices import (
    audible_voices,
    extract_staff,
    extract_voice,
    merge_scores,
    merge_voices,
    mute_voice,
    solo_voice,
    transpose_voice,
)

__all__ = [
    "ConversionReport",
    "flat_to_multi_voice",
    "multi_voice_to_flat",
    "exercise_to_score",
    "extract_voice",
    "extract_staff",
    "merge_scores",
    "merge_voices",
    "transpose_voice",
    "mute_voice",
    "solo_voice",
    "audible_voices",
]
