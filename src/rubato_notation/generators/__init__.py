"""
Exercise generators.

- technical: scales, arpeggios, Hanon patterns and mixed studies
- sight_reading: seeded random melodies
- registry: GENERATORS strategy table, generate() and create_exercise()
"""

from rubato_notation.generators.base import (
    GenerationContext,
    apply_key_signature,
    complete_with_rests,
    pack_notes,
    resolve,
)
from rubato_notation.generators.fingering import (
    guitar_fingering,
    piano_arpeggio_fingering,
    piano_scale_fingering,
)
from rubato_notation.generators.metadata import build_metadata, estimate_duration
from rubato_notation.generators.registry import (
    GENERATORS,
    create_exercise,
    generate,
    resolve_kind,
)
from rubato_notation.generators.sight_reading import generate_sight_reading
from rubato_notation.generators.technical import (
    generate_arpeggio,
    generate_hanon,
    generate_mixed,
    generate_scale,
)

__all__ = [
    "GENERATORS",
    "generate",
    "create_exercise",
    "resolve_kind",
    "generate_scale",
    "generate_arpeggio",
    "generate_hanon",
    "generate_mixed",
    "generate_sight_reading",
    "GenerationContext",
    "resolve",
    "apply_key_signature",
    "complete_with_rests",
    "pack_notes",
    "build_metadata",
    "estimate_duration",
    "piano_scale_fingering",
    "piano_arpeggio_fingering",
    "guitar_fingering",
]
