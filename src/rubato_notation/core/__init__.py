"""
Core music primitives.

The theory layer everything else composes on:
- PitchClass / Pitch: chromatic pitch classes and spelled pitches
- note/pitch/MIDI conversions and transposition
- KeySignature: the 30 standard keys and their alterations
- ScaleType / ChordType: interval tables and spelling
- TimeSignature and duration arithmetic in quarter-note units
"""

from rubato_notation.core.chord import (
    CHORD_INTERVALS,
    ChordType,
    chord_pitches,
    get_chord_notes,
    spell_chord,
)
from rubato_notation.core.keys import (
    KeyAlterations,
    KeyInfo,
    KeySignature,
    get_key_root,
    get_key_signature_alterations,
    key_info,
    parse_key_signature,
)
from rubato_notation.core.pitch import (
    Pitch,
    PitchClass,
    is_valid_key,
    midi_to_note,
    midi_to_pitch,
    note_to_midi,
    note_to_pitch,
    pitch_to_midi,
    pitch_to_note,
    transpose_note,
    transpose_pitch,
)
from rubato_notation.core.rhythm import (
    NOTE_VALUES,
    TimeSignature,
    available_durations,
    dot_multiplier,
    expected_measure_duration,
    note_value,
    rest_durations,
)
from rubato_notation.core.scale import (
    SCALE_INTERVALS,
    ScaleType,
    get_scale_notes,
    key_scale,
    key_scale_type,
    scale_pitches,
    spell_in_key,
    spell_scale,
)

__all__ = [
    # Pitch
    "PitchClass",
    "Pitch",
    "is_valid_key",
    "note_to_midi",
    "midi_to_note",
    "pitch_to_midi",
    "midi_to_pitch",
    "note_to_pitch",
    "pitch_to_note",
    "transpose_note",
    "transpose_pitch",
    # Keys
    "KeySignature",
    "KeyInfo",
    "KeyAlterations",
    "parse_key_signature",
    "key_info",
    "get_key_signature_alterations",
    "get_key_root",
    # Scale
    "ScaleType",
    "SCALE_INTERVALS",
    "spell_scale",
    "scale_pitches",
    "get_scale_notes",
    "key_scale",
    "key_scale_type",
    "spell_in_key",
    # Chord
    "ChordType",
    "CHORD_INTERVALS",
    "spell_chord",
    "chord_pitches",
    "get_chord_notes",
    # Rhythm
    "NOTE_VALUES",
    "TimeSignature",
    "note_value",
    "dot_multiplier",
    "expected_measure_duration",
    "rest_durations",
    "available_durations",
]
