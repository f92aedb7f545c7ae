"""
Fingering heuristics.

Advisory only: piano fingerings come from fixed per-pattern tables and
guitar fingerings from a fret-position rule. Neither is validated.
"""

from __future__ import annotations

from rubato_notation.constants import Instrument
from rubato_notation.core.chord import ChordType

PIANO_SCALE_FINGERING: tuple[str, ...] = ("1", "2", "3", "1", "2", "3", "4", "5")

PIANO_ARPEGGIO_FINGERING: dict[ChordType, tuple[str, ...]] = {
    ChordType.MAJOR: ("1", "3", "5"),
    ChordType.MINOR: ("1", "3", "5"),
    ChordType.AUGMENTED: ("1", "3", "5"),
    ChordType.DIMINISHED: ("1", "2", "4"),
    ChordType.DOMINANT_7: ("1", "2", "3", "5"),
}
_DEFAULT_SEVENTH_FINGERING: tuple[str, ...] = ("1", "2", "3", "5")

# Lowest open string of a standard-tuned guitar (E2)
GUITAR_LOW_E = 40


def piano_scale_fingering(degree_index: int) -> str:
    """Finger for the n-th note of a one-octave scale run (index 7 is the top tonic)."""
    return PIANO_SCALE_FINGERING[degree_index % len(PIANO_SCALE_FINGERING)]


def piano_arpeggio_fingering(chord_type: ChordType, tone_index: int) -> str:
    pattern = PIANO_ARPEGGIO_FINGERING.get(chord_type, _DEFAULT_SEVENTH_FINGERING)
    return pattern[tone_index % len(pattern)]


def guitar_fingering(midi_note: int, position: int = 1) -> str:
    """
    Fretting-hand finger for a note played in a given position.

    fret = (midi - 40) mod 12; finger = ((fret - position + 1) mod 4) + 1
    """
    fret = (midi_note - GUITAR_LOW_E) % 12
    return str(((fret - position + 1) % 4) + 1)


def fingering_for(
    instrument: str,
    midi_note: int,
    *,
    scale_degree: int | None = None,
    chord_type: ChordType | None = None,
    chord_tone: int | None = None,
    guitar_position: int = 1,
) -> str:
    """Pick a fingering for a note given how it was generated."""
    if Instrument(instrument) == Instrument.GUITAR:
        return guitar_fingering(midi_note, guitar_position)
    if chord_type is not None and chord_tone is not None:
        return piano_arpeggio_fingering(chord_type, chord_tone)
    if scale_degree is not None:
        return piano_scale_fingering(scale_degree)
    return "1"
