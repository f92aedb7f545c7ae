"""
Chord primitives - chord types as interval stacks.

Chord tones are spelled by stacking letters in thirds, so a D major
triad is D F# A and not D Gb A.
"""

from __future__ import annotations

from enum import Enum

from rubato_notation.core.pitch import (
    ACCIDENTAL_OFFSETS,
    LETTER_SEMITONES,
    LETTERS,
    Pitch,
    PitchClass,
)
from rubato_notation.core.scale import place_pitch, spell_on_letter, split_root


class ChordType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    DOMINANT_7 = "dominant7"
    MAJOR_7 = "major7"
    MINOR_7 = "minor7"
    DIMINISHED_7 = "diminished7"
    HALF_DIMINISHED_7 = "half_diminished7"


CHORD_INTERVALS: dict[ChordType, tuple[int, ...]] = {
    ChordType.MAJOR: (0, 4, 7),
    ChordType.MINOR: (0, 3, 7),
    ChordType.DIMINISHED: (0, 3, 6),
    ChordType.AUGMENTED: (0, 4, 8),
    ChordType.DOMINANT_7: (0, 4, 7, 10),
    ChordType.MAJOR_7: (0, 4, 7, 11),
    ChordType.MINOR_7: (0, 3, 7, 10),
    ChordType.DIMINISHED_7: (0, 3, 6, 9),
    ChordType.HALF_DIMINISHED_7: (0, 3, 6, 10),
}


def spell_chord(root: str, chord_type: ChordType | str) -> list[str]:
    """Spell chord tones without octave, e.g. ('D', MAJOR) -> ['D', 'F#', 'A']."""
    letter, accidental, _ = split_root(root)
    root_pc = (LETTER_SEMITONES[letter] + ACCIDENTAL_OFFSETS[accidental]) % 12
    start = LETTERS.index(letter)
    names: list[str] = []
    for index, offset in enumerate(CHORD_INTERVALS[ChordType(chord_type)]):
        pc = (root_pc + offset) % 12
        spelled = spell_on_letter(pc, LETTERS[(start + 2 * index) % 7])
        if spelled is None:
            spelled = PitchClass(pc).spell(prefer_flats=accidental == "b")
        names.append(spelled)
    return names


def chord_pitches(root: Pitch, chord_type: ChordType | str, octaves: int = 1) -> list[Pitch]:
    """Ascending chord tones from a placed root over a number of octaves."""
    chord_type = ChordType(chord_type)
    names = spell_chord(root.letter + root.accidental, chord_type)
    pitches: list[Pitch] = []
    for octave in range(octaves):
        for name, offset in zip(names, CHORD_INTERVALS[chord_type], strict=True):
            pitches.append(place_pitch(name, root.midi + 12 * octave + offset))
    return pitches


def get_chord_notes(root: str, chord_type: ChordType | str) -> list[str]:
    """
    Get the notes of a chord.

    A root with octave ('C4') yields placed note names ('C4', 'E4', 'G4').
    """
    letter, accidental, octave = split_root(root)
    if octave is None:
        return spell_chord(letter + accidental, chord_type)
    return [p.name for p in chord_pitches(Pitch(letter, accidental, octave), chord_type)]
