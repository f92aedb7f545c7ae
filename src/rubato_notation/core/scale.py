"""
Scale primitives - ScaleType, scale spelling and key-aware spelling.

Scales are interval patterns from a root. Seven-note scales are spelled
diatonically (one letter per degree), so F major contains Bb and not A#.
Other scales are spelled with sharps, or flats where the root prefers them.
"""

from __future__ import annotations

from enum import Enum

from rubato_notation.core.keys import KeySignature, key_info
from rubato_notation.core.pitch import (
    ACCIDENTAL_OFFSETS,
    LETTER_SEMITONES,
    LETTERS,
    Pitch,
    PitchClass,
)
from rubato_notation.errors import FormatError


class ScaleType(str, Enum):
    MAJOR = "major"
    NATURAL_MINOR = "natural_minor"
    HARMONIC_MINOR = "harmonic_minor"
    MELODIC_MINOR = "melodic_minor"
    DORIAN = "dorian"
    PHRYGIAN = "phrygian"
    LYDIAN = "lydian"
    MIXOLYDIAN = "mixolydian"
    LOCRIAN = "locrian"
    PENTATONIC_MAJOR = "pentatonic_major"
    PENTATONIC_MINOR = "pentatonic_minor"
    BLUES = "blues"
    CHROMATIC = "chromatic"

    @classmethod
    def _missing_(cls, value: object) -> ScaleType | None:
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
            if normalized == "minor":
                return cls.NATURAL_MINOR
            for member in cls:
                if member.value == normalized or member.name.lower() == normalized:
                    return member
        return None


# Semitone offsets from the root, ascending within one octave
SCALE_INTERVALS: dict[ScaleType, tuple[int, ...]] = {
    ScaleType.MAJOR: (0, 2, 4, 5, 7, 9, 11),
    ScaleType.NATURAL_MINOR: (0, 2, 3, 5, 7, 8, 10),
    ScaleType.HARMONIC_MINOR: (0, 2, 3, 5, 7, 8, 11),
    ScaleType.MELODIC_MINOR: (0, 2, 3, 5, 7, 9, 11),
    ScaleType.DORIAN: (0, 2, 3, 5, 7, 9, 10),
    ScaleType.PHRYGIAN: (0, 1, 3, 5, 7, 8, 10),
    ScaleType.LYDIAN: (0, 2, 4, 6, 7, 9, 11),
    ScaleType.MIXOLYDIAN: (0, 2, 4, 5, 7, 9, 10),
    ScaleType.LOCRIAN: (0, 1, 3, 5, 6, 8, 10),
    ScaleType.PENTATONIC_MAJOR: (0, 2, 4, 7, 9),
    ScaleType.PENTATONIC_MINOR: (0, 3, 5, 7, 10),
    ScaleType.BLUES: (0, 3, 5, 6, 7, 10),
    ScaleType.CHROMATIC: tuple(range(12)),
}


def split_root(root: str) -> tuple[str, str, int | None]:
    """Split 'F#', 'Bb3' or 'c' into (letter, accidental, octave)."""
    text = root.strip()
    if not text or text[0].upper() not in LETTER_SEMITONES:
        raise FormatError(f"Invalid scale root: {root!r}")
    letter = text[0].upper()
    rest = text[1:]
    octave: int | None = None
    if rest and rest[-1].isdigit():
        octave = int(rest[-1])
        rest = rest[:-1]
    if rest not in ACCIDENTAL_OFFSETS:
        raise FormatError(f"Invalid scale root: {root!r}")
    return letter, rest, octave


def spell_on_letter(pc: int, letter: str) -> str | None:
    """Spell a pitch class on a given letter with at most one accidental."""
    diff = (pc - LETTER_SEMITONES[letter] + 6) % 12 - 6
    if diff == 0:
        return letter
    if diff == 1:
        return letter + "#"
    if diff == -1:
        return letter + "b"
    return None


def spell_scale(root: str, scale_type: ScaleType, prefer_flats: bool | None = None) -> list[str]:
    """
    Spell one octave of a scale as pitch names without octave.

    Args:
        root: Root name, e.g. 'C', 'F#', 'Bb'
        scale_type: The scale to build
        prefer_flats: Force flat spelling for non-diatonic degrees

    Returns:
        Pitch names in ascending order, e.g. ['F', 'G', 'A', 'Bb', 'C', 'D', 'E']
    """
    letter, accidental, _ = split_root(root)
    intervals = SCALE_INTERVALS[ScaleType(scale_type)]
    root_pc = (LETTER_SEMITONES[letter] + ACCIDENTAL_OFFSETS[accidental]) % 12
    if prefer_flats is None:
        prefer_flats = accidental == "b" or (letter == "F" and accidental == "")

    names: list[str] = []
    start = LETTERS.index(letter)
    for degree, offset in enumerate(intervals):
        pc = (root_pc + offset) % 12
        spelled = None
        if len(intervals) == 7:
            spelled = spell_on_letter(pc, LETTERS[(start + degree) % 7])
        if spelled is None:
            if degree == 0:
                spelled = letter + accidental
            else:
                spelled = PitchClass(pc).spell(prefer_flats)
        names.append(spelled)
    return names


def place_pitch(name: str, midi_note: int) -> Pitch:
    """Attach the octave that makes a spelled name sound at midi_note."""
    letter, accidental = name[0], name[1:]
    natural = LETTER_SEMITONES[letter] + ACCIDENTAL_OFFSETS[accidental]
    return Pitch(letter, accidental, (midi_note - natural) // 12 - 1)


def scale_pitches(root: Pitch, scale_type: ScaleType, octaves: int = 1) -> list[Pitch]:
    """
    Ascending scale pitches from a placed root over a number of octaves.

    The closing root an octave above is not included.
    """
    names = spell_scale(root.letter + root.accidental, scale_type)
    intervals = SCALE_INTERVALS[ScaleType(scale_type)]
    pitches: list[Pitch] = []
    for octave in range(octaves):
        for name, offset in zip(names, intervals, strict=True):
            pitches.append(place_pitch(name, root.midi + 12 * octave + offset))
    return pitches


def get_scale_notes(root: str, scale_type: ScaleType | str) -> list[str]:
    """
    Get the notes of a scale.

    A root without octave ('A') yields bare names; a root with octave ('A4')
    yields ascending note names ('A4', 'B4', 'C5', ...).
    """
    scale_type = ScaleType(scale_type)
    letter, accidental, octave = split_root(root)
    if octave is None:
        return spell_scale(letter + accidental, scale_type)
    return [p.name for p in scale_pitches(Pitch(letter, accidental, octave), scale_type)]


def key_scale_type(key: str | KeySignature) -> ScaleType:
    """The scale a key signature implies: major or natural minor."""
    return ScaleType.MAJOR if key_info(key).mode == "major" else ScaleType.NATURAL_MINOR


def key_scale(key: str | KeySignature) -> list[str]:
    """Pitch names of a key's own scale."""
    info = key_info(key)
    return spell_scale(info.tonic, key_scale_type(key))


def spell_in_key(midi_note: int, key: str | KeySignature) -> Pitch:
    """
    Spell a MIDI number the way a key signature would.

    Diatonic pitch classes take the key's spelling; others use sharps,
    or flats in flat keys.
    """
    for name in key_scale(key):
        if PitchClass.parse(name) == midi_note % 12:
            return place_pitch(name, midi_note)
    return Pitch.from_midi(midi_note, prefer_flats=key_info(key).prefers_flats)
