"""
Pitch primitives - PitchClass and Pitch.

PitchClass represents the 12 chromatic pitches (octave-independent).
Pitch is a spelled note: a letter, an optional single accidental and an
octave digit. Pitches travel in two text encodings:

- note names, e.g. 'C4', 'F#5', 'Bb3' (scientific pitch notation)
- pitch strings, e.g. 'c/4', 'f#/5', 'bb/3' (the key format stored on notes)

MIDI numbers use C4 = 60. Because both encodings carry a single octave
digit, the representable MIDI range is 12 (C0) to 127 (G9).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

from rubato_notation.errors import FormatError

# Display name mappings (module level to avoid IntEnum member issues)
_SHARP_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
_FLAT_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

LETTERS: str = "CDEFGAB"
LETTER_SEMITONES: dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
ACCIDENTAL_OFFSETS: dict[str, int] = {"": 0, "#": 1, "b": -1}

MIN_MIDI = 12
MAX_MIDI = 127

PITCH_STRING_RE = re.compile(r"^([a-g])([#b]?)/([0-9])$")
NOTE_NAME_RE = re.compile(r"^([A-G])([#b]?)([0-9])$")


class PitchClass(IntEnum):
    """
    The 12 chromatic pitch classes (0-11).

    Octave-independent - C4 and C5 are both PitchClass.C.
    Enharmonic equivalents share the same value (C# == Db == 1).
    """

    C = 0
    Cs = 1  # C# / Db
    D = 2
    Ds = 3  # D# / Eb
    E = 4
    F = 5
    Fs = 6  # F# / Gb
    G = 7
    Gs = 8  # G# / Ab
    A = 9
    As = 10  # A# / Bb
    B = 11

    def transpose(self, semitones: int) -> PitchClass:
        """Transpose by a number of semitones (positive or negative)."""
        return PitchClass((self.value + semitones) % 12)

    def to_midi(self, octave: int = 4) -> int:
        """Convert to MIDI note number. C4 = 60."""
        return self.value + (octave + 1) * 12

    def spell(self, prefer_flats: bool = False) -> str:
        """Get human-readable name."""
        names = _FLAT_NAMES if prefer_flats else _SHARP_NAMES
        return names[self.value]

    @classmethod
    def from_midi(cls, midi_note: int) -> PitchClass:
        """Extract pitch class from MIDI note number."""
        return cls(midi_note % 12)

    @classmethod
    def parse(cls, name: str) -> PitchClass:
        """Parse a pitch class from a string like 'C', 'C#', 'Db', 'E#'."""
        name = name.strip()
        if not name:
            raise FormatError("Empty pitch class")

        letter = name[0].upper()
        accidental = name[1:]
        if letter not in LETTER_SEMITONES or accidental not in ACCIDENTAL_OFFSETS:
            raise FormatError(f"Unknown pitch class: {name}")
        return cls((LETTER_SEMITONES[letter] + ACCIDENTAL_OFFSETS[accidental]) % 12)


@dataclass(frozen=True)
class Pitch:
    """
    A spelled pitch: letter (uppercase), accidental ('', '#' or 'b'), octave 0-9.

    The octave belongs to the letter, so B#4 sounds as C5 (MIDI 72)
    and Cb4 sounds as B3 (MIDI 59).
    """

    letter: str
    accidental: str = ""
    octave: int = 4

    def __post_init__(self) -> None:
        if self.letter not in LETTER_SEMITONES:
            raise FormatError(f"Invalid pitch letter: {self.letter!r}")
        if self.accidental not in ACCIDENTAL_OFFSETS:
            raise FormatError(f"Invalid accidental: {self.accidental!r}")
        if not 0 <= self.octave <= 9:
            raise FormatError(f"Octave must be 0-9, got {self.octave}")

    @property
    def midi(self) -> int:
        return (
            (self.octave + 1) * 12
            + LETTER_SEMITONES[self.letter]
            + ACCIDENTAL_OFFSETS[self.accidental]
        )

    @property
    def pitch_class(self) -> PitchClass:
        return PitchClass.from_midi(self.midi)

    @property
    def name(self) -> str:
        """Note-name encoding, e.g. 'F#5'."""
        return f"{self.letter}{self.accidental}{self.octave}"

    @property
    def key(self) -> str:
        """Pitch-string encoding, e.g. 'f#/5'."""
        return f"{self.letter.lower()}{self.accidental}/{self.octave}"

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_midi(cls, midi_note: int, prefer_flats: bool = False) -> Pitch:
        """Spell a MIDI number with sharps (or flats)."""
        if not MIN_MIDI <= midi_note <= MAX_MIDI:
            raise FormatError(
                f"MIDI number {midi_note} is outside the encodable range {MIN_MIDI}-{MAX_MIDI}"
            )
        spelled = PitchClass.from_midi(midi_note).spell(prefer_flats)
        return cls(spelled[0], spelled[1:], midi_note // 12 - 1)

    @classmethod
    def parse_key(cls, text: str) -> Pitch:
        """Parse a pitch string like 'c/4' or 'bb/3'."""
        match = PITCH_STRING_RE.match(text) if isinstance(text, str) else None
        if match is None:
            raise FormatError(f"Invalid key format: {text!r}")
        letter, accidental, octave = match.groups()
        return cls(letter.upper(), accidental, int(octave))

    @classmethod
    def parse_name(cls, text: str) -> Pitch:
        """Parse a note name like 'C4' or 'Bb3'."""
        match = NOTE_NAME_RE.match(text) if isinstance(text, str) else None
        if match is None:
            raise FormatError(f"Invalid note format: {text!r}")
        letter, accidental, octave = match.groups()
        return cls(letter, accidental, int(octave))

    @classmethod
    def parse(cls, text: str) -> Pitch:
        """Parse either encoding."""
        if isinstance(text, str) and "/" in text:
            return cls.parse_key(text)
        return cls.parse_name(text)


def is_valid_key(text: str) -> bool:
    """Return True if text is a well-formed pitch string."""
    return isinstance(text, str) and PITCH_STRING_RE.match(text) is not None


def note_to_midi(name: str) -> int:
    """Convert a note name ('C4', 'A4', 'Bb3') to its MIDI number."""
    return Pitch.parse_name(name).midi


def midi_to_note(midi_note: int, prefer_flats: bool = False) -> str:
    """Convert a MIDI number to a note name; sharps unless prefer_flats."""
    return Pitch.from_midi(midi_note, prefer_flats).name


def pitch_to_midi(key: str) -> int:
    """Convert a pitch string ('c/4') to its MIDI number."""
    return Pitch.parse_key(key).midi


def midi_to_pitch(midi_note: int, prefer_flats: bool = False) -> str:
    """Convert a MIDI number to a pitch string; sharps unless prefer_flats."""
    return Pitch.from_midi(midi_note, prefer_flats).key


def note_to_pitch(name: str) -> str:
    """'C#4' -> 'c#/4'."""
    return Pitch.parse_name(name).key


def pitch_to_note(key: str) -> str:
    """'c#/4' -> 'C#4'."""
    return Pitch.parse_key(key).name


def transpose_note(name: str, semitones: int, prefer_flats: bool = False) -> str:
    """Transpose a note name, respelling the result."""
    return midi_to_note(note_to_midi(name) + semitones, prefer_flats)


def transpose_pitch(key: str, semitones: int, prefer_flats: bool = False) -> str:
    """Transpose a pitch string, respelling the result."""
    return midi_to_pitch(pitch_to_midi(key) + semitones, prefer_flats)
