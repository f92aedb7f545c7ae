"""
Key signatures - the 30 standard major and minor keys.

Each key knows its tonic spelling, its mode and how many sharps or flats
it carries. Alterations follow the circle-of-fifths order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from rubato_notation.errors import FormatError


class KeySignature(str, Enum):
    """The 15 major and 15 minor key signatures."""

    C_MAJOR = "C_MAJOR"
    G_MAJOR = "G_MAJOR"
    D_MAJOR = "D_MAJOR"
    A_MAJOR = "A_MAJOR"
    E_MAJOR = "E_MAJOR"
    B_MAJOR = "B_MAJOR"
    F_SHARP_MAJOR = "F_SHARP_MAJOR"
    C_SHARP_MAJOR = "C_SHARP_MAJOR"
    F_MAJOR = "F_MAJOR"
    B_FLAT_MAJOR = "B_FLAT_MAJOR"
    E_FLAT_MAJOR = "E_FLAT_MAJOR"
    A_FLAT_MAJOR = "A_FLAT_MAJOR"
    D_FLAT_MAJOR = "D_FLAT_MAJOR"
    G_FLAT_MAJOR = "G_FLAT_MAJOR"
    C_FLAT_MAJOR = "C_FLAT_MAJOR"

    A_MINOR = "A_MINOR"
    E_MINOR = "E_MINOR"
    B_MINOR = "B_MINOR"
    F_SHARP_MINOR = "F_SHARP_MINOR"
    C_SHARP_MINOR = "C_SHARP_MINOR"
    G_SHARP_MINOR = "G_SHARP_MINOR"
    D_SHARP_MINOR = "D_SHARP_MINOR"
    A_SHARP_MINOR = "A_SHARP_MINOR"
    D_MINOR = "D_MINOR"
    G_MINOR = "G_MINOR"
    C_MINOR = "C_MINOR"
    F_MINOR = "F_MINOR"
    B_FLAT_MINOR = "B_FLAT_MINOR"
    E_FLAT_MINOR = "E_FLAT_MINOR"
    A_FLAT_MINOR = "A_FLAT_MINOR"


SHARP_ORDER = "FCGDAEB"
FLAT_ORDER = "BEADGCF"


@dataclass(frozen=True)
class KeyInfo:
    """Tonic, mode and accidental count of a key signature."""

    tonic: str  # e.g. 'F#', 'Bb'
    mode: str  # 'major' or 'minor'
    sharps: int = 0
    flats: int = 0

    @property
    def prefers_flats(self) -> bool:
        return self.flats > 0


KEY_INFO: dict[KeySignature, KeyInfo] = {
    KeySignature.C_MAJOR: KeyInfo("C", "major"),
    KeySignature.G_MAJOR: KeyInfo("G", "major", sharps=1),
    KeySignature.D_MAJOR: KeyInfo("D", "major", sharps=2),
    KeySignature.A_MAJOR: KeyInfo("A", "major", sharps=3),
    KeySignature.E_MAJOR: KeyInfo("E", "major", sharps=4),
    KeySignature.B_MAJOR: KeyInfo("B", "major", sharps=5),
    KeySignature.F_SHARP_MAJOR: KeyInfo("F#", "major", sharps=6),
    KeySignature.C_SHARP_MAJOR: KeyInfo("C#", "major", sharps=7),
    KeySignature.F_MAJOR: KeyInfo("F", "major", flats=1),
    KeySignature.B_FLAT_MAJOR: KeyInfo("Bb", "major", flats=2),
    KeySignature.E_FLAT_MAJOR: KeyInfo("Eb", "major", flats=3),
    KeySignature.A_FLAT_MAJOR: KeyInfo("Ab", "major", flats=4),
    KeySignature.D_FLAT_MAJOR: KeyInfo("Db", "major", flats=5),
    KeySignature.G_FLAT_MAJOR: KeyInfo("Gb", "major", flats=6),
    KeySignature.C_FLAT_MAJOR: KeyInfo("Cb", "major", flats=7),
    KeySignature.A_MINOR: KeyInfo("A", "minor"),
    KeySignature.E_MINOR: KeyInfo("E", "minor", sharps=1),
    KeySignature.B_MINOR: KeyInfo("B", "minor", sharps=2),
    KeySignature.F_SHARP_MINOR: KeyInfo("F#", "minor", sharps=3),
    KeySignature.C_SHARP_MINOR: KeyInfo("C#", "minor", sharps=4),
    KeySignature.G_SHARP_MINOR: KeyInfo("G#", "minor", sharps=5),
    KeySignature.D_SHARP_MINOR: KeyInfo("D#", "minor", sharps=6),
    KeySignature.A_SHARP_MINOR: KeyInfo("A#", "minor", sharps=7),
    KeySignature.D_MINOR: KeyInfo("D", "minor", flats=1),
    KeySignature.G_MINOR: KeyInfo("G", "minor", flats=2),
    KeySignature.C_MINOR: KeyInfo("C", "minor", flats=3),
    KeySignature.F_MINOR: KeyInfo("F", "minor", flats=4),
    KeySignature.B_FLAT_MINOR: KeyInfo("Bb", "minor", flats=5),
    KeySignature.E_FLAT_MINOR: KeyInfo("Eb", "minor", flats=6),
    KeySignature.A_FLAT_MINOR: KeyInfo("Ab", "minor", flats=7),
}


@dataclass(frozen=True)
class KeyAlterations:
    """Letters a key signature sharpens or flattens, in signature order."""

    sharps: tuple[str, ...] = ()
    flats: tuple[str, ...] = ()

    def accidental_for(self, letter: str) -> str | None:
        """Return '#', 'b' or None for a letter under this signature."""
        letter = letter.upper()
        if letter in self.sharps:
            return "#"
        if letter in self.flats:
            return "b"
        return None


_KEY_TOKEN_RE = re.compile(
    r"^([A-Ga-g])(#|b|B|_sharp|_flat|-sharp|-flat)?[\s_-]*(major|minor)$",
    re.IGNORECASE,
)


def parse_key_signature(token: str | KeySignature) -> KeySignature:
    """
    Parse a key signature token.

    Accepts enum values ('G_MAJOR', 'B_FLAT_MINOR') and looser spellings
    ('G major', 'g_major', 'F#_minor', 'Bb major').

    Raises:
        FormatError: if the token names no known key signature
    """
    if isinstance(token, KeySignature):
        return token
    if not isinstance(token, str):
        raise FormatError(f"Invalid key signature: {token!r}")

    text = token.strip()
    if text.upper() in KeySignature.__members__:
        return KeySignature[text.upper()]

    match = _KEY_TOKEN_RE.match(text)
    if match is None:
        raise FormatError(f"Invalid key signature: {token!r}")

    letter, accidental, mode = match.groups()
    suffix = ""
    if accidental:
        accidental = accidental.lower().lstrip("_-")
        suffix = "_SHARP" if accidental in ("#", "sharp") else "_FLAT"
    name = f"{letter.upper()}{suffix}_{mode.upper()}"
    if name not in KeySignature.__members__:
        raise FormatError(f"Invalid key signature: {token!r}")
    return KeySignature[name]


def key_info(key: str | KeySignature) -> KeyInfo:
    return KEY_INFO[parse_key_signature(key)]


def get_key_signature_alterations(key: str | KeySignature) -> KeyAlterations:
    """
    Get the letters sharpened or flattened by a key signature.

    G major -> sharps ('F',); F major -> flats ('B',); E minor -> sharps ('F',).
    """
    info = key_info(key)
    return KeyAlterations(
        sharps=tuple(SHARP_ORDER[: info.sharps]),
        flats=tuple(FLAT_ORDER[: info.flats]),
    )


def get_key_root(key: str | KeySignature) -> str:
    """Tonic spelling of a key signature, e.g. 'Bb' for B_FLAT_MAJOR."""
    return key_info(key).tonic
