"""
Constants and enums for the notation system.

No magic strings - use enums for every closed vocabulary.
"""

from enum import Enum


class Clef(str, Enum):
    """Staff clefs. GRAND_STAFF is a paired treble + bass layout."""

    TREBLE = "treble"
    BASS = "bass"
    ALTO = "alto"
    TENOR = "tenor"
    GRAND_STAFF = "grand_staff"


class NoteDuration(str, Enum):
    """Duration classes, encoded the way engraving front-ends expect them."""

    WHOLE = "w"
    HALF = "h"
    QUARTER = "q"
    EIGHTH = "8"
    SIXTEENTH = "16"
    THIRTY_SECOND = "32"


class StemDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    AUTO = "auto"


class TieType(str, Enum):
    START = "start"
    STOP = "stop"
    CONTINUE = "continue"


class BarLineType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    END = "end"
    REPEAT_START = "repeat-start"
    REPEAT_END = "repeat-end"
    REPEAT_BOTH = "repeat-both"


class OrnamentType(str, Enum):
    TRILL = "trill"
    MORDENT = "mordent"
    TURN = "turn"
    TREMOLO = "tremolo"


class Articulation(str, Enum):
    STACCATO = "staccato"
    ACCENT = "accent"
    TENUTO = "tenuto"
    MARCATO = "marcato"
    FERMATA = "fermata"
    LEGATO = "legato"


class DynamicMarking(str, Enum):
    PPP = "ppp"
    PP = "pp"
    P = "p"
    MP = "mp"
    MF = "mf"
    F = "f"
    FF = "ff"
    FFF = "fff"
    SFZ = "sfz"


class ExerciseType(str, Enum):
    SIGHT_READING = "SIGHT_READING"
    TECHNICAL = "TECHNICAL"
    RHYTHM = "RHYTHM"
    HARMONY = "HARMONY"


class TechnicalType(str, Enum):
    """Technical exercise families."""

    SCALE = "scale"
    ARPEGGIO = "arpeggio"
    HANON = "hanon"
    MIXED = "mixed"


class GeneratorKind(str, Enum):
    """Keys of the generator strategy table."""

    SCALE = "scale"
    ARPEGGIO = "arpeggio"
    HANON = "hanon"
    MIXED = "mixed"
    SIGHT_READING = "sight_reading"


class MelodicMotion(str, Enum):
    STEPWISE = "stepwise"
    LEAPS = "leaps"
    MIXED = "mixed"


class Instrument(str, Enum):
    PIANO = "PIANO"
    GUITAR = "GUITAR"


class DifficultyBand(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class StylePeriod(str, Enum):
    BAROQUE = "BAROQUE"
    CLASSICAL = "CLASSICAL"
    ROMANTIC = "ROMANTIC"
    MODERN = "MODERN"
    CONTEMPORARY = "CONTEMPORARY"


class RepertoireStatus(str, Enum):
    LEARNING = "LEARNING"
    MEMORIZED = "MEMORIZED"
    FORGOTTEN = "FORGOTTEN"
    DROPPED = "DROPPED"
    WISHLIST = "WISHLIST"


class RecommendationType(str, Enum):
    SIMILAR = "SIMILAR"
    NEXT_LEVEL = "NEXT_LEVEL"
    REVIEW = "REVIEW"
    TECHNICAL_PREP = "TECHNICAL_PREP"


class TechnicalElement(str, Enum):
    SCALES = "scales"
    ARPEGGIOS = "arpeggios"
    THIRDS = "thirds"
    SIXTHS = "sixths"
    OCTAVES = "octaves"
    CHORDS = "chords"
    TRILLS = "trills"
    TREMOLO = "tremolo"
    ALBERTI_BASS = "alberti_bass"


class LibraryEventType(str, Enum):
    """Lifecycle events published by the library orchestrator."""

    EXERCISE_GENERATED = "sheet-music:exercise-generated"
    EXERCISE_DELETED = "sheet-music:exercise-deleted"
    SCORE_SAVED = "sheet-music:score-saved"
    REPERTOIRE_STATUS_CHANGED = "sheet-music:repertoire-status-changed"
    PRACTICE_SESSION_RECORDED = "sheet-music:practice-session-recorded"


# Time signatures engraving front-ends support without warnings
STANDARD_TIME_SIGNATURES: tuple[str, ...] = (
    "2/4",
    "3/4",
    "4/4",
    "3/8",
    "6/8",
    "9/8",
    "12/8",
    "5/4",
    "7/8",
)

TIME_SIGNATURE_GROUPS: dict[str, tuple[str, ...]] = {
    "simple": ("2/4", "3/4", "4/4"),
    "compound": ("6/8", "9/8", "12/8"),
    "complex": ("5/4", "7/8", "3/8"),
}

# Starting points for exercise parameters by level
DIFFICULTY_PRESETS: dict[str, dict[str, object]] = {
    "beginner": {
        "difficulty": 2,
        "tempo": 60,
        "measures": 4,
        "time_signature": "4/4",
        "key_signature": "C_MAJOR",
    },
    "intermediate": {
        "difficulty": 5,
        "tempo": 90,
        "measures": 8,
        "time_signature": "3/4",
        "key_signature": "G_MAJOR",
    },
    "advanced": {
        "difficulty": 8,
        "tempo": 120,
        "measures": 16,
        "time_signature": "6/8",
        "key_signature": "E_FLAT_MAJOR",
    },
}

# Parameter bounds
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
MIN_MEASURES = 1
MAX_MEASURES = 100
MIN_TEMPO = 20
MAX_TEMPO = 300
MIN_OCTAVES = 1
MAX_OCTAVES = 4

# MIDI bounds for part settings
MIN_PAN = -64
MAX_PAN = 63

# Floating-point tolerance for measure-duration comparisons (quarter units)
DURATION_TOLERANCE = 1e-3

# Placement pitch used for rests
REST_KEY = "b/4"

# Natural written range per clef, as note names
CLEF_RANGES: dict[Clef, tuple[str, str]] = {
    Clef.TREBLE: ("C4", "C7"),
    Clef.BASS: ("C2", "C5"),
    Clef.ALTO: ("G3", "G6"),
    Clef.TENOR: ("C3", "C6"),
    Clef.GRAND_STAFF: ("C2", "C7"),
}
