"""Score export."""

from rubato_notation.export.midi import (
    TICKS_PER_BEAT,
    MidiEvent,
    append_events,
    score_to_midi,
)

__all__ = ["TICKS_PER_BEAT", "MidiEvent", "append_events", "score_to_midi"]
