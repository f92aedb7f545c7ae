"""
Score analysis.

Voice complexity is computed from one voice's notes across all measures.
Voice-leading and polyphonic-pattern analysis are not available.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field

from rubato_notation.core.pitch import pitch_to_midi
from rubato_notation.models.score import Note, Score

LARGE_INTERVAL = 12
OCTAVE_REACH = 7
TYPICAL_RHYTHM_COUNT = 8


class VoiceComplexity(BaseModel):
    """Complexity metrics for one voice."""

    model_config = {"frozen": True}

    voice_id: str
    note_count: int = 0
    average_interval: float = Field(0.0, description="Mean absolute interval in semitones")
    rhythmic_complexity: float = Field(0.0, ge=0, le=1)
    range_span: int = Field(0, description="Highest minus lowest pitch in semitones")
    difficulty: int = Field(0, ge=0, le=10)
    technical_elements: list[str] = Field(default_factory=list)


def _rhythmic_complexity(notes: list[Note]) -> float:
    complexity = len({n.duration for n in notes}) / TYPICAL_RHYTHM_COUNT
    if any(n.dots for n in notes):
        complexity += 0.2
    if any(n.tie for n in notes):
        complexity += 0.3
    return min(1.0, complexity)


def _technical_elements(notes: list[Note]) -> list[str]:
    elements: list[str] = []
    if any(n.is_chord for n in notes):
        elements.append("chords")
    if any(n.grace for n in notes):
        elements.append("grace notes")
    if any(n.ornaments for n in notes):
        elements.append("ornaments")
    if any(n.articulation for n in notes):
        elements.append("articulations")

    # Leaps between consecutive pitched notes, by their first key
    leaps = [
        abs(pitch_to_midi(b.keys[0]) - pitch_to_midi(a.keys[0]))
        for a, b in zip(notes, notes[1:])
        if not a.rest and not b.rest and a.keys and b.keys
    ]
    if any(i > LARGE_INTERVAL for i in leaps):
        elements.append("large intervals")
    if any(i > OCTAVE_REACH for i in leaps):
        elements.append("octaves")
    return elements


def analyze_voice_complexity(score: Score, voice_id: str) -> VoiceComplexity:
    """
    Measure how demanding one voice is to play.

    Difficulty combines mean interval, range, rhythmic variety and the
    number of technical elements, clamped to 1-10. A voice with no notes
    scores 0 throughout.
    """
    notes = [n for _, _, voice in score.iter_voices() if voice.id == voice_id for n in voice.notes]
    if not notes:
        return VoiceComplexity(voice_id=voice_id)

    pitches = [pitch_to_midi(k) for n in notes if not n.rest for k in n.keys]
    intervals = [abs(b - a) for a, b in zip(pitches, pitches[1:])]
    average_interval = sum(intervals) / len(intervals) if intervals else 0.0
    range_span = max(pitches) - min(pitches) if pitches else 0

    rhythmic = _rhythmic_complexity(notes)
    elements = _technical_elements(notes)
    raw = average_interval / 4 + range_span / 12 + rhythmic * 3 + len(elements) / 2
    difficulty = math.floor(min(10.0, max(1.0, raw)) + 0.5)

    return VoiceComplexity(
        voice_id=voice_id,
        note_count=len(notes),
        average_interval=average_interval,
        rhythmic_complexity=rhythmic,
        range_span=range_span,
        difficulty=difficulty,
        technical_elements=elements,
    )


def identify_voice_leading(score: Score) -> list[dict]:
    raise NotImplementedError("Voice-leading analysis is not available")


def detect_polyphonic_patterns(score: Score) -> list[dict]:
    raise NotImplementedError("Polyphonic pattern detection is not available")
