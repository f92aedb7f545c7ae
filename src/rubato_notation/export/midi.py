"""
MIDI export - Score to Standard MIDI File using mido.

One track per part. Measures are laid end to end, each as long as its
governing time signature; note times inside a measure are quarter-unit
offsets. Rests, muted voices and (when a solo is set) every other voice
are silent. Output is deterministic: same score, same file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction

from mido import Message, MetaMessage, MidiFile, MidiTrack

from rubato_notation.constants import DynamicMarking
from rubato_notation.converters.voices import audible_voices
from rubato_notation.core.pitch import pitch_to_midi
from rubato_notation.core.rhythm import TimeSignature
from rubato_notation.errors import FormatError
from rubato_notation.models.score import Part, Score

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
DEFAULT_TEMPO = 120
DEFAULT_VELOCITY = 80

# Channel 10 is reserved for percussion
DRUM_CHANNEL = 9

VOLUME_CC = 7
PAN_CC = 10

DYNAMIC_VELOCITY: dict[str, int] = {
    DynamicMarking.PPP.value: 16,
    DynamicMarking.PP.value: 33,
    DynamicMarking.P.value: 49,
    DynamicMarking.MP.value: 64,
    DynamicMarking.MF.value: 80,
    DynamicMarking.F.value: 96,
    DynamicMarking.FF.value: 112,
    DynamicMarking.FFF.value: 127,
    DynamicMarking.SFZ.value: 120,
}


@dataclass(frozen=True)
class MidiEvent:
    """A single note, in absolute ticks from the start of its track."""

    pitch: int
    start_ticks: int
    duration_ticks: int
    velocity: int
    channel: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.pitch <= 127:
            raise ValueError(f"Pitch must be 0-127, got {self.pitch}")
        if not 0 <= self.velocity <= 127:
            raise ValueError(f"Velocity must be 0-127, got {self.velocity}")
        if not 0 <= self.channel <= 15:
            raise ValueError(f"Channel must be 0-15, got {self.channel}")
        if self.start_ticks < 0:
            raise ValueError(f"Start ticks must be >= 0, got {self.start_ticks}")
        if self.duration_ticks < 0:
            raise ValueError(f"Duration ticks must be >= 0, got {self.duration_ticks}")


def quarters_to_ticks(quarters: float | Fraction, ticks_per_beat: int = TICKS_PER_BEAT) -> int:
    return int(round(Fraction(quarters) * ticks_per_beat))


def channel_for(index: int) -> int:
    """Assign part channels in order, skipping the percussion channel."""
    channel = index % 15
    return channel + 1 if channel >= DRUM_CHANNEL else channel


def append_events(track: MidiTrack, events: list[MidiEvent]) -> None:
    """Append note_on/note_off pairs to a track as delta-timed messages."""
    messages: list[tuple[int, Message]] = []
    for event in events:
        messages.append(
            (
                event.start_ticks,
                Message(
                    "note_on", channel=event.channel, note=event.pitch, velocity=event.velocity
                ),
            )
        )
        messages.append(
            (
                event.start_ticks + event.duration_ticks,
                Message("note_off", channel=event.channel, note=event.pitch, velocity=0),
            )
        )

    # note_off before note_on at the same tick so repeated pitches re-sound
    messages.sort(key=lambda x: (x[0], x[1].type != "note_off", x[1].note))

    current = 0
    for absolute, message in messages:
        message.time = absolute - current
        track.append(message)
        current = absolute


def first_tempo(score: Score) -> int:
    return next((m.tempo for m in score.measures if m.tempo is not None), DEFAULT_TEMPO)


def part_events(
    score: Score, part: Part, channel: int, ticks_per_beat: int = TICKS_PER_BEAT
) -> list[MidiEvent]:
    """Collect the note events of one part's staves."""
    audible = set(audible_voices(score))
    staves = set(part.staves)
    events: list[MidiEvent] = []

    offset = Fraction(0)
    time_signature = TimeSignature.COMMON_TIME
    dynamic: str | None = None
    for measure in score.measures:
        if measure.time_signature:
            try:
                time_signature = TimeSignature.parse(measure.time_signature)
            except FormatError:
                logger.warning(
                    "Measure %d: ignoring invalid time signature %r",
                    measure.number,
                    measure.time_signature,
                )
        dynamic = measure.dynamics or dynamic

        for staff in measure.staves:
            if staff.id not in staves:
                continue
            for voice in staff.voices:
                if voice.id not in audible:
                    continue
                for note in voice.notes:
                    if note.rest or note.grace:
                        continue
                    velocity = DYNAMIC_VELOCITY.get(note.dynamic or dynamic or "", DEFAULT_VELOCITY)
                    onset = offset + Fraction(note.time).limit_denominator(64)
                    start = quarters_to_ticks(onset, ticks_per_beat)
                    length = quarters_to_ticks(note.value, ticks_per_beat)
                    for key in note.keys:
                        events.append(
                            MidiEvent(
                                pitch=pitch_to_midi(key),
                                start_ticks=start,
                                duration_ticks=length,
                                velocity=velocity,
                                channel=channel,
                            )
                        )
        offset += time_signature.capacity
    return events


def score_to_midi(score: Score, ticks_per_beat: int = TICKS_PER_BEAT) -> MidiFile:
    """
    Convert a Score to a type-1 MidiFile.

    The first track carries tempo and time signature; then one track per
    part with its program, volume (CC7) and pan (CC10).

    Raises:
        FormatError: if a sounding note has a malformed pitch
    """
    mid = MidiFile(type=1, ticks_per_beat=ticks_per_beat)

    conductor = MidiTrack()
    conductor.append(MetaMessage("track_name", name=score.title, time=0))
    conductor.append(MetaMessage("set_tempo", tempo=int(60_000_000 / first_tempo(score)), time=0))
    opening = next((m.time_signature for m in score.measures if m.time_signature), None)
    try:
        ts = TimeSignature.parse(opening) if opening else TimeSignature.COMMON_TIME
    except FormatError:
        ts = TimeSignature.COMMON_TIME
    conductor.append(
        MetaMessage("time_signature", numerator=ts.beats, denominator=ts.unit, time=0)
    )
    conductor.append(MetaMessage("end_of_track", time=0))
    mid.tracks.append(conductor)

    for index, part in enumerate(score.parts):
        channel = channel_for(index)
        track = MidiTrack()
        track.append(MetaMessage("track_name", name=part.name, time=0))
        if part.midi_program is not None:
            track.append(
                Message("program_change", channel=channel, program=part.midi_program, time=0)
            )
        if part.volume is not None:
            track.append(
                Message(
                    "control_change", channel=channel, control=VOLUME_CC, value=part.volume, time=0
                )
            )
        if part.pan is not None:
            # Stored pan is -64..63 around centre
            track.append(
                Message(
                    "control_change", channel=channel, control=PAN_CC, value=part.pan + 64, time=0
                )
            )

        events = part_events(score, part, channel, ticks_per_beat)
        append_events(track, events)
        track.append(MetaMessage("end_of_track", time=0))
        mid.tracks.append(track)
        logger.debug("Part %s: %d note events on channel %d", part.id, len(events), channel)

    return mid
