"""
Voice operations on multi-voice scores.

Every operation returns a new Score; the input is never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rubato_notation.core.pitch import transpose_pitch
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice

logger = logging.getLogger(__name__)


def _prune_parts(parts: list[Part], kept_staves: set[str]) -> list[Part]:
    """Drop staff references that no longer exist, then parts left without staves."""
    pruned = []
    for part in parts:
        staves = [s for s in part.staves if s in kept_staves]
        if staves:
            pruned.append(part.model_copy(update={"staves": staves}, deep=True))
    return pruned


def _keep_voices(score: Score, keep: set[str]) -> Score:
    measures = []
    kept_staves: set[str] = set()
    for measure in score.measures:
        staves = []
        for staff in measure.staves:
            voices = [v.model_copy(deep=True) for v in staff.voices if v.id in keep]
            if voices:
                staves.append(staff.model_copy(update={"voices": voices}, deep=True))
                kept_staves.add(staff.id)
        measures.append(measure.model_copy(update={"staves": staves}, deep=True))

    return score.model_copy(
        update={
            "parts": _prune_parts(score.parts, kept_staves),
            "measures": measures,
            "metadata": score.metadata.model_copy(deep=True),
        },
        deep=True,
    )


def extract_voice(score: Score, voice_id: str) -> Score:
    """
    Keep only one voice.

    Staves without that voice disappear from each measure, and parts lose
    references to staves that no longer appear anywhere.
    """
    return _keep_voices(score, {voice_id})


def extract_staff(score: Score, staff_id: str) -> Score:
    """Keep only one staff, with all of its voices."""
    measures = [
        m.model_copy(
            update={"staves": [s.model_copy(deep=True) for s in m.staves if s.id == staff_id]},
            deep=True,
        )
        for m in score.measures
    ]
    present = staff_id in score.staff_ids()
    return score.model_copy(
        update={
            "parts": _prune_parts(score.parts, {staff_id} if present else set()),
            "measures": measures,
            "metadata": score.metadata.model_copy(deep=True),
        },
        deep=True,
    )


def _rename_staves(score: Score, index: int, taken: set[str]) -> tuple[list[Part], list[Measure]]:
    """Rename a score's staff ids that collide with ids already taken."""
    renames: dict[str, str] = {}
    for staff_id in score.staff_ids() + [s for p in score.parts for s in p.staves]:
        if staff_id in renames:
            continue
        new_id = staff_id
        if staff_id in taken:
            new_id = f"{staff_id}-{index}"
            suffix = 1
            while new_id in taken:
                suffix += 1
                new_id = f"{staff_id}-{index}-{suffix}"
            logger.debug("Renaming staff %s to %s", staff_id, new_id)
        renames[staff_id] = new_id
    taken.update(renames.values())

    parts = [
        part.model_copy(
            update={
                "id": f"part{index}",
                "staves": [renames[s] for s in part.staves],
            },
            deep=True,
        )
        for part in score.parts
    ]
    if len(parts) > 1:
        parts = [
            p.model_copy(update={"id": f"part{index}-{i}"}, deep=True)
            for i, p in enumerate(parts)
        ]

    measures = []
    for measure in score.measures:
        staves = []
        for staff in measure.staves:
            voices = [
                v.model_copy(
                    update={
                        "notes": [
                            n.model_copy(update={"staff_id": renames[staff.id]}, deep=True)
                            for n in v.notes
                        ]
                    },
                    deep=True,
                )
                for v in staff.voices
            ]
            staves.append(
                staff.model_copy(update={"id": renames[staff.id], "voices": voices}, deep=True)
            )
        measures.append(measure.model_copy(update={"staves": staves}, deep=True))
    return parts, measures


_HEADER_FIELDS = (
    "time_signature",
    "key_signature",
    "tempo",
    "dynamics",
    "rehearsal_mark",
    "bar_line",
    "repeat_count",
    "volta",
)


def merge_scores(scores: Iterable[Score]) -> Score:
    """
    Combine scores into one ensemble score.

    Each input's parts are renumbered (part0, part1, ...) and colliding
    staff ids renamed. Measures are aligned by position; shorter scores
    contribute nothing to the later measures. Header fields come from the
    first score that sets them.
    """
    scores = list(scores)
    if not scores:
        raise ValueError("No scores to merge")

    taken: set[str] = set()
    parts: list[Part] = []
    columns: list[list[Measure]] = []
    for index, score in enumerate(scores):
        score_parts, score_measures = _rename_staves(score, index, taken)
        parts.extend(score_parts)
        columns.append(score_measures)

    length = max(len(c) for c in columns)
    measures: list[Measure] = []
    for position in range(length):
        row = [c[position] for c in columns if position < len(c)]
        header = {
            field: next((getattr(m, field) for m in row if getattr(m, field) is not None), None)
            for field in _HEADER_FIELDS
        }
        measures.append(
            Measure(
                number=position + 1,
                staves=[s for m in row for s in m.staves],
                **header,
            )
        )

    first = scores[0]
    return Score(
        title=" + ".join(s.title for s in scores),
        composer=first.composer,
        parts=parts,
        measures=measures,
        metadata=first.metadata.model_copy(
            update={"tags": ["merged", "ensemble"], "id": None}, deep=True
        ),
    )


def merge_voices(score: Score, voice_ids: list[str], name: str | None = None) -> Score:
    """
    Merge several voices of each staff into one voice.

    The merged voice id is the source ids joined with '-'. Notes keep their
    times and are ordered by start time.
    """
    if len(voice_ids) < 2:
        raise ValueError("At least two voices are needed to merge")
    merged_id = "-".join(voice_ids)
    wanted = set(voice_ids)

    measures = []
    for measure in score.measures:
        staves = []
        for staff in measure.staves:
            sources = [v for v in staff.voices if v.id in wanted]
            if not sources:
                staves.append(staff.model_copy(deep=True))
                continue
            notes = sorted(
                (
                    n.model_copy(update={"voice_id": merged_id}, deep=True)
                    for v in sources
                    for n in v.notes
                ),
                key=lambda n: n.time,
            )
            label = name or " + ".join(v.name or v.id for v in sources)
            merged = Voice(id=merged_id, name=label, notes=notes)
            voices: list[Voice] = []
            for voice in staff.voices:
                if voice.id not in wanted:
                    voices.append(voice.model_copy(deep=True))
                elif voice is sources[0]:
                    voices.append(merged)
            staves.append(staff.model_copy(update={"voices": voices}, deep=True))
        measures.append(measure.model_copy(update={"staves": staves}, deep=True))

    return score.model_copy(
        update={"measures": measures, "metadata": score.metadata.model_copy(deep=True)},
        deep=True,
    )


def _transpose_note(note: Note, semitones: int) -> Note:
    if note.rest:
        return note.model_copy(deep=True)
    keys = [transpose_pitch(k, semitones) for k in note.keys]
    return note.model_copy(update={"keys": keys, "accidental": None}, deep=True)


def transpose_voice(score: Score, voice_id: str, semitones: int) -> Score:
    """
    Transpose one voice by a number of semitones.

    Raises:
        FormatError: if a transposed pitch leaves the MIDI range
    """
    measures = []
    for measure in score.measures:
        staves = []
        for staff in measure.staves:
            voices = [
                v.model_copy(
                    update={"notes": [_transpose_note(n, semitones) for n in v.notes]}, deep=True
                )
                if v.id == voice_id
                else v.model_copy(deep=True)
                for v in staff.voices
            ]
            staves.append(staff.model_copy(update={"voices": voices}, deep=True))
        measures.append(measure.model_copy(update={"staves": staves}, deep=True))
    return score.model_copy(
        update={"measures": measures, "metadata": score.metadata.model_copy(deep=True)},
        deep=True,
    )


def mute_voice(score: Score, voice_id: str, muted: bool = True) -> Score:
    """Mark a voice as muted (or unmuted) for playback."""
    muted_voices = [v for v in score.metadata.muted_voices if v != voice_id]
    if muted:
        muted_voices.append(voice_id)
    metadata = score.metadata.model_copy(update={"muted_voices": muted_voices})
    return score.model_copy(update={"metadata": metadata}, deep=True)


def solo_voice(score: Score, voice_id: str | None) -> Score:
    """Solo a voice for playback; None clears the solo."""
    metadata = score.metadata.model_copy(update={"solo_voice": voice_id})
    return score.model_copy(update={"metadata": metadata}, deep=True)


def audible_voices(score: Score) -> list[str]:
    """Voice ids that play back, honouring solo then mute."""
    if score.metadata.solo_voice:
        return [score.metadata.solo_voice]
    return [v for v in score.voice_ids() if v not in score.metadata.muted_voices]
