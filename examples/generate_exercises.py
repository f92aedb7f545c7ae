#!/usr/bin/env python3
"""
Example: Generate practice exercises and export them to MIDI.

This walks the main pipeline: parameters go into a generator, the flat
measures are lifted into a multi-voice score, and the score is written
as a Standard MIDI File you can open in any notation program or DAW.

Usage:
    python examples/generate_exercises.py
    # Creates: examples/output/*.mid
"""

from pathlib import Path

from rubato_notation.converters import exercise_to_score
from rubato_notation.export import score_to_midi
from rubato_notation.generators import create_exercise
from rubato_notation.models.exercise import ExerciseParameters, NoteRange
from rubato_notation.validation import validate_score

EXERCISES = {
    "d_major_scale": ExerciseParameters(
        technical_type="scale",
        key_signature="D_MAJOR",
        octaves=2,
        difficulty=5,
        include_fingerings=True,
    ),
    "g_dominant7_arpeggio": ExerciseParameters(
        technical_type="arpeggio",
        key_signature="G_MAJOR",
        arpeggio_type="dominant7",
        difficulty=4,
    ),
    "hanon_c_major": ExerciseParameters(
        technical_type="hanon",
        measures=8,
        tempo=100,
    ),
    "sight_reading_bass": ExerciseParameters(
        exercise_type="SIGHT_READING",
        key_signature="F_MAJOR",
        time_signature="3/4",
        clef="bass",
        range=NoteRange(lowest="F2", highest="D4"),
        difficulty=6,
        measures=8,
        seed=2024,
    ),
}


def main() -> None:
    """Generate each exercise and export it."""
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    for name, params in EXERCISES.items():
        exercise = create_exercise(params, user_id="example")
        score = exercise_to_score(exercise)

        result = validate_score(score)
        print(f"{exercise.metadata.title}")
        print(f"  {exercise.metadata.description}")
        print(f"  Tags: {', '.join(exercise.metadata.tags)}")
        print(f"  Valid: {result.is_valid} ({len(result.warnings)} warnings)")

        path = output_dir / f"{name}.mid"
        score_to_midi(score).save(str(path))
        print(f"  Created: {path}\n")

    print("Done! Open the MIDI files to hear the exercises.")


if __name__ == "__main__":
    main()
