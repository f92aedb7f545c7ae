#!/usr/bin/env python3
"""
Example: Sheet music library workflow.

This demonstrates the library orchestrator backed by YAML files on disk:
1. Generating and storing an exercise for a student
2. Converting it to a grand-staff score and splitting out each hand
3. Tracking repertoire status and practice sessions
4. Watching the lifecycle events the library publishes

Usage:
    python examples/library_workflow.py
    # Creates: examples/output/library/*.yaml and examples/output/*.mid
"""

from pathlib import Path

from rubato_notation.analysis import analyze_voice_complexity
from rubato_notation.converters import exercise_to_score, extract_voice
from rubato_notation.export import score_to_midi
from rubato_notation.library import InMemoryEventBus, SheetMusicLibrary, YamlDirectoryStorage
from rubato_notation.models.exercise import ExerciseParameters, NoteRange, PerformanceEntry


async def main() -> None:
    """Run a student's session against the library."""
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    events = InMemoryEventBus()
    library = SheetMusicLibrary(YamlDirectoryStorage(output_dir / "library"), events)
    await library.initialize()
    print(f"Health: {library.get_health()['message']}")

    # Generate a two-hand study across the grand staff
    params = ExerciseParameters(
        technical_type="mixed",
        key_signature="A_MINOR",
        clef="grand_staff",
        range=NoteRange(lowest="A2", highest="A5"),
        octaves=2,
        measures=8,
        difficulty=6,
    )
    exercise = await library.generate_exercise(params, user_id="student-1")
    print(f"\nGenerated: {exercise.metadata.title} ({exercise.id})")
    print(f"  Expires: {exercise.expires_at:%Y-%m-%d}")

    # Convert to a score and practice hands separately
    score = exercise_to_score(exercise)
    score_id = await library.save_score(score)
    print(f"\nSaved score {score_id} with voices {score.voice_ids()}")

    for voice_id in score.voice_ids():
        analysis = analyze_voice_complexity(score, voice_id)
        print(
            f"  {voice_id}: difficulty {analysis.difficulty}, "
            f"range {analysis.range_span} semitones"
        )

        path = output_dir / f"{exercise.id}_{voice_id}.mid"
        score_to_midi(extract_voice(score, voice_id)).save(str(path))
        print(f"    Created: {path}")

    # Track progress on the piece
    await library.update_repertoire_status("student-1", exercise.id, "LEARNING")
    await library.record_practice_session(
        "student-1",
        exercise.id,
        PerformanceEntry(tempo=72, accuracy=85.0, quality=3, notes="Left hand uneven in bar 5"),
    )
    entry = await library.update_repertoire_status("student-1", exercise.id, "MEMORIZED")
    print(f"\nRepertoire: {entry.status.value}, {len(entry.performance_history)} session(s) logged")

    print("\nEvents published:")
    for event in events.published:
        print(f"  {event.type.value}")

    await library.dispose()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
