"""
Exercise tools - MCP tools for generated practice exercises.

Tools for generating, listing, fetching and deleting exercises.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from rubato_notation.errors import ValidationError
from rubato_notation.library import SheetMusicLibrary
from rubato_notation.models.exercise import ExerciseParameters, GeneratedExercise

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def exercise_summary(exercise: GeneratedExercise) -> dict[str, Any]:
    """Listing view of an exercise."""
    return {
        "id": exercise.id,
        "title": exercise.metadata.title,
        "type": exercise.type.value,
        "key_signature": exercise.parameters.key_signature,
        "time_signature": exercise.parameters.time_signature,
        "difficulty": exercise.parameters.difficulty,
        "measures": len(exercise.measures),
        "created_at": exercise.created_at.isoformat(),
        "expires_at": exercise.expires_at.isoformat() if exercise.expires_at else None,
    }


def register_exercise_tools(
    mcp: ChukMCPServer,
    library: SheetMusicLibrary,
) -> dict[str, Any]:
    """
    Register exercise tools with the MCP server.

    Args:
        mcp: The MCP server instance
        library: The sheet music library

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def notation_generate_exercise(
        user_id: str,
        exercise_type: str = "TECHNICAL",
        technical_type: str | None = "scale",
        key_signature: str = "C_MAJOR",
        time_signature: str = "4/4",
        clef: str = "treble",
        lowest: str = "C4",
        highest: str = "C6",
        difficulty: int = 3,
        measures: int = 4,
        tempo: int = 80,
        scale_type: str = "major",
        arpeggio_type: str = "major",
        hanon_pattern: list[int] | None = None,
        include_descending: bool = True,
        octaves: int = 1,
        include_fingerings: bool = False,
        instrument: str = "PIANO",
        seed: int | None = None,
    ) -> str:
        """
        Generate a practice exercise and save it for a user.

        Technical exercises are scales, arpeggios, Hanon patterns or a mix of
        scale and arpeggio; sight-reading exercises are random melodies that
        get harder with difficulty.

        Args:
            user_id: Owner of the exercise
            exercise_type: 'TECHNICAL' or 'SIGHT_READING'
            technical_type: 'scale', 'arpeggio', 'hanon' or 'mixed'
            key_signature: Key (e.g., 'C_MAJOR', 'F#_MINOR', 'Bb major')
            time_signature: Time signature (default: '4/4')
            clef: 'treble', 'bass', 'alto', 'tenor' or 'grand_staff'
            lowest: Lowest note (e.g., 'C4')
            highest: Highest note (e.g., 'C6')
            difficulty: 1-10; sets note values and sight-reading features
            measures: Number of measures (1-100)
            tempo: Tempo in BPM (20-300)
            scale_type: Scale for scale exercises (e.g., 'major', 'harmonic_minor')
            arpeggio_type: Chord for arpeggio exercises (e.g., 'major', 'dominant7')
            hanon_pattern: Scale degrees of one Hanon cell (default 1,3,5,6,5,3)
            include_descending: Descend after ascending
            octaves: Octaves to span (1-4)
            include_fingerings: Add fingering numbers
            instrument: 'PIANO' or 'GUITAR' (for fingerings)
            seed: Random seed for repeatable sight-reading

        Returns:
            JSON string with the exercise

        Example:
            notation_generate_exercise(
                user_id="student-1",
                technical_type="arpeggio",
                key_signature="G_MAJOR",
                difficulty=5
            )
        """
        try:
            params = ExerciseParameters.from_dict(
                {
                    "exercise_type": exercise_type,
                    "technical_type": technical_type,
                    "key_signature": key_signature,
                    "time_signature": time_signature,
                    "clef": clef,
                    "range": {"lowest": lowest, "highest": highest},
                    "difficulty": difficulty,
                    "measures": measures,
                    "tempo": tempo,
                    "scale_type": scale_type,
                    "arpeggio_type": arpeggio_type,
                    "hanon_pattern": hanon_pattern,
                    "include_descending": include_descending,
                    "octaves": octaves,
                    "include_fingerings": include_fingerings,
                    "instrument": instrument,
                    "seed": seed,
                }
            )
            exercise = await library.generate_exercise(params, user_id)

            return json.dumps(
                {
                    "status": "success",
                    "exercise": exercise.model_dump(mode="json"),
                }
            )
        except ValidationError as e:
            return json.dumps({"status": "error", "message": str(e), "errors": e.errors})
        except Exception as e:
            logger.exception("Failed to generate exercise")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_generate_exercise"] = notation_generate_exercise

    @mcp.tool  # type: ignore[arg-type]
    async def notation_list_exercises(user_id: str) -> str:
        """
        List a user's unexpired exercises, newest first.

        Args:
            user_id: Owner of the exercises

        Returns:
            JSON string with exercise summaries
        """
        try:
            exercises = await library.list_user_exercises(user_id)
            return json.dumps(
                {
                    "status": "success",
                    "exercises": [exercise_summary(e) for e in exercises],
                    "count": len(exercises),
                }
            )
        except Exception as e:
            logger.exception("Failed to list exercises")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_list_exercises"] = notation_list_exercises

    @mcp.tool  # type: ignore[arg-type]
    async def notation_get_exercise(exercise_id: str) -> str:
        """
        Get a generated exercise with all of its measures.

        Args:
            exercise_id: Exercise id

        Returns:
            JSON string with the exercise
        """
        try:
            exercise = await library.load_exercise(exercise_id)
            if exercise is None:
                return json.dumps(
                    {"status": "error", "message": f"Exercise not found: {exercise_id}"}
                )

            return json.dumps({"status": "success", "exercise": exercise.model_dump(mode="json")})
        except Exception as e:
            logger.exception("Failed to get exercise")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_get_exercise"] = notation_get_exercise

    @mcp.tool  # type: ignore[arg-type]
    async def notation_delete_exercise(exercise_id: str) -> str:
        """
        Delete a generated exercise.

        Args:
            exercise_id: Exercise id

        Returns:
            JSON string confirming deletion
        """
        try:
            deleted = await library.delete_exercise(exercise_id)
            if not deleted:
                return json.dumps(
                    {"status": "error", "message": f"Exercise not found: {exercise_id}"}
                )

            return json.dumps({"status": "success", "message": f"Deleted exercise '{exercise_id}'"})
        except Exception as e:
            logger.exception("Failed to delete exercise")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_delete_exercise"] = notation_delete_exercise

    return tools
