"""
Score tools - MCP tools for multi-voice scores.

Tools for validating, converting, rearranging, storing and exporting
scores. Scores and flat documents travel as JSON strings.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rubato_notation.analysis import analyze_voice_complexity
from rubato_notation.converters import (
    ConversionReport,
    exercise_to_score,
    extract_voice,
    flat_to_multi_voice,
    merge_scores,
    multi_voice_to_flat,
    transpose_voice,
)
from rubato_notation.errors import StructuralError
from rubato_notation.export import score_to_midi
from rubato_notation.library import SheetMusicLibrary
from rubato_notation.models.flat import SheetMusic
from rubato_notation.models.score import Score
from rubato_notation.validation import validate_score

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def score_summary(score: Score) -> dict[str, Any]:
    return {
        "title": score.title,
        "parts": [p.id for p in score.parts],
        "staves": score.staff_ids(),
        "voices": score.voice_ids(),
        "measures": len(score.measures),
    }


def register_score_tools(
    mcp: ChukMCPServer,
    library: SheetMusicLibrary,
    output_dir: Path,
) -> dict[str, Any]:
    """
    Register score tools with the MCP server.

    Args:
        mcp: The MCP server instance
        library: The sheet music library
        output_dir: Directory for exported MIDI files

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def notation_validate_score(score_json: str) -> str:
        """
        Check a score's structure and timing.

        Reports errors (broken structure, wrong measure lengths, bad
        pitches) and warnings (unusual but playable content).

        Args:
            score_json: Score as a JSON string

        Returns:
            JSON string with validity, errors and warnings
        """
        try:
            score = Score.model_validate_json(score_json)
            result = validate_score(score)

            return json.dumps(
                {
                    "status": "success",
                    "is_valid": result.is_valid,
                    "errors": [i.to_dict() for i in result.errors],
                    "warnings": [i.to_dict() for i in result.warnings],
                }
            )
        except Exception as e:
            logger.exception("Failed to validate score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_validate_score"] = notation_validate_score

    @mcp.tool  # type: ignore[arg-type]
    async def notation_flatten_score(score_json: str) -> str:
        """
        Flatten a multi-voice score to the single-voice sheet-music format.

        Simultaneous notes become chords; times restart at 0 in every
        measure. Malformed notes are skipped and reported as warnings.

        Args:
            score_json: Score as a JSON string

        Returns:
            JSON string with the flat document and conversion warnings
        """
        try:
            score = Score.model_validate_json(score_json)
            report = ConversionReport()
            sheet_music = multi_voice_to_flat(score, report)

            return json.dumps(
                {
                    "status": "success",
                    "sheet_music": sheet_music.model_dump(mode="json"),
                    "warnings": report.warnings,
                }
            )
        except Exception as e:
            logger.exception("Failed to flatten score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_flatten_score"] = notation_flatten_score

    @mcp.tool  # type: ignore[arg-type]
    async def notation_convert_to_score(sheet_music_json: str) -> str:
        """
        Convert a flat sheet-music document to a multi-voice score.

        Grand-staff documents are split into right and left hands by octave.

        Args:
            sheet_music_json: Flat document as a JSON string

        Returns:
            JSON string with the score and conversion warnings
        """
        try:
            sheet_music = SheetMusic.model_validate_json(sheet_music_json)
            report = ConversionReport()
            score = flat_to_multi_voice(sheet_music, report)

            return json.dumps(
                {
                    "status": "success",
                    "score": score.model_dump(mode="json"),
                    "summary": score_summary(score),
                    "warnings": report.warnings,
                }
            )
        except Exception as e:
            logger.exception("Failed to convert to score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_convert_to_score"] = notation_convert_to_score

    @mcp.tool  # type: ignore[arg-type]
    async def notation_exercise_to_score(exercise_id: str, save: bool = False) -> str:
        """
        Convert a generated exercise to a multi-voice score.

        Args:
            exercise_id: Exercise id
            save: Also store the score in the library

        Returns:
            JSON string with the score (and its id when saved)
        """
        try:
            exercise = await library.load_exercise(exercise_id)
            if exercise is None:
                return json.dumps(
                    {"status": "error", "message": f"Exercise not found: {exercise_id}"}
                )

            score = exercise_to_score(exercise)
            response: dict[str, Any] = {
                "status": "success",
                "score": score.model_dump(mode="json"),
                "summary": score_summary(score),
            }
            if save:
                response["score_id"] = await library.save_score(score)
            return json.dumps(response)
        except Exception as e:
            logger.exception("Failed to convert exercise to score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_exercise_to_score"] = notation_exercise_to_score

    @mcp.tool  # type: ignore[arg-type]
    async def notation_extract_voice(score_json: str, voice_id: str) -> str:
        """
        Keep only one voice of a score.

        Args:
            score_json: Score as a JSON string
            voice_id: Voice to keep (e.g., 'rightHand', 'soprano')

        Returns:
            JSON string with the reduced score
        """
        try:
            score = Score.model_validate_json(score_json)
            if voice_id not in score.voice_ids():
                return json.dumps({"status": "error", "message": f"Voice not found: {voice_id}"})

            extracted = extract_voice(score, voice_id)
            return json.dumps(
                {
                    "status": "success",
                    "score": extracted.model_dump(mode="json"),
                    "summary": score_summary(extracted),
                }
            )
        except Exception as e:
            logger.exception("Failed to extract voice")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_extract_voice"] = notation_extract_voice

    @mcp.tool  # type: ignore[arg-type]
    async def notation_transpose_voice(score_json: str, voice_id: str, semitones: int) -> str:
        """
        Transpose one voice of a score.

        Args:
            score_json: Score as a JSON string
            voice_id: Voice to transpose
            semitones: Semitones up (positive) or down (negative)

        Returns:
            JSON string with the transposed score
        """
        try:
            score = Score.model_validate_json(score_json)
            transposed = transpose_voice(score, voice_id, semitones)
            return json.dumps({"status": "success", "score": transposed.model_dump(mode="json")})
        except Exception as e:
            logger.exception("Failed to transpose voice")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_transpose_voice"] = notation_transpose_voice

    @mcp.tool  # type: ignore[arg-type]
    async def notation_merge_scores(score_jsons: list[str]) -> str:
        """
        Merge several scores into one ensemble score, measure by measure.

        Args:
            score_jsons: Scores as JSON strings

        Returns:
            JSON string with the merged score
        """
        try:
            scores = [Score.model_validate_json(s) for s in score_jsons]
            merged = merge_scores(scores)
            return json.dumps(
                {
                    "status": "success",
                    "score": merged.model_dump(mode="json"),
                    "summary": score_summary(merged),
                }
            )
        except Exception as e:
            logger.exception("Failed to merge scores")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_merge_scores"] = notation_merge_scores

    @mcp.tool  # type: ignore[arg-type]
    async def notation_analyze_voice(score_json: str, voice_id: str) -> str:
        """
        Rate how demanding one voice is.

        Args:
            score_json: Score as a JSON string
            voice_id: Voice to analyze

        Returns:
            JSON string with interval, range, rhythm and difficulty metrics
        """
        try:
            score = Score.model_validate_json(score_json)
            analysis = analyze_voice_complexity(score, voice_id)
            return json.dumps({"status": "success", "analysis": analysis.model_dump()})
        except Exception as e:
            logger.exception("Failed to analyze voice")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_analyze_voice"] = notation_analyze_voice

    @mcp.tool  # type: ignore[arg-type]
    async def notation_export_midi(
        output_name: str,
        score_json: str | None = None,
        score_id: str | None = None,
    ) -> str:
        """
        Export a score to a MIDI file.

        Give either the score itself or the id of a stored score.

        Args:
            output_name: Output filename (without .mid extension)
            score_json: Score as a JSON string
            score_id: Id of a score saved in the library

        Returns:
            JSON string with output file path
        """
        try:
            if score_json is not None:
                score = Score.model_validate_json(score_json)
            elif score_id is not None:
                stored = await library.get_score(score_id)
                if stored is None:
                    return json.dumps(
                        {"status": "error", "message": f"Score not found: {score_id}"}
                    )
                score = stored
            else:
                return json.dumps({"status": "error", "message": "Provide score_json or score_id"})

            midi_file = score_to_midi(score)

            filename = f"{output_name}.mid"
            output_path = output_dir / filename
            output_dir.mkdir(parents=True, exist_ok=True)
            midi_file.save(str(output_path))

            return json.dumps(
                {
                    "status": "success",
                    "path": str(output_path),
                    "tracks": len(midi_file.tracks),
                    "message": f"Exported '{score.title}' to {filename}",
                }
            )
        except Exception as e:
            logger.exception("Failed to export MIDI")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_export_midi"] = notation_export_midi

    @mcp.tool  # type: ignore[arg-type]
    async def notation_save_score(score_json: str) -> str:
        """
        Store a score in the library.

        Scores with structural errors are refused and the errors returned.

        Args:
            score_json: Score as a JSON string

        Returns:
            JSON string with the score id
        """
        try:
            score = Score.model_validate_json(score_json)
            score_id = await library.save_score(score)
            return json.dumps({"status": "success", "score_id": score_id})
        except StructuralError as e:
            return json.dumps(
                {
                    "status": "error",
                    "message": str(e),
                    "errors": [i.to_dict() for i in e.issues],
                }
            )
        except Exception as e:
            logger.exception("Failed to save score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_save_score"] = notation_save_score

    @mcp.tool  # type: ignore[arg-type]
    async def notation_get_score(score_id: str) -> str:
        """
        Get a stored score.

        Args:
            score_id: Score id

        Returns:
            JSON string with the score
        """
        try:
            score = await library.get_score(score_id)
            if score is None:
                return json.dumps(
                    {"status": "error", "message": f"Score not found: {score_id}"}
                )

            return json.dumps(
                {
                    "status": "success",
                    "score": score.model_dump(mode="json"),
                    "summary": score_summary(score),
                }
            )
        except Exception as e:
            logger.exception("Failed to get score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["notation_get_score"] = notation_get_score

    return tools
