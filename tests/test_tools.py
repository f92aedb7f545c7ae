"""
Tests for MCP tools.

Tests the MCP tool implementations for exercises and scores.
"""

import json
from pathlib import Path

import pytest

from rubato_notation.library import InMemoryEventBus, MemoryStorage, SheetMusicLibrary
from rubato_notation.models.score import Measure, Note, Part, Score, Staff, Voice
from rubato_notation.tools import register_exercise_tools, register_score_tools


# Mock MCP server for testing tools
class MockMCPServer:
    """Mock MCP server that just stores registered tools."""

    def __init__(self, name: str):
        self.name = name
        self.tools: dict = {}

    def tool(self, func):
        """Decorator to register a tool."""
        self.tools[func.__name__] = func
        return func


@pytest.fixture
def library() -> SheetMusicLibrary:
    return SheetMusicLibrary(MemoryStorage(), InMemoryEventBus())


@pytest.fixture
def exercise_tools(library: SheetMusicLibrary) -> dict:
    return register_exercise_tools(MockMCPServer("test"), library)


@pytest.fixture
def score_tools(library: SheetMusicLibrary, temp_dir: Path) -> dict:
    return register_score_tools(MockMCPServer("test"), library, temp_dir)


def duet_json() -> str:
    staff = Staff(
        id="s",
        voices=[
            Voice(id="upper", notes=[Note(keys=["e/5"], duration="w")]),
            Voice(id="lower", notes=[Note(keys=["c/4"], duration="w")]),
        ],
    )
    score = Score(
        title="Duet",
        parts=[Part(id="p", name="Piano", staves=["s"])],
        measures=[Measure(number=1, time_signature="4/4", staves=[staff])],
    )
    return score.model_dump_json()


class TestRegistration:
    """Tests for tool registration."""

    def test_tools_registered_on_server(self, library: SheetMusicLibrary, temp_dir: Path) -> None:
        """Every returned tool is also registered with the server."""
        mcp = MockMCPServer("test")
        tools = {
            **register_exercise_tools(mcp, library),
            **register_score_tools(mcp, library, temp_dir),
        }
        assert set(tools) == set(mcp.tools)
        assert all(name.startswith("notation_") for name in tools)
        assert "notation_generate_exercise" in tools
        assert "notation_export_midi" in tools


class TestExerciseTools:
    """Tests for exercise tools."""

    @pytest.mark.asyncio
    async def test_generate_exercise(self, exercise_tools: dict) -> None:
        """Generate exercise tool."""
        result = await exercise_tools["notation_generate_exercise"](
            user_id="student-1",
            technical_type="arpeggio",
            key_signature="G_MAJOR",
        )
        data = json.loads(result)
        assert data["status"] == "success"
        assert data["exercise"]["user_id"] == "student-1"
        assert data["exercise"]["metadata"]["title"] == "G Major Arpeggio"
        assert len(data["exercise"]["measures"]) == 4

    @pytest.mark.asyncio
    async def test_generate_invalid_parameters(self, exercise_tools: dict) -> None:
        """Invalid parameters come back as a list of errors."""
        result = await exercise_tools["notation_generate_exercise"](
            user_id="student-1",
            key_signature="H_MAJOR",
            lowest="C6",
            highest="C4",
        )
        data = json.loads(result)
        assert data["status"] == "error"
        assert len(data["errors"]) >= 2

    @pytest.mark.asyncio
    async def test_generate_unsupported_type(self, exercise_tools: dict) -> None:
        """Exercise types with no generator report an error."""
        result = await exercise_tools["notation_generate_exercise"](
            user_id="student-1", exercise_type="HARMONY"
        )
        data = json.loads(result)
        assert data["status"] == "error"
        assert "HARMONY" in data["message"]

    @pytest.mark.asyncio
    async def test_list_exercises(self, exercise_tools: dict) -> None:
        """List exercise tool."""
        await exercise_tools["notation_generate_exercise"](user_id="student-1")
        await exercise_tools["notation_generate_exercise"](
            user_id="student-1", exercise_type="SIGHT_READING", seed=4
        )
        await exercise_tools["notation_generate_exercise"](user_id="student-2")

        data = json.loads(await exercise_tools["notation_list_exercises"](user_id="student-1"))
        assert data["status"] == "success"
        assert data["count"] == 2
        assert {e["type"] for e in data["exercises"]} == {"TECHNICAL", "SIGHT_READING"}

    @pytest.mark.asyncio
    async def test_get_and_delete(self, exercise_tools: dict) -> None:
        """Get, delete, then fail to get."""
        created = json.loads(
            await exercise_tools["notation_generate_exercise"](user_id="student-1")
        )
        exercise_id = created["exercise"]["id"]

        fetched = json.loads(await exercise_tools["notation_get_exercise"](exercise_id=exercise_id))
        assert fetched["exercise"]["id"] == exercise_id

        deleted = json.loads(
            await exercise_tools["notation_delete_exercise"](exercise_id=exercise_id)
        )
        assert deleted["status"] == "success"
        assert deleted["message"] == f"Deleted exercise '{exercise_id}'"

        missing = json.loads(await exercise_tools["notation_get_exercise"](exercise_id=exercise_id))
        assert missing["status"] == "error"
        assert missing["message"] == f"Exercise not found: {exercise_id}"

    @pytest.mark.asyncio
    async def test_delete_missing(self, exercise_tools: dict) -> None:
        """Deleting an unknown exercise is an error."""
        data = json.loads(await exercise_tools["notation_delete_exercise"](exercise_id="nope"))
        assert data["status"] == "error"


class TestScoreTools:
    """Tests for score tools."""

    @pytest.mark.asyncio
    async def test_validate_score(self, score_tools: dict) -> None:
        """A well-formed score validates."""
        data = json.loads(await score_tools["notation_validate_score"](score_json=duet_json()))
        assert data["status"] == "success"
        assert data["is_valid"]
        assert data["errors"] == []

    @pytest.mark.asyncio
    async def test_validate_short_measure(self, score_tools: dict) -> None:
        """An underfull voice is an error."""
        score = Score.model_validate_json(duet_json())
        score.measures[0].staves[0].voices[0].notes[0] = Note(keys=["e/5"], duration="h")
        data = json.loads(
            await score_tools["notation_validate_score"](score_json=score.model_dump_json())
        )
        assert not data["is_valid"]
        assert "DURATION_MISMATCH" in {e["code"] for e in data["errors"]}

    @pytest.mark.asyncio
    async def test_malformed_json(self, score_tools: dict) -> None:
        """Unparseable input is reported, not raised."""
        data = json.loads(await score_tools["notation_validate_score"](score_json="{not json"))
        assert data["status"] == "error"

    @pytest.mark.asyncio
    async def test_flatten_score(self, score_tools: dict) -> None:
        """Two voices flatten into one chord."""
        data = json.loads(await score_tools["notation_flatten_score"](score_json=duet_json()))
        assert data["status"] == "success"
        notes = data["sheet_music"]["measures"][0]["notes"]
        assert len(notes) == 1
        assert notes[0]["keys"] == ["e/5", "c/4"]

    @pytest.mark.asyncio
    async def test_convert_to_score(self, score_tools: dict) -> None:
        """A flattened score converts back to a single main voice."""
        flat = json.loads(await score_tools["notation_flatten_score"](score_json=duet_json()))
        data = json.loads(
            await score_tools["notation_convert_to_score"](
                sheet_music_json=json.dumps(flat["sheet_music"])
            )
        )
        assert data["status"] == "success"
        assert data["summary"]["voices"] == ["main"]
        assert data["summary"]["measures"] == 1

    @pytest.mark.asyncio
    async def test_exercise_to_score_and_export(
        self, exercise_tools: dict, score_tools: dict, temp_dir: Path
    ) -> None:
        """A saved exercise score can be exported by id."""
        created = json.loads(
            await exercise_tools["notation_generate_exercise"](user_id="student-1")
        )
        converted = json.loads(
            await score_tools["notation_exercise_to_score"](
                exercise_id=created["exercise"]["id"], save=True
            )
        )
        assert converted["status"] == "success"
        assert "exercise" in converted["score"]["metadata"]["tags"]

        exported = json.loads(
            await score_tools["notation_export_midi"](
                output_name="scale", score_id=converted["score_id"]
            )
        )
        assert exported["status"] == "success"
        assert exported["tracks"] == 2
        assert (temp_dir / "scale.mid").exists()

    @pytest.mark.asyncio
    async def test_exercise_to_score_missing(self, score_tools: dict) -> None:
        """An unknown exercise id is an error."""
        data = json.loads(await score_tools["notation_exercise_to_score"](exercise_id="nope"))
        assert data["message"] == "Exercise not found: nope"

    @pytest.mark.asyncio
    async def test_extract_voice(self, score_tools: dict) -> None:
        """Extract voice tool keeps one voice."""
        data = json.loads(
            await score_tools["notation_extract_voice"](score_json=duet_json(), voice_id="lower")
        )
        assert data["summary"]["voices"] == ["lower"]

    @pytest.mark.asyncio
    async def test_extract_unknown_voice(self, score_tools: dict) -> None:
        """An unknown voice is an error."""
        data = json.loads(
            await score_tools["notation_extract_voice"](score_json=duet_json(), voice_id="alto")
        )
        assert data["status"] == "error"
        assert data["message"] == "Voice not found: alto"

    @pytest.mark.asyncio
    async def test_transpose_voice(self, score_tools: dict) -> None:
        """Transpose voice tool moves one voice."""
        data = json.loads(
            await score_tools["notation_transpose_voice"](
                score_json=duet_json(), voice_id="lower", semitones=7
            )
        )
        voices = data["score"]["measures"][0]["staves"][0]["voices"]
        assert voices[0]["notes"][0]["keys"] == ["e/5"]
        assert voices[1]["notes"][0]["keys"] == ["g/4"]

    @pytest.mark.asyncio
    async def test_merge_scores(self, score_tools: dict) -> None:
        """Merge scores tool renames colliding staves."""
        data = json.loads(
            await score_tools["notation_merge_scores"](score_jsons=[duet_json(), duet_json()])
        )
        assert data["status"] == "success"
        assert data["summary"]["staves"] == ["s", "s-1"]

    @pytest.mark.asyncio
    async def test_analyze_voice(self, score_tools: dict) -> None:
        """Analyze voice tool reports metrics."""
        data = json.loads(
            await score_tools["notation_analyze_voice"](score_json=duet_json(), voice_id="upper")
        )
        assert data["analysis"]["voice_id"] == "upper"
        assert data["analysis"]["note_count"] == 1

    @pytest.mark.asyncio
    async def test_save_and_get_score(self, score_tools: dict) -> None:
        """Saved scores can be fetched by id."""
        saved = json.loads(await score_tools["notation_save_score"](score_json=duet_json()))
        fetched = json.loads(await score_tools["notation_get_score"](score_id=saved["score_id"]))
        assert fetched["score"]["title"] == "Duet"
        assert fetched["summary"]["voices"] == ["upper", "lower"]

    @pytest.mark.asyncio
    async def test_save_invalid_score(self, score_tools: dict) -> None:
        """Scores with structural errors are refused with their findings."""
        score = Score.model_validate_json(duet_json())
        score.parts[0].staves = ["s", "missing"]
        result = await score_tools["notation_save_score"](score_json=score.model_dump_json())
        data = json.loads(result)
        assert data["status"] == "error"
        assert "MISSING_STAFF" in {e["code"] for e in data["errors"]}

    @pytest.mark.asyncio
    async def test_get_missing_score(self, score_tools: dict) -> None:
        """An unknown score id is an error."""
        data = json.loads(await score_tools["notation_get_score"](score_id="score_none"))
        assert data["message"] == "Score not found: score_none"

    @pytest.mark.asyncio
    async def test_export_needs_a_score(self, score_tools: dict) -> None:
        """Export without a score or id is an error."""
        data = json.loads(await score_tools["notation_export_midi"](output_name="nothing"))
        assert data["message"] == "Provide score_json or score_id"

    @pytest.mark.asyncio
    async def test_export_inline_score(self, score_tools: dict, temp_dir: Path) -> None:
        """An inline score exports to the output directory."""
        data = json.loads(
            await score_tools["notation_export_midi"](output_name="duet", score_json=duet_json())
        )
        assert data["path"] == str(temp_dir / "duet.mid")
        assert data["message"] == "Exported 'Duet' to duet.mid"
