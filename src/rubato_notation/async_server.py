#!/usr/bin/env python3
"""
Async Notation MCP Server using chuk-mcp-server

This server provides MCP tools for generating practice exercises and
working with multi-voice scores.

The server provides tools for:
- Generating scale, arpeggio, Hanon, mixed and sight-reading exercises
- Listing, fetching and deleting a user's exercises
- Validating scores and converting between flat and multi-voice formats
- Extracting, transposing and merging voices
- Exporting scores to MIDI files

Storage and configuration locations come from the environment:
RUBATO_DATA_DIR (default ./data) and RUBATO_CONFIG (default
<data dir>/config.yaml).
"""

import logging
import os
from pathlib import Path

from chuk_mcp_server import ChukMCPServer

from rubato_notation.config import load_config
from rubato_notation.library import InMemoryEventBus, SheetMusicLibrary, YamlDirectoryStorage
from rubato_notation.tools import register_exercise_tools, register_score_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("rubato-notation")

# Paths
DATA_DIR = Path(os.environ.get("RUBATO_DATA_DIR", Path.cwd() / "data"))
CONFIG_PATH = Path(os.environ.get("RUBATO_CONFIG", DATA_DIR / "config.yaml"))
STORAGE_DIR = DATA_DIR / "library"
OUTPUT_DIR = DATA_DIR / "output"

# Create the library
config = load_config(CONFIG_PATH)
event_bus = InMemoryEventBus()
library = SheetMusicLibrary(YamlDirectoryStorage(STORAGE_DIR), event_bus, config)

# Register all tools
exercise_tools = register_exercise_tools(mcp, library)
score_tools = register_score_tools(mcp, library, OUTPUT_DIR)

# Export tool functions for direct access
notation_generate_exercise = exercise_tools["notation_generate_exercise"]
notation_list_exercises = exercise_tools["notation_list_exercises"]
notation_get_exercise = exercise_tools["notation_get_exercise"]
notation_delete_exercise = exercise_tools["notation_delete_exercise"]

notation_validate_score = score_tools["notation_validate_score"]
notation_flatten_score = score_tools["notation_flatten_score"]
notation_convert_to_score = score_tools["notation_convert_to_score"]
notation_exercise_to_score = score_tools["notation_exercise_to_score"]
notation_extract_voice = score_tools["notation_extract_voice"]
notation_transpose_voice = score_tools["notation_transpose_voice"]
notation_merge_scores = score_tools["notation_merge_scores"]
notation_analyze_voice = score_tools["notation_analyze_voice"]
notation_export_midi = score_tools["notation_export_midi"]
notation_save_score = score_tools["notation_save_score"]
notation_get_score = score_tools["notation_get_score"]

logger.info("Rubato Notation MCP Server initialized")
logger.info(f"  Storage dir: {STORAGE_DIR}")
logger.info(f"  Output dir: {OUTPUT_DIR}")
