"""
MCP tool implementations.

Tools are organized by domain:
- exercises - Exercise generation and lifecycle
- scores - Score validation, conversion, voice operations and MIDI export
"""

from rubato_notation.tools.exercises import register_exercise_tools
from rubato_notation.tools.scores import register_score_tools

__all__ = [
    "register_exercise_tools",
    "register_score_tools",
]
