"""
Practice-music notation: pitch theory, a multi-voice score model,
exercise generators, validators, format converters and a library
orchestrator served over MCP.
"""

__version__ = "0.1.0"
