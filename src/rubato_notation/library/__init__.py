"""
Sheet music library - persistence, caching and lifecycle events.
"""

from rubato_notation.library.events import EventPublisher, InMemoryEventBus, LibraryEvent
from rubato_notation.library.manager import SheetMusicLibrary
from rubato_notation.library.storage import MemoryStorage, StorageBackend, YamlDirectoryStorage

__all__ = [
    "SheetMusicLibrary",
    "StorageBackend",
    "MemoryStorage",
    "YamlDirectoryStorage",
    "EventPublisher",
    "InMemoryEventBus",
    "LibraryEvent",
]
