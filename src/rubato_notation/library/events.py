"""
Event collaborators for the sheet-music library.

The library publishes lifecycle events and never subscribes. Delivery
order and guarantees belong to the publisher implementation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from rubato_notation.constants import LibraryEventType

logger = logging.getLogger(__name__)

EVENT_SOURCE = "sheet-music"
EVENT_VERSION = "1.0.0"


class LibraryEvent(BaseModel):
    """A lifecycle notification carrying the affected entity."""

    model_config = {"frozen": True}

    type: LibraryEventType
    source: str = EVENT_SOURCE
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, str] = Field(default_factory=lambda: {"version": EVENT_VERSION})


@runtime_checkable
class EventPublisher(Protocol):
    async def publish(self, event: LibraryEvent) -> None: ...


Handler = Callable[[LibraryEvent], Awaitable[None]]


class InMemoryEventBus:
    """
    Publisher that records every event and fans out to subscribers.

    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self.published: list[LibraryEvent] = []
        self._handlers: dict[LibraryEventType, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: LibraryEventType | str, handler: Handler) -> None:
        self._handlers[LibraryEventType(event_type)].append(handler)

    async def publish(self, event: LibraryEvent) -> None:
        self.published.append(event)
        for handler in self._handlers.get(event.type, []):
            try:
                await handler(event)
            except Exception:
                logger.exception("Handler failed for %s", event.type.value)

    def of_type(self, event_type: LibraryEventType | str) -> list[LibraryEvent]:
        wanted = LibraryEventType(event_type)
        return [e for e in self.published if e.type == wanted]
