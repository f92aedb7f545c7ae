"""
Sheet Music Library - exercise, score and repertoire lifecycle.

Owns the in-memory caches in front of a storage collaborator and publishes
lifecycle events. Reads go through the cache to storage; writes go to
storage first, then the cache.

Storage keys:
    exercise:{user_id}:{exercise_id}
    repertoire:{user_id}:{sheet_music_id}
    sheet-music:{sheet_music_id}
    score:{score_id}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from rubato_notation.config import LibraryConfig
from rubato_notation.constants import LibraryEventType, RepertoireStatus
from rubato_notation.generators.registry import create_exercise
from rubato_notation.library.events import EventPublisher, LibraryEvent
from rubato_notation.library.storage import StorageBackend
from rubato_notation.models.exercise import (
    ExerciseParameters,
    GeneratedExercise,
    MusicRecommendation,
    MusicSearchCriteria,
    PerformanceEntry,
    SearchResults,
    UserRepertoire,
)
from rubato_notation.models.flat import SheetMusic
from rubato_notation.models.score import Score
from rubato_notation.validation import validate_score

logger = logging.getLogger(__name__)


def exercise_key(user_id: str, exercise_id: str) -> str:
    return f"exercise:{user_id}:{exercise_id}"


def repertoire_key(user_id: str, sheet_music_id: str) -> str:
    return f"repertoire:{user_id}:{sheet_music_id}"


def sheet_music_key(sheet_music_id: str) -> str:
    return f"sheet-music:{sheet_music_id}"


def score_key(score_id: str) -> str:
    return f"score:{score_id}"


class SheetMusicLibrary:
    """
    Orchestrates generated exercises, stored scores and user repertoire.

    Lifecycle: construct, initialize(), call sweep_expired() periodically,
    dispose(). Operations work before initialize() too; initialize() only
    preloads the exercise cache.
    """

    name = "SheetMusicLibrary"
    version = "1.0.0"

    def __init__(
        self,
        storage: StorageBackend,
        events: EventPublisher,
        config: LibraryConfig | None = None,
    ):
        """
        Initialize the library.

        Args:
            storage: Async key/document store
            events: Lifecycle event publisher
            config: Tunables (defaults when omitted)
        """
        self.storage = storage
        self.events = events
        self.config = config or LibraryConfig()
        self._exercises: dict[str, GeneratedExercise] = {}
        self._search_cache: dict[str, tuple[datetime, SearchResults]] = {}
        self._recommendations: dict[str, list[MusicRecommendation]] = {}
        self._repertoire: dict[str, list[UserRepertoire]] = {}
        self._initialized = False
        self._last_health_check = datetime.now(UTC)

    # --- lifecycle -----------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Preload up to config.initial_load_limit exercises. Idempotent."""
        if self._initialized:
            return
        keys = await self.storage.list_keys("exercise:")
        for key in keys[: self.config.initial_load_limit]:
            exercise = await self._read_exercise(key)
            if exercise is not None:
                self._exercises[exercise.id] = exercise
        self._initialized = True
        logger.info(
            "Sheet music library initialized with %d cached exercises", len(self._exercises)
        )

    async def dispose(self) -> None:
        """Drop all caches. Storage already holds every write."""
        self._exercises.clear()
        self._search_cache.clear()
        self._recommendations.clear()
        self._repertoire.clear()
        self._initialized = False

    def get_health(self) -> dict[str, Any]:
        now = datetime.now(UTC)
        previous = self._last_health_check
        self._last_health_check = now
        if not self._initialized:
            return {
                "status": "red",
                "message": "Library not initialized",
                "last_check": now.isoformat(),
            }
        elapsed_ms = int((now - previous).total_seconds() * 1000)
        return {
            "status": "green",
            "message": f"Library is healthy (last check was {elapsed_ms}ms ago)",
            "last_check": now.isoformat(),
            "cached_exercises": len(self._exercises),
        }

    async def sweep_expired(self, now: datetime | None = None) -> list[str]:
        """
        Delete exercises past their expiry.

        Only removes entries, so repeated or concurrent sweeps are safe.

        Returns:
            Ids of the exercises removed by this sweep
        """
        now = now or datetime.now(UTC)
        removed: list[str] = []
        for key in await self.storage.list_keys("exercise:"):
            exercise = await self._read_exercise(key)
            if exercise is not None and exercise.is_expired(now):
                if await self.storage.delete(key):
                    removed.append(exercise.id)
                self._exercises.pop(exercise.id, None)

        # Search results older than the cache lifetime go too
        cutoff = now - timedelta(minutes=self.config.cache_expiration_minutes)
        for cache_key, (cached_at, _) in list(self._search_cache.items()):
            if cached_at < cutoff:
                self._search_cache.pop(cache_key, None)

        if removed:
            logger.info("Swept %d expired exercises", len(removed))
        return removed

    # --- exercises -----------------------------------------------------------

    async def generate_exercise(
        self,
        params: ExerciseParameters,
        user_id: str,
        now: datetime | None = None,
    ) -> GeneratedExercise:
        """
        Generate, persist and announce an exercise.

        Raises:
            ValidationError: listing every invalid parameter
            NotImplementedError: for exercise types with no generator
        """
        exercise = create_exercise(
            params,
            user_id,
            now=now,
            expiration_days=self.config.exercise_expiration_days,
        )
        await self.save_exercise(exercise)
        return exercise

    async def save_exercise(self, exercise: GeneratedExercise) -> None:
        """Persist an exercise, evicting the user's oldest beyond the cap."""
        await self.storage.write(
            exercise_key(exercise.user_id, exercise.id),
            exercise.model_dump(mode="json"),
        )
        self._exercises[exercise.id] = exercise
        await self._enforce_user_cap(exercise.user_id, keep=exercise.id)

        await self._publish(
            LibraryEventType.EXERCISE_GENERATED,
            {
                "exerciseId": exercise.id,
                "userId": exercise.user_id,
                "exercise": exercise.model_dump(mode="json"),
            },
        )

    async def load_exercise(self, exercise_id: str) -> GeneratedExercise | None:
        if exercise_id in self._exercises:
            return self._exercises[exercise_id]

        key = await self._find_exercise_key(exercise_id)
        if key is None:
            return None
        exercise = await self._read_exercise(key)
        if exercise is not None:
            self._exercises[exercise_id] = exercise
        return exercise

    async def list_user_exercises(
        self, user_id: str, now: datetime | None = None
    ) -> list[GeneratedExercise]:
        """A user's unexpired exercises, newest first."""
        now = now or datetime.now(UTC)
        exercises = []
        for key in await self.storage.list_keys(f"exercise:{user_id}:"):
            exercise = await self._read_exercise(key)
            if exercise is not None and not exercise.is_expired(now):
                exercises.append(exercise)
        return sorted(exercises, key=lambda e: e.created_at, reverse=True)

    async def delete_exercise(self, exercise_id: str) -> bool:
        """
        Delete an exercise.

        Returns:
            True if deleted, False if not found
        """
        key = await self._find_exercise_key(exercise_id)
        if key is None:
            return False

        await self.storage.delete(key)
        self._exercises.pop(exercise_id, None)
        user_id = key.split(":")[1]
        await self._publish(
            LibraryEventType.EXERCISE_DELETED,
            {"exerciseId": exercise_id, "userId": user_id},
        )
        return True

    async def _read_exercise(self, key: str) -> GeneratedExercise | None:
        data = await self.storage.read(key)
        if data is None:
            return None
        return GeneratedExercise.model_validate(data)

    async def _find_exercise_key(self, exercise_id: str) -> str | None:
        cached = self._exercises.get(exercise_id)
        if cached is not None:
            return exercise_key(cached.user_id, exercise_id)
        suffix = f":{exercise_id}"
        for key in await self.storage.list_keys("exercise:"):
            if key.endswith(suffix):
                return key
        return None

    async def _enforce_user_cap(self, user_id: str, keep: str) -> None:
        keys = await self.storage.list_keys(f"exercise:{user_id}:")
        excess = len(keys) - self.config.max_exercises_per_user
        if excess <= 0:
            return

        stored = []
        for key in keys:
            exercise = await self._read_exercise(key)
            if exercise is not None and exercise.id != keep:
                stored.append((exercise.created_at, key, exercise.id))
        for _, key, exercise_id in sorted(stored)[:excess]:
            await self.storage.delete(key)
            self._exercises.pop(exercise_id, None)
            logger.info(
                "Evicted exercise %s for user %s (limit %d)",
                exercise_id,
                user_id,
                self.config.max_exercises_per_user,
            )

    # --- scores and sheet music ----------------------------------------------

    async def save_score(self, score: Score, validate: bool = True) -> str:
        """
        Persist a multi-voice score.

        A score without metadata.id is given one.

        Args:
            score: Score to store
            validate: Refuse scores with structural errors

        Returns:
            The score id

        Raises:
            StructuralError: if validate is set and the score has errors
        """
        if validate:
            validate_score(score).raise_for_errors()

        score_id = score.metadata.id or f"score_{uuid4().hex[:12]}"
        metadata = score.metadata.model_copy(
            update={"id": score_id, "modified_at": datetime.now(UTC)}
        )
        stored = score.model_copy(update={"metadata": metadata})
        await self.storage.write(score_key(score_id), stored.model_dump(mode="json"))

        await self._publish(
            LibraryEventType.SCORE_SAVED,
            {
                "scoreId": score_id,
                "title": stored.title,
                "partCount": len(stored.parts),
                "measureCount": len(stored.measures),
            },
        )
        return score_id

    async def get_score(self, score_id: str) -> Score | None:
        data = await self.storage.read(score_key(score_id))
        return Score.model_validate(data) if data is not None else None

    async def save_sheet_music(self, sheet_music: SheetMusic) -> None:
        await self.storage.write(
            sheet_music_key(sheet_music.id), sheet_music.model_dump(mode="json")
        )

    async def get_sheet_music(self, sheet_music_id: str) -> SheetMusic | None:
        data = await self.storage.read(sheet_music_key(sheet_music_id))
        return SheetMusic.model_validate(data) if data is not None else None

    # --- search ----------------------------------------------------------------

    async def search_music(
        self, criteria: MusicSearchCriteria, now: datetime | None = None
    ) -> SearchResults:
        """
        Serve a search from the result cache.

        Raises:
            NotImplementedError: on a cache miss; there is no catalogue search
        """
        now = now or datetime.now(UTC)
        cached = self._search_cache.get(criteria.cache_key())
        if cached is not None:
            cached_at, results = cached
            if now - cached_at < timedelta(minutes=self.config.cache_expiration_minutes):
                return results
            self._search_cache.pop(criteria.cache_key(), None)
        raise NotImplementedError("Music search is not available")

    def cache_search_results(
        self,
        criteria: MusicSearchCriteria,
        results: SearchResults,
        now: datetime | None = None,
    ) -> None:
        self._search_cache[criteria.cache_key()] = (now or datetime.now(UTC), results)

    def clear_search_cache(self) -> None:
        self._search_cache.clear()

    async def assess_difficulty(self, sheet_music_id: str, user_id: str) -> dict[str, Any]:
        raise NotImplementedError("Difficulty assessment is not available")

    # --- recommendations -------------------------------------------------------

    async def get_recommendations(self, user_id: str) -> list[MusicRecommendation]:
        if user_id not in self._recommendations:
            await self.refresh_recommendations(user_id)
        return self._recommendations.get(user_id, [])

    async def refresh_recommendations(self, user_id: str) -> list[MusicRecommendation]:
        """Recompute a user's recommendations; there is no engine yet, so always empty."""
        self._recommendations[user_id] = []
        return self._recommendations[user_id]

    # --- repertoire ------------------------------------------------------------

    async def get_user_repertoire(self, user_id: str) -> list[UserRepertoire]:
        if user_id in self._repertoire:
            return self._repertoire[user_id]

        repertoire = []
        for key in await self.storage.list_keys(f"repertoire:{user_id}:"):
            data = await self.storage.read(key)
            if data is not None:
                repertoire.append(UserRepertoire.model_validate(data))
        self._repertoire[user_id] = repertoire
        return repertoire

    async def update_repertoire_status(
        self,
        user_id: str,
        sheet_music_id: str,
        status: RepertoireStatus | str,
        now: datetime | None = None,
    ) -> UserRepertoire:
        """Set a piece's status, stamping the memorized date the first time."""
        status = RepertoireStatus(status)
        now = now or datetime.now(UTC)
        entry = await self._read_repertoire(user_id, sheet_music_id)
        old_status = entry.status if entry is not None else None

        if entry is None:
            entry = UserRepertoire(
                id=f"{user_id}-{sheet_music_id}",
                user_id=user_id,
                sheet_music_id=sheet_music_id,
                status=status,
                date_started=now,
            )
        else:
            entry = entry.model_copy(update={"status": status})
        if status == RepertoireStatus.MEMORIZED and entry.date_memorized is None:
            entry = entry.model_copy(update={"date_memorized": now})

        await self._write_repertoire(entry)
        await self._publish(
            LibraryEventType.REPERTOIRE_STATUS_CHANGED,
            {
                "userId": user_id,
                "sheetMusicId": sheet_music_id,
                "oldStatus": old_status.value if old_status else None,
                "newStatus": status.value,
            },
        )
        return entry

    async def record_practice_session(
        self, user_id: str, sheet_music_id: str, entry: PerformanceEntry
    ) -> UserRepertoire:
        """Append a performance to a piece's history, creating the record if needed."""
        repertoire = await self._read_repertoire(user_id, sheet_music_id)
        if repertoire is None:
            repertoire = UserRepertoire(
                id=f"{user_id}-{sheet_music_id}",
                user_id=user_id,
                sheet_music_id=sheet_music_id,
                status=RepertoireStatus.LEARNING,
                date_started=entry.date,
            )
        repertoire = repertoire.model_copy(
            update={
                "performance_history": [*repertoire.performance_history, entry],
                "date_last_played": entry.date,
            }
        )

        await self._write_repertoire(repertoire)
        await self._publish(
            LibraryEventType.PRACTICE_SESSION_RECORDED,
            {
                "userId": user_id,
                "sheetMusicId": sheet_music_id,
                "entry": entry.model_dump(mode="json"),
            },
        )
        return repertoire

    async def _read_repertoire(self, user_id: str, sheet_music_id: str) -> UserRepertoire | None:
        data = await self.storage.read(repertoire_key(user_id, sheet_music_id))
        return UserRepertoire.model_validate(data) if data is not None else None

    async def _write_repertoire(self, entry: UserRepertoire) -> None:
        await self.storage.write(
            repertoire_key(entry.user_id, entry.sheet_music_id),
            entry.model_dump(mode="json"),
        )
        if entry.user_id in self._repertoire:
            cached = [
                r
                for r in self._repertoire[entry.user_id]
                if r.sheet_music_id != entry.sheet_music_id
            ]
            self._repertoire[entry.user_id] = [*cached, entry]

    # --- import/export ---------------------------------------------------------

    async def import_music_xml(self, data: bytes) -> SheetMusic:
        raise NotImplementedError("MusicXML import is not available")

    async def export_music_xml(self, sheet_music_id: str) -> bytes:
        raise NotImplementedError("MusicXML export is not available")

    # --- events ----------------------------------------------------------------

    async def _publish(self, event_type: LibraryEventType, data: dict[str, Any]) -> None:
        event = LibraryEvent(type=event_type, data=data)
        try:
            await self.events.publish(event)
        except Exception:
            logger.exception("Failed to publish %s", event_type.value)
