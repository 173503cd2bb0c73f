"""Data store — per-team, TTL-based cache of the care team resources.

One ``DataStore`` is built at application start (see ``coco.main``) and
passed to whatever needs team data. It owns five namespaces (team data,
tasks, routines, notes, moods), the shared loading / error maps, change
listeners and the persisted snapshot.

Loading and error state is transient: it is never written to storage and is
always empty after a restore.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from coco.core.cache import ResourceKind, StatusKey
from coco.core.config import Settings, get_settings
from coco.core.persistence import StateStorage
from coco.models import Mood, Note, Routine, Task, TeamData
from coco.models.base import CamelModel
from coco.services.api_client import CareTeamClient
from coco.services.resources import CachedCollection, CachedResource, build_configs

logger = logging.getLogger(__name__)

STATE_VERSION = 0

# Namespaces whose cached items can be patched or removed locally
EDITABLE_KINDS = frozenset({ResourceKind.TASKS, ResourceKind.ROUTINES, ResourceKind.NOTES})

RESOURCE_MODELS: dict[ResourceKind, type[CamelModel]] = {
    ResourceKind.TEAM_DATA: TeamData,
    ResourceKind.TASKS: Task,
    ResourceKind.ROUTINES: Routine,
    ResourceKind.NOTES: Note,
    ResourceKind.MOODS: Mood,
}

Listener = Callable[["DataStore"], None]
Item = Mapping[str, Any] | CamelModel


class DataStore:
    def __init__(
        self,
        client: CareTeamClient,
        *,
        settings: Settings | None = None,
        storage: StateStorage | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        settings = settings or get_settings()
        self.client = client
        self._storage = storage
        self._storage_key = settings.data_storage_key
        self._clock = clock
        self._listeners: list[Listener] = []

        self.loading: dict[StatusKey, bool] = {}
        self.errors: dict[StatusKey, str | None] = {}

        configs = build_configs(settings)
        self.team_data = CachedResource(configs[ResourceKind.TEAM_DATA], self)
        self.tasks = CachedCollection(configs[ResourceKind.TASKS], self)
        self.routines = CachedCollection(configs[ResourceKind.ROUTINES], self)
        self.notes = CachedCollection(configs[ResourceKind.NOTES], self)
        self.moods = CachedCollection(configs[ResourceKind.MOODS], self)
        self.resources: dict[ResourceKind, CachedResource] = {
            r.kind: r
            for r in (self.team_data, self.tasks, self.routines, self.notes, self.moods)
        }

    def now(self) -> float:
        return self._clock()

    # ── Reads ────────────────────────────────────────────────

    def cached(self, kind: ResourceKind, team_id: str) -> Any:
        """Cached value with no freshness check ([] / None when absent)."""
        return self.resources[kind].cached(team_id)

    def typed(self, kind: ResourceKind, team_id: str) -> Any:
        """Cached value parsed into its schema.

        Returns a model (or None) for team data and a list of models for the
        collections. Items that do not validate are skipped; an optimistic
        item may lack server-assigned fields until the next fetch.
        """
        model = RESOURCE_MODELS[kind]
        value = self.cached(kind, team_id)
        if kind is ResourceKind.TEAM_DATA:
            if value is None:
                return None
            try:
                return model.model_validate(value)
            except ValidationError as exc:
                logger.warning("Cached team data for %s does not validate: %s", team_id, exc)
                return None

        parsed = []
        for item in value:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError:
                logger.debug("Skipping unparsable %s item for team %s", kind.value, team_id)
        return parsed

    def is_loading(self, kind: ResourceKind, team_id: str) -> bool:
        return self.loading.get(StatusKey(kind, team_id), False)

    def error_for(self, kind: ResourceKind, team_id: str) -> str | None:
        return self.errors.get(StatusKey(kind, team_id))

    # ── Fetch with caching ───────────────────────────────────

    async def fetch_team_data(self, team_id: str, force: bool = False) -> dict | None:
        return await self.team_data.fetch(team_id, force)

    async def fetch_tasks(self, team_id: str, force: bool = False) -> list[dict]:
        return await self.tasks.fetch(team_id, force)

    async def fetch_routines(self, team_id: str, force: bool = False) -> list[dict]:
        return await self.routines.fetch(team_id, force)

    async def fetch_notes(self, team_id: str, force: bool = False) -> list[dict]:
        return await self.notes.fetch(team_id, force)

    async def fetch_moods(self, team_id: str, force: bool = False) -> list[dict]:
        return await self.moods.fetch(team_id, force)

    # ── Optimistic mutations ─────────────────────────────────

    def _collection(self, kind: ResourceKind, *, editable: bool = True) -> CachedCollection:
        resource = self.resources[kind]
        if not isinstance(resource, CachedCollection) or (
            editable and kind not in EDITABLE_KINDS
        ):
            raise ValueError(f"{kind.value} does not support this mutation")
        return resource

    def add_item(self, kind: ResourceKind, team_id: str, item: Item) -> None:
        """Prepend ``item`` to the team's cached collection."""
        self._collection(kind, editable=False).add(team_id, item)
        self._notify()

    def update_item(self, kind: ResourceKind, team_id: str, item_id: str, updates: Item) -> None:
        """Shallow-merge ``updates`` into the cached item with ``item_id``."""
        self._collection(kind).update(team_id, item_id, updates)
        self._notify()

    def remove_item(self, kind: ResourceKind, team_id: str, item_id: str) -> None:
        self._collection(kind).remove(team_id, item_id)
        self._notify()

    def add_task(self, team_id: str, task: Item) -> None:
        self.add_item(ResourceKind.TASKS, team_id, task)

    def update_task(self, team_id: str, task_id: str, updates: Item) -> None:
        self.update_item(ResourceKind.TASKS, team_id, task_id, updates)

    def remove_task(self, team_id: str, task_id: str) -> None:
        self.remove_item(ResourceKind.TASKS, team_id, task_id)

    def add_routine(self, team_id: str, routine: Item) -> None:
        self.add_item(ResourceKind.ROUTINES, team_id, routine)

    def update_routine(self, team_id: str, routine_id: str, updates: Item) -> None:
        self.update_item(ResourceKind.ROUTINES, team_id, routine_id, updates)

    def remove_routine(self, team_id: str, routine_id: str) -> None:
        self.remove_item(ResourceKind.ROUTINES, team_id, routine_id)

    def add_note(self, team_id: str, note: Item) -> None:
        self.add_item(ResourceKind.NOTES, team_id, note)

    def update_note(self, team_id: str, note_id: str, updates: Item) -> None:
        self.update_item(ResourceKind.NOTES, team_id, note_id, updates)

    def remove_note(self, team_id: str, note_id: str) -> None:
        self.remove_item(ResourceKind.NOTES, team_id, note_id)

    def add_mood(self, team_id: str, mood: Item) -> None:
        self.add_item(ResourceKind.MOODS, team_id, mood)

    # ── Invalidation ─────────────────────────────────────────

    def invalidate(self, kind: ResourceKind, team_id: str) -> None:
        if self.resources[kind].invalidate(team_id):
            self._notify()

    def invalidate_team_data(self, team_id: str) -> None:
        self.invalidate(ResourceKind.TEAM_DATA, team_id)

    def invalidate_tasks(self, team_id: str) -> None:
        self.invalidate(ResourceKind.TASKS, team_id)

    def invalidate_routines(self, team_id: str) -> None:
        self.invalidate(ResourceKind.ROUTINES, team_id)

    def invalidate_notes(self, team_id: str) -> None:
        self.invalidate(ResourceKind.NOTES, team_id)

    def invalidate_moods(self, team_id: str) -> None:
        self.invalidate(ResourceKind.MOODS, team_id)

    def invalidate_all(self, team_id: str) -> None:
        """Mark every namespace stale for one team (e.g. after a role change)."""
        changed = [r.invalidate(team_id) for r in self.resources.values()]
        if any(changed):
            self._notify()

    # ── Loading / error bookkeeping ──────────────────────────

    def set_loading(self, key: StatusKey, loading: bool) -> None:
        self.loading = {**self.loading, key: loading}
        self._notify()

    def set_error(self, key: StatusKey, error: str | None) -> None:
        self.errors = {**self.errors, key: error}
        self._notify()

    def update_status(self, key: StatusKey, *, loading: bool, error: str | None) -> None:
        """Set both flags for ``key`` as a single state change."""
        self.loading = {**self.loading, key: loading}
        self.errors = {**self.errors, key: error}
        self._notify()

    # ── Subscriptions ────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        self._persist()
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Data store listener %r failed", listener)

    # ── Persistence ──────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """Serializable state: cached values and timestamps only."""
        state: dict[str, Any] = {}
        for kind, resource in self.resources.items():
            values, timestamps = resource.dump()
            state[kind.value] = values
            state[f"{kind.value}Timestamp"] = timestamps
        return {"state": state, "version": STATE_VERSION}

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Replace cached state from ``snapshot``; loading and errors reset.

        Raises ``ValueError`` when the snapshot is not in the expected format,
        leaving the store unchanged.
        """
        if snapshot.get("version") != STATE_VERSION:
            raise ValueError(f"unsupported snapshot version {snapshot.get('version')!r}")
        state = snapshot.get("state")
        if not isinstance(state, Mapping):
            raise ValueError("snapshot has no state object")

        parsed: dict[ResourceKind, dict] = {}
        for kind in self.resources:
            values = state.get(kind.value) or {}
            timestamps = state.get(f"{kind.value}Timestamp") or {}
            if not isinstance(values, Mapping) or not isinstance(timestamps, Mapping):
                raise ValueError(f"malformed {kind.value} namespace")
            try:
                parsed[kind] = CachedResource.parse_entries(values, timestamps)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"malformed {kind.value} timestamps") from exc

        for kind, entries in parsed.items():
            self.resources[kind].entries = entries
        self.loading = {}
        self.errors = {}
        self._notify()

    def hydrate(self) -> bool:
        """Load the persisted snapshot, if any. Returns True when restored.

        Unavailable storage or a corrupt record leaves a cold cache.
        """
        if self._storage is None:
            return False
        try:
            raw = self._storage.load(self._storage_key)
        except Exception as exc:
            logger.warning("Data storage unavailable, starting cold: %s", exc)
            return False
        if raw is None:
            logger.debug("No persisted data store snapshot under %r", self._storage_key)
            return False
        try:
            snapshot = json.loads(raw)
            if not isinstance(snapshot, dict):
                raise ValueError("snapshot is not an object")
            self.restore(snapshot)
        except ValueError as exc:
            logger.warning("Discarding corrupt data store snapshot: %s", exc)
            self.loading = {}
            self.errors = {}
            return False
        logger.debug(
            "Restored data store snapshot (%s)",
            ", ".join(f"{k.value}={len(r.entries)}" for k, r in self.resources.items()),
        )
        return True

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            raw = json.dumps(self.snapshot(), default=str)
            self._storage.save(self._storage_key, raw)
        except Exception as exc:
            logger.warning("Failed to persist data store snapshot: %s", exc)
