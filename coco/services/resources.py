"""Cached resource engine — one instance per namespace.

``CachedResource`` implements fetch-with-cache for a single namespace from a
``ResourceConfig``; ``CachedCollection`` adds the optimistic list mutators.
The five namespaces differ only in their configs (see ``build_configs``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from coco.core.cache import EPOCH, CacheEntry, ResourceKind, StatusKey, is_stale
from coco.core.config import Settings
from coco.models.base import CamelModel
from coco.models.routine import normalize_days_of_week

if TYPE_CHECKING:
    from coco.services.data_store import DataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceConfig:
    kind: ResourceKind
    ttl: float
    path: str  # formatted with team_id
    unwrap: Callable[[Any], Any]
    failure_message: str
    timeout: float | None = None  # None: client default
    collection: bool = True

    def endpoint(self, team_id: str) -> str:
        return self.path.format(team_id=team_id)

    def accepts(self, value: Any) -> bool:
        """Whether a cached value counts as present."""
        if self.collection:
            return isinstance(value, list)
        return value is not None

    def empty(self) -> Any:
        return [] if self.collection else None


# ── Response unwrapping ──────────────────────────────────────


def _field_list(payload: Any, field_name: str) -> list:
    items = payload.get(field_name) if isinstance(payload, dict) else None
    return items if isinstance(items, list) else []


def unwrap_team_data(payload: Any) -> Any:
    return payload


def unwrap_tasks(payload: Any) -> list:
    return _field_list(payload, "tasks")


def unwrap_routines(payload: Any) -> list:
    return [
        {**r, "recurrenceDaysOfWeek": normalize_days_of_week(r.get("recurrenceDaysOfWeek"))}
        if isinstance(r, dict)
        else r
        for r in _field_list(payload, "routines")
    ]


def unwrap_notes(payload: Any) -> list:
    return _field_list(payload, "notes")


def unwrap_moods(payload: Any) -> list:
    # The moods endpoint returns a bare array
    return payload if isinstance(payload, list) else []


def build_configs(settings: Settings) -> dict[ResourceKind, ResourceConfig]:
    """Namespace configs with TTLs and timeouts taken from ``settings``."""
    abort_after = settings.abort_timeout_seconds
    return {
        ResourceKind.TEAM_DATA: ResourceConfig(
            kind=ResourceKind.TEAM_DATA,
            ttl=settings.team_data_ttl_seconds,
            path="/teams/{team_id}/members",
            unwrap=unwrap_team_data,
            failure_message="Failed to fetch team data",
            timeout=abort_after,
            collection=False,
        ),
        ResourceKind.TASKS: ResourceConfig(
            kind=ResourceKind.TASKS,
            ttl=settings.tasks_ttl_seconds,
            path="/teams/{team_id}/tasks",
            unwrap=unwrap_tasks,
            failure_message="Failed to fetch tasks",
        ),
        ResourceKind.ROUTINES: ResourceConfig(
            kind=ResourceKind.ROUTINES,
            ttl=settings.routines_ttl_seconds,
            path="/teams/{team_id}/routines",
            unwrap=unwrap_routines,
            failure_message="Failed to fetch routines",
        ),
        ResourceKind.NOTES: ResourceConfig(
            kind=ResourceKind.NOTES,
            ttl=settings.notes_ttl_seconds,
            path="/teams/{team_id}/notes",
            unwrap=unwrap_notes,
            failure_message="Failed to fetch notes",
            timeout=abort_after,
        ),
        ResourceKind.MOODS: ResourceConfig(
            kind=ResourceKind.MOODS,
            ttl=settings.moods_ttl_seconds,
            path="/teams/{team_id}/moods",
            unwrap=unwrap_moods,
            failure_message="Failed to fetch moods",
        ),
    }


# ── Engine ───────────────────────────────────────────────────


class CachedResource:
    """Per-team cache for one namespace, with TTL-checked fetch."""

    def __init__(self, config: ResourceConfig, store: DataStore) -> None:
        self.config = config
        self._store = store
        self.entries: dict[str, CacheEntry] = {}

    @property
    def kind(self) -> ResourceKind:
        return self.config.kind

    def key(self, team_id: str) -> StatusKey:
        return StatusKey(self.config.kind, team_id)

    def cached(self, team_id: str) -> Any:
        """Current value regardless of freshness, or the empty value."""
        entry = self.entries.get(team_id)
        if entry is None or not self.config.accepts(entry.value):
            return self.config.empty()
        return entry.value

    async def fetch(self, team_id: str, force: bool = False) -> Any:
        """Return the team's value, hitting the network only when needed.

        Never raises: failures are recorded in the store's ``errors`` map and
        the previous value (or the empty value) is returned.
        """
        store = self._store
        key = self.key(team_id)
        entry = self.entries.get(team_id)
        present = entry is not None and self.config.accepts(entry.value)
        now = store.now()

        if not force and present and not is_stale(entry, self.config.ttl, now):
            if store.loading.get(key):
                store.set_loading(key, False)
            logger.debug("Cache hit for %s", key)
            return entry.value

        logger.debug("Fetching %s (force=%s)", key, force)
        previous = self.cached(team_id)
        store.update_status(key, loading=True, error=None)

        try:
            # A configured timeout is a deadline for the whole request, body included
            async with asyncio.timeout(self.config.timeout):
                payload = await store.client.get_json(
                    self.config.endpoint(team_id), timeout=self.config.timeout
                )
            value = self.config.unwrap(payload)
        except httpx.HTTPStatusError as exc:
            return self._fail(key, self.config.failure_message, exc, previous)
        except Exception as exc:
            return self._fail(key, str(exc) or self.config.failure_message, exc, previous)

        # Last response to resolve wins the slot; concurrent fetches are not fenced
        self.entries[team_id] = CacheEntry(value=value, fetched_at=now)
        store.update_status(key, loading=False, error=None)
        return value

    def _fail(self, key: StatusKey, message: str, exc: Exception, previous: Any) -> Any:
        """Record ``message`` and return the value cached before the request."""
        logger.warning("Error fetching %s: %s (%s)", key, message, type(exc).__name__)
        self._store.update_status(key, loading=False, error=message)
        return previous

    def invalidate(self, team_id: str) -> bool:
        """Mark the team's entry stale. Returns False when there is none."""
        entry = self.entries.get(team_id)
        if entry is None:
            return False
        self.entries[team_id] = entry.invalidated()
        return True

    # ── Persistence ──────────────────────────────────────────

    def dump(self) -> tuple[dict[str, Any], dict[str, float]]:
        values = {team_id: e.value for team_id, e in self.entries.items()}
        timestamps = {team_id: e.fetched_at for team_id, e in self.entries.items()}
        return values, timestamps

    @staticmethod
    def parse_entries(
        values: Mapping[str, Any], timestamps: Mapping[str, Any]
    ) -> dict[str, CacheEntry]:
        """Build entries from persisted maps. Raises on non-numeric timestamps."""
        return {
            str(team_id): CacheEntry(
                value=value, fetched_at=float(timestamps.get(team_id) or EPOCH)
            )
            for team_id, value in values.items()
        }


def _as_item(item: Mapping[str, Any] | CamelModel) -> dict[str, Any]:
    if isinstance(item, CamelModel):
        return item.to_wire()
    return dict(item)


def _as_patch(patch: Mapping[str, Any] | CamelModel) -> dict[str, Any]:
    if isinstance(patch, CamelModel):
        return patch.to_wire(partial=True)
    return dict(patch)


class CachedCollection(CachedResource):
    """A list namespace with optimistic local mutators.

    Mutators only rewrite the cached list. ``fetched_at``, loading and errors
    are left as they were, so the TTL clock keeps running from the last fetch.
    """

    def _current(self, team_id: str) -> tuple[CacheEntry, list]:
        # A team never fetched gets an entry stamped at EPOCH, so it reads stale
        entry = self.entries.get(team_id) or CacheEntry(value=[])
        items = entry.value if isinstance(entry.value, list) else []
        return entry, items

    def add(self, team_id: str, item: Mapping[str, Any] | CamelModel) -> None:
        """Prepend ``item`` (most recent first)."""
        entry, items = self._current(team_id)
        self.entries[team_id] = entry.with_value([_as_item(item), *items])

    def update(
        self, team_id: str, item_id: str, patch: Mapping[str, Any] | CamelModel
    ) -> None:
        """Shallow-merge ``patch`` into the item with ``item_id``, if any."""
        changes = _as_patch(patch)
        entry, items = self._current(team_id)
        self.entries[team_id] = entry.with_value(
            [
                {**i, **changes} if isinstance(i, dict) and i.get("id") == item_id else i
                for i in items
            ]
        )

    def remove(self, team_id: str, item_id: str) -> None:
        entry, items = self._current(team_id)
        self.entries[team_id] = entry.with_value(
            [i for i in items if not (isinstance(i, dict) and i.get("id") == item_id)]
        )
