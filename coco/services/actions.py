"""Optimistic write helpers built on the data store and the API client.

Each helper applies the local change first so readers see it immediately,
sends the request, then forces a refetch of the namespace to reconcile with
the server. A failed request is not rolled back item by item: the forced
refetch is the rollback, and the HTTP error is re-raised afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from coco.core.cache import ResourceKind
from coco.models.base import CamelModel
from coco.models.task import TaskStatus
from coco.services.api_client import CareTeamClient
from coco.services.data_store import DataStore

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any] | CamelModel

# Singular response key for create endpoints that wrap the new item
_ITEM_KEYS = {
    ResourceKind.TASKS: "task",
    ResourceKind.ROUTINES: "routine",
    ResourceKind.NOTES: "note",
    ResourceKind.MOODS: "mood",
}


def _created_item(kind: ResourceKind, data: Any) -> dict | None:
    if not isinstance(data, dict):
        return None
    inner = data.get(_ITEM_KEYS[kind])
    if isinstance(inner, dict):
        return inner
    return data if "id" in data else None


class TeamActions:
    def __init__(self, store: DataStore, client: CareTeamClient) -> None:
        self._store = store
        self._client = client

    async def _reconcile(self, kind: ResourceKind, team_id: str) -> None:
        await self._store.resources[kind].fetch(team_id, force=True)

    # ── Generic ──────────────────────────────────────────────

    async def create(self, kind: ResourceKind, team_id: str, payload: Payload) -> dict | None:
        """POST a new item, prepend what the server returned, then refetch."""
        if kind not in _ITEM_KEYS:
            raise ValueError(f"{kind.value} items cannot be created")
        try:
            data = await self._client.create_item(kind.value, team_id, payload)
        except httpx.HTTPError as exc:
            logger.warning("Failed to create %s for team %s: %s", kind.value, team_id, exc)
            await self._reconcile(kind, team_id)
            raise

        item = _created_item(kind, data)
        if item is not None:
            self._store.add_item(kind, team_id, item)
        await self._reconcile(kind, team_id)
        return item

    async def update(
        self, kind: ResourceKind, team_id: str, item_id: str, patch: Payload
    ) -> None:
        """Patch locally, PATCH the server, then refetch."""
        self._store.update_item(kind, team_id, item_id, patch)
        try:
            await self._client.update_item(kind.value, team_id, item_id, patch)
        except httpx.HTTPError as exc:
            logger.warning(
                "Failed to update %s %s for team %s: %s", kind.value, item_id, team_id, exc
            )
            await self._reconcile(kind, team_id)
            raise
        await self._reconcile(kind, team_id)

    async def delete(self, kind: ResourceKind, team_id: str, item_id: str) -> None:
        """Remove locally, DELETE on the server, then refetch."""
        self._store.remove_item(kind, team_id, item_id)
        try:
            await self._client.delete_item(kind.value, team_id, item_id)
        except httpx.HTTPError as exc:
            logger.warning(
                "Failed to delete %s %s for team %s: %s", kind.value, item_id, team_id, exc
            )
            await self._reconcile(kind, team_id)
            raise
        await self._reconcile(kind, team_id)

    # ── Named shortcuts ──────────────────────────────────────

    async def set_task_status(self, team_id: str, task_id: str, status: TaskStatus) -> None:
        await self.update(ResourceKind.TASKS, team_id, task_id, {"status": str(status)})

    async def toggle_task(self, team_id: str, task_id: str, done: bool) -> None:
        await self.set_task_status(team_id, task_id, TaskStatus.DONE if done else TaskStatus.TODO)

    async def delete_task(self, team_id: str, task_id: str) -> None:
        await self.delete(ResourceKind.TASKS, team_id, task_id)

    async def delete_routine(self, team_id: str, routine_id: str) -> None:
        await self.delete(ResourceKind.ROUTINES, team_id, routine_id)

    async def create_note(self, team_id: str, payload: Payload) -> dict | None:
        return await self.create(ResourceKind.NOTES, team_id, payload)

    async def delete_note(self, team_id: str, note_id: str) -> None:
        await self.delete(ResourceKind.NOTES, team_id, note_id)

    async def log_mood(self, team_id: str, payload: Payload) -> dict | None:
        return await self.create(ResourceKind.MOODS, team_id, payload)
