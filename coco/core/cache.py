"""Cache primitives shared by every resource namespace.

A namespace keeps one ``CacheEntry`` per team. Freshness is never stored; it
is derived from ``fetched_at`` against the namespace TTL by ``is_stale``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, NamedTuple, TypeVar

T = TypeVar("T")

# Invalidation resets fetched_at to this value so the next check is stale
EPOCH = 0.0


class ResourceKind(StrEnum):
    TEAM_DATA = "teamData"
    TASKS = "tasks"
    ROUTINES = "routines"
    NOTES = "notes"
    MOODS = "moods"


class StatusKey(NamedTuple):
    """Key into the loading / error maps: one per (resource, team)."""

    kind: ResourceKind
    team_id: str

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.team_id}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    fetched_at: float = EPOCH

    def with_value(self, value: Any) -> CacheEntry:
        """Replace the payload, keeping the fetch timestamp."""
        return CacheEntry(value=value, fetched_at=self.fetched_at)

    def invalidated(self) -> CacheEntry:
        return CacheEntry(value=self.value, fetched_at=EPOCH)


def is_stale(entry: CacheEntry | None, ttl: float, now: float) -> bool:
    """Return True when the entry is missing or older than ``ttl`` seconds."""
    if entry is None:
        return True
    return now - entry.fetched_at >= ttl
