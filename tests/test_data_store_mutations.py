"""Tests for optimistic mutations and change listeners."""

import logging

import pytest

from coco.core.cache import EPOCH, ResourceKind, StatusKey
from coco.models import MoodCreate, MoodRating, TaskStatus, TaskUpdate

from conftest import make_task

TEAM = "team-1"


async def _load_tasks(api, store, *tasks):
    api.items[TEAM]["tasks"] = list(tasks)
    return await store.fetch_tasks(TEAM)


@pytest.mark.asyncio
async def test_add_update_remove_scenario(api, store, clock):
    await _load_tasks(api, store, {"id": "t1", "status": "TODO"})
    fetched_at = store.tasks.entries[TEAM].fetched_at

    store.add_task(TEAM, {"id": "t2", "status": "TODO"})
    assert [t["id"] for t in store.cached(ResourceKind.TASKS, TEAM)] == ["t2", "t1"]

    store.update_task(TEAM, "t1", {"status": "DONE"})
    assert store.cached(ResourceKind.TASKS, TEAM)[1] == {"id": "t1", "status": "DONE"}

    store.remove_task(TEAM, "t2")
    assert store.cached(ResourceKind.TASKS, TEAM) == [{"id": "t1", "status": "DONE"}]

    assert store.tasks.entries[TEAM].fetched_at == fetched_at


@pytest.mark.asyncio
async def test_mutations_keep_cache_fresh(api, store, clock):
    await _load_tasks(api, store, make_task("t1"))
    clock.advance(30)

    store.add_task(TEAM, make_task("t2"))
    tasks = await store.fetch_tasks(TEAM)

    assert api.count(f"/api/teams/{TEAM}/tasks") == 1
    assert [t["id"] for t in tasks] == ["t2", "t1"]


@pytest.mark.asyncio
async def test_mutations_leave_status_maps_alone(api, store):
    api.fail(f"/api/teams/{TEAM}/notes")
    await store.fetch_notes(TEAM)

    store.add_note(TEAM, {"id": "n1", "title": "Draft"})

    key = StatusKey(ResourceKind.NOTES, TEAM)
    assert store.errors[key] == "Failed to fetch notes"
    assert store.loading[key] is False


@pytest.mark.asyncio
async def test_add_to_empty_team_creates_stale_entry(store):
    store.add_routine(TEAM, {"id": "r1", "name": "Walk"})

    entry = store.routines.entries[TEAM]
    assert entry.value == [{"id": "r1", "name": "Walk"}]
    assert entry.fetched_at == EPOCH


@pytest.mark.asyncio
async def test_update_unknown_id_changes_nothing(store):
    store.add_note(TEAM, {"id": "n1", "title": "Plan"})
    store.update_note(TEAM, "missing", {"title": "X"})
    store.remove_note(TEAM, "missing")
    assert store.cached(ResourceKind.NOTES, TEAM) == [{"id": "n1", "title": "Plan"}]


@pytest.mark.asyncio
async def test_update_is_shallow_merge(store):
    store.add_routine(TEAM, {"id": "r1", "name": "Walk", "checklistItems": ["shoes", "coat"]})
    store.update_routine(TEAM, "r1", {"checklistItems": ["hat"]})
    assert store.cached(ResourceKind.ROUTINES, TEAM) == [
        {"id": "r1", "name": "Walk", "checklistItems": ["hat"]}
    ]
    store.remove_routine(TEAM, "r1")
    assert store.cached(ResourceKind.ROUTINES, TEAM) == []


@pytest.mark.asyncio
async def test_pydantic_patch_only_sends_set_fields(store):
    store.add_task(TEAM, make_task("t1"))
    store.update_task(TEAM, "t1", TaskUpdate(status=TaskStatus.DONE))

    task = store.cached(ResourceKind.TASKS, TEAM)[0]
    assert task["status"] == "DONE"
    assert task["name"] == "Take pills"


@pytest.mark.asyncio
async def test_add_mood(store):
    store.add_mood(TEAM, MoodCreate(rating=MoodRating.CALM, notes="Slept well"))
    mood = store.cached(ResourceKind.MOODS, TEAM)[0]
    assert mood["rating"] == "CALM"
    assert mood["notes"] == "Slept well"


@pytest.mark.asyncio
async def test_moods_cannot_be_patched(store):
    store.add_mood(TEAM, {"id": "m1", "rating": "SAD"})
    with pytest.raises(ValueError):
        store.update_item(ResourceKind.MOODS, TEAM, "m1", {"rating": "CALM"})
    with pytest.raises(ValueError):
        store.remove_item(ResourceKind.MOODS, TEAM, "m1")


@pytest.mark.asyncio
async def test_team_data_is_not_a_collection(store):
    with pytest.raises(ValueError):
        store.add_item(ResourceKind.TEAM_DATA, TEAM, {"id": "x"})


# ── Subscriptions ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_listeners_notified_and_unsubscribed(store):
    calls = []
    unsubscribe = store.subscribe(lambda s: calls.append(len(s.cached(ResourceKind.TASKS, TEAM))))

    store.add_task(TEAM, {"id": "t1"})
    unsubscribe()
    store.add_task(TEAM, {"id": "t2"})
    unsubscribe()

    assert calls == [1]


@pytest.mark.asyncio
async def test_failing_listener_is_logged(store, caplog):
    def broken(_store):
        raise RuntimeError("listener blew up")

    seen = []
    store.subscribe(broken)
    store.subscribe(seen.append)

    with caplog.at_level(logging.ERROR, logger="coco.services.data_store"):
        store.add_task(TEAM, {"id": "t1"})

    assert seen == [store]
    assert "listener" in caplog.text
