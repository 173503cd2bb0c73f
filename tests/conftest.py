"""Shared test fixtures — fake care team API + data store wired to it."""

import asyncio
import uuid
from collections import Counter, defaultdict
from collections.abc import AsyncGenerator

import pytest
from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from httpx import ASGITransport

from coco.core.config import Settings
from coco.core.persistence import MemoryStorage
from coco.services.api_client import CareTeamClient
from coco.services.data_store import DataStore

BASE_URL = "http://test/api"

_LIST_KEYS = {"tasks": "tasks", "routines": "routines", "notes": "notes"}
# Create endpoints that wrap the new item under a singular key
_CREATE_KEYS = {"tasks": "task", "routines": "routine"}


class FakeCareApi:
    """In-memory stand-in for the care team REST API.

    ``calls`` counts requests by ``"METHOD /path"``; ``respond`` pins a canned
    response for a path, which is how tests inject failures; ``delays`` holds
    a path's response back for that many seconds.
    """

    def __init__(self) -> None:
        self.items: dict[str, dict[str, list[dict]]] = defaultdict(lambda: defaultdict(list))
        self.members: dict[str, dict] = {}
        self.teams: list[dict] = []
        self.calls: Counter[str] = Counter()
        self._canned: dict[tuple[str, str], Response] = {}
        self.delays: dict[str, float] = {}
        self.app = self._build_app()

    def respond(self, path: str, response: Response, method: str = "GET") -> None:
        self._canned[(method, path)] = response

    def clear_responses(self) -> None:
        self._canned.clear()

    def fail(self, path: str, status_code: int = 500, method: str = "GET") -> None:
        self.respond(
            path,
            Response(content=b'{"error": "boom"}', status_code=status_code,
                     media_type="application/json"),
            method,
        )

    def count(self, path: str, method: str = "GET") -> int:
        return self.calls[f"{method} {path}"]

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        router = APIRouter(prefix="/api")

        @app.middleware("http")
        async def record(request: Request, call_next):
            self.calls[f"{request.method} {request.url.path}"] += 1
            delay = self.delays.get(request.url.path)
            if delay:
                await asyncio.sleep(delay)
            canned = self._canned.get((request.method, request.url.path))
            if canned is not None:
                return canned
            return await call_next(request)

        @router.get("/teams")
        async def list_teams() -> dict:
            return {"teams": self.teams}

        @router.get("/teams/{team_id}/members")
        async def team_members(team_id: str) -> dict:
            if team_id not in self.members:
                raise HTTPException(status_code=404, detail="Team not found")
            return self.members[team_id]

        @router.get("/teams/{team_id}/{collection}")
        async def list_items(team_id: str, collection: str):
            items = self._collection(team_id, collection)
            if collection == "moods":
                return items
            return {_LIST_KEYS[collection]: items}

        @router.post("/teams/{team_id}/{collection}", status_code=201)
        async def create_item(team_id: str, collection: str, request: Request):
            body = await request.json()
            item = {"id": f"{collection[:-1]}-{uuid.uuid4().hex[:8]}", **body}
            self._collection(team_id, collection).insert(0, item)
            key = _CREATE_KEYS.get(collection)
            return {key: item} if key else item

        @router.patch("/teams/{team_id}/{collection}/{item_id}")
        async def update_item(team_id: str, collection: str, item_id: str, request: Request):
            body = await request.json()
            items = self._collection(team_id, collection)
            for i, item in enumerate(items):
                if item["id"] == item_id:
                    items[i] = {**item, **body}
                    return items[i]
            raise HTTPException(status_code=404, detail="Not found")

        @router.delete("/teams/{team_id}/{collection}/{item_id}")
        async def delete_item(team_id: str, collection: str, item_id: str) -> dict:
            items = self._collection(team_id, collection)
            remaining = [i for i in items if i["id"] != item_id]
            if len(remaining) == len(items):
                raise HTTPException(status_code=404, detail="Not found")
            self.items[team_id][collection] = remaining
            return {"success": True}

        app.include_router(router)
        return app

    def _collection(self, team_id: str, collection: str) -> list[dict]:
        if collection not in (*_LIST_KEYS, "moods"):
            raise HTTPException(status_code=404, detail="Unknown resource")
        return self.items[team_id][collection]


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_task(task_id: str, name: str = "Take pills", status: str = "TODO") -> dict:
    return {
        "id": task_id,
        "name": name,
        "priority": "HIGH",
        "status": status,
        "createdAt": "2025-01-01T08:00:00.000Z",
        "updatedAt": "2025-01-01T08:00:00.000Z",
        "createdBy": {
            "id": "user-1",
            "name": "Test User",
            "firstName": "Test",
            "lastName": "User",
            "email": "test@example.com",
            "imageUrl": None,
        },
    }


@pytest.fixture
def api() -> FakeCareApi:
    return FakeCareApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url=BASE_URL,
        storage_backend="memory",
        storage_path=str(tmp_path / "storage"),
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
async def client(api: FakeCareApi, settings: Settings) -> AsyncGenerator[CareTeamClient, None]:
    """Care team client talking to the fake API in-process."""
    transport = ASGITransport(app=api.app)
    async with CareTeamClient.from_settings(settings, transport=transport) as c:
        yield c


@pytest.fixture
def store(client, settings, storage, clock) -> DataStore:
    return DataStore(client, settings=settings, storage=storage, clock=clock)
