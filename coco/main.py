"""Application-start wiring: build the stores once and hand them out."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from coco.core.config import Settings, get_settings
from coco.core.persistence import StateStorage, build_storage
from coco.services.actions import TeamActions
from coco.services.api_client import CareTeamClient
from coco.services.data_store import DataStore
from coco.services.team_store import TeamStore

logger = logging.getLogger(__name__)


@dataclass
class StoreContext:
    """Everything a consumer needs, built once per process."""

    client: CareTeamClient
    data: DataStore
    teams: TeamStore
    actions: TeamActions


@asynccontextmanager
async def open_store(
    settings: Settings | None = None,
    *,
    storage: StateStorage | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Callable[[], float] = time.time,
) -> AsyncGenerator[StoreContext, None]:
    """Build client + stores, restore persisted state, close the client on exit."""
    settings = settings or get_settings()
    storage = storage if storage is not None else build_storage(settings)

    async with CareTeamClient.from_settings(settings, transport=transport) as client:
        data = DataStore(client, settings=settings, storage=storage, clock=clock)
        teams = TeamStore(client, settings=settings, storage=storage)
        restored = data.hydrate()
        teams.hydrate()
        logger.info(
            "Data store ready (api=%s, restored=%s)", settings.api_base_url, restored
        )
        yield StoreContext(
            client=client,
            data=data,
            teams=teams,
            actions=TeamActions(data, client),
        )
