"""Care team API client — the network boundary of the data store.

Thin async wrapper around ``httpx.AsyncClient``. Every method raises on
failure (``httpx.HTTPError`` for transport and non-2xx responses,
``json.JSONDecodeError`` for bodies that are not JSON); catching and
recording failures is the store's job, not the client's.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from coco.core.config import Settings
from coco.models.base import CamelModel

logger = logging.getLogger(__name__)

USER_AGENT = "Coco/1.0"

Payload = Mapping[str, Any] | CamelModel


def _body(payload: Payload, *, partial: bool = False) -> dict[str, Any]:
    if isinstance(payload, CamelModel):
        return payload.to_wire(partial=partial)
    return dict(payload)


class CareTeamClient:
    """Client for ``/teams/{teamId}/...`` endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CareTeamClient:
        return cls(
            settings.api_base_url,
            token=settings.api_token,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> CareTeamClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Low-level ────────────────────────────────────────────

    async def get_json(self, path: str, *, timeout: float | None = None) -> Any:
        """GET ``path`` and decode the JSON body.

        ``timeout=None`` uses the client's default timeout.
        """
        resp = await self._http.get(
            path,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        resp.raise_for_status()
        return resp.json()

    async def _send(self, method: str, path: str, body: dict | None = None) -> Any:
        resp = await self._http.request(method, path, json=body)
        resp.raise_for_status()
        if resp.status_code == httpx.codes.NO_CONTENT or not resp.content:
            return None
        return resp.json()

    # ── Teams ────────────────────────────────────────────────

    async def list_teams(self) -> list[dict]:
        """GET /teams → the ``teams`` array (empty when absent)."""
        data = await self.get_json("/teams")
        teams = data.get("teams") if isinstance(data, dict) else None
        return teams if isinstance(teams, list) else []

    # ── Generic collection writes ────────────────────────────

    async def create_item(self, collection: str, team_id: str, payload: Payload) -> Any:
        logger.debug("POST %s for team %s", collection, team_id)
        return await self._send("POST", f"/teams/{team_id}/{collection}", _body(payload))

    async def update_item(
        self, collection: str, team_id: str, item_id: str, patch: Payload
    ) -> Any:
        logger.debug("PATCH %s/%s for team %s", collection, item_id, team_id)
        return await self._send(
            "PATCH",
            f"/teams/{team_id}/{collection}/{item_id}",
            _body(patch, partial=True),
        )

    async def delete_item(self, collection: str, team_id: str, item_id: str) -> None:
        logger.debug("DELETE %s/%s for team %s", collection, item_id, team_id)
        await self._send("DELETE", f"/teams/{team_id}/{collection}/{item_id}")
