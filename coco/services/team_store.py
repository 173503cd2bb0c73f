"""Team selection store — the teams a user belongs to and the active one.

Only ``active_team`` survives a restart; the team list is always reloaded.
"""

from __future__ import annotations

import json
import logging

from coco.core.config import Settings, get_settings
from coco.core.persistence import StateStorage
from coco.models.team import Team
from coco.services.api_client import CareTeamClient

logger = logging.getLogger(__name__)

STATE_VERSION = 0


class TeamStore:
    def __init__(
        self,
        client: CareTeamClient,
        *,
        settings: Settings | None = None,
        storage: StateStorage | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._client = client
        self._storage = storage
        self._storage_key = settings.team_storage_key
        self.active_team: Team | None = None
        self.teams: list[Team] = []

    def set_active_team(self, team: Team | None) -> None:
        self.active_team = team
        self._persist()

    def set_teams(self, teams: list[Team]) -> None:
        """Replace the team list, keeping the active team valid.

        The first team becomes active when none is set or the active team
        is no longer in the list. An empty list leaves the active team alone.
        """
        self.teams = list(teams)
        if not self.teams:
            return
        if self.active_team is None or not any(
            t.id == self.active_team.id for t in self.teams
        ):
            self.set_active_team(self.teams[0])

    async def load_teams(self) -> None:
        """GET /teams and apply the result. Failures are logged only."""
        try:
            raw_teams = await self._client.list_teams()
            teams = [Team.model_validate(t) for t in raw_teams]
        except Exception as exc:
            logger.warning("Error loading teams: %s", exc)
            return
        self.set_teams(teams)

    # ── Persistence ──────────────────────────────────────────

    def hydrate(self) -> bool:
        """Restore the persisted active team. Returns True when restored."""
        if self._storage is None:
            return False
        try:
            raw = self._storage.load(self._storage_key)
            if raw is None:
                return False
            snapshot = json.loads(raw)
            if snapshot.get("version") != STATE_VERSION:
                raise ValueError("unsupported snapshot version")
            active = snapshot["state"].get("activeTeam")
            self.active_team = Team.model_validate(active) if active else None
        except (ValueError, KeyError, AttributeError) as exc:
            logger.warning("Discarding corrupt team store snapshot: %s", exc)
            return False
        except Exception as exc:
            logger.warning("Team storage unavailable, starting cold: %s", exc)
            return False
        return True

    def _persist(self) -> None:
        if self._storage is None:
            return
        active = self.active_team.to_wire() if self.active_team else None
        try:
            raw = json.dumps({"state": {"activeTeam": active}, "version": STATE_VERSION})
            self._storage.save(self._storage_key, raw)
        except Exception as exc:
            logger.warning("Failed to persist team store snapshot: %s", exc)
