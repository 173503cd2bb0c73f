"""Team membership schemas — GET /teams and GET /teams/{id}/members."""

from enum import StrEnum

from coco.models.base import CamelModel


class AccessLevel(StrEnum):
    FULL = "FULL"
    READ_ONLY = "READ_ONLY"


class TeamMember(CamelModel):
    id: str
    name: str
    email: str
    image_url: str | None = None
    role: str
    is_admin: bool = False
    access_level: AccessLevel = AccessLevel.FULL
    is_team_creator: bool = False


class TeamInfo(CamelModel):
    id: str
    name: str
    patient_id: str | None = None


class CurrentUser(CamelModel):
    id: str
    is_admin: bool = False
    access_level: AccessLevel = AccessLevel.FULL


class TeamData(CamelModel):
    """Aggregate returned by the members endpoint."""

    team: TeamInfo
    members: list[TeamMember] = []
    current_user: CurrentUser
    patient: TeamMember | None = None


class Team(CamelModel):
    """Entry of the team switcher list."""

    id: str
    name: str
    patient_id: str | None = None
    patient_name: str | None = None
    member_count: int | None = None
