"""Note (observation) schemas."""

from enum import StrEnum

from pydantic import Field

from coco.models.base import CamelModel, UserSummary


class NoteRole(StrEnum):
    CREATOR = "creator"
    EDITOR = "editor"
    VIEWER = "viewer"


class NoteGrant(CamelModel):
    """An editor or viewer permission row."""

    id: str
    user: UserSummary


class Note(CamelModel):
    id: str
    title: str
    content: str
    created_at: str
    updated_at: str
    created_by: UserSummary
    last_edited_by: UserSummary | None = None
    editors: list[NoteGrant] = []
    viewers: list[NoteGrant] = []
    can_edit: bool = False
    can_delete: bool = False
    user_role: NoteRole = NoteRole.VIEWER


class NoteCreate(CamelModel):
    title: str = Field(min_length=1)
    content: str
    editor_ids: list[str] = []
    viewer_ids: list[str] = []


class NoteUpdate(CamelModel):
    title: str | None = None
    content: str | None = None
