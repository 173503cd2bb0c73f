"""API schemas for the care team resources."""

from coco.models.base import CamelModel, UserSummary
from coco.models.mood import Mood, MoodCreate, MoodRating
from coco.models.note import Note, NoteCreate, NoteGrant, NoteRole, NoteUpdate
from coco.models.routine import (
    InstanceCount,
    Routine,
    RoutineCreate,
    RoutineInstance,
    RoutineUpdate,
    normalize_days_of_week,
)
from coco.models.task import Task, TaskCreate, TaskPriority, TaskStatus, TaskType, TaskUpdate
from coco.models.team import AccessLevel, CurrentUser, Team, TeamData, TeamInfo, TeamMember

__all__ = [
    "AccessLevel",
    "CamelModel",
    "CurrentUser",
    "InstanceCount",
    "Mood",
    "MoodCreate",
    "MoodRating",
    "Note",
    "NoteCreate",
    "NoteGrant",
    "NoteRole",
    "NoteUpdate",
    "Routine",
    "RoutineCreate",
    "RoutineInstance",
    "RoutineUpdate",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    "TaskUpdate",
    "Team",
    "TeamData",
    "TeamInfo",
    "TeamMember",
    "UserSummary",
    "normalize_days_of_week",
]
