"""Task schemas."""

from enum import StrEnum

from pydantic import Field

from coco.models.base import CamelModel, UserSummary


class TaskPriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskStatus(StrEnum):
    TODO = "TODO"
    DONE = "DONE"
    CANCELLED = "CANCELLED"
    DUE = "DUE"


class TaskType(StrEnum):
    MEDICATION = "MEDICATION"
    APPOINTMENTS = "APPOINTMENTS"
    SOCIAL = "SOCIAL"
    HEALTH_PERSONAL = "HEALTH_PERSONAL"


class Task(CamelModel):
    id: str
    name: str
    description: str | None = None
    patient_name: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    type: TaskType | None = None
    due_date: str | None = None
    created_at: str
    updated_at: str
    created_by: UserSummary
    assigned_to: UserSummary | None = None


class TaskCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    type: TaskType | None = None
    due_date: str | None = None
    assigned_to_id: str | None = None


class TaskUpdate(CamelModel):
    name: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    type: TaskType | None = None
    due_date: str | None = None
    assigned_to_id: str | None = None
