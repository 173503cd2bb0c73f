"""Routine (journal) schemas."""

from typing import Any

from pydantic import Field, field_validator

from coco.models.base import CamelModel


def normalize_days_of_week(value: Any) -> list[Any]:
    """Coerce ``recurrenceDaysOfWeek`` to a list; a bare day becomes ``[day]``.

    Only ``None`` maps to ``[]``. Falsy scalars are wrapped too, so ``0``
    (Sunday) becomes ``[0]`` instead of being dropped by a truthiness check.
    """
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


class RoutineInstance(CamelModel):
    id: str
    entry_date: str
    completed_items: list[str] = []
    skipped_items: list[str] = []
    notes: str | None = None
    filled_out_at: str | None = None


class InstanceCount(CamelModel):
    instances: int = 0


class Routine(CamelModel):
    id: str
    name: str
    description: str | None = None
    checklist_items: list[str] = []
    recurrence_days_of_week: list[int] = []
    start_date: str
    end_date: str | None = None
    is_active: bool = True
    created_at: str
    instances: list[RoutineInstance] | None = None
    count: InstanceCount | None = Field(default=None, alias="_count")

    @field_validator("recurrence_days_of_week", mode="before")
    @classmethod
    def _wrap_days(cls, value: Any) -> list[Any]:
        return normalize_days_of_week(value)


class RoutineCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    checklist_items: list[str] = []
    recurrence_type: str = "DAILY"
    recurrence_days_of_week: list[int] = []
    start_date: str
    end_date: str | None = None


class RoutineUpdate(CamelModel):
    name: str | None = None
    description: str | None = None
    checklist_items: list[str] | None = None
    recurrence_days_of_week: list[int] | None = None
    end_date: str | None = None
    is_active: bool | None = None
