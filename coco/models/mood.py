"""Mood observation schemas."""

from enum import StrEnum

from coco.models.base import CamelModel, UserSummary


class MoodRating(StrEnum):
    CALM = "CALM"
    CONTENT = "CONTENT"
    NEUTRAL = "NEUTRAL"
    RELAXED = "RELAXED"
    SAD = "SAD"
    WITHDRAWN = "WITHDRAWN"
    TIRED = "TIRED"
    ANXIOUS = "ANXIOUS"
    IRRITABLE = "IRRITABLE"
    RESTLESS = "RESTLESS"
    CONFUSED = "CONFUSED"


class Mood(CamelModel):
    id: str
    rating: MoodRating
    notes: str | None = None
    observed_at: str
    logged_by: UserSummary


class MoodCreate(CamelModel):
    rating: MoodRating
    notes: str | None = None
    observed_at: str | None = None
