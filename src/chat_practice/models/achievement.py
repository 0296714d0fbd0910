"""Achievement data models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

HIGHEST_ANSWER_RATE_TITLE = "Highest Answer Rate"


class AchievementChange(StrEnum):
    """What a tracker check did to the stored achievement."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class Achievement(BaseModel):
    """Catalog entry describing a milestone.

    For the highest answer rate achievement ``level`` holds the best
    answer rate (0.0-1.0) the user has reached.
    """

    id: str
    title: str
    description: str
    level: float
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class UserAchievement(BaseModel):
    """Link between a user and an achievement.

    ``achievement`` is filled in by store lookups and is not persisted.
    """

    id: str
    user_id: str
    achievement_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    achievement: Achievement | None = Field(default=None, exclude=True)
