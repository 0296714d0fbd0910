"""User profile models read by the personalization context."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    id: str
    name: str | None = None
    birth: date
    interests: list[str] = Field(default_factory=list)
    language_goals: list[str] | None = None  # not collected yet
    created_at: datetime = Field(default_factory=datetime.now)


class ParentFeedback(BaseModel):
    """Free-form note a parent left about the learner."""

    id: str
    user_id: str
    feedback: str
    created_at: datetime = Field(default_factory=datetime.now)
