"""Personalization context sent with problem generation requests."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedbackEntry(_CamelModel):
    feedback: str
    created_at: datetime


class UserInfo(_CamelModel):
    age: int  # months
    accuracy: float
    interests: list[str] = Field(default_factory=list)
    language_level: str
    language_goals: list[str] | None = None
    feedback: list[FeedbackEntry] = Field(default_factory=list)


class PersonalizationContext(_CamelModel):
    user_info: UserInfo

    def to_payload(self) -> dict:
        """Serialize with the camelCase keys the AI server expects."""
        return self.model_dump(mode="json", by_alias=True)
