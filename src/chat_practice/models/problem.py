"""Problem and grading models exchanged with the AI server."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Problem(BaseModel):
    """Generated question/answer pair owned by a user."""

    id: str
    user_id: str
    question: str
    answer: Any = None
    image_path: str | None = None
    whole_text: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class GeneratedProblem(BaseModel):
    """Payload of the AI server's generate_problem response."""

    id: str
    question: str
    answer: Any = None
    image: str | None = None
    image_path: str | None = None
    whole_text: str | None = None


class ProblemResponse(BaseModel):
    """What the client receives after a problem is generated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    problem_id: str
    question: str
    image: str | None = None


class FeedbackResult(BaseModel):
    """Payload of the AI server's generate_feedback response."""

    is_correct: bool
    feedback: str | None = None
    voice_path: str | None = None
