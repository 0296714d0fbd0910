"""Solve history model."""

from datetime import datetime

from pydantic import BaseModel, Field


class SolveHistory(BaseModel):
    """One graded attempt at a problem. Never modified after creation."""

    id: str
    user_id: str
    problem_id: str
    is_correct: bool
    feedback: str | None = None
    voice_path: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
