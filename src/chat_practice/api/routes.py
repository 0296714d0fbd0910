"""REST API routes for problem generation, grading and achievements."""

import functools

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from chat_practice.achievements.tracker import AchievementTracker
from chat_practice.config import get_settings
from chat_practice.errors import NotFoundError, UpstreamServiceError
from chat_practice.models.problem import FeedbackResult, ProblemResponse
from chat_practice.personalization.context import PersonalizationContextBuilder
from chat_practice.services.ai_client import AIServiceClient, VoiceUpload
from chat_practice.services.chat import ChatService
from chat_practice.storage.store import JsonStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@functools.lru_cache
def get_store() -> JsonStore:
    return JsonStore(get_settings().store_dir)


@functools.lru_cache
def get_tracker() -> AchievementTracker:
    # Shared so that per-user locking covers every request.
    return AchievementTracker(get_store())


def get_chat_service() -> ChatService:
    store = get_store()
    return ChatService(
        store=store,
        ai_client=AIServiceClient(get_settings()),
        context_builder=PersonalizationContextBuilder(store, get_tracker()),
    )


class GenerateProblemRequest(BaseModel):
    user_id: str


@router.post("/chat/problems", response_model=ProblemResponse)
async def generate_problem(
    body: GenerateProblemRequest,
    service: ChatService = Depends(get_chat_service),
) -> ProblemResponse:
    """Generate a personalized problem for a user."""
    try:
        return await service.generate_problem(body.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamServiceError as e:
        logger.error("generate_problem_failed", user_id=body.user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/chat/problems/{problem_id}/feedback", response_model=FeedbackResult)
async def generate_feedback(
    problem_id: str,
    user_id: str = Form(...),
    voice: UploadFile = File(...),
    service: ChatService = Depends(get_chat_service),
) -> FeedbackResult:
    """Grade a recorded answer to one of the user's problems."""
    upload = VoiceUpload(
        filename=voice.filename or "voice",
        content=await voice.read(),
        content_type=voice.content_type or "application/octet-stream",
    )
    try:
        return await service.generate_feedback(problem_id, user_id, upload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamServiceError as e:
        logger.error(
            "generate_feedback_failed",
            user_id=user_id,
            problem_id=problem_id,
            error=str(e),
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/users/{user_id}/achievements")
async def list_achievements(
    user_id: str,
    store: JsonStore = Depends(get_store),
) -> list[dict]:
    """List a user's achievements, highest level first."""
    return [
        {
            "id": link.achievement.id,
            "title": link.achievement.title,
            "description": link.achievement.description,
            "level": link.achievement.level,
            "achieved_at": link.created_at.isoformat(),
            "updated_at": link.achievement.updated_at.isoformat(),
        }
        for link in await store.list_user_achievements(user_id)
    ]


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
