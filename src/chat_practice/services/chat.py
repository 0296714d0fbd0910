"""Problem generation and spoken answer grading workflows."""

import structlog

from chat_practice.errors import (
    DuplicateRecordError,
    ProblemNotFoundError,
    UpstreamServiceError,
    UserNotFoundError,
)
from chat_practice.models.problem import FeedbackResult, ProblemResponse
from chat_practice.personalization.context import PersonalizationContextBuilder
from chat_practice.services.ai_client import AIServiceClient, VoiceUpload
from chat_practice.storage.store import JsonStore

logger = structlog.get_logger()


class ChatService:
    """Sequences the data store, context builder and AI server.

    Args:
        store: Data store.
        ai_client: AI server client.
        context_builder: Builds the personalization context.
    """

    def __init__(
        self,
        store: JsonStore,
        ai_client: AIServiceClient,
        context_builder: PersonalizationContextBuilder,
    ):
        self.store = store
        self.ai_client = ai_client
        self.context_builder = context_builder

    async def generate_problem(self, user_id: str) -> ProblemResponse:
        """Generate and store a new problem tailored to the user.

        Raises:
            UserNotFoundError: if the user does not exist.
            UpstreamServiceError: if the AI server call fails or
                returns a problem id that is already stored.
        """
        user = await self.store.find_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        context = await self.context_builder.build(user)
        generated = await self.ai_client.generate_problem(context)

        try:
            await self.store.create_problem(
                problem_id=generated.id,
                user_id=user.id,
                question=generated.question,
                answer=generated.answer,
                image_path=generated.image_path,
                whole_text=generated.whole_text,
            )
        except DuplicateRecordError as e:
            logger.error("problem_id_reused", user_id=user.id, problem_id=generated.id)
            raise UpstreamServiceError(f"AI server reused problem id {generated.id}") from e
        logger.info("problem_generated", user_id=user.id, problem_id=generated.id)

        return ProblemResponse(
            problem_id=generated.id,
            question=generated.question,
            image=generated.image,
        )

    async def generate_feedback(
        self, problem_id: str, user_id: str, voice: VoiceUpload
    ) -> FeedbackResult:
        """Grade a spoken answer and record the attempt.

        The solve history is written before returning, so a successful
        response means the attempt is persisted.

        Raises:
            ProblemNotFoundError: if the user has no such problem.
            UpstreamServiceError: if the AI server call fails.
        """
        problem = await self.store.find_problem(problem_id, user_id)
        if problem is None:
            raise ProblemNotFoundError(problem_id, user_id)

        result = await self.ai_client.generate_feedback(problem_id, problem.answer, voice)

        history = await self.store.create_solve_history(
            user_id=user_id,
            problem_id=problem_id,
            is_correct=result.is_correct,
            feedback=result.feedback,
            voice_path=result.voice_path,
        )
        logger.info(
            "answer_graded",
            user_id=user_id,
            problem_id=problem_id,
            solve_history_id=history.id,
            is_correct=result.is_correct,
        )
        return result
