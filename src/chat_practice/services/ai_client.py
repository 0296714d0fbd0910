"""HTTP client for the AI inference server."""

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from chat_practice.config import Settings
from chat_practice.errors import UpstreamServiceError
from chat_practice.models.context import PersonalizationContext
from chat_practice.models.problem import FeedbackResult, GeneratedProblem

logger = structlog.get_logger()

GENERATE_PROBLEM_PATH = "/chat/generate_problem"
GENERATE_FEEDBACK_PATH = "/chat/generate_feedback"


@dataclass
class VoiceUpload:
    """A recorded spoken answer."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class AIServiceClient:
    """Calls the AI server's problem and feedback endpoints.

    The base URL is read from ``settings`` on every call.

    Args:
        settings: Application settings.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _url(self, path: str) -> str:
        return self.settings.ai_server_url.rstrip("/") + path

    async def _post(self, path: str, **kwargs: Any) -> dict:
        """POST to the AI server and unwrap the ``data`` envelope.

        Raises:
            UpstreamServiceError: on transport errors, non-2xx responses
                or a body without a ``data`` object.
        """
        url = self._url(path)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.ai_request_timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(url, **kwargs)
                resp.raise_for_status()
                data = resp.json()["data"]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("ai_request_failed", url=url, error=str(e))
            raise UpstreamServiceError(f"AI server request failed: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamServiceError("AI server returned no data")
        return data

    async def generate_problem(self, context: PersonalizationContext) -> GeneratedProblem:
        data = await self._post(GENERATE_PROBLEM_PATH, json=context.to_payload())
        try:
            return GeneratedProblem.model_validate(data)
        except ValueError as e:
            raise UpstreamServiceError(f"Malformed problem payload: {e}") from e

    async def generate_feedback(
        self, problem_id: str, answer: Any, voice: VoiceUpload
    ) -> FeedbackResult:
        """Send a spoken answer for grading against the stored answer."""
        data = await self._post(
            GENERATE_FEEDBACK_PATH,
            data={"problemId": problem_id, "answer": json.dumps(answer, ensure_ascii=False)},
            files={"voice": (voice.filename, voice.content, voice.content_type)},
        )
        try:
            return FeedbackResult.model_validate(data)
        except ValueError as e:
            raise UpstreamServiceError(f"Malformed feedback payload: {e}") from e
