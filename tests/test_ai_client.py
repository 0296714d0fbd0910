"""Tests for the AI server client."""

import json

import httpx
import pytest

from chat_practice.config import Settings
from chat_practice.errors import UpstreamServiceError
from chat_practice.models.context import PersonalizationContext, UserInfo
from chat_practice.services.ai_client import AIServiceClient, VoiceUpload


@pytest.fixture
def settings():
    return Settings(ai_server_url="http://ai.test/")


@pytest.fixture
def context():
    return PersonalizationContext(
        user_info=UserInfo(age=60, accuracy=0.5, interests=["cars"], language_level="초급")
    )


def _client(settings, handler) -> AIServiceClient:
    return AIServiceClient(settings, transport=httpx.MockTransport(handler))


PROBLEM_DATA = {
    "id": "p-100",
    "question": "What color is the sky?",
    "answer": "blue",
    "image": "data:image/png;base64,AAAA",
    "image_path": "/images/p-100.png",
    "whole_text": "The sky is blue.",
}


class TestGenerateProblem:
    async def test_posts_context_and_unwraps_data(self, settings, context):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": PROBLEM_DATA})

        problem = await _client(settings, handler).generate_problem(context)

        assert seen["url"] == "http://ai.test/chat/generate_problem"
        assert seen["body"]["userInfo"]["languageLevel"] == "초급"
        assert problem.id == "p-100"
        assert problem.image_path == "/images/p-100.png"
        assert problem.whole_text == "The sky is blue."

    async def test_base_url_read_per_call(self, settings, context):
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return httpx.Response(200, json={"data": PROBLEM_DATA})

        client = _client(settings, handler)
        await client.generate_problem(context)
        settings.ai_server_url = "http://other.test"
        await client.generate_problem(context)

        assert urls == [
            "http://ai.test/chat/generate_problem",
            "http://other.test/chat/generate_problem",
        ]

    async def test_http_error_wrapped(self, settings, context):
        client = _client(settings, lambda r: httpx.Response(503, text="busy"))
        with pytest.raises(UpstreamServiceError) as exc:
            await client.generate_problem(context)
        assert isinstance(exc.value.__cause__, httpx.HTTPStatusError)

    async def test_connection_error_wrapped(self, settings, context):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamServiceError):
            await _client(settings, handler).generate_problem(context)

    async def test_missing_envelope(self, settings, context):
        client = _client(settings, lambda r: httpx.Response(200, json={"id": "p"}))
        with pytest.raises(UpstreamServiceError):
            await client.generate_problem(context)

    async def test_malformed_problem(self, settings, context):
        client = _client(settings, lambda r: httpx.Response(200, json={"data": {"id": "p"}}))
        with pytest.raises(UpstreamServiceError):
            await client.generate_problem(context)


class TestGenerateFeedback:
    async def test_sends_multipart(self, settings):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(
                200,
                json={"data": {"is_correct": True, "feedback": "잘했어요", "voice_path": "/v/1.wav"}},
            )

        voice = VoiceUpload(filename="answer.wav", content=b"RIFF1234", content_type="audio/wav")
        result = await _client(settings, handler).generate_feedback("p-1", "사과", voice)

        assert seen["url"] == "http://ai.test/chat/generate_feedback"
        assert seen["content_type"].startswith("multipart/form-data")
        body = seen["body"]
        assert b'name="problemId"' in body
        assert b"p-1" in body
        assert '"사과"'.encode() in body
        assert b'name="voice"; filename="answer.wav"' in body
        assert b"RIFF1234" in body

        assert result.is_correct is True
        assert result.feedback == "잘했어요"
        assert result.voice_path == "/v/1.wav"

    async def test_error_wrapped(self, settings):
        voice = VoiceUpload(filename="a.wav", content=b"x")
        client = _client(settings, lambda r: httpx.Response(500))
        with pytest.raises(UpstreamServiceError):
            await client.generate_feedback("p-1", "a", voice)
