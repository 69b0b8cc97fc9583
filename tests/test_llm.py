"""LLM 백엔드(llm/)의 테스트입니다. httpx는 모킹합니다."""

from __future__ import annotations

import httpx
import pytest

from ltc_report.config import LLMConfig
from ltc_report.errors import GenerationError
from ltc_report.llm import GeminiLLM, OpenAICompatLLM, create_llm
from ltc_report.llm.base import classify_http_error
from ltc_report.llm.gemini import to_gemini_schema
from ltc_report.models import ChatMessage
from ltc_report.prompts import REPORT_SCHEMA


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _openai_body(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def _status_error(status: int, body: str) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.test")
    response = httpx.Response(status, text=body, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.fixture
def gemini():
    return GeminiLLM(LLMConfig(api_key="test-key"))


@pytest.fixture
def openai_llm():
    return OpenAICompatLLM(LLMConfig(
        backend="openai", model="gpt-4o-mini", api_base="http://localhost:8000",
        api_key="sk-test",
    ))


# ---------------------------------------------------------------------------
# 팩토리와 공통 헬퍼
# ---------------------------------------------------------------------------


class TestCreateLLM:
    def test_gemini(self):
        assert isinstance(create_llm(LLMConfig(api_key="k")), GeminiLLM)

    def test_openai(self):
        assert isinstance(create_llm(LLMConfig(backend="openai")), OpenAICompatLLM)


class TestClassifyHttpError:
    """HTTP 오류 범주 분류의 테스트입니다."""

    @pytest.mark.parametrize(
        "status, body, expected",
        [
            (429, "", "quota"),
            (400, '{"error": {"status": "RESOURCE_EXHAUSTED"}}', "quota"),
            (401, "", "auth"),
            (403, "", "auth"),
            (400, "API_KEY_INVALID", "auth"),
            (500, "internal", "unknown"),
        ],
    )
    def test_범주(self, status, body, expected):
        assert classify_http_error(status, body) == expected


class TestToGeminiSchema:
    def test_타입은_대문자(self):
        out = to_gemini_schema(REPORT_SCHEMA)

        assert out["type"] == "OBJECT"
        assert out["properties"]["evaluationItems"]["type"] == "ARRAY"
        assert out["properties"]["evaluationItems"]["items"]["type"] == "OBJECT"
        assert out["properties"]["aiSummary"]["type"] == "STRING"

    def test_null_유니언은_nullable(self):
        out = to_gemini_schema(REPORT_SCHEMA)
        discharge = out["properties"]["basicInfo"]["properties"]["dischargeDate"]

        assert discharge == {"type": "STRING", "nullable": True}

    def test_열거값과_필수목록_유지(self):
        out = to_gemini_schema(REPORT_SCHEMA)
        grade = out["properties"]["evaluationItems"]["items"]["properties"]["grade"]

        assert grade["enum"] == REPORT_SCHEMA["properties"]["evaluationItems"]["items"][
            "properties"]["grade"]["enum"]
        assert out["required"] == REPORT_SCHEMA["required"]


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TestGeminiLLM:
    """GeminiLLM 클래스의 테스트입니다."""

    @pytest.mark.asyncio
    async def test_agenerate_요청_형태(self, gemini, mock_async_client):
        client = mock_async_client(json_body=_gemini_body('{"ok": true}'))

        text = await gemini.agenerate("본문", system="지시문", schema=REPORT_SCHEMA)

        assert text == '{"ok": true}'
        args, kwargs = client.post.call_args
        assert args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.5-flash:generateContent"
        )
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        payload = kwargs["json"]
        assert payload["contents"] == [{"role": "user", "parts": [{"text": "본문"}]}]
        assert payload["systemInstruction"] == {"parts": [{"text": "지시문"}]}
        gen = payload["generationConfig"]
        assert gen["responseMimeType"] == "application/json"
        assert gen["responseSchema"]["type"] == "OBJECT"
        assert gen["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_스키마가_없으면_JSON_요청_안함(self, gemini, mock_async_client):
        client = mock_async_client(json_body=_gemini_body("요약"))

        await gemini.agenerate("본문", temperature=0.7)

        gen = client.post.call_args.kwargs["json"]["generationConfig"]
        assert "responseSchema" not in gen
        assert gen["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_achat_역할_전달(self, gemini, mock_async_client):
        client = mock_async_client(json_body=_gemini_body("답변"))
        messages = [
            ChatMessage(role="user", text="질문1"),
            ChatMessage(role="model", text="답변1"),
            ChatMessage(role="user", text="질문2"),
        ]

        text = await gemini.achat(messages, system="보고서")

        assert text == "답변"
        payload = client.post.call_args.kwargs["json"]
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["contents"][2]["parts"][0]["text"] == "질문2"

    @pytest.mark.asyncio
    async def test_API_키가_없으면_auth(self, monkeypatch, mock_async_client):
        monkeypatch.delenv("LTC_TEST_MISSING_KEY", raising=False)
        llm = GeminiLLM(LLMConfig(api_key_env="LTC_TEST_MISSING_KEY"))
        client = mock_async_client(json_body=_gemini_body("x"))

        with pytest.raises(GenerationError) as exc_info:
            await llm.agenerate("본문")

        assert exc_info.value.category == "auth"
        client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_환경변수_API_키_사용(self, monkeypatch, mock_async_client):
        monkeypatch.setenv("LTC_TEST_KEY", "env-key")
        llm = GeminiLLM(LLMConfig(api_key_env="LTC_TEST_KEY"))
        client = mock_async_client(json_body=_gemini_body("x"))

        await llm.agenerate("본문")

        assert client.post.call_args.kwargs["headers"]["x-goog-api-key"] == "env-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, category",
        [(429, "quota exceeded", "quota"), (403, "forbidden", "auth"), (500, "boom", "unknown")],
    )
    async def test_HTTP_오류_범주(self, gemini, mock_async_client, status, body, category):
        client = mock_async_client(json_body={})
        client.post.return_value.raise_for_status.side_effect = _status_error(status, body)

        with pytest.raises(GenerationError) as exc_info:
            await gemini.agenerate("본문")

        assert exc_info.value.category == category

    @pytest.mark.asyncio
    async def test_타임아웃은_network(self, gemini, mock_async_client):
        mock_async_client(raise_exc=httpx.ReadTimeout("timed out"))

        with pytest.raises(GenerationError) as exc_info:
            await gemini.agenerate("본문")

        assert exc_info.value.category == "network"

    @pytest.mark.asyncio
    async def test_연결_실패는_network(self, gemini, mock_async_client):
        mock_async_client(raise_exc=httpx.ConnectError("refused"))

        with pytest.raises(GenerationError) as exc_info:
            await gemini.agenerate("본문")

        assert exc_info.value.category == "network"

    @pytest.mark.asyncio
    async def test_후보가_없으면_malformed(self, gemini, mock_async_client):
        mock_async_client(json_body={"candidates": [], "promptFeedback": {"blockReason": "SAFETY"}})

        with pytest.raises(GenerationError) as exc_info:
            await gemini.agenerate("본문")

        assert exc_info.value.category == "malformed"
        assert "SAFETY" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_재시도하지_않음(self, gemini, mock_async_client):
        client = mock_async_client(raise_exc=httpx.ConnectError("refused"))

        with pytest.raises(GenerationError):
            await gemini.agenerate("본문")

        assert client.post.call_count == 1

    def test_health_check_성공(self, gemini, mocker):
        mocker.patch("httpx.get", return_value=mocker.MagicMock())
        assert gemini.health_check() is True

    def test_health_check_실패는_False(self, gemini, mocker):
        mocker.patch("httpx.get", side_effect=httpx.ConnectError("refused"))
        assert gemini.health_check() is False


# ---------------------------------------------------------------------------
# OpenAI 호환
# ---------------------------------------------------------------------------


class TestOpenAICompatLLM:
    """OpenAICompatLLM 클래스의 테스트입니다."""

    @pytest.mark.asyncio
    async def test_agenerate_response_format(self, openai_llm, mock_async_client):
        client = mock_async_client(json_body=_openai_body("  {}  "))

        text = await openai_llm.agenerate("본문", system="지시문", schema=REPORT_SCHEMA)

        assert text == "{}"
        args, kwargs = client.post.call_args
        assert args[0] == "http://localhost:8000/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        payload = kwargs["json"]
        assert payload["messages"][0] == {"role": "system", "content": "지시문"}
        assert payload["response_format"]["json_schema"]["name"] == "report"
        assert payload["response_format"]["json_schema"]["schema"] is REPORT_SCHEMA

    @pytest.mark.asyncio
    async def test_achat_역할_변환(self, openai_llm, mock_async_client):
        client = mock_async_client(json_body=_openai_body("답변"))

        await openai_llm.achat([
            ChatMessage(role="user", text="질문"),
            ChatMessage(role="model", text="이전 답변"),
        ])

        roles = [m["role"] for m in client.post.call_args.kwargs["json"]["messages"]]
        assert roles == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_응답_형태가_다르면_malformed(self, openai_llm, mock_async_client):
        mock_async_client(json_body={"unexpected": True})

        with pytest.raises(GenerationError) as exc_info:
            await openai_llm.agenerate("본문")

        assert exc_info.value.category == "malformed"

    @pytest.mark.asyncio
    async def test_429는_quota(self, openai_llm, mock_async_client):
        client = mock_async_client(json_body={})
        client.post.return_value.raise_for_status.side_effect = _status_error(429, "")

        with pytest.raises(GenerationError) as exc_info:
            await openai_llm.agenerate("본문")

        assert exc_info.value.category == "quota"
