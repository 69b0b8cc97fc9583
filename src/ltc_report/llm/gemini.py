"""Google Gemini (Generative Language REST API) 백엔드."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from ..errors import GenerationError
from ..utils import get_logger
from .base import BaseLLM, classify_http_error

if TYPE_CHECKING:
    from ..config import LLMConfig
    from ..models import ChatMessage

logger = get_logger("llm.gemini")


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """JSON Schema를 Gemini ``responseSchema`` 방언으로 변환합니다.

    타입 이름은 대문자로 바꾸고, ``["string", "null"]`` 같은 유니언은 ``nullable``로 표현합니다.
    """
    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type":
            if isinstance(value, list):
                types = [t for t in value if t != "null"]
                if len(types) != len(value):
                    out["nullable"] = True
                value = types[0]
            out["type"] = value.upper()
        elif key == "properties":
            out["properties"] = {k: to_gemini_schema(v) for k, v in value.items()}
        elif key == "items":
            out["items"] = to_gemini_schema(value)
        else:
            out[key] = value
    return out


class GeminiLLM(BaseLLM):
    """``/v1beta/models/{model}:generateContent``와 통신하는 백엔드입니다.

    매개변수
    ----------
    config:
        ``backend="gemini"``인 :class:`LLMConfig`.
    """

    def __init__(self, config: LLMConfig) -> None:
        self.model: str = config.model
        self.api_base: str = config.api_base.rstrip("/")
        self.api_key: str | None = config.resolve_api_key()
        self.temperature: float = config.temperature
        self.timeout: int = config.timeout

        logger.info("GeminiLLM initialised  model=%s  api_base=%s", self.model, self.api_base)

    # ------------------------------------------------------------------
    # 헬퍼
    # ------------------------------------------------------------------

    def _url(self) -> str:
        return f"{self.api_base}/v1beta/models/{self.model}:generateContent"

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        return headers

    async def _post(self, payload: dict[str, Any]) -> str:
        if not self.api_key:
            raise GenerationError("Gemini API 키가 설정되지 않았습니다.", category="auth")

        url = self._url()
        logger.debug("POST %s  model=%s", url, self.model)

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url, json=payload, headers=self._headers(), timeout=self.timeout,
                )
                resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise GenerationError(
                f"Gemini API 요청이 타임아웃되었습니다 (model={self.model}, timeout={self.timeout}s)",
                category="network",
            ) from exc
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:500]
            raise GenerationError(
                f"Gemini API HTTP {exc.response.status_code}: {body[:200]}",
                category=classify_http_error(exc.response.status_code, body),
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(
                f"Gemini API({self.api_base})에 연결할 수 없습니다: {exc}",
                category="network",
            ) from exc

        try:
            data: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise GenerationError(
                "Gemini API 응답이 JSON이 아닙니다", category="malformed"
            ) from exc
        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts).strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            feedback = data.get("promptFeedback", {}) if isinstance(data, dict) else {}
            logger.error("Unexpected response structure: %.300r", data)
            raise GenerationError(
                f"Gemini 응답에 후보가 없습니다 (blockReason={feedback.get('blockReason')})",
                category="malformed",
            ) from exc
        return text

    # ------------------------------------------------------------------
    # BaseLLM 인터페이스
    # ------------------------------------------------------------------

    async def agenerate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        schema: dict[str, Any] | None = None,
        temperature: float | None = None,
    ) -> str:
        """단일 사용자 턴을 전송합니다. *schema*가 있으면 JSON 응답을 요청합니다."""
        generation_config: dict[str, Any] = {
            "temperature": self.temperature if temperature is None else temperature,
        }
        if schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = to_gemini_schema(schema)

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        text = await self._post(payload)
        if not text:
            logger.warning("Gemini returned empty content for model=%s", self.model)
        return text

    async def achat(
        self,
        messages: list[ChatMessage],
        *,
        system: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """대화 기록 전체를 ``contents``로 전송합니다 (역할은 ``user``/``model``)."""
        payload: dict[str, Any] = {
            "contents": [
                {"role": m.role, "parts": [{"text": m.text}]} for m in messages
            ],
            "generationConfig": {
                "temperature": self.temperature if temperature is None else temperature,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return await self._post(payload)

    def health_check(self) -> bool:
        """모델 메타데이터 엔드포인트를 조회하여 API 키와 모델을 확인합니다."""
        url = f"{self.api_base}/v1beta/models/{self.model}"
        try:
            resp = httpx.get(url, headers=self._headers(), timeout=10)
            resp.raise_for_status()
            logger.debug("Gemini health-check OK")
            return True
        except httpx.HTTPError:
            logger.warning("Gemini health-check FAILED at %s", url)
            return False
