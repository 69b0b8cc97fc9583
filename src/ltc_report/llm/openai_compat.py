"""OpenAI 호환 백엔드(vLLM, LiteLLM, OpenAI 등)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from ..errors import GenerationError
from ..utils import get_logger
from .base import BaseLLM, classify_http_error

if TYPE_CHECKING:
    from ..config import LLMConfig
    from ..models import ChatMessage

logger = get_logger("llm.openai_compat")

_ROLE_MAP = {"user": "user", "model": "assistant"}


class OpenAICompatLLM(BaseLLM):
    """OpenAI 호환 ``/v1/chat/completions`` API와 통신하는 백엔드입니다.

    매개변수
    ----------
    config:
        ``backend="openai"``인 :class:`LLMConfig`.
    """

    def __init__(self, config: LLMConfig) -> None:
        self.model: str = config.model
        self.api_base: str = config.api_base.rstrip("/")
        self.api_key: str | None = config.resolve_api_key()
        self.temperature: float = config.temperature
        self.timeout: int = config.timeout

        logger.info(
            "OpenAICompatLLM initialised  model=%s  api_base=%s",
            self.model,
            self.api_base,
        )

    # ------------------------------------------------------------------
    # 헬퍼
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        """API 키가 설정되었을 때 인증을 포함한 요청 헤더를 구성합니다."""
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> str:
        url = f"{self.api_base}/v1/chat/completions"
        logger.debug("POST %s  model=%s  temp=%.2f", url, payload["model"], payload["temperature"])

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url, json=payload, headers=self._headers(), timeout=self.timeout,
                )
                resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise GenerationError(
                f"OpenAI 호환 API 요청이 타임아웃되었습니다 "
                f"(model={self.model}, url={url}, timeout={self.timeout}s)",
                category="network",
            ) from exc
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:500]
            raise GenerationError(
                f"OpenAI 호환 API HTTP {exc.response.status_code}: {body[:200]}",
                category=classify_http_error(exc.response.status_code, body),
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(
                f"OpenAI 호환 API({self.api_base})에 연결할 수 없습니다: {exc}",
                category="network",
            ) from exc

        try:
            data: dict[str, Any] = resp.json()
            text: str = (data["choices"][0]["message"]["content"] or "").strip()
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationError(
                f"Unexpected response from {url}", category="malformed"
            ) from exc

        if not text:
            logger.warning("OpenAI-compat returned empty content for model=%s", self.model)
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
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "report", "schema": schema},
            }
        return await self._post(payload)

    async def achat(
        self,
        messages: list[ChatMessage],
        *,
        system: str | None = None,
        temperature: float | None = None,
    ) -> str:
        wire: list[dict[str, str]] = []
        if system:
            wire.append({"role": "system", "content": system})
        wire.extend({"role": _ROLE_MAP[m.role], "content": m.text} for m in messages)

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": wire,
            "temperature": self.temperature if temperature is None else temperature,
        }
        return await self._post(payload)

    def health_check(self) -> bool:
        """``/v1/models``를 핑하여 API에 도달할 수 있는지 확인합니다."""
        url = f"{self.api_base}/v1/models"
        try:
            resp = httpx.get(url, headers=self._headers(), timeout=10)
            resp.raise_for_status()
            logger.debug("OpenAI-compat health-check OK")
            return True
        except httpx.HTTPError:
            logger.warning("OpenAI-compat health-check FAILED at %s", url)
            return False
