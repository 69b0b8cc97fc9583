"""LLM 백엔드를 위한 추상 기본 클래스와 공통 오류 분류."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..errors import ErrorCategory
    from ..models import ChatMessage


def classify_http_error(status_code: int, body: str) -> ErrorCategory:
    """HTTP 상태 코드와 본문으로 :class:`GenerationError` 범주를 정합니다."""
    upper = body.upper()
    if status_code == 429 or "RESOURCE_EXHAUSTED" in upper or "QUOTA" in upper:
        return "quota"
    if status_code in (401, 403) or "API_KEY_INVALID" in upper or "API KEY NOT VALID" in upper:
        return "auth"
    return "unknown"


class BaseLLM(ABC):
    """모든 LLM 백엔드가 구현해야 하는 인터페이스.

    호출은 한 번만 시도하며 실패는 :class:`~ltc_report.errors.GenerationError`로
    알립니다. 타임아웃은 전송 계층 설정을 그대로 따릅니다.
    """

    model: str

    @abstractmethod
    async def agenerate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        schema: dict[str, Any] | None = None,
        temperature: float | None = None,
    ) -> str:
        """*prompt*를 단일 사용자 턴으로 전송하고 응답 텍스트를 반환합니다.

        매개변수
        ----------
        prompt:
            사용자 턴 본문.
        system:
            선택적 시스템 지시문.
        schema:
            선택적 JSON Schema. 주어지면 JSON 출력을 요청하고 형태를 제한합니다.
        temperature:
            설정값을 덮어쓸 샘플링 온도.
        """
        ...

    @abstractmethod
    async def achat(
        self,
        messages: list[ChatMessage],
        *,
        system: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """순서대로 쌓인 대화 *messages*를 전송하고 모델의 다음 답변을 반환합니다."""
        ...

    def health_check(self) -> bool:
        """백엔드에 도달할 수 있는지 확인합니다.

        구현은 절대 예외를 발생시키지 않아야 합니다.
        """
        return True
