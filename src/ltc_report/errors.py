"""ltc-report 전체에서 사용하는 예외 계층입니다.

모든 예외는 :class:`LTCReportError` (``RuntimeError`` 하위 클래스)를 상속하므로
호출자는 ``RuntimeError``로도 잡을 수 있습니다. 어떤 단계도 자동 재시도를 하지 않습니다.
"""

from __future__ import annotations

from typing import Literal

ErrorCategory = Literal["auth", "quota", "network", "malformed", "unknown"]

_USER_MESSAGES: dict[str, str] = {
    "auth": "API 키가 유효하지 않거나 설정되지 않았습니다. API 키를 확인해주세요.",
    "quota": "API 사용 한도를 초과했습니다. 잠시 후 다시 시도해주세요.",
    "network": "AI 서비스에 연결할 수 없습니다. 네트워크 상태를 확인해주세요.",
    "malformed": "AI 응답 형식이 올바르지 않습니다. 다시 시도해주세요.",
    "unknown": "AI 보고서 생성 중 알 수 없는 오류가 발생했습니다.",
}


class LTCReportError(RuntimeError):
    """ltc-report 예외의 기본 클래스입니다."""


class ExtractionError(LTCReportError):
    """단일 파일의 내용을 디코딩할 수 없을 때 발생합니다."""

    def __init__(self, file_name: str, message: str) -> None:
        super().__init__(f"{file_name}: {message}")
        self.file_name = file_name


class ReadAggregationError(LTCReportError):
    """배치 읽기에서 하나 이상의 파일이 실패했을 때 발생합니다."""

    def __init__(self, failures: dict[str, str]) -> None:
        names = ", ".join(failures)
        super().__init__(f"파일을 읽는 중 오류가 발생했습니다: {names}")
        self.failures = failures


class StoreError(LTCReportError):
    """로컬 저장소를 사용할 수 없거나 쓰기가 거부되었을 때 발생합니다."""


class GenerationError(LTCReportError):
    """LLM 호출이 실패했을 때 발생합니다.

    ``category``는 실패 유형(``auth``, ``quota``, ``network``, ``malformed``,
    ``unknown``)이며 :attr:`user_message`가 이를 사용자용 문장으로 바꿉니다.
    """

    def __init__(self, message: str, category: ErrorCategory = "unknown") -> None:
        super().__init__(message)
        self.category: ErrorCategory = category

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES.get(self.category, _USER_MESSAGES["unknown"])


class ReportParseError(GenerationError):
    """응답 텍스트가 비었거나, JSON이 아니거나, 필수 필드를 갖추지 않았을 때 발생합니다."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, category="malformed")
        self.errors: list[str] = errors or []


class ChatError(LTCReportError):
    """후속 질문 처리에 실패했을 때 발생합니다."""


class ChatNotStartedError(ChatError):
    """``start()`` 전에 ``ask()``를 호출했을 때 발생합니다."""
