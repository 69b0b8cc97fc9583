"""생성된 보고서에 대한 후속 질문 대화 세션."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from .errors import ChatNotStartedError, GenerationError
from .models import ChatMessage, ChatReply
from .prompts import build_chat_system_instruction
from .utils import get_logger

if TYPE_CHECKING:
    from .config import ChatConfig
    from .llm.base import BaseLLM
    from .models import ReportData

logger = get_logger("chat")

APOLOGY = "질문에 답변하는 중 오류가 발생했습니다. 잠시 후 다시 질문해주세요."


def serialize_report_for_chat(report: ReportData, max_chars: int) -> str:
    """보고서를 JSON으로 직렬화합니다. *max_chars*를 넘으면 ``evidence``를 빼서 줄입니다."""
    full = report.to_json(indent=2)
    if len(full) <= max_chars:
        return full

    reduced = report.to_wire()
    for item in reduced["evaluationItems"]:
        item.pop("evidence", None)
    logger.info("Report JSON reduced for chat context (%d chars > %d)", len(full), max_chars)
    return json.dumps(reduced, ensure_ascii=False, indent=2)


class ChatSession:
    """보고서 하나에 묶인 대화 세션입니다.

    세션은 명시적인 객체이므로 여러 세션이 동시에 존재할 수 있습니다.
    ``ask()``는 백엔드 오류를 예외로 올리지 않고 ``ok=False``인 :class:`ChatReply`로
    돌려주며, 실패한 턴은 기록에 남기지 않습니다.
    """

    def __init__(self, llm: BaseLLM, config: ChatConfig) -> None:
        self.llm = llm
        self.config = config
        self.report: ReportData | None = None
        self.system: str | None = None
        self.history: list[ChatMessage] = []

    @property
    def started(self) -> bool:
        return self.system is not None

    def start(self, report: ReportData) -> None:
        """*report*로 대화 맥락을 초기화합니다. 이전 기록은 버립니다."""
        self.report = report
        self.system = build_chat_system_instruction(
            serialize_report_for_chat(report, self.config.max_report_chars)
        )
        self.history = []
        logger.debug("Chat session started (system=%d chars)", len(self.system))

    async def ask(self, question: str) -> ChatReply:
        """질문 한 번을 전송하고 답변을 반환합니다.

        예외
        ------
        ChatNotStartedError
            ``start()``를 호출하지 않은 경우.
        """
        if not self.started:
            raise ChatNotStartedError("대화가 시작되지 않았습니다. 먼저 start()를 호출하세요.")

        turn = ChatMessage(role="user", text=question)
        try:
            answer = await self.llm.achat(
                [*self.history, turn],
                system=self.system,
                temperature=self.config.temperature,
            )
        except GenerationError as exc:
            logger.warning("Chat turn failed [%s]: %s", exc.category, exc)
            return ChatReply(text=APOLOGY, ok=False, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error during chat turn")
            return ChatReply(text=APOLOGY, ok=False, error=str(exc))

        self.history.extend([turn, ChatMessage(role="model", text=answer)])
        return ChatReply(text=answer)


def start_chat(llm: BaseLLM, report: ReportData, config: ChatConfig) -> ChatSession:
    """시작된 :class:`ChatSession`을 만들어 반환합니다."""
    session = ChatSession(llm, config)
    session.start(report)
    return session
