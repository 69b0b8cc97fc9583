"""LLM을 사용한 장기요양 평가 보고서 생성.

선택적인 청크별 사전 요약, 프롬프트 구성, 스키마 제한 호출, 응답 검증을 차례로
수행합니다. 결과는 전부 아니면 전무이며 자동 재시도는 없습니다.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import TYPE_CHECKING, Callable

from pydantic import ValidationError

from .chunker import chunk_text
from .errors import GenerationError, ReportParseError
from .models import ReportData, UploadedFile
from .prompts import (
    REPORT_SCHEMA,
    build_report_prompt,
    build_summary_prompt,
    build_system_instruction,
)
from .utils import get_logger, run_bounded

if TYPE_CHECKING:
    from .config import LTCConfig
    from .llm.base import BaseLLM

logger = get_logger("generator")

ProgressCallback = Callable[[int, str], None]

_FENCE_START = re.compile(r"^```(?:json)?\s*")
_FENCE_END = re.compile(r"\s*```$")

# 사전 요약 단계가 차지하는 진행률 구간
_SUMMARY_START = 10
_SUMMARY_END = 50


def parse_report(text: str) -> ReportData:
    """LLM 응답 텍스트를 검증하여 :class:`ReportData`로 변환합니다.

    코드 펜스를 제거한 뒤 JSON으로 파싱하고 필드 단위로 검증합니다.

    예외
    ------
    ReportParseError
        텍스트가 비었거나, JSON이 아니거나, 필수 필드가 없거나 잘못된 경우.
        ``errors``에는 ``"evaluationItems.0.grade: ..."`` 형태의 위치가 담깁니다.
    """
    text = _FENCE_END.sub("", _FENCE_START.sub("", (text or "").strip())).strip()
    if not text:
        raise ReportParseError("AI 응답이 비어 있습니다.")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportParseError(f"AI 응답이 올바른 JSON이 아닙니다: {exc}") from exc

    if not isinstance(data, dict):
        raise ReportParseError(f"AI 응답의 최상위 값이 객체가 아닙니다: {type(data).__name__}")

    try:
        return ReportData.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        raise ReportParseError(
            f"AI 응답이 보고서 형식과 맞지 않습니다 ({len(errors)}개 오류)", errors=errors
        ) from exc


class ReportGenerator:
    """지침 파일과 평가 자료로 보고서를 생성합니다.

    Args:
        config: 전체 LTCConfig (llm, summarize 섹션 사용)
        llm: 사용할 LLM 백엔드
    """

    def __init__(self, config: LTCConfig, llm: BaseLLM) -> None:
        self.config = config
        self.llm = llm
        self.summarize_config = config.summarize
        self.temperature = config.llm.temperature

    # ------------------------------------------------------------------
    # 사전 요약
    # ------------------------------------------------------------------

    async def summarize_files(
        self,
        files: list[UploadedFile],
        on_progress: ProgressCallback | None = None,
    ) -> list[UploadedFile]:
        """각 파일을 청크로 나눠 청크마다 핵심 내용을 추출하고, 요약본으로 바꾼 목록을 반환합니다.

        청크 요약은 동시에 요청되지만 결과는 원래 파일/청크 순서로 이어붙입니다.
        추출되지 않은 정보는 본 분석에서 사라집니다.
        """
        cfg = self.summarize_config
        plans = [(f, chunk_text(f.content, cfg.chunk_size)) for f in files]
        total = sum(len(chunks) for _, chunks in plans)
        if total == 0:
            return list(files)

        logger.info("Summarizing %d chunks from %d files...", total, len(files))

        done = 0

        def _advance() -> None:
            nonlocal done
            done += 1
            if on_progress is not None:
                pct = _SUMMARY_START + (_SUMMARY_END - _SUMMARY_START) * done // total
                on_progress(pct, f"평가 자료 요약 중 ({done}/{total})")

        semaphore = asyncio.Semaphore(cfg.max_concurrency)
        tasks = [
            asyncio.ensure_future(run_bounded(
                semaphore,
                self.llm.agenerate(
                    build_summary_prompt(cfg.prompt, f.name, chunk, i, len(chunks)),
                    temperature=self.temperature,
                ),
                _advance,
            ))
            for f, chunks in plans
            for i, chunk in enumerate(chunks, 1)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            # 하나라도 실패하면 남은 요약 요청을 취소하고 끝날 때까지 기다립니다.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        summarized: list[UploadedFile] = []
        pos = 0
        for f, chunks in plans:
            parts = results[pos : pos + len(chunks)]
            pos += len(chunks)
            summarized.append(UploadedFile(name=f.name, content="\n\n".join(parts)))
            logger.debug("Summarized %s: %d → %d chars", f.name, len(f.content),
                         len(summarized[-1].content))
        return summarized

    # ------------------------------------------------------------------
    # 보고서 생성
    # ------------------------------------------------------------------

    async def generate(
        self,
        guidelines: list[UploadedFile],
        evaluations: list[UploadedFile],
        on_progress: ProgressCallback | None = None,
    ) -> ReportData:
        """보고서를 생성합니다.

        Args:
            guidelines: 평가 기준 지침 파일
            evaluations: 분석 대상 평가 자료
            on_progress: ``(퍼센트, 메시지)``를 받는 선택적 콜백. 퍼센트는 줄어들지 않습니다.

        Returns:
            검증된 보고서

        Raises:
            GenerationError: 호출 또는 검증 실패. 검증 실패는 ReportParseError입니다.
        """

        def _report(pct: int, message: str) -> None:
            if on_progress is not None:
                on_progress(pct, message)

        try:
            _report(0, "준비 중")
            if self.summarize_config.enabled:
                evaluations = await self.summarize_files(evaluations, on_progress)

            system = build_system_instruction(guidelines)
            prompt = build_report_prompt(guidelines, evaluations)
            logger.info(
                "Requesting report  guidelines=%d  evaluations=%d  prompt_chars=%d",
                len(guidelines), len(evaluations), len(prompt),
            )

            _report(60, "AI 분석 요청 중")
            text = await self.llm.agenerate(
                prompt, system=system, schema=REPORT_SCHEMA, temperature=self.temperature,
            )

            _report(90, "응답 해석 중")
            report = parse_report(text)
        except ReportParseError as exc:
            logger.error("Report parse failed: %s %s", exc, exc.errors)
            raise
        except GenerationError as exc:
            logger.error("Report generation failed [%s]: %s", exc.category, exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected error during report generation")
            raise GenerationError(f"AI 보고서 생성에 실패했습니다: {exc}") from exc

        _report(100, "완료")
        logger.info("Report generated: %d evaluation items", len(report.evaluation_items))
        return report
