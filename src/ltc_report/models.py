"""여러 모듈에서 공유하는 핵심 데이터 모델.

업로드 파일과 대화 메시지는 단순 dataclass이고, 보고서는 LLM 응답의 검증 경계가
되도록 pydantic 모델로 정의합니다. 보고서 필드의 JSON 이름은 camelCase입니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class UploadedFile:
    """추출이 끝난 업로드 파일입니다."""

    name: str
    """컬렉션 안에서 고유한 파일명입니다."""

    content: str
    """추출된 평문 텍스트입니다."""


@dataclass
class ChatMessage:
    """대화 세션의 단일 메시지."""
    role: Literal["user", "model"]
    text: str


@dataclass
class ChatReply:
    """질문 한 번에 대한 결과. 실패해도 ``text``에는 사용자에게 보여줄 문장이 들어갑니다."""
    text: str
    ok: bool = True
    error: str | None = None


class Grade(str, Enum):
    """평가 등급. 닫힌 5개 값 집합입니다."""

    EXCELLENT = "우수"
    GOOD = "양호"
    POOR = "불량"
    NOT_APPLICABLE = "해당없음"
    MISSING = "자료 누락"

    @property
    def rank(self) -> int | None:
        """표시/정렬용 명목 순위. 해당없음과 자료 누락은 순위가 없습니다."""
        return _GRADE_RANKS.get(self)


_GRADE_RANKS: dict[Grade, int] = {
    Grade.EXCELLENT: 3,
    Grade.GOOD: 2,
    Grade.POOR: 1,
}


class _ReportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class BasicInfo(_ReportModel):
    """수급자 기본 정보. 모든 값은 모델이 추출한 자유 텍스트입니다."""

    name: str
    dob: str
    gender: str
    admission_date: str = Field(alias="admissionDate")
    discharge_date: str | None = Field(None, alias="dischargeDate")
    evaluation_period: str = Field(alias="evaluationPeriod")
    facility_name: str = Field(alias="facilityName")


class EvaluationItem(_ReportModel):
    """평가지표 하나에 대한 등급과 근거."""

    metric: str
    grade: Grade
    reason: str
    evidence: str


class CrossCheckResult(_ReportModel):
    """교차 점검 결과."""

    item: str
    status: str
    recommendation: str


class ReportData(_ReportModel):
    """한 번의 분석 실행이 만든 구조화된 보고서입니다.

    네 개의 최상위 필드가 모두 있어야 유효합니다. 생성 후에는 변경할 수 없으며
    새 분석 실행 시 통째로 교체됩니다.
    """

    basic_info: BasicInfo = Field(alias="basicInfo")
    evaluation_items: list[EvaluationItem] = Field(alias="evaluationItems")
    cross_check_results: list[CrossCheckResult] = Field(alias="crossCheckResults")
    ai_summary: str = Field(alias="aiSummary")

    def to_wire(self) -> dict:
        """camelCase JSON 형태의 딕셔너리를 반환합니다."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
