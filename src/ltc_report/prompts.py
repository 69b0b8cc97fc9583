"""보고서 생성, 사전 요약, 후속 대화를 위한 프롬프트 구성.

모든 함수는 순수 함수이며 내용을 잘라내지 않습니다. 입력이 모델 한도를 넘으면
LLM 호출 자체가 실패합니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import UploadedFile

GRADE_VALUES = ["우수", "양호", "불량", "해당없음", "자료 누락"]

_FILE_SEPARATOR = "\n\n---\n\n"

REPORT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "basicInfo": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "dob": {"type": "string"},
                "gender": {"type": "string"},
                "admissionDate": {"type": "string"},
                "dischargeDate": {"type": ["string", "null"]},
                "evaluationPeriod": {"type": "string"},
                "facilityName": {"type": "string"},
            },
            "required": [
                "name", "dob", "gender", "admissionDate",
                "evaluationPeriod", "facilityName",
            ],
        },
        "evaluationItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "metric": {"type": "string"},
                    "grade": {"type": "string", "enum": GRADE_VALUES},
                    "reason": {"type": "string"},
                    "evidence": {"type": "string"},
                },
                "required": ["metric", "grade", "reason", "evidence"],
            },
        },
        "crossCheckResults": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "item": {"type": "string"},
                    "status": {"type": "string"},
                    "recommendation": {"type": "string"},
                },
                "required": ["item", "status", "recommendation"],
            },
        },
        "aiSummary": {"type": "string"},
    },
    "required": ["basicInfo", "evaluationItems", "crossCheckResults", "aiSummary"],
}
"""보고서 응답 스키마 (JSON Schema). 백엔드가 자기 방언으로 변환해 전달합니다."""

_OUTPUT_FORMAT = """\
{
  "basicInfo": {
    "name": "수급자 성명",
    "dob": "생년월일 (YYYY-MM-DD)",
    "gender": "성별 (남/여)",
    "admissionDate": "입소일 (YYYY-MM-DD)",
    "dischargeDate": "퇴소일 (YYYY-MM-DD 또는 null)",
    "evaluationPeriod": "평가 기간 (YYYY-MM-DD ~ YYYY-MM-DD)",
    "facilityName": "시설명"
  },
  "evaluationItems": [
    {
      "metric": "평가지표명 (예: 급여제공계획의 수립 및 안내)",
      "grade": "평가 등급 ('우수', '양호', '불량', '해당없음', '자료 누락')",
      "reason": "등급 산정의 구체적인 이유",
      "evidence": "판단의 근거가 된 문서와 내용 요약"
    }
  ],
  "crossCheckResults": [
    {
      "item": "교차 점검 항목 (예: 급여제공계획과 실제 제공 기록의 일치 여부)",
      "status": "점검 결과 (예: '일치', '불일치', '확인 필요')",
      "recommendation": "개선 권장 사항"
    }
  ],
  "aiSummary": "종합적인 AI 분석 요약. 주요 사항은 **굵게** 강조합니다."
}"""

_CAUTIONS = """\
- 모든 필드는 반드시 채워져야 합니다. 정보가 없는 경우 "정보 없음" 또는 "해당 없음"으로 표기해주세요.
- 평가는 제공된 평가 기준 지침을 기준으로 엄격하게 진행해주세요.
- 'evaluationItems' 배열에는 지침의 모든 평가지표에 대한 결과를 포함해야 합니다.
- 지침에 명시된 항목이 평가 자료에서 발견되지 않으면 'grade'를 '자료 누락'으로 표기하고 그 사실을 'reason'에 명시해주세요.
- 'aiSummary'는 전문가적인 견해를 담아 구체적이고 실행 가능한 제안을 포함해야 합니다.
- 응답은 반드시 JSON 객체만 포함해야 하며, 다른 텍스트나 설명은 추가하지 마세요."""


def _dump_files(files: list[UploadedFile], label: str) -> str:
    return _FILE_SEPARATOR.join(f"### {label}: {f.name}\n\n{f.content}" for f in files)


def build_system_instruction(guidelines: list[UploadedFile]) -> str:
    """지침 파일을 유일한 규칙으로 삼는 평가 전문가 역할 지시문을 만듭니다."""
    return (
        "당신은 대한민국 장기요양기관 평가 전문가입니다. 당신의 임무는 제공된 "
        "'평가 기준 지침'을 유일한 규칙으로 삼아 '분석 대상 평가 자료'를 분석하는 것입니다. "
        "제공된 문서만 사용하고 사실을 지어내지 마십시오. 당신의 기존 지식은 사용하지 마십시오. "
        "분석 결과는 반드시 지정된 JSON 형식으로만 출력해야 합니다. "
        "만약 지침에 명시된 항목이 평가 자료에서 발견되지 않으면, 'grade'를 '자료 누락'으로 "
        "표기하고 그 사실을 'reason'에 명시해야 합니다.\n\n"
        "---\n[평가 기준 지침]\n"
        f"{_dump_files(guidelines, '지침 파일명')}\n---\n"
    )


def build_report_prompt(
    guidelines: list[UploadedFile],
    evaluations: list[UploadedFile],
) -> str:
    """지침과 평가 자료 전체, 출력 스키마 설명을 담은 단일 요청 본문을 만듭니다."""
    return "\n".join([
        "# 장기요양 평가 AI 분석 요청",
        "",
        "## 1. 평가 기준 지침 파일 내용",
        _dump_files(guidelines, "지침 파일명"),
        "",
        "## 2. 분석 대상 평가 자료 내용",
        _dump_files(evaluations, "분석 자료명"),
        "",
        "## 3. 분석 요청 사항",
        "위의 '평가 기준 지침'과 '분석 대상 평가 자료'를 바탕으로, 다음의 JSON 형식에 맞춰 "
        "장기요양기관 평가 보고서를 생성해주세요.",
        "",
        "**JSON 출력 형식:**",
        _OUTPUT_FORMAT,
        "",
        "**주의사항:**",
        _CAUTIONS,
    ])


def build_summary_prompt(
    template: str,
    file_name: str,
    chunk: str,
    index: int,
    total: int,
) -> str:
    """사전 요약 단계의 청크별 핵심 내용 추출 프롬프트를 만듭니다.

    *template*은 ``{file_name}``, ``{index}``, ``{total}``, ``{chunk}`` 자리표시자를
    사용할 수 있습니다. *index*는 1부터 셉니다.
    """
    return template.format(file_name=file_name, chunk=chunk, index=index, total=total)


def build_chat_system_instruction(report_json: str) -> str:
    """보고서 JSON만을 근거로 답하도록 하는 대화 시스템 지시문을 만듭니다."""
    return (
        "당신은 대한민국 주간보호 장기요양기관 평가 보고서를 분석하는 전문 AI 어시스턴트입니다.\n"
        "제공된 보고서에 대한 질문에 답하는 것이 당신의 역할입니다.\n"
        "답변은 반드시 아래 보고서 내용에만 근거해야 합니다. 정보를 지어내거나 외부 지식을 "
        "참조하지 마십시오.\n"
        "보고서로 답할 수 없는 질문이면, 제공된 문서에 해당 정보가 없다고 답하십시오.\n"
        "간결하고 명확하며 전문적으로 답하십시오.\n"
        "특정 평가지표에 대한 질문에는 보고서의 지표명, 등급, 이유를 인용하십시오.\n\n"
        "보고서 데이터(JSON):\n"
        f"```json\n{report_json}\n```\n"
    )
