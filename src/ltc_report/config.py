"""Pydantic v2 + YAML를 사용한 ltc-report 설정 시스템입니다.

YAML 파일에서 프로젝트 설정을 로드하고 검증합니다.
경로, 파일 추출, LLM 백엔드, 사전 요약, 대화, 보고서 출력 설정에 대한
타입 안전 접근을 제공합니다.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from .chunker import MAX_CHUNK_SIZE


# ---------------------------------------------------------------------------
# 하위 모델
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """최상위 프로젝트 메타데이터입니다."""

    name: str = Field("my-evaluation", min_length=1)
    version: str = "1.0.0"
    language: str = "ko"


class PathsConfig(BaseModel):
    """입출력 경로입니다."""

    guidelines: Path = Path("./documents/guidelines")
    evaluation: Path = Path("./documents/evaluation")
    output: Path = Path("./output")
    store: Path = Path("./.ltc_report/guidelines.db")

    def ensure_dirs(self) -> None:
        """설정된 디렉토리가 없으면 생성합니다."""
        self.guidelines.mkdir(parents=True, exist_ok=True)
        self.evaluation.mkdir(parents=True, exist_ok=True)
        self.output.mkdir(parents=True, exist_ok=True)
        self.store.parent.mkdir(parents=True, exist_ok=True)


class ExtractionConfig(BaseModel):
    """파일 추출 설정입니다. 목록에 없는 확장자는 자리표시 문구로 처리됩니다."""

    formats: list[str] = Field(default_factory=lambda: ["pdf", "txt", "docx", "xlsx"])


class LLMConfig(BaseModel):
    """보고서 생성에 사용할 LLM 설정입니다."""

    backend: Literal["gemini", "openai"] = "gemini"
    model: str = Field("gemini-2.5-flash", min_length=1)
    api_base: str = Field("https://generativelanguage.googleapis.com", min_length=1)
    api_key: str | None = None
    api_key_env: str = "GEMINI_API_KEY"
    temperature: float = 0.2
    timeout: int = 300

    @model_validator(mode="after")
    def _check_temperature(self) -> "LLMConfig":
        """temperature 범위를 검증합니다."""
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(f"temperature({self.temperature})는 0.0~2.0 범위여야 합니다")
        return self

    def resolve_api_key(self) -> str | None:
        """설정값을 우선하고, 없으면 ``api_key_env`` 환경변수에서 읽습니다."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.environ.get(self.api_key_env) or None
        return None


_DEFAULT_SUMMARY_PROMPT = (
    "당신은 장기요양기관 평가 자료를 정리하는 보조자입니다. "
    "아래는 평가 자료 '{file_name}'의 {index}/{total}번째 부분입니다. "
    "장기요양기관 평가 지표(급여제공계획, 급여제공기록, 상담, 욕구사정, 프로그램 운영 등)와 "
    "관련된 핵심 사실만 추출하여 간결한 목록으로 정리하세요. "
    "날짜, 이름, 횟수, 서명 여부 같은 구체적인 값은 그대로 유지하고, "
    "문서에 없는 내용은 추측하지 마세요.\n\n"
    "---\n{chunk}\n---"
)


class SummarizeConfig(BaseModel):
    """대용량 평가 자료의 청크별 사전 요약 설정입니다.

    사전 요약은 손실이 있는 과정입니다. 추출되지 않은 정보는 본 분석에서 사라집니다.
    """

    enabled: bool = False
    chunk_size: int = MAX_CHUNK_SIZE
    max_concurrency: int = 4
    prompt: str = _DEFAULT_SUMMARY_PROMPT

    @model_validator(mode="after")
    def _check_summarize_params(self) -> "SummarizeConfig":
        """청크 크기와 동시성 값을 검증합니다."""
        if self.chunk_size < 1000:
            raise ValueError(f"chunk_size({self.chunk_size})는 1000 이상이어야 합니다")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency({self.max_concurrency})는 1 이상이어야 합니다")
        if "{chunk}" not in self.prompt:
            raise ValueError("prompt에는 {chunk} 자리표시자가 있어야 합니다")
        return self


class ChatConfig(BaseModel):
    """보고서 후속 질문 대화 설정입니다."""

    model: str | None = None
    temperature: float | None = None
    max_report_chars: int = 60000
    greeting: str = "안녕하세요! 생성된 보고서에 대해 궁금한 점을 질문해주세요."


class ReportConfig(BaseModel):
    """보고서 출력 설정입니다."""

    output_file: str = "report.json"
    markdown_file: str = "report.md"


# ---------------------------------------------------------------------------
# 루트 설정
# ---------------------------------------------------------------------------


class LTCConfig(BaseModel):
    """ltc-report 프로젝트의 루트 설정 객체입니다.

    전체 ``project.yaml`` 스키마를 반영합니다. :func:`load_config`를 통해
    또는 딕셔너리/YAML에서 직접 인스턴스화됩니다.
    """

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    summarize: SummarizeConfig = Field(default_factory=SummarizeConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @model_validator(mode="before")
    @classmethod
    def _strip_none_sections(cls, values: dict[str, Any]) -> dict[str, Any]:
        """값이 ``None``인 최상위 키를 제거하여 기본값이 적용되도록 합니다."""
        if isinstance(values, dict):
            return {k: v for k, v in values.items() if v is not None}
        return values


# ---------------------------------------------------------------------------
# 공개 API
# ---------------------------------------------------------------------------

_TEMPLATE_NAME = "templates/project.yaml"


def load_config(path: str | Path) -> LTCConfig:
    """프로젝트 YAML 설정 파일을 로드하고 검증합니다.

    ``paths`` 아래의 상대 경로는 설정 파일이 위치한 디렉토리를 기준으로
    절대 경로로 변환합니다.

    매개변수
    ----------
    path:
        ``project.yaml`` 파일의 파일시스템 경로입니다.

    반환값
    -------
    LTCConfig
        완전히 검증된 설정 객체입니다.

    예외
    ------
    FileNotFoundError
        *path*가 존재하지 않으면 발생합니다.
    yaml.YAMLError
        파일이 유효한 YAML이 아니면 발생합니다.
    pydantic.ValidationError
        YAML 내용이 예상 스키마와 일치하지 않으면 발생합니다.
    """
    filepath = Path(path).resolve()
    if not filepath.is_file():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    raw = yaml.safe_load(filepath.read_text(encoding="utf-8")) or {}
    config = LTCConfig.model_validate(raw)

    config_dir = filepath.parent
    for field_name in ("guidelines", "evaluation", "output", "store"):
        value: Path = getattr(config.paths, field_name)
        if not value.is_absolute():
            setattr(config.paths, field_name, (config_dir / value).resolve())

    return config


def create_default_config() -> str:
    """기본 YAML 프로젝트 템플릿을 문자열로 반환합니다.

    패키지와 함께 제공되는 ``templates/project.yaml``을 읽습니다.
    """
    try:
        ref = importlib.resources.files("ltc_report").joinpath(_TEMPLATE_NAME)
        return ref.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError) as e:
        logging.getLogger("ltc_report.config").debug(
            "importlib.resources에서 템플릿 로드 실패: %s", e
        )

    # 최후의 수단: 최소한의 내장 기본값 반환
    return yaml.safe_dump(
        LTCConfig().model_dump(mode="json"), allow_unicode=True, sort_keys=False
    )
