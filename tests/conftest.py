"""ltc-report 테스트 스위트의 공유 fixture 정의."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest


# ---------------------------------------------------------------------------
# 샘플 데이터
# ---------------------------------------------------------------------------


def sample_report_dict(n_items: int = 2) -> dict:
    """스키마를 만족하는 camelCase 보고서 딕셔너리를 반환합니다."""
    grades = ["우수", "양호", "불량", "해당없음", "자료 누락"]
    return {
        "basicInfo": {
            "name": "홍길동",
            "dob": "1940-03-01",
            "gender": "남",
            "admissionDate": "2024-01-02",
            "dischargeDate": None,
            "evaluationPeriod": "2025-01-01 ~ 2025-12-31",
            "facilityName": "행복주간보호센터",
        },
        "evaluationItems": [
            {
                "metric": f"평가지표 {i + 1}",
                "grade": grades[i % len(grades)],
                "reason": f"이유 {i + 1}",
                "evidence": f"근거 문서 {i + 1}",
            }
            for i in range(n_items)
        ],
        "crossCheckResults": [
            {
                "item": "급여제공계획과 실제 제공 기록의 일치 여부",
                "status": "일치",
                "recommendation": "현행 유지",
            }
        ],
        "aiSummary": "전반적으로 **양호**합니다. **주요 개선점**은 상담 기록입니다.",
    }


# ---------------------------------------------------------------------------
# 팩토리 fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path):
    """LTCConfig 인스턴스를 쉽게 생성하는 팩토리 fixture입니다.

    저장소 경로는 기본적으로 tmp_path 아래를 사용합니다.

    사용법::
        cfg = make_config(summarize={"enabled": True})
    """
    from ltc_report.config import LTCConfig

    def _factory(**overrides) -> LTCConfig:
        overrides.setdefault("paths", {
            "guidelines": str(tmp_path / "guidelines"),
            "evaluation": str(tmp_path / "evaluation"),
            "output": str(tmp_path / "output"),
            "store": str(tmp_path / "store" / "guidelines.db"),
        })
        overrides.setdefault("llm", {"api_key": "test-key"})
        return LTCConfig(**overrides)

    return _factory


@pytest.fixture
def default_config(make_config):
    """기본 설정으로 생성된 LTCConfig를 반환합니다."""
    return make_config()


@pytest.fixture
def make_file():
    """UploadedFile 인스턴스를 쉽게 생성하는 팩토리 fixture입니다."""
    from ltc_report.models import UploadedFile

    def _factory(name: str = "지침.txt", content: str = "평가 기준 내용입니다.") -> UploadedFile:
        return UploadedFile(name=name, content=content)

    return _factory


@pytest.fixture
def report_dict() -> dict:
    return sample_report_dict()


@pytest.fixture
def report_json(report_dict) -> str:
    return json.dumps(report_dict, ensure_ascii=False)


@pytest.fixture
def sample_report(report_dict):
    from ltc_report.models import ReportData

    return ReportData.model_validate(report_dict)


@pytest.fixture
def mock_llm():
    """agenerate/achat가 AsyncMock인 가짜 LLM 백엔드입니다."""
    llm = MagicMock()
    llm.model = "fake-model"
    llm.agenerate = AsyncMock(return_value="")
    llm.achat = AsyncMock(return_value="")
    return llm


@pytest.fixture
def mock_async_client(mocker):
    """``httpx.AsyncClient``를 가짜 클라이언트로 대체하고, 응답을 지정하는 함수를 반환합니다.

    사용법::
        client = mock_async_client(json_body={"candidates": [...]})
        client.post.call_args  # 전송된 요청 확인
    """

    def _install(json_body=None, raise_exc: Exception | None = None):
        mock_resp = MagicMock()
        mock_resp.json.return_value = json_body
        mock_resp.raise_for_status = MagicMock()

        mock_client = AsyncMock()
        if raise_exc is not None:
            mock_client.post.side_effect = raise_exc
        else:
            mock_client.post.return_value = mock_resp
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        mocker.patch("httpx.AsyncClient", return_value=mock_client)
        return mock_client

    return _install


@pytest.fixture
def tmp_text_file(tmp_path: Path) -> Path:
    """임시 텍스트 파일을 생성하여 경로를 반환합니다."""
    f = tmp_path / "sample.txt"
    f.write_text("# 샘플 지침\n\n급여제공계획은 연 1회 이상 수립합니다.\n", encoding="utf-8")
    return f


@pytest.fixture
def tmp_yaml_config(tmp_path: Path) -> Path:
    """최소한의 project.yaml 파일을 생성합니다."""
    f = tmp_path / "project.yaml"
    f.write_text(
        """\
project:
  name: "test-project"
  language: "ko"

paths:
  guidelines: "./documents/guidelines"
  evaluation: "./documents/evaluation"
  output: "./output"
  store: "./.ltc_report/guidelines.db"

llm:
  backend: "gemini"
  model: "gemini-2.5-flash"
  api_key: "test-key"
""",
        encoding="utf-8",
    )
    return f


@pytest.fixture
def make_report_dict():
    """평가 항목 수를 지정해 보고서 딕셔너리를 만드는 팩토리 fixture입니다."""
    return sample_report_dict
