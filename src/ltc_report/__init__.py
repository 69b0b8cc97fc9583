"""ltc-report: 장기요양기관 평가 자료를 지침에 따라 분석하는 AI 보고서 생성기."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    # 핵심
    "Pipeline",
    "LTCConfig",
    # 데이터 모델
    "UploadedFile",
    "ReportData",
    "ChatMessage",
    "Grade",
    # 구성 요소
    "ReportGenerator",
    "ChatSession",
    "GuidelineStore",
    "chunk_text",
]


def __getattr__(name: str):
    """지연 임포트. 실제로 사용할 때만 무거운 모듈을 로드합니다."""
    _imports: dict[str, tuple[str, str]] = {
        "Pipeline": (".pipeline", "Pipeline"),
        "LTCConfig": (".config", "LTCConfig"),
        "UploadedFile": (".models", "UploadedFile"),
        "ReportData": (".models", "ReportData"),
        "ChatMessage": (".models", "ChatMessage"),
        "Grade": (".models", "Grade"),
        "ReportGenerator": (".generator", "ReportGenerator"),
        "ChatSession": (".chat", "ChatSession"),
        "GuidelineStore": (".store", "GuidelineStore"),
        "chunk_text": (".chunker", "chunk_text"),
    }

    if name in _imports:
        module_path, attr = _imports[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        globals()[name] = val  # 캐싱하여 다음 접근 시 __getattr__ 재호출 방지
        return val

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
