"""LLM 백엔드 추상화 계층.

Gemini REST API와 OpenAI 호환 API를 통해 보고서와 대화 답변을 생성하기 위한
통일된 인터페이스를 제공합니다.
"""

from __future__ import annotations

from ..config import LLMConfig
from .base import BaseLLM
from .gemini import GeminiLLM
from .openai_compat import OpenAICompatLLM

__all__ = [
    "BaseLLM",
    "GeminiLLM",
    "OpenAICompatLLM",
    "create_llm",
]


def create_llm(config: LLMConfig) -> BaseLLM:
    """*config*에서 적절한 LLM 백엔드를 인스턴스화합니다.

    예외
    ------
    ValueError
        ``config.backend``가 인식되지 않는 경우.
    """
    if config.backend == "gemini":
        return GeminiLLM(config)
    elif config.backend == "openai":
        return OpenAICompatLLM(config)
    else:
        raise ValueError(
            f"Unknown LLM backend: {config.backend!r}. "
            f"Supported backends: 'gemini', 'openai'."
        )
