"""일반 텍스트 파서. .txt 파일을 디코딩만 하여 그대로 반환합니다."""

from __future__ import annotations

from typing import ClassVar

from ..utils import get_logger
from .base import BaseParser

logger = get_logger("parsers.text")

_CANDIDATE_ENCODINGS = ("utf-8-sig", "cp949")


def _detect_encoding(content: bytes) -> str:
    """콘텐츠에서 인코딩을 감지합니다. UTF-8(BOM 제거), CP949 순으로 시도하고 폴백은 latin-1입니다."""
    for encoding in _CANDIDATE_ENCODINGS:
        try:
            content.decode(encoding)
            return encoding
        except UnicodeDecodeError:
            continue
    return "latin-1"


class TextParser(BaseParser):
    """일반 텍스트 파일을 파싱합니다."""

    extensions: ClassVar[list[str]] = [".txt"]
    media_types: ClassVar[list[str]] = ["text/plain"]

    def parse(self, data: bytes, name: str) -> str:
        encoding = _detect_encoding(data)
        if encoding != "utf-8-sig":
            logger.debug("Decoded %s as %s", name, encoding)
        return data.decode(encoding)
