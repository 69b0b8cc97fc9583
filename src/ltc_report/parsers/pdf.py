"""PyMuPDF (fitz)를 사용한 PDF 파서."""

from __future__ import annotations

from typing import ClassVar

import fitz  # PyMuPDF

from ..errors import ExtractionError
from ..utils import get_logger
from .base import BaseParser

logger = get_logger("parsers.pdf")


class PDFParser(BaseParser):
    """PyMuPDF로 PDF 문서의 텍스트를 페이지 순서대로 추출합니다."""

    extensions: ClassVar[list[str]] = [".pdf"]
    media_types: ClassVar[list[str]] = ["application/pdf"]

    def parse(self, data: bytes, name: str) -> str:
        """PDF 바이트에서 텍스트를 추출합니다.

        페이지 안의 단어는 공백 하나로 잇고, 페이지 사이는 빈 줄로 구분합니다.

        예외
        ------
        ExtractionError
            PyMuPDF가 파일을 열 수 없으면 발생합니다.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(
                name,
                "PDF 파일을 열 수 없습니다. 파일이 손상되었거나, 암호화되었거나, "
                "지원하지 않는 형식일 수 있습니다.",
            ) from exc

        pages_text: list[str] = []
        try:
            for page in doc:
                words = page.get_text("words")
                pages_text.append(" ".join(w[4] for w in words))
            logger.debug("Extracted %d pages from %s", len(doc), name)
        finally:
            doc.close()

        return "\n\n".join(pages_text)
