"""DOCX (Word) 문서 파서. 서식은 무시하고 원문 텍스트만 추출합니다."""

from __future__ import annotations

import io
from typing import ClassVar

from docx import Document

from ..errors import ExtractionError
from ..utils import get_logger
from .base import BaseParser

logger = get_logger("parsers.docx")


class DOCXParser(BaseParser):
    """DOCX 문서를 파싱합니다."""

    extensions: ClassVar[list[str]] = [".docx"]
    media_types: ClassVar[list[str]] = [
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    def parse(self, data: bytes, name: str) -> str:
        """DOCX 바이트에서 문단과 표의 텍스트를 추출합니다.

        비어있지 않은 문단을 먼저, 그 다음 표의 각 행(셀은 탭으로 구분)을 내보내며
        블록 사이는 빈 줄로 구분합니다.

        예외
        ------
        ExtractionError
            DOCX 컨테이너를 열 수 없으면 발생합니다.
        """
        try:
            doc = Document(io.BytesIO(data))
        except Exception as exc:
            raise ExtractionError(name, "DOCX 파일을 열 수 없습니다.") from exc

        blocks = [para.text for para in doc.paragraphs if para.text.strip()]

        for table in doc.tables:
            rows = ["\t".join(cell.text.strip() for cell in row.cells) for row in table.rows]
            if rows:
                blocks.append("\n".join(rows))

        logger.debug("Extracted %d blocks from %s", len(blocks), name)
        return "\n\n".join(blocks)
