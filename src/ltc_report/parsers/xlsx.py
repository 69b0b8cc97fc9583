"""openpyxl을 사용한 XLSX (Excel) 파서."""

from __future__ import annotations

import io
from typing import ClassVar

import openpyxl

from ..errors import ExtractionError
from ..utils import get_logger
from .base import BaseParser

logger = get_logger("parsers.xlsx")


def _cell(val: object) -> str:
    if val is None:
        return ""
    return str(val)


class XLSXParser(BaseParser):
    """XLSX 통합문서를 시트 순서대로 탭 구분 텍스트로 변환합니다."""

    extensions: ClassVar[list[str]] = [".xlsx"]
    media_types: ClassVar[list[str]] = [
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ]

    def parse(self, data: bytes, name: str) -> str:
        """시트마다 ``--- Sheet: <이름> ---`` 줄, 행별 탭 구분 값, 빈 줄을 내보냅니다.

        모든 셀이 비어있는 행은 건너뛰고, 행 끝의 빈 셀은 내보내지 않습니다.

        예외
        ------
        ExtractionError
            통합문서를 열 수 없으면 발생합니다.
        """
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as exc:
            raise ExtractionError(name, "XLSX 파일을 열 수 없습니다.") from exc

        parts: list[str] = []
        try:
            for ws in wb.worksheets:
                # 저장된 <dimension> 값은 신뢰하지 않습니다.
                ws.reset_dimensions()
                parts.append(f"--- Sheet: {ws.title} ---\n")
                for row in ws.iter_rows(values_only=True):
                    values = list(row)
                    while values and values[-1] is None:
                        values.pop()
                    if not values:
                        continue
                    parts.append("\t".join(_cell(v) for v in values) + "\n")
                parts.append("\n")
            logger.debug("Extracted %d sheets from %s", len(wb.worksheets), name)
        finally:
            wb.close()

        return "".join(parts)
