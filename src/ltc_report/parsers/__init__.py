"""다양한 파일 형식의 텍스트 추출기입니다."""

from .base import BaseParser, ParserRegistry, unsupported_placeholder
from .docx import DOCXParser
from .pdf import PDFParser
from .text import TextParser
from .xlsx import XLSXParser

__all__ = [
    "BaseParser",
    "ParserRegistry",
    "PDFParser",
    "TextParser",
    "DOCXParser",
    "XLSXParser",
    "registry",
    "unsupported_placeholder",
]

registry = ParserRegistry()
registry.register(PDFParser)
registry.register(TextParser)
registry.register(DOCXParser)
registry.register(XLSXParser)
