"""파서 기본 ABC와 미디어 타입/확장자 기반 ParserRegistry 정의."""

from __future__ import annotations

import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn

from ..errors import ExtractionError, ReadAggregationError
from ..models import UploadedFile
from ..utils import get_logger

logger = get_logger("parsers.base")


def unsupported_placeholder(name: str) -> str:
    """추출하지 않는 형식에 대해 반환하는 고정 문구입니다."""
    return (
        f"[파일 형식 분석 불가: {name}] "
        "이 파일의 내용은 분석할 수 없지만, 제출 사실은 AI에 의해 인지됩니다."
    )


def _normalize_formats(formats: list[str] | None) -> set[str] | None:
    if formats is None:
        return None
    return {f.lower() if f.startswith(".") else f".{f.lower()}" for f in formats}


class BaseParser(ABC):
    """모든 문서 파서의 추상 기본 클래스입니다."""

    extensions: ClassVar[list[str]] = []
    """이 파서가 처리하는 파일 확장자입니다 (예: ['.pdf'])."""

    media_types: ClassVar[list[str]] = []
    """이 파서가 처리하는 선언 미디어 타입입니다."""

    @abstractmethod
    def parse(self, data: bytes, name: str) -> str:
        """*data* 바이트를 평문 텍스트로 변환합니다. *name*은 로그/오류용입니다."""
        ...

    def can_parse(self, name: str) -> bool:
        """이 파서가 주어진 파일 확장자를 지원하면 True를 반환합니다."""
        return Path(name).suffix.lower() in self.extensions

    def accepts_media_type(self, media_type: str | None) -> bool:
        if not media_type:
            return False
        return media_type.split(";")[0].strip().lower() in self.media_types


class ParserRegistry:
    """선언된 미디어 타입 또는 파일 확장자로 파서를 선택합니다.

    사용 예::

        registry = ParserRegistry()

        @registry.register
        class MyParser(BaseParser):
            extensions = ['.xyz']
            def parse(self, data, name): ...

        text = registry.extract(b"...", "file.xyz")
        files = registry.read_files([Path('a.pdf'), Path('b.xlsx')])
    """

    def __init__(self) -> None:
        self._parsers: list[BaseParser] = []

    # ------------------------------------------------------------------
    # 등록
    # ------------------------------------------------------------------

    def register(self, parser_cls: type[BaseParser]) -> type[BaseParser]:
        """파서 클래스를 등록합니다 (데코레이터로 사용 가능).

        클래스를 인스턴스화하고 인스턴스를 저장하며, 클래스는 변경 없이 반환합니다.
        """
        instance = parser_cls()
        self._parsers.append(instance)
        logger.debug("Registered parser %s for %s", parser_cls.__name__, parser_cls.extensions)
        return parser_cls

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_parser(self, name: str, media_type: str | None = None) -> BaseParser | None:
        """선언 미디어 타입을 우선하고, 없거나 모르는 타입이면 확장자로 파서를 찾습니다."""
        if media_type:
            for parser in self._parsers:
                if parser.accepts_media_type(media_type):
                    return parser
        for parser in self._parsers:
            if parser.can_parse(name):
                return parser
        return None

    # ------------------------------------------------------------------
    # 추출
    # ------------------------------------------------------------------

    def extract(
        self,
        data: bytes,
        name: str,
        media_type: str | None = None,
        formats: list[str] | None = None,
    ) -> str:
        """파일 하나를 평문 텍스트로 추출합니다.

        매개변수
        ----------
        data:
            파일의 원본 바이트입니다.
        name:
            파일명입니다. 미디어 타입이 없을 때 확장자로 사용됩니다.
        media_type:
            선언된 미디어 타입입니다 (선택).
        formats:
            허용 확장자의 선택적 화이트리스트입니다 (예: ``['pdf', 'txt']``).
            목록 밖의 형식은 지원하지 않는 형식과 같이 처리됩니다.

        반환값
        -------
        str
            추출된 텍스트 또는 지원하지 않는 형식의 고정 문구입니다.

        예외
        ------
        ExtractionError
            지원 형식인데 디코딩에 실패하면 발생합니다.
        """
        parser = self.get_parser(name, media_type)
        allowed = _normalize_formats(formats)
        if parser is not None and allowed is not None and not allowed & set(parser.extensions):
            parser = None

        if parser is None:
            logger.info("Unsupported format, noting submission only: %s", name)
            return unsupported_placeholder(name)

        try:
            return parser.parse(data, name)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(name, f"내용을 추출할 수 없습니다 ({exc})") from exc

    def extract_path(self, path: Path, formats: list[str] | None = None) -> str:
        """디스크의 파일을 읽어 추출합니다. 미디어 타입은 파일명으로 추정합니다."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        media_type, _ = mimetypes.guess_type(path.name)
        return self.extract(path.read_bytes(), path.name, media_type, formats)

    # ------------------------------------------------------------------
    # 배치 읽기
    # ------------------------------------------------------------------

    def read_files(
        self,
        paths: list[Path],
        formats: list[str] | None = None,
    ) -> list[UploadedFile]:
        """여러 파일을 읽어 업로드 순서대로 :class:`UploadedFile` 목록을 만듭니다.

        배치 안에서 이미 나온 파일명은 건너뜁니다. 하나라도 실패하면 나머지를 모두
        시도한 뒤 실패 목록을 담은 :class:`ReadAggregationError` 하나를 발생시킵니다.
        """
        files: list[UploadedFile] = []
        failures: dict[str, str] = {}
        seen: set[str] = set()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            transient=True,
        ) as progress:
            task = progress.add_task("Reading files", total=len(paths))
            for file_path in paths:
                file_path = Path(file_path)
                try:
                    if file_path.name in seen:
                        logger.warning("Duplicate file name skipped: %s", file_path.name)
                        continue
                    content = self.extract_path(file_path, formats)
                    files.append(UploadedFile(name=file_path.name, content=content))
                    seen.add(file_path.name)
                    logger.debug("Read: %s (%d chars)", file_path.name, len(content))
                except (ExtractionError, OSError) as exc:
                    logger.error("Failed to read %s: %s", file_path.name, exc)
                    failures[file_path.name] = str(exc)
                finally:
                    progress.advance(task)

        if failures:
            raise ReadAggregationError(failures)

        logger.info("Read %d / %d files", len(files), len(paths))
        return files
