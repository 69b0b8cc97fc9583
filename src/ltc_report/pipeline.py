"""파이프라인 오케스트레이터. 추출, 저장소, 보고서 생성, 대화를 연결합니다.

각 단계는 CLI에서 독립적으로 호출되거나 순서대로 이어서 실행될 수 있습니다.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .store import GuidelineStore
from .utils import get_logger

if TYPE_CHECKING:
    from .chat import ChatSession
    from .config import LTCConfig
    from .generator import ProgressCallback
    from .models import ReportData, UploadedFile

logger = get_logger("pipeline")


class Pipeline:
    """전체 ltc-report 흐름의 오케스트레이터입니다."""

    def __init__(self, config: LTCConfig) -> None:
        self.config = config
        self.output_dir = Path(config.paths.output)
        self.store = GuidelineStore(config.paths.store)

    # ------------------------------------------------------------------
    # 파일 읽기
    # ------------------------------------------------------------------

    def read_files(self, paths: list[Path]) -> list[UploadedFile]:
        """파일들을 추출합니다. 하나라도 실패하면 ReadAggregationError가 발생합니다."""
        from .parsers import registry

        return registry.read_files(paths, formats=self.config.extraction.formats)

    def read_evaluation_files(self, paths: list[Path] | None = None) -> list[UploadedFile]:
        """분석 대상 평가 자료를 추출합니다. *paths*가 없으면 ``paths.evaluation``의 파일을 읽습니다."""
        if not paths:
            directory = Path(self.config.paths.evaluation)
            paths = []
            if directory.is_dir():
                paths = sorted(
                    f for f in directory.iterdir() if f.is_file() and not f.name.startswith(".")
                )
        files = self.read_files(paths)
        logger.info("Read %d evaluation files", len(files))
        return files

    # ------------------------------------------------------------------
    # 지침 파일 관리
    # ------------------------------------------------------------------

    async def load_guidelines(self) -> list[UploadedFile]:
        """저장된 지침 파일을 불러옵니다."""
        files = await self.store.get_all()
        logger.info("Loaded %d guideline files from %s", len(files), self.config.paths.store)
        return files

    async def add_guidelines(self, paths: list[Path]) -> list[UploadedFile]:
        """지침 파일을 추출해 기존 컬렉션에 추가하고 저장합니다.

        이미 같은 이름의 파일이 있으면 새 파일은 건너뜁니다.

        반환값
        -------
        list[UploadedFile]
            저장된 전체 지침 컬렉션입니다.
        """
        new_files = self.read_files(paths)
        files = await self.store.get_all()
        names = {f.name for f in files}

        for f in new_files:
            if f.name in names:
                logger.warning("Guideline already stored, skipped: %s", f.name)
                continue
            files.append(f)
            names.add(f.name)

        await self.store.save_all(files)
        return files

    async def remove_guideline(self, name: str) -> bool:
        """이름으로 지침 파일을 제거합니다. 제거했으면 True를 반환합니다."""
        files = await self.store.get_all()
        remaining = [f for f in files if f.name != name]
        if len(remaining) == len(files):
            return False
        await self.store.save_all(remaining)
        return True

    async def clear_guidelines(self) -> None:
        await self.store.clear()

    # ------------------------------------------------------------------
    # 보고서 생성
    # ------------------------------------------------------------------

    async def step_generate(
        self,
        evaluations: list[UploadedFile],
        on_progress: ProgressCallback | None = None,
    ) -> ReportData:
        """저장된 지침과 *evaluations*로 보고서를 생성합니다.

        예외
        ------
        RuntimeError
            저장된 지침 파일이나 평가 자료가 없는 경우.
        GenerationError
            LLM 호출 또는 응답 검증이 실패한 경우.
        """
        from .generator import ReportGenerator
        from .llm import create_llm

        guidelines = await self.load_guidelines()
        if not guidelines:
            raise RuntimeError(
                "저장된 평가 기준 지침 파일이 없습니다. "
                "먼저 'ltc-report guidelines add'로 지침 파일을 추가하세요."
            )
        if not evaluations:
            raise RuntimeError("분석할 평가 자료가 없습니다.")

        generator = ReportGenerator(self.config, create_llm(self.config.llm))
        return await generator.generate(guidelines, evaluations, on_progress)

    # ------------------------------------------------------------------
    # 보고서 입출력
    # ------------------------------------------------------------------

    def save_report(self, report: ReportData, path: Path | None = None) -> Path:
        """보고서를 camelCase JSON으로 저장하고 경로를 반환합니다."""
        if path is None:
            path = self.output_dir / self.config.report.output_file
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.to_json(), encoding="utf-8")
        logger.info("Report saved to %s", path)
        return path

    def save_markdown(self, report: ReportData, path: Path | None = None) -> Path:
        from .render import report_to_markdown

        if path is None:
            path = self.output_dir / self.config.report.markdown_file
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report_to_markdown(report), encoding="utf-8")
        logger.info("Markdown report saved to %s", path)
        return path

    def load_report(self, path: Path) -> ReportData:
        """저장된 보고서 JSON을 검증하여 불러옵니다.

        예외
        ------
        FileNotFoundError
            *path*가 없는 경우.
        ReportParseError
            내용이 보고서 형식이 아닌 경우.
        """
        from .generator import parse_report

        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Report not found: {path}")
        return parse_report(path.read_text(encoding="utf-8"))

    # ------------------------------------------------------------------
    # 대화
    # ------------------------------------------------------------------

    def create_chat(self, report: ReportData) -> ChatSession:
        """*report*에 묶인 대화 세션을 시작합니다. ``chat.model``이 있으면 그 모델을 씁니다."""
        from .chat import start_chat
        from .llm import create_llm

        llm_config = self.config.llm
        if self.config.chat.model:
            llm_config = llm_config.model_copy(update={"model": self.config.chat.model})
        return start_chat(create_llm(llm_config), report, self.config.chat)

    def close(self) -> None:
        self.store.close()
