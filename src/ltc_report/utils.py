"""Rich를 사용한 구조화된 로깅 및 비동기 유틸리티."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, TypeVar

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable

T = TypeVar("T")

console = Console()

_configured = False


def setup_logging(level: str = "INFO") -> logging.Logger:
    """루트 ltc-report 로거를 구성하고 반환합니다."""
    global _configured
    if not _configured:
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        )
        _configured = True
    return logging.getLogger("ltc_report")


def get_logger(name: str) -> logging.Logger:
    """ltc_report 네임스페이스 아래의 자식 로거를 가져옵니다."""
    return logging.getLogger(f"ltc_report.{name}")


async def run_bounded(
    semaphore: asyncio.Semaphore,
    coro: Awaitable[T],
    on_done: Callable[[], None] | None = None,
) -> T:
    """세마포어 제한 하에 코루틴을 실행하고 완료 콜백을 호출합니다."""
    async with semaphore:
        result = await coro
        if on_done is not None:
            on_done()
        return result
