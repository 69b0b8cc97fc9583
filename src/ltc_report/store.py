"""지침 파일 컬렉션을 세션 간에 보존하는 SQLite 로컬 저장소입니다."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path

from .errors import StoreError
from .models import UploadedFile
from .utils import get_logger

logger = get_logger("store")

SCHEMA_VERSION = 1
_TABLE = "guidelines"


class GuidelineStore:
    """``guidelines`` 컬렉션 하나를 다루는 비동기 저장소입니다.

    연결은 첫 사용 시 열리고 객체가 살아있는 동안 재사용됩니다. SQLite 작업은
    ``asyncio.to_thread``로 작업 스레드에서 실행됩니다. 동시 호출은 직렬화를 보장하지
    않으며 마지막 쓰기가 남습니다.

    매개변수
    ----------
    path:
        SQLite 데이터베이스 파일 경로입니다. ``":memory:"``도 허용됩니다.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = path
        self._conn: sqlite3.Connection | None = None

    # ------------------------------------------------------------------
    # 연결
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            if str(self.path) != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), check_same_thread=False)
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version == 0:
                with conn:
                    conn.execute(
                        f"CREATE TABLE IF NOT EXISTS {_TABLE} "
                        "(name TEXT PRIMARY KEY, content TEXT NOT NULL)"
                    )
                    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            elif version != SCHEMA_VERSION:
                conn.close()
                raise StoreError(
                    f"지원하지 않는 저장소 스키마 버전입니다: {version} (기대값 {SCHEMA_VERSION})"
                )
        except sqlite3.Error as exc:
            raise StoreError(f"저장소를 열 수 없습니다: {self.path} ({exc})") from exc

        logger.debug("Opened guideline store at %s", self.path)
        self._conn = conn
        return conn

    # ------------------------------------------------------------------
    # 동기 구현
    # ------------------------------------------------------------------

    def _save_all(self, files: list[UploadedFile]) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(f"DELETE FROM {_TABLE}")
                conn.executemany(
                    f"INSERT OR REPLACE INTO {_TABLE} (name, content) VALUES (?, ?)",
                    [(f.name, f.content) for f in files],
                )
        except sqlite3.Error as exc:
            raise StoreError(f"지침 파일을 저장하지 못했습니다 ({exc})") from exc
        logger.info("Saved %d guideline files", len(files))

    def _get_all(self) -> list[UploadedFile]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT name, content FROM {_TABLE}").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"지침 파일을 읽지 못했습니다 ({exc})") from exc
        return [UploadedFile(name=name, content=content) for name, content in rows]

    def _clear(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(f"DELETE FROM {_TABLE}")
        except sqlite3.Error as exc:
            raise StoreError(f"지침 파일을 삭제하지 못했습니다 ({exc})") from exc
        logger.info("Cleared guideline store")

    # ------------------------------------------------------------------
    # 공개 비동기 API
    # ------------------------------------------------------------------

    async def save_all(self, files: list[UploadedFile]) -> None:
        """저장된 컬렉션 전체를 *files*로 교체합니다 (삭제 후 삽입, 단일 트랜잭션)."""
        await asyncio.to_thread(self._save_all, list(files))

    async def get_all(self) -> list[UploadedFile]:
        """저장된 모든 파일을 반환합니다. 순서는 보장하지 않습니다."""
        return await asyncio.to_thread(self._get_all)

    async def clear(self) -> None:
        """컬렉션을 비웁니다. 여러 번 호출해도 결과는 같습니다."""
        await asyncio.to_thread(self._clear)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
