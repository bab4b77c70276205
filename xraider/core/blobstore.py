"""
사용자별 문서 목록을 저장하는 key-value blob 저장소

- SQLiteBlobStore: 로컬 SQLite 파일 (기본)
- MemoryBlobStore: 프로세스 메모리 (테스트, 임시 세션)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from xraider.core.errors import PersistenceFailure

log = logging.getLogger("xraider.blobstore")

SQLITE_BUSY_TIMEOUT_MS = 5000


class BlobStore(Protocol):
    """DocumentStore가 사용하는 저장소 인터페이스"""

    def read(self, key: str) -> Optional[bytes]:
        ...

    def write(self, key: str, data: bytes) -> None:
        ...


def documents_key(namespace: str, user_id: str) -> str:
    return f"{namespace}_documents_{user_id}"


class MemoryBlobStore:
    """dict 기반 저장소"""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    def read(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)

    def keys(self) -> List[str]:
        return sorted(self._blobs)


class SQLiteBlobStore:
    """SQLite blob 저장소 (WAL 모드)"""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(
            str(self.db_path),
            timeout=SQLITE_BUSY_TIMEOUT_MS / 1000,
            check_same_thread=False,
        )
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        # 자동 동기화 스레드와 연결을 공유
        self._lock = threading.Lock()
        self._init_tables()

    @contextmanager
    def transaction(self):
        """트랜잭션 컨텍스트 매니저. 에러 시 즉시 롤백.

        사용법:
            with store.transaction():
                store.conn.execute(...)
        """
        with self._lock:
            self.conn.execute("BEGIN IMMEDIATE")
            try:
                yield self.conn
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

    def _init_tables(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS blobs (
                key TEXT PRIMARY KEY,
                data BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.commit()

    def read(self, key: str) -> Optional[bytes]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT data FROM blobs WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"blob 읽기 실패 ({key}): {e}") from e
        if row is None:
            return None
        return bytes(row[0])

    def write(self, key: str, data: bytes) -> None:
        try:
            with self.transaction() as conn:
                conn.execute(
                    """INSERT INTO blobs (key, data, updated_at)
                       VALUES (?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(key) DO UPDATE SET
                           data = excluded.data,
                           updated_at = CURRENT_TIMESTAMP""",
                    (key, sqlite3.Binary(data)),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(f"blob 쓰기 실패 ({key}): {e}") from e

    def keys(self) -> List[str]:
        with self._lock:
            rows = self.conn.execute("SELECT key FROM blobs ORDER BY key").fetchall()
        return [r[0] for r in rows]

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            row = self.conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(LENGTH(data)), 0) FROM blobs"
            ).fetchone()
        return {"keys": row[0], "bytes": row[1]}

    def close(self):
        self.conn.close()
