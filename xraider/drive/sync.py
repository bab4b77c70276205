"""
Google Drive → 라이브러리 동기화

- shallow_sync: 한 폴더의 파일만 가져오기
- deep_sync: 하위 폴더까지 재귀 탐색 후 가져오기 (진행률/요약 제공)
- AutoSyncScheduler: 일정 간격으로 shallow_sync 반복

중복 검사: driveFileId 또는 (파일명, source="Google Drive") 일치 시 건너뜀.
이미 가져온 문서는 실패 시에도 롤백하지 않으며, 다시 실행하면 남은 파일만 가져옵니다.
"""

from __future__ import annotations

import logging
import re
import threading
from enum import Enum
from typing import Callable, List, Optional, Set

from xraider.core.errors import DuplicateDocument, InvalidLocator, SyncBusy, SyncFailure
from xraider.core.models import DRIVE_SOURCE, Document, DriveFile, SyncSummary, format_file_size
from xraider.drive.client import DriveAPI
from xraider.extract.classifier import classify_filename
from xraider.library.store import DocumentStore

log = logging.getLogger("xraider.drive.sync")

TRAVERSAL_STEP = 0.002
TRAVERSAL_CAP = 0.95
# Drive의 내 드라이브 최상위 폴더 별칭
ROOT_FOLDER_ID = "root"

ProgressCallback = Callable[[float, "SyncState"], None]


class SyncState(str, Enum):
    IDLE = "idle"
    TRAVERSING = "traversing"
    IMPORTING = "importing"
    DONE = "done"


def strip_extension(name: str) -> str:
    return re.sub(r"\.[^./]+$", "", name)


def drive_file_url(file: DriveFile) -> str:
    return file.web_view_link or f"https://drive.google.com/file/d/{file.id}/view"


def _partial_for(file: DriveFile, tags: List[str], abstract: str) -> dict:
    return {
        "title": strip_extension(file.name),
        "authors": [DRIVE_SOURCE],
        "abstract": abstract,
        "source": DRIVE_SOURCE,
        "url": drive_file_url(file),
        "tags": tags,
        "category": classify_filename(file.name),
        "file_size": format_file_size(file.size),
        "drive_file_id": file.id,
        "mime_type": file.mime_type,
    }


class DriveSyncEngine:
    """Drive 동기화 엔진"""

    def __init__(
        self,
        drive: DriveAPI,
        store: DocumentStore,
        page_size: int = 200,
        deep_page_size: int = 100,
        max_depth: int = 32,
        progress_reset_delay: Optional[float] = 3.0,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.drive = drive
        self.store = store
        self.page_size = page_size
        self.deep_page_size = deep_page_size
        self.max_depth = max_depth
        self.progress_reset_delay = progress_reset_delay
        self.on_progress = on_progress

        self.state = SyncState.IDLE
        self.progress = 0.0
        self.summary: Optional[SyncSummary] = None
        self._run_lock = threading.Lock()
        self._reset_timer: Optional[threading.Timer] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    # --- 공통 ---

    def is_duplicate(self, file: DriveFile) -> bool:
        """driveFileId 또는 (파일명, Google Drive) 쌍으로 이미 가져온 파일인지 확인"""
        names = {file.name, strip_extension(file.name)}
        return any(
            d.drive_file_id == file.id or (d.source == DRIVE_SOURCE and d.title in names)
            for d in self.store.documents
        )

    def _set_progress(self, value: float, state: Optional[SyncState] = None):
        self.progress = value
        if state is not None:
            self.state = state
        if self.on_progress:
            self.on_progress(self.progress, self.state)

    def _acquire(self):
        if not self._run_lock.acquire(blocking=False):
            raise SyncBusy()

    # --- 단일 폴더 ---

    def shallow_sync(self, folder_id: Optional[str] = None) -> int:
        """현재 폴더의 새 파일을 라이브러리에 추가. 추가한 개수 반환"""
        self._acquire()
        try:
            files = self.drive.list_files(folder_id, self.page_size)
            imported = 0
            for f in files:
                if f.is_folder or self.is_duplicate(f):
                    continue
                if self._import(f, ["google-drive", "synced"], "Imported from Google Drive sync."):
                    imported += 1
            log.info("shallow sync 완료 (folder=%s): %d개 추가", folder_id or "root", imported)
            return imported
        except Exception as e:
            log.exception("Drive 동기화 실패")
            raise SyncFailure("Drive 동기화에 실패했습니다.") from e
        finally:
            self._run_lock.release()

    # --- 재귀 ---

    def deep_sync(self, folder_id: Optional[str] = None) -> SyncSummary:
        """하위 폴더까지 탐색 후 새 파일을 가져옴. folder_id가 없으면 내 드라이브 최상위부터.
        이미 실행 중이면 SyncBusy"""
        self._acquire()
        try:
            self._cancel_reset_timer()
            self.summary = None
            self._set_progress(0.0, SyncState.TRAVERSING)

            collected: List[DriveFile] = []
            self._traverse(folder_id or ROOT_FOLDER_ID, 0, set(), collected)

            self._set_progress(self.progress, SyncState.IMPORTING)
            total = len(collected)
            imported = skipped = 0
            for f in collected:
                if self.is_duplicate(f):
                    skipped += 1
                    continue
                if self._import(f, ["google-drive", "synced", "recursive"], "Imported via recursive sync."):
                    imported += 1
                    self._set_progress(TRAVERSAL_CAP + (imported / max(1, total)) * (1 - TRAVERSAL_CAP))
                else:
                    skipped += 1

            self.summary = SyncSummary(imported=imported, skipped=skipped, total=total)
            self._set_progress(1.0, SyncState.DONE)
            log.info("recursive sync 완료: %s", self.summary)
            return self.summary
        except Exception as e:
            log.exception("recursive sync 실패")
            # on_progress 호출 없이 초기화
            self.progress = 0.0
            self.state = SyncState.IDLE
            raise SyncFailure("Drive 재귀 동기화에 실패했습니다.") from e
        finally:
            self._run_lock.release()
            self._schedule_progress_reset()

    def _traverse(self, folder_id: Optional[str], depth: int, visited: Set[str], collected: List[DriveFile]):
        """깊이 우선 탐색. 방문한 폴더는 다시 들어가지 않고 max_depth에서 멈춤"""
        if folder_id:
            if folder_id in visited:
                log.warning("이미 방문한 폴더 건너뜀: %s", folder_id)
                return
            visited.add(folder_id)

        for f in self.drive.list_files(folder_id, self.deep_page_size):
            if f.is_folder:
                if depth + 1 > self.max_depth:
                    log.warning("최대 깊이(%d) 초과, 하위 폴더 건너뜀: %s", self.max_depth, f.name)
                    continue
                self._traverse(f.id, depth + 1, visited, collected)
            else:
                collected.append(f)
                self._set_progress(min(TRAVERSAL_CAP, self.progress + TRAVERSAL_STEP))

    def _import(self, file: DriveFile, tags: List[str], abstract: str) -> bool:
        """문서 추가. 동시에 같은 url이 먼저 추가된 경우 False"""
        try:
            self.store.add(_partial_for(file, tags, abstract))
            return True
        except DuplicateDocument:
            log.info("이미 추가된 파일 건너뜀: %s", file.name)
            return False

    # --- 단일 파일 ---

    def import_file(self, file: DriveFile) -> Document:
        """파일 하나를 라이브러리에 추가 (폴더 불가)"""
        if file.is_folder:
            raise InvalidLocator(file.name, "폴더는 라이브러리에 추가할 수 없습니다")
        partial = _partial_for(
            file, ["google-drive", "imported"],
            f"Document imported from Google Drive. Original file: {file.name}",
        )
        partial["pages"] = 0
        return self.store.add(partial)

    # --- 진행률 초기화 ---

    def _schedule_progress_reset(self):
        if self.progress_reset_delay is None:
            return
        self._reset_timer = threading.Timer(self.progress_reset_delay, self._reset_progress)
        self._reset_timer.daemon = True
        self._reset_timer.start()

    def _cancel_reset_timer(self):
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

    def _reset_progress(self):
        if not self.is_running:
            self.progress = 0.0


class AutoSyncScheduler:
    """연결되어 있는 동안 일정 간격으로 shallow_sync 실행"""

    def __init__(
        self,
        engine: DriveSyncEngine,
        folder_id: Callable[[], Optional[str]] = lambda: None,
        is_connected: Optional[Callable[[], bool]] = None,
        interval: float = 300,
    ):
        self.engine = engine
        self.folder_id = folder_id
        self.is_connected = is_connected or engine.drive.is_connected
        self.interval = interval
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def enabled(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def enable(self):
        if self.enabled:
            return
        if not self.is_connected():
            log.warning("Drive에 연결되어 있지 않아 자동 동기화를 시작하지 않습니다.")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="xraider-auto-sync", daemon=True)
        self._thread.start()
        log.info("자동 동기화 시작 (%.0fs 간격)", self.interval)

    def disable(self):
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1)
        self._thread = None

    def _run(self):
        while not self._stop.wait(self.interval):
            self.tick()

    def tick(self):
        """한 번 동기화. 연결이 끊겼으면 스케줄러 중지"""
        if not self.is_connected():
            log.warning("Drive 연결 끊김, 자동 동기화 중지")
            self._stop.set()
            return
        self.ticks += 1
        try:
            imported = self.engine.shallow_sync(self.folder_id())
            log.info("자동 동기화: %d개 추가", imported)
        except SyncBusy:
            log.info("동기화 진행 중, 이번 자동 동기화 건너뜀")
        except SyncFailure as e:
            log.warning("자동 동기화 실패: %s", e)
