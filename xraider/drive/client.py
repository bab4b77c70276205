"""
Google Drive v3 REST 클라이언트

Bearer 토큰으로 파일 목록/다운로드/업로드/삭제/폴더 생성을 수행합니다.
401 응답 시 토큰 갱신 콜백을 한 번 호출하고, 429/5xx와 네트워크 오류는 지수 백오프로 재시도합니다.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Optional, Protocol

import requests

from xraider.core.errors import DriveAPIError
from xraider.core.models import FOLDER_MIME_TYPE, DriveFile

log = logging.getLogger("xraider.drive")

DRIVE_API = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_API = "https://www.googleapis.com/upload/drive/v3"
FILE_FIELDS = "id,name,mimeType,createdTime,modifiedTime,size,parents,webViewLink"

API_MAX_RETRIES = 3
API_RETRY_BASE_SEC = 2.0


class DriveAPI(Protocol):
    """동기화 엔진이 사용하는 Drive 파일 API"""

    def list_files(self, folder_id: Optional[str] = None, page_size: int = 100) -> List[DriveFile]:
        ...

    def is_connected(self) -> bool:
        ...


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Drive v3 클라이언트"""

    def __init__(
        self,
        get_access_token: Callable[[], Optional[str]],
        on_unauthorized: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self._get_access_token = get_access_token
        self._on_unauthorized = on_unauthorized
        self.session = session or requests.Session()
        self.timeout = timeout

    def is_connected(self) -> bool:
        return bool(self._get_access_token())

    def _request(self, method: str, url: str, retry_auth: bool = True, **kwargs) -> requests.Response:
        token = self._get_access_token()
        if not token:
            raise DriveAPIError(401, "액세스 토큰 없음")

        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"

        last_err: Exception | None = None
        for attempt in range(1, API_MAX_RETRIES + 1):
            log.debug("Drive API 요청: %s %s", method, url)
            try:
                resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_err = e
                wait = API_RETRY_BASE_SEC * (2 ** (attempt - 1))
                log.warning("Drive 네트워크 오류, %d/%d 재시도 (%.1fs 대기)",
                            attempt, API_MAX_RETRIES, wait)
                time.sleep(wait)
                continue

            if resp.status_code == 401 and retry_auth and self._on_unauthorized:
                log.warning("Drive API 401, 토큰 갱신 시도")
                if self._on_unauthorized():
                    return self._request(method, url, retry_auth=False, **kwargs)
            if resp.status_code == 429 or resp.status_code >= 500:
                last_err = DriveAPIError(resp.status_code, resp.text[:200])
                wait = API_RETRY_BASE_SEC * (2 ** (attempt - 1))
                log.warning("Drive API %d 에러, %d/%d 재시도 (%.1fs 대기)",
                            resp.status_code, attempt, API_MAX_RETRIES, wait)
                time.sleep(wait)
                continue
            if not resp.ok:
                raise DriveAPIError(resp.status_code, resp.text[:200])
            return resp

        if isinstance(last_err, DriveAPIError):
            raise last_err
        raise DriveAPIError(0, str(last_err))

    # --- 조회 ---

    def list_files(self, folder_id: Optional[str] = None, page_size: int = 100) -> List[DriveFile]:
        """폴더의 항목 목록 (한 페이지). folder_id가 없으면 전체"""
        query = "trashed=false"
        if folder_id:
            query += f" and '{_escape_query(folder_id)}' in parents"
        resp = self._request("GET", f"{DRIVE_API}/files", params={
            "q": query,
            "pageSize": page_size,
            "fields": f"files({FILE_FIELDS})",
            "orderBy": "modifiedTime desc",
        })
        return [DriveFile.from_api(f) for f in resp.json().get("files", [])]

    def get_file_metadata(self, file_id: str) -> DriveFile:
        resp = self._request("GET", f"{DRIVE_API}/files/{file_id}", params={"fields": FILE_FIELDS})
        return DriveFile.from_api(resp.json())

    def download_file(self, file_id: str) -> bytes:
        resp = self._request("GET", f"{DRIVE_API}/files/{file_id}", params={"alt": "media"})
        return resp.content

    # --- 변경 ---

    def upload_file(self, name: str, data: bytes, mime_type: str = "application/octet-stream",
                    folder_id: Optional[str] = None) -> DriveFile:
        metadata = {"name": name}
        if folder_id:
            metadata["parents"] = [folder_id]
        files = {
            "metadata": (None, json.dumps(metadata), "application/json; charset=UTF-8"),
            "file": (name, data, mime_type),
        }
        resp = self._request(
            "POST", f"{DRIVE_UPLOAD_API}/files",
            params={"uploadType": "multipart", "fields": FILE_FIELDS},
            files=files,
        )
        return DriveFile.from_api(resp.json())

    def delete_file(self, file_id: str) -> None:
        self._request("DELETE", f"{DRIVE_API}/files/{file_id}")

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> DriveFile:
        body = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]
        resp = self._request("POST", f"{DRIVE_API}/files", params={"fields": FILE_FIELDS}, json=body)
        return DriveFile.from_api(resp.json())
