"""
예외 계층

코어 경계를 넘는 예외는 InvalidLocator, DuplicateDocument, SyncFailure 뿐입니다.
나머지는 내부에서 로그로 남기거나 기본값/폴백으로 변환됩니다.
"""

from __future__ import annotations

from typing import Optional


class XraiderError(Exception):
    """xraider 공통 예외"""


class InvalidLocator(XraiderError):
    """도달 가능한 소스로 해석할 수 없는 입력. 폴백 없이 호출자에게 전달"""

    def __init__(self, locator: str, reason: str = ""):
        self.locator = locator
        self.reason = reason
        message = f"유효하지 않은 입력입니다: '{locator}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DuplicateDocument(XraiderError):
    """같은 url의 문서가 이미 라이브러리에 있음"""

    def __init__(self, url: str, existing_id: Optional[str] = None):
        self.url = url
        self.existing_id = existing_id
        super().__init__(f"이미 라이브러리에 있는 문서입니다: {url}")


class ProviderFailure(XraiderError):
    """프로바이더 내부 실패 (네트워크/파싱). 항상 폴백 레코드로 복구됨"""


class SyncFailure(XraiderError):
    """Drive 동기화 실패. 이미 가져온 문서는 롤백하지 않음"""


class SyncBusy(SyncFailure):
    """동기화가 이미 진행 중이라 새 요청을 거부함"""

    def __init__(self, message: str = "동기화가 이미 진행 중입니다."):
        super().__init__(message)


class PersistenceFailure(XraiderError):
    """blob 저장소 읽기/쓰기 실패. 세션은 메모리 상태로 계속 동작"""


class DriveAPIError(XraiderError):
    """Google Drive API 오류"""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Drive API 오류: {status_code} {detail}".strip())
