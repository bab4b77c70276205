"""
공유 데이터 모델

라이브러리 문서, 추출 메타데이터, Drive 파일 등 모든 모듈에서 사용하는 데이터 클래스입니다.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DRIVE_SOURCE = "Google Drive"


class Category(str, Enum):
    """문서 주제 분류"""
    COMPUTER_SCIENCE = "Computer Science"
    PHYSICS = "Physics"
    ENVIRONMENTAL_SCIENCE = "Environmental Science"
    MEDICAL_SCIENCE = "Medical Science"
    GENERAL = "General"

    @classmethod
    def coerce(cls, value: Any) -> Category:
        """알 수 없는 값은 GENERAL로"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.GENERAL


@dataclass
class Document:
    """
    라이브러리 문서 레코드

    DocumentStore.add()를 통해서만 생성됩니다.
    """
    id: str
    title: str
    date_added: str
    authors: List[str] = field(default_factory=list)
    abstract: str = ""
    source: str = "Manual Upload"
    url: str = ""
    pdf_url: Optional[str] = None
    date_published: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    category: Category = Category.GENERAL

    is_read: bool = False
    is_favorite: bool = False
    notes: str = ""
    reading_progress: int = 0

    file_size: Optional[str] = None
    pages: Optional[int] = None
    doi: Optional[str] = None
    citation: Optional[str] = None

    # Drive 동기화로 들어온 문서만 사용
    drive_file_id: Optional[str] = None
    mime_type: Optional[str] = None

    @property
    def added_at(self) -> datetime:
        return datetime.fromisoformat(self.date_added)

    @property
    def is_from_drive(self) -> bool:
        return self.drive_file_id is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Document:
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        kwargs["category"] = Category.coerce(kwargs.get("category"))
        return cls(**kwargs)


@dataclass
class ExtractedMetadata:
    """프로바이더 추출 결과 (저장 전 단계)"""
    title: str
    url: str
    source: str
    authors: List[str] = field(default_factory=list)
    abstract: str = ""
    pdf_url: Optional[str] = None
    date_published: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    category: Category = Category.GENERAL
    pages: Optional[int] = None
    doi: Optional[str] = None
    citation: Optional[str] = None
    file_size: Optional[str] = None

    def as_partial(self) -> Dict[str, Any]:
        """DocumentStore.add()에 넘길 dict. None 값은 제외"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class DriveFile:
    """Google Drive 파일/폴더 항목"""
    id: str
    name: str
    mime_type: str
    modified_time: str = ""
    created_time: str = ""
    size: Optional[int] = None
    web_view_link: Optional[str] = None
    parents: List[str] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> DriveFile:
        """Drive v3 응답(camelCase)을 DriveFile로 변환"""
        size = data.get("size")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            modified_time=data.get("modifiedTime", ""),
            created_time=data.get("createdTime", ""),
            size=int(size) if size not in (None, "") else None,
            web_view_link=data.get("webViewLink"),
            parents=list(data.get("parents") or []),
        )


@dataclass
class SyncSummary:
    """재귀 동기화 결과"""
    imported: int = 0
    skipped: int = 0
    total: int = 0

    def __str__(self):
        return f"{self.imported}개 신규 / {self.skipped}개 건너뜀 / {self.total}개 전체"


@dataclass
class DocumentFilters:
    """filter() 조건. 지정된 항목만 AND로 적용"""
    category: Optional[Category] = None
    tags: Optional[List[str]] = None
    is_read: Optional[bool] = None
    is_favorite: Optional[bool] = None
    date_range: Optional[Tuple[datetime, datetime]] = None


def format_file_size(size: Optional[int]) -> Optional[str]:
    """바이트 수를 '1.5 MB' 형태로 변환"""
    if size is None:
        return None
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"
