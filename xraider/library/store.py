"""
사용자별 문서 라이브러리 저장소

- 중복 방지의 유일한 관문 (url 기준)
- 모든 변경 후 전체 목록을 blob 저장소에 JSON으로 저장
- 사용자는 생성자/switch_user()로 명시적으로 지정
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import uuid
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from xraider.core.blobstore import BlobStore, documents_key
from xraider.core.errors import DuplicateDocument, PersistenceFailure
from xraider.core.models import Category, Document, DocumentFilters, ExtractedMetadata

log = logging.getLogger("xraider.library")

RECENT_LIMIT = 5
_IMMUTABLE_FIELDS = {"id", "date_added"}
_DOCUMENT_FIELDS = {f.name for f in fields(Document)}


def document_id_for(url: Optional[str]) -> str:
    """url이 있으면 url에서 결정적으로, 없으면 무작위로 생성"""
    if url:
        return hashlib.sha1(url.encode("utf-8")).hexdigest()[:16]
    return uuid.uuid4().hex[:12]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class DocumentStore:
    """문서 라이브러리"""

    def __init__(self, blob_store: BlobStore, user_id: Optional[str] = None, namespace: str = "xraider"):
        self.blob_store = blob_store
        self.namespace = namespace
        self.user_id: Optional[str] = None
        self._documents: List[Document] = []
        self._lock = threading.RLock()
        self.switch_user(user_id)

    # --- 세션 ---

    def switch_user(self, user_id: Optional[str]):
        """활성 사용자 변경. None이면 목록을 비우고 불러오지 않음"""
        with self._lock:
            self.user_id = user_id or None
            self._documents = self._load() if self.user_id else []

    @property
    def storage_key(self) -> Optional[str]:
        if not self.user_id:
            return None
        return documents_key(self.namespace, self.user_id)

    def _load(self) -> List[Document]:
        key = self.storage_key
        try:
            raw = self.blob_store.read(key)
        except PersistenceFailure as e:
            log.error("문서 목록 로드 실패 (%s): %s", key, e)
            return []
        if raw is None:
            return []
        try:
            items = json.loads(raw.decode("utf-8"))
            if not isinstance(items, list):
                raise ValueError("문서 목록이 배열이 아님")
            return [Document.from_dict(item) for item in items]
        except (ValueError, TypeError, KeyError) as e:
            log.error("문서 목록 파싱 실패 (%s), 빈 목록으로 시작: %s", key, e)
            return []

    def _save(self):
        key = self.storage_key
        if key is None:
            return
        payload = json.dumps([d.to_dict() for d in self._documents], ensure_ascii=False)
        try:
            self.blob_store.write(key, payload.encode("utf-8"))
        except PersistenceFailure as e:
            log.error("문서 목록 저장 실패 (%s), 메모리에서 계속: %s", key, e)

    # --- 변경 ---

    def add(self, partial: Union[Mapping[str, Any], ExtractedMetadata]) -> Document:
        """문서 추가. 같은 url이 있으면 DuplicateDocument"""
        data = dict(partial.as_partial() if isinstance(partial, ExtractedMetadata) else partial)
        url = data.get("url") or ""

        with self._lock:
            if url:
                existing = self._find_by_url(url)
                if existing:
                    raise DuplicateDocument(url, existing.id)

            doc_id = document_id_for(url)
            # url이 수정된 문서가 같은 id를 갖고 있을 수 있음
            while self.get(doc_id):
                doc_id = document_id_for(None)

            doc = Document(
                id=doc_id,
                title=data.get("title") or "Untitled Document",
                date_added=_utcnow(),
                source=data.get("source") or "Manual Upload",
                url=url,
                pdf_url=data.get("pdf_url") or url or None,
            )
            for key, value in data.items():
                if key in _IMMUTABLE_FIELDS or key not in _DOCUMENT_FIELDS:
                    continue
                if key in ("title", "source", "url", "pdf_url") and not value:
                    continue
                setattr(doc, key, value)
            doc.category = Category.coerce(doc.category)
            doc.authors = list(doc.authors or [])
            doc.tags = list(dict.fromkeys(doc.tags or []))

            self._documents.insert(0, doc)
            self._save()

        log.info("문서 추가: %s (%s)", doc.title, doc.id)
        return doc

    def update(self, doc_id: str, changes: Mapping[str, Any]):
        """필드 병합. id/date_added는 무시, 없는 id는 무시.
        다른 문서가 쓰는 url로 바꾸면 DuplicateDocument"""
        unknown = set(changes) - _DOCUMENT_FIELDS
        if unknown:
            raise ValueError(f"알 수 없는 문서 필드: {', '.join(sorted(unknown))}")

        with self._lock:
            doc = self.get(doc_id)
            if doc is None:
                return
            new_url = changes.get("url")
            if new_url:
                existing = self._find_by_url(new_url)
                if existing and existing.id != doc_id:
                    raise DuplicateDocument(new_url, existing.id)
            for key, value in changes.items():
                if key in _IMMUTABLE_FIELDS:
                    continue
                if key == "category":
                    value = Category.coerce(value)
                setattr(doc, key, value)
            self._save()

    def delete(self, doc_id: str):
        with self._lock:
            self._documents = [d for d in self._documents if d.id != doc_id]
            self._save()

    # --- 조회 ---

    def get(self, doc_id: str) -> Optional[Document]:
        return next((d for d in self._documents if d.id == doc_id), None)

    def _find_by_url(self, url: str) -> Optional[Document]:
        return next((d for d in self._documents if d.url == url), None)

    def search(self, query: str) -> List[Document]:
        """제목/저자/초록/태그 부분 문자열 검색 (대소문자 무시)"""
        if not query or not query.strip():
            return self.documents
        q = query.lower()
        return [
            d for d in self._documents
            if q in d.title.lower()
            or any(q in a.lower() for a in d.authors)
            or q in (d.abstract or "").lower()
            or any(q in t.lower() for t in d.tags)
        ]

    def filter(self, criteria: DocumentFilters) -> List[Document]:
        """모든 조건을 AND로 적용"""
        results = []
        for d in self._documents:
            if criteria.category is not None and d.category != Category.coerce(criteria.category):
                continue
            if criteria.is_read is not None and d.is_read != criteria.is_read:
                continue
            if criteria.is_favorite is not None and d.is_favorite != criteria.is_favorite:
                continue
            if criteria.tags and not any(t in d.tags for t in criteria.tags):
                continue
            if criteria.date_range:
                start, end = criteria.date_range
                added = _as_aware(d.added_at)
                if added < _as_aware(start) or added > _as_aware(end):
                    continue
            results.append(d)
        return results

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    @property
    def recent(self) -> List[Document]:
        return sorted(self._documents, key=lambda d: d.date_added, reverse=True)[:RECENT_LIMIT]

    @property
    def total(self) -> int:
        return len(self._documents)

    def __len__(self):
        return len(self._documents)

    def get_stats(self) -> Dict[str, Any]:
        by_category: Dict[str, int] = {}
        for d in self._documents:
            by_category[d.category.value] = by_category.get(d.category.value, 0) + 1
        return {
            "total": len(self._documents),
            "read": sum(1 for d in self._documents if d.is_read),
            "favorite": sum(1 for d in self._documents if d.is_favorite),
            "drive": sum(1 for d in self._documents if d.is_from_drive),
            "by_category": by_category,
        }
