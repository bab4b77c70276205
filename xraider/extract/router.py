"""
입력 로케이터 → 프로바이더 라우팅

URL, DOI 문자열, arXiv ID, 업로드 파일 경로를 받아 메타데이터를 반환합니다.
로케이터 자체가 잘못된 경우(InvalidLocator)를 제외하면 항상 레코드를 돌려줍니다.
"""

from __future__ import annotations

import logging
import re
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Tuple
from urllib.parse import urlparse

import requests

from xraider.core.errors import InvalidLocator
from xraider.core.models import ExtractedMetadata, format_file_size
from xraider.extract import providers
from xraider.extract.classifier import classify
from xraider.extract.providers import DEFAULT_TIMEOUT

log = logging.getLogger("xraider.extract")

Extractor = Callable[..., ExtractedMetadata]
Predicate = Callable[[str, str], bool]

_BARE_DOI_RE = re.compile(r"^(?:doi:\s*)?(10\.\d{4,9}/\S+)$", re.IGNORECASE)
_BARE_ARXIV_RE = re.compile(r"^(?:arxiv:\s*)?(\d{4}\.\d{4,5}(?:v\d+)?)$", re.IGNORECASE)


def _host_has(*needles: str) -> Predicate:
    return lambda host, url: any(n in host for n in needles)


def _is_document_file(host: str, url: str) -> bool:
    return providers.document_suffix(url) is not None


# 순서대로 검사, 첫 번째 매칭 사용. 새 프로바이더는 행을 추가하면 됨
PROVIDERS: Tuple[Tuple[str, Predicate, Extractor], ...] = (
    ("arxiv", _host_has("arxiv.org"), providers.extract_arxiv),
    ("scholar", _host_has("scholar.google"),
     partial(providers.extract_restricted, source="Google Scholar")),
    ("researchgate", _host_has("researchgate.net"),
     partial(providers.extract_restricted, source="ResearchGate")),
    ("academia", _host_has("academia.edu"),
     partial(providers.extract_restricted, source="Academia.edu")),
    ("pubmed", _host_has("pubmed.ncbi.nlm.nih.gov"), providers.extract_pubmed),
    ("doi", _host_has("doi.org"), providers.extract_crossref),
    ("direct_file", _is_document_file, providers.extract_direct_file),
)
GENERIC_PROVIDER: Tuple[str, Extractor] = ("web", providers.extract_webpage)


def normalize_locator(locator: str) -> str:
    """DOI/arXiv ID 문자열을 URL로 변환. 그 외는 공백만 제거"""
    text = (locator or "").strip()
    m = _BARE_DOI_RE.match(text)
    if m:
        return f"https://doi.org/{m.group(1)}"
    m = _BARE_ARXIV_RE.match(text)
    if m:
        return f"https://arxiv.org/abs/{m.group(1)}"
    return text


def _parse(locator: str) -> Tuple[str, str]:
    """(정규화된 URL, 소문자 호스트명). 실패 시 InvalidLocator"""
    url = normalize_locator(locator)
    if not url:
        raise InvalidLocator(locator, "빈 입력")
    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
    except ValueError as e:
        raise InvalidLocator(locator, str(e)) from e
    if parsed.scheme not in ("http", "https"):
        raise InvalidLocator(locator, "http/https URL, DOI 또는 arXiv ID가 필요합니다")
    if not host:
        raise InvalidLocator(locator, "호스트명이 없습니다")
    return url, host


def _select(url: str, host: str) -> Tuple[str, Extractor]:
    for name, predicate, extractor in PROVIDERS:
        if predicate(host, url):
            return name, extractor
    return GENERIC_PROVIDER


def detect_provider(locator: str) -> str:
    """로케이터가 라우팅될 프로바이더 이름"""
    url, host = _parse(locator)
    return _select(url, host)[0]


def extract_from_locator(
    locator: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ExtractedMetadata:
    """로케이터를 해석하여 메타데이터 반환"""
    url, host = _parse(locator)
    name, extractor = _select(url, host)
    log.debug("프로바이더 선택: %s | %s", name, url)
    return extractor(url, session=session, timeout=timeout)


def extract_from_file(path: str | Path) -> ExtractedMetadata:
    """업로드된 로컬 파일. 파일명과 크기만 사용 (내용은 읽지 않음)"""
    p = Path(path).expanduser()
    if not p.is_file():
        raise InvalidLocator(str(path), "파일을 찾을 수 없습니다")
    p = p.resolve()

    suffix = p.suffix.lower()
    title = providers.title_from_filename(p.name, suffix)
    kind = suffix[1:].upper() if suffix else "FILE"
    url = p.as_uri()

    return ExtractedMetadata(
        title=title,
        authors=["Unknown"],
        abstract=f"Uploaded {kind} file. Metadata is limited to the file name.",
        source="Local Upload",
        url=url,
        pdf_url=url if suffix == ".pdf" else None,
        tags=[t for t in [suffix[1:], "upload"] if t],
        category=classify(title),
        file_size=format_file_size(p.stat().st_size),
        citation=f"{title}. Retrieved from {url}",
    )
