"""
소스별 메타데이터 추출기

지원: arXiv, DOI(Crossref), PubMed, Google Scholar/ResearchGate/Academia.edu(봇 차단),
직접 파일 URL, 일반 웹 페이지

모든 추출기는 extract(url, session=None, timeout=...) -> ExtractedMetadata 형태이며
예외를 밖으로 던지지 않습니다. 네트워크/파싱 실패는 URL 모양만으로 만든 폴백 레코드로 대체됩니다.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import List, Optional
from urllib.parse import quote, unquote, urlparse

import requests
from bs4 import BeautifulSoup

from xraider.core.errors import ProviderFailure
from xraider.core.models import Category, ExtractedMetadata
from xraider.extract.classifier import classify

log = logging.getLogger("xraider.extract")

DEFAULT_TIMEOUT = 30

ARXIV_API = "https://export.arxiv.org/api/query"
ARXIV_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}
CROSSREF_API = "https://api.crossref.org/works"
PUBMED_SUMMARY_API = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esummary.fcgi"

ARXIV_ID_PATTERNS = (
    re.compile(r"arxiv\.org/abs/([^/?#]+)"),
    re.compile(r"arxiv\.org/pdf/([^/?#]+)"),
    re.compile(r"arxiv\.org/([^/?#]+)"),
)
DOI_RE = re.compile(r"10\.\d{4,9}/[^\s?#]+")
PMID_RE = re.compile(r"/(\d+)/?")

# arXiv 분류 코드 → 분류기용 설명 (전체 코드 우선, 없으면 아카이브 접두어)
ARXIV_ARCHIVE_NAMES = {
    "cs": "computer science",
    "stat.ML": "machine learning",
    "physics": "physics",
    "quant-ph": "quantum physics",
    "hep-th": "particle physics",
    "hep-ph": "particle physics",
    "hep-ex": "particle physics",
    "hep-lat": "particle physics",
    "nucl-th": "nuclear physics",
    "nucl-ex": "nuclear physics",
    "cond-mat": "condensed matter physics",
    "astro-ph": "astrophysics",
    "gr-qc": "general relativity",
    "math-ph": "mathematical physics",
}

DOCUMENT_SUFFIXES = (".pdf", ".docx", ".doc", ".ps", ".epub")


# --- 공통 헬퍼 ---

def slugify(text: str) -> str:
    return re.sub(r"\s+", "-", (text or "").strip().lower())


def _title_case(text: str) -> str:
    """각 단어 첫 글자만 대문자 (나머지는 유지)"""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def _path_parts(url: str) -> List[str]:
    try:
        path = urlparse(url).path
    except ValueError:
        return []
    return [unquote(p) for p in path.split("/") if p]


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def title_from_url(url: str) -> str:
    """경로 끝에서부터 의미 있는 세그먼트를 찾아 제목으로 변환. 없으면 호스트명"""
    for part in reversed(_path_parts(url)):
        if len(part) > 5 and "." not in part and not part.isdigit():
            return _title_case(re.sub(r"[-_]", " ", part))
    return _strip_www(_hostname(url))


def generate_citation(title: str, authors: List[str], source: str, date: Optional[str]) -> str:
    author_str = ", ".join(authors) if authors else "Unknown"
    m = re.search(r"\d{4}", date or "")
    year = m.group(0) if m else "n.d."
    return f"{author_str} ({year}). {title}. {source}."


def fallback_record(url: str, source: str, title: Optional[str] = None) -> ExtractedMetadata:
    """API 실패 시 URL 텍스트만으로 만드는 레코드. 실패하지 않음"""
    parts = _path_parts(url)
    extracted = (title or "").strip()
    if not extracted and parts:
        extracted = re.sub(r"[-_]", " ", parts[-1]).strip()
    if not extracted:
        extracted = _strip_www(_hostname(url))
    if not extracted:
        extracted = (url or "").strip() or "Untitled Document"
    extracted = extracted[0].upper() + extracted[1:]

    return ExtractedMetadata(
        title=extracted,
        authors=["Unknown"],
        abstract=f"Document extracted from {source}. Full metadata may not be available.",
        source=source,
        url=url,
        tags=[slugify(source), "extracted"],
        category=classify(extracted),
        citation=f"{extracted}. Retrieved from {url}",
    )


def _http_get(session: Optional[requests.Session], url: str, timeout: float, **kwargs) -> requests.Response:
    client = session if session is not None else requests
    resp = client.get(url, timeout=timeout, **kwargs)
    resp.raise_for_status()
    return resp


# --- arXiv ---

def extract_arxiv_id(url: str) -> Optional[str]:
    for pattern in ARXIV_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            arxiv_id = m.group(1)
            if arxiv_id.lower().endswith(".pdf"):
                arxiv_id = arxiv_id[:-4]
            return arxiv_id
    return None


def _arxiv_topic_words(terms: List[str]) -> str:
    words = []
    for term in terms:
        name = ARXIV_ARCHIVE_NAMES.get(term) or ARXIV_ARCHIVE_NAMES.get(term.split(".")[0])
        if name:
            words.append(name)
    return " ".join(words)


def extract_arxiv(url: str, session: Optional[requests.Session] = None,
                  timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata:
    try:
        arxiv_id = extract_arxiv_id(url)
        if not arxiv_id:
            raise ProviderFailure("arXiv ID를 찾을 수 없음")

        resp = _http_get(session, ARXIV_API, timeout,
                         params={"id_list": arxiv_id, "max_results": 1})
        root = ET.fromstring(resp.content)
        entry = root.find("atom:entry", ARXIV_NS)
        if entry is None or "/api/errors" in (entry.findtext("atom:id", "", ARXIV_NS) or ""):
            raise ProviderFailure(f"arXiv 항목 없음: {arxiv_id}")

        title = " ".join((entry.findtext("atom:title", "", ARXIV_NS) or "").split())
        if not title:
            raise ProviderFailure(f"arXiv 제목 없음: {arxiv_id}")
        summary = " ".join((entry.findtext("atom:summary", "", ARXIV_NS) or "").split())
        published = (entry.findtext("atom:published", "", ARXIV_NS) or "").strip()

        authors = []
        for a in entry.findall("atom:author", ARXIV_NS):
            name = (a.findtext("atom:name", "", ARXIV_NS) or "").strip()
            if name:
                authors.append(name)

        terms = [c.get("term", "") for c in entry.findall("atom:category", ARXIV_NS)]
        terms = [t for t in terms if t]
        doi = (entry.findtext("arxiv:doi", "", ARXIV_NS) or "").strip() or None

        return ExtractedMetadata(
            title=title,
            authors=authors,
            abstract=summary,
            source="arXiv",
            url=url,
            pdf_url=f"https://arxiv.org/pdf/{arxiv_id}.pdf",
            date_published=published or None,
            tags=["arxiv", "preprint", *terms[:3]],
            category=classify(f"{title} {' '.join(terms)} {_arxiv_topic_words(terms)}"),
            doi=doi,
            citation=generate_citation(title, authors, "arXiv", published),
        )
    except Exception as e:
        log.warning("arXiv 추출 실패 (%s): %s", url, e)
        return fallback_record(url, "arXiv")


# --- DOI (Crossref) ---

def extract_doi(text: str) -> Optional[str]:
    m = DOI_RE.search(unquote(text or ""))
    if not m:
        return None
    return m.group(0).rstrip(".,;")


def _crossref_date(work: dict) -> Optional[str]:
    for key in ("published", "published-print", "published-online", "issued"):
        parts = (work.get(key) or {}).get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            nums = [int(p) for p in parts[0][:3]]
            return "-".join([f"{nums[0]:04d}", *(f"{n:02d}" for n in nums[1:])])
    return None


def _page_count(page: Optional[str]) -> Optional[int]:
    """'436-444' → 9"""
    m = re.fullmatch(r"\s*(\d+)\s*[-–]\s*(\d+)\s*", page or "")
    if not m:
        return None
    first, last = int(m.group(1)), int(m.group(2))
    return last - first + 1 if last >= first else None


def extract_crossref(url: str, session: Optional[requests.Session] = None,
                     timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata:
    try:
        doi = extract_doi(url)
        if not doi:
            raise ProviderFailure("DOI 형식이 아님")

        resp = _http_get(session, f"{CROSSREF_API}/{quote(doi, safe='/')}", timeout)
        work = resp.json()["message"]

        titles = work.get("title") or []
        title = " ".join(str(titles[0]).split()) if titles else ""
        if not title:
            raise ProviderFailure(f"Crossref 제목 없음: {doi}")

        authors = []
        for a in work.get("author") or []:
            name = f"{a.get('given', '')} {a.get('family', '')}".strip() or a.get("name", "")
            if name:
                authors.append(name)

        containers = work.get("container-title") or []
        journal = containers[0] if containers else ""
        abstract = re.sub(r"<[^>]+>", "", work.get("abstract") or "").strip()
        published = _crossref_date(work)

        return ExtractedMetadata(
            title=title,
            authors=authors,
            abstract=" ".join(abstract.split()),
            source=journal or "DOI",
            url=url,
            date_published=published,
            tags=[t for t in ["doi", "published", slugify(journal)] if t],
            category=classify(f"{title} {journal}"),
            pages=_page_count(work.get("page")),
            doi=doi,
            citation=generate_citation(title, authors, journal or "DOI", published),
        )
    except Exception as e:
        log.warning("DOI 추출 실패 (%s): %s", url, e)
        return fallback_record(url, "DOI")


# --- PubMed ---

def extract_pmid(url: str) -> Optional[str]:
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    m = PMID_RE.search(path)
    return m.group(1) if m else None


def extract_pubmed(url: str, session: Optional[requests.Session] = None,
                   timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata:
    try:
        pmid = extract_pmid(url)
        if not pmid:
            raise ProviderFailure("PMID를 찾을 수 없음")

        resp = _http_get(session, PUBMED_SUMMARY_API, timeout,
                         params={"db": "pubmed", "id": pmid, "retmode": "json"})
        paper = resp.json()["result"][pmid]
        if "error" in paper or not paper.get("title"):
            raise ProviderFailure(f"PubMed 항목 없음: {pmid}")

        title = paper["title"].strip()
        authors = [a["name"] for a in paper.get("authors") or [] if a.get("name")]
        journal = paper.get("source") or ""
        pubdate = paper.get("pubdate") or None
        doi = next(
            (aid.get("value") for aid in paper.get("articleids") or [] if aid.get("idtype") == "doi"),
            None,
        )

        return ExtractedMetadata(
            title=title,
            authors=authors,
            abstract=paper.get("abstract") or "",
            source="PubMed",
            url=url,
            date_published=pubdate,
            tags=[t for t in ["pubmed", "medical", slugify(journal)] if t],
            # PubMed는 의학 문헌 전용
            category=Category.MEDICAL_SCIENCE,
            doi=doi,
            citation=generate_citation(title, authors, journal or "PubMed", pubdate),
        )
    except Exception as e:
        log.warning("PubMed 추출 실패 (%s): %s", url, e)
        return fallback_record(url, "PubMed")


# --- 봇 차단 사이트 ---

def extract_restricted(url: str, session: Optional[requests.Session] = None,
                       timeout: float = DEFAULT_TIMEOUT, source: str = "Web") -> ExtractedMetadata:
    """자동 요청을 차단하는 사이트. 네트워크 호출 없이 URL에서 제목만 추정"""
    return fallback_record(url, source, title_from_url(url))


# --- 직접 파일 ---

def document_suffix(url: str) -> Optional[str]:
    parts = _path_parts(url)
    if not parts:
        return None
    last = parts[-1].lower()
    for suffix in DOCUMENT_SUFFIXES:
        if last.endswith(suffix):
            return suffix
    return None


def title_from_filename(filename: str, suffix: Optional[str] = None) -> str:
    name = filename[: -len(suffix)] if suffix and filename.lower().endswith(suffix) else filename
    title = _title_case(re.sub(r"[-_]+", " ", name)).strip()
    return title or "Unknown"


def extract_direct_file(url: str, session: Optional[requests.Session] = None,
                        timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata:
    """문서 파일 URL. 파일명에서 제목을 만들고 네트워크 호출은 하지 않음"""
    suffix = document_suffix(url) or ".pdf"
    parts = _path_parts(url)
    title = title_from_filename(parts[-1] if parts else "", suffix)
    kind = suffix[1:].upper()
    label = f"Direct {kind}"

    return ExtractedMetadata(
        title=title,
        authors=["Unknown"],
        abstract=f"Direct {kind} link. Metadata is limited to the file name.",
        source=label,
        url=url,
        pdf_url=url,
        tags=[suffix[1:], "direct-upload"],
        category=classify(title),
        citation=f"{title}. Retrieved from {url}",
    )


# --- 일반 웹 페이지 ---

def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    meta = soup.find("meta", attrs=attrs)
    if meta and meta.get("content"):
        return meta["content"].strip() or None
    return None


def extract_webpage(url: str, session: Optional[requests.Session] = None,
                    timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata:
    try:
        resp = _http_get(session, url, timeout)
        soup = BeautifulSoup(resp.content, "html.parser")

        title = None
        if soup.title and soup.title.string and soup.title.string.strip():
            title = " ".join(soup.title.string.split())
        if not title:
            title = _meta_content(soup, property="og:title")
        if not title:
            h1 = soup.find("h1")
            if h1 and h1.get_text(strip=True):
                title = h1.get_text(" ", strip=True)
        if not title:
            title = title_from_url(url) or "Unknown Title"

        description = (
            _meta_content(soup, name="description")
            or _meta_content(soup, property="og:description")
            or ""
        )
        host = _hostname(url)

        return ExtractedMetadata(
            title=title,
            authors=["Unknown"],
            abstract=description,
            source=host,
            url=url,
            tags=["web-extract", host.replace(".", "-")],
            category=classify(f"{title} {description}"),
            citation=f"{title}. Retrieved from {url}",
        )
    except Exception as e:
        log.warning("웹 페이지 추출 실패 (%s): %s", url, e)
        return fallback_record(url, "Web", title_from_url(url))
