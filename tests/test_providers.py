"""프로바이더 추출기 테스트 (네트워크는 FakeSession으로 대체)"""

from __future__ import annotations

import requests

from tests.conftest import FakeResponse, FakeSession
from xraider.core.models import Category
from xraider.extract import providers
from xraider.extract.providers import (
    ARXIV_API,
    CROSSREF_API,
    PUBMED_SUMMARY_API,
    extract_arxiv,
    extract_arxiv_id,
    extract_crossref,
    extract_direct_file,
    extract_pubmed,
    extract_restricted,
    extract_webpage,
    fallback_record,
    generate_citation,
    title_from_url,
)

ARXIV_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <entry>
    <id>http://arxiv.org/abs/2301.00001v1</id>
    <published>2023-01-01T00:00:00Z</published>
    <title>  Sparse Attention
      Revisited </title>
    <summary>We study attention.</summary>
    <author><name>Alice Kim</name></author>
    <author><name>Bob Lee</name></author>
    <arxiv:doi>10.1234/sparse.2023</arxiv:doi>
    <category term="cs.CL"/>
    <category term="cs.LG"/>
  </entry>
</feed>
"""

ARXIV_ERROR_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/api/errors#incorrect_id_format_for_bad</id>
    <title>Error</title>
  </entry>
</feed>
"""


class TestHelpers:
    def test_title_from_url_picks_last_meaningful_segment(self):
        url = "https://www.researchgate.net/publication/123456_Deep-Learning-Review/figures"
        assert title_from_url(url) == "Figures"
        assert title_from_url("https://example.com/papers/graph-neural_nets/42") == "Graph Neural Nets"

    def test_title_from_url_falls_back_to_host(self):
        assert title_from_url("https://www.example.com/a/b.html") == "example.com"

    def test_generate_citation(self):
        assert generate_citation("T", ["A", "B"], "arXiv", "2023-01-01") == "A, B (2023). T. arXiv."
        assert generate_citation("T", [], "Web", None) == "Unknown (n.d.). T. Web."

    def test_fallback_record_never_fails(self):
        meta = fallback_record("https://doi.org/10.1038/nature14539", "DOI")
        assert meta.title == "Nature14539"
        assert meta.source == "DOI"
        assert meta.authors == ["Unknown"]
        assert meta.tags == ["doi", "extracted"]
        assert meta.category == Category.GENERAL
        assert meta.url == "https://doi.org/10.1038/nature14539"

    def test_fallback_record_multiword_source_slug(self):
        meta = fallback_record("https://scholar.google.com/", "Google Scholar")
        assert meta.tags == ["google-scholar", "extracted"]
        assert meta.title == "Scholar.google.com"


class TestArxiv:
    def test_extract_id_variants(self):
        assert extract_arxiv_id("https://arxiv.org/abs/2301.00001v2") == "2301.00001v2"
        assert extract_arxiv_id("https://arxiv.org/pdf/2301.00001.pdf") == "2301.00001"
        assert extract_arxiv_id("https://example.com/x") is None

    def test_success(self):
        session = FakeSession({ARXIV_API: FakeResponse(200, ARXIV_FEED)})
        meta = extract_arxiv("https://arxiv.org/abs/2301.00001", session=session)

        assert meta.title == "Sparse Attention Revisited"
        assert meta.authors == ["Alice Kim", "Bob Lee"]
        assert meta.source == "arXiv"
        assert meta.pdf_url == "https://arxiv.org/pdf/2301.00001.pdf"
        assert meta.date_published == "2023-01-01T00:00:00Z"
        assert meta.tags == ["arxiv", "preprint", "cs.CL", "cs.LG"]
        assert meta.category == Category.COMPUTER_SCIENCE
        assert meta.doi == "10.1234/sparse.2023"
        assert meta.citation.startswith("Alice Kim, Bob Lee (2023).")
        assert session.calls[0][1]["params"]["id_list"] == "2301.00001"

    def test_single_cs_subcategory_is_computer_science(self):
        feed = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All You Need</title>
    <summary>The dominant sequence transduction models are based on complex recurrent networks.</summary>
    <author><name>Ashish Vaswani</name></author>
    <category term="cs.CL"/>
  </entry>
</feed>
"""
        session = FakeSession({ARXIV_API: FakeResponse(200, feed)})
        meta = extract_arxiv("https://arxiv.org/abs/1706.03762", session=session)

        assert meta.title == "Attention Is All You Need"
        assert meta.tags == ["arxiv", "preprint", "cs.CL"]
        assert meta.category == Category.COMPUTER_SCIENCE

    def test_error_entry_falls_back(self):
        session = FakeSession({ARXIV_API: FakeResponse(200, ARXIV_ERROR_FEED)})
        meta = extract_arxiv("https://arxiv.org/abs/bad", session=session)
        assert meta.source == "arXiv"
        assert "extracted" in meta.tags

    def test_network_error_falls_back(self):
        session = FakeSession(error=requests.ConnectionError("down"))
        meta = extract_arxiv("https://arxiv.org/abs/2301.00001", session=session)
        assert meta.title == "2301.00001"
        assert meta.tags == ["arxiv", "extracted"]


class TestCrossref:
    WORK = {
        "message": {
            "title": ["Deep learning"],
            "author": [{"given": "Yann", "family": "LeCun"}, {"given": "Yoshua", "family": "Bengio"}],
            "container-title": ["Nature"],
            "published-print": {"date-parts": [[2015, 5, 28]]},
            "abstract": "<jats:p>Deep learning allows computational models.</jats:p>",
            "page": "436-444",
        }
    }

    def test_success(self):
        session = FakeSession({CROSSREF_API: FakeResponse(200, json_data=self.WORK)})
        meta = extract_crossref("https://doi.org/10.1038/nature14539", session=session)

        assert meta.title == "Deep learning"
        assert meta.authors == ["Yann LeCun", "Yoshua Bengio"]
        assert meta.source == "Nature"
        assert meta.date_published == "2015-05-28"
        assert meta.abstract == "Deep learning allows computational models."
        assert meta.pages == 9
        assert meta.doi == "10.1038/nature14539"
        assert meta.tags == ["doi", "published", "nature"]
        assert meta.category == Category.COMPUTER_SCIENCE

    def test_not_found_falls_back(self):
        session = FakeSession({CROSSREF_API: FakeResponse(404)})
        meta = extract_crossref("https://doi.org/10.1038/nature14539", session=session)
        assert meta.title == "Nature14539"
        assert meta.source == "DOI"
        assert meta.tags == ["doi", "extracted"]

    def test_missing_title_falls_back(self):
        session = FakeSession({CROSSREF_API: FakeResponse(200, json_data={"message": {"title": []}})})
        meta = extract_crossref("https://doi.org/10.1038/nature14539", session=session)
        assert "extracted" in meta.tags


class TestPubmed:
    def test_success_is_always_medical(self):
        payload = {"result": {"12345": {
            "title": "Graph algorithms for hospitals",
            "authors": [{"name": "Park J"}],
            "source": "BMJ",
            "pubdate": "2020 Jan",
            "articleids": [{"idtype": "doi", "value": "10.1/bmj.1"}],
        }}}
        session = FakeSession({PUBMED_SUMMARY_API: FakeResponse(200, json_data=payload)})
        meta = extract_pubmed("https://pubmed.ncbi.nlm.nih.gov/12345/", session=session)
        assert meta.title == "Graph algorithms for hospitals"
        assert meta.source == "PubMed"
        assert meta.category == Category.MEDICAL_SCIENCE
        assert meta.doi == "10.1/bmj.1"

    def test_failure_falls_back(self):
        session = FakeSession(error=requests.Timeout("slow"))
        meta = extract_pubmed("https://pubmed.ncbi.nlm.nih.gov/12345/", session=session)
        assert meta.source == "PubMed"
        assert meta.tags == ["pubmed", "extracted"]


class TestRestrictedAndDirect:
    def test_restricted_makes_no_request(self):
        session = FakeSession()
        meta = extract_restricted(
            "https://www.researchgate.net/publication/Attention_Is_All_You_Need",
            session=session, source="ResearchGate",
        )
        assert session.calls == []
        assert meta.title == "Attention Is All You Need"
        assert meta.source == "ResearchGate"
        assert meta.tags == ["researchgate", "extracted"]

    def test_direct_pdf(self):
        meta = extract_direct_file("https://example.com/files/quantum_field-theory.pdf")
        assert meta.title == "Quantum Field Theory"
        assert meta.source == "Direct PDF"
        assert meta.pdf_url == meta.url
        assert meta.tags == ["pdf", "direct-upload"]
        assert meta.category == Category.PHYSICS

    def test_document_suffix(self):
        assert providers.document_suffix("https://x.org/a/B.DOCX") == ".docx"
        assert providers.document_suffix("https://x.org/a/page") is None


class TestWebpage:
    def test_title_and_description(self):
        html = b"""<html><head><title>Climate Data Portal</title>
        <meta name="description" content="Open ecosystem datasets"></head><body></body></html>"""
        session = FakeSession({"https://www.example.org": FakeResponse(200, html)})
        meta = extract_webpage("https://www.example.org/portal", session=session)
        assert meta.title == "Climate Data Portal"
        assert meta.abstract == "Open ecosystem datasets"
        assert meta.source == "www.example.org"
        assert meta.tags == ["web-extract", "www-example-org"]
        assert meta.category == Category.ENVIRONMENTAL_SCIENCE

    def test_og_title_then_h1(self):
        html = b"""<html><head><meta property="og:title" content="OG Title"></head></html>"""
        session = FakeSession({"https://a.com": FakeResponse(200, html)})
        assert extract_webpage("https://a.com/x", session=session).title == "OG Title"

        html = b"""<html><body><h1>Heading Title</h1></body></html>"""
        session = FakeSession({"https://a.com": FakeResponse(200, html)})
        assert extract_webpage("https://a.com/x", session=session).title == "Heading Title"

    def test_failure_falls_back_to_web(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        meta = extract_webpage("https://blog.example.com/posts/understanding-transformers", session=session)
        assert meta.source == "Web"
        assert meta.title == "Understanding Transformers"
        assert meta.tags == ["web", "extracted"]
