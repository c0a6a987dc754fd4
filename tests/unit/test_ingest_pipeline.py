from __future__ import annotations

from unittest.mock import Mock

import httpx

from staffdir.pipeline.extract import AnchorListExtractor, FieldExtractor
from staffdir.pipeline.fetchers.static import FetchResult
from staffdir.pipeline.ingest import IngestPipeline
from staffdir.schemas import EntryList, FieldResult


LIST_URL = "https://www.htl-salzburg.ac.at/lehrerinnen.html"
DETAIL_URL = "https://www.htl-salzburg.ac.at/lehrerinnen-details/huber-tom.html"


def _fetch_result(url: str, html: str | None, status: int = 200, mime: str | None = "text/html", robots: bool = False):
    return FetchResult(url=url, status_code=status, mime=mime, html=html, blocked_by_robots=robots)


def _pipeline(fetch_return=None, fetch_side_effect=None) -> tuple[IngestPipeline, Mock]:
    static_fetcher = Mock()
    if fetch_side_effect is not None:
        static_fetcher.fetch.side_effect = fetch_side_effect
    else:
        static_fetcher.fetch.return_value = fetch_return
    return IngestPipeline(static_fetcher=static_fetcher), static_fetcher


def test_list_page_success():
    html = '<a href="x">Mueller, Anna</a><a>News</a><a>Huber, Tom</a>'
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, html))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is True
    assert res.kind == "list"
    assert isinstance(res.result, EntryList)
    assert res.result.entries == ["Mueller, Anna", "Huber, Tom"]
    assert res.result.source_url == LIST_URL
    assert res.nothing_found is False


def test_detail_page_success():
    html = '<div class="field Raum"><span class="text">G-204</span></div>'
    pipeline, _ = _pipeline(_fetch_result(DETAIL_URL, html))

    res = pipeline.ingest(DETAIL_URL, FieldExtractor())
    assert res.success is True
    assert res.kind == "detail"
    assert isinstance(res.result, FieldResult)
    assert res.result["room"] == "G-204"
    assert res.result["name"] == ""


def test_empty_page_is_nothing_found_not_error():
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, "<html><body></body></html>"))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is True
    assert res.error is None
    assert res.nothing_found is True


def test_http_error_skips_extraction():
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, "<h1>Not Found</h1>", status=404))
    extractor = Mock()
    extractor.kind = "list"

    res = pipeline.ingest(LIST_URL, extractor)
    assert res.success is False
    assert res.status_code == 404
    assert res.error == "HTTP 404"
    assert res.result is None
    extractor.extract.assert_not_called()


def test_robots_block():
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, None, status=0, mime=None, robots=True))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is False
    assert res.error == "Blocked by robots.txt"


def test_non_html_content():
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, None, mime="application/pdf"))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is False
    assert "application/pdf" in res.error


def test_xhtml_content_is_extracted():
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, "<a>Mueller, Anna</a>", mime="application/xhtml+xml"))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is True
    assert res.result.entries == ["Mueller, Anna"]


def test_network_error_becomes_failed_result():
    pipeline, _ = _pipeline(fetch_side_effect=httpx.ConnectError("connection refused"))

    res = pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert res.success is False
    assert res.status_code == 0
    assert res.error == "Network error: connection refused"


def test_timeout_becomes_failed_result():
    pipeline, _ = _pipeline(fetch_side_effect=httpx.ReadTimeout("timed out"))

    res = pipeline.ingest(DETAIL_URL, FieldExtractor())
    assert res.success is False
    assert res.error.startswith("Timeout:")


def test_ops_record_only_when_enabled(monkeypatch):
    monkeypatch.delenv("STAFFDIR_OPS_JSON", raising=False)
    html = '<a>Mueller, Anna</a><a>Huber, Tom</a>'
    pipeline, _ = _pipeline(_fetch_result(LIST_URL, html))

    pipeline.ingest(LIST_URL, AnchorListExtractor())
    assert pipeline._last_ops_record is None

    pipeline.ops_json_enabled = True
    pipeline.ingest(LIST_URL, AnchorListExtractor())
    rec = pipeline._last_ops_record
    assert rec["staffdir_ops"] == 1
    assert rec["kind"] == "list"
    assert rec["domain"] == "www.htl-salzburg.ac.at"
    assert rec["counts"] == {"items": 2}
    assert set(rec["durations"]) == {"fetch_s", "extract_s", "total_s"}


def test_ops_record_enabled_by_env(monkeypatch):
    monkeypatch.setenv("STAFFDIR_OPS_JSON", "1")
    pipeline, _ = _pipeline(_fetch_result(DETAIL_URL, None, status=500))

    pipeline.ingest(DETAIL_URL, FieldExtractor())
    assert pipeline._last_ops_record["success"] is False
    assert pipeline._last_ops_record["error"] == "HTTP 500"


def test_close_closes_fetcher():
    pipeline, fetcher = _pipeline(_fetch_result(LIST_URL, ""))
    pipeline.close()
    fetcher.close.assert_called_once()
