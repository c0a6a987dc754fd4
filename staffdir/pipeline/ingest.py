from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse
import os
import time

import httpx

from .fetchers.static import StaticFetcher, FetchResult, DEFAULT_TIMEOUT_S, DEFAULT_UA
from .extract import Extractor, ExtractionResult
from ..schemas import EntryList, FieldResult


@dataclass
class IngestResult:
    """One fetch -> extract flow. ``result`` is None whenever ``success`` is False."""
    url: str
    kind: str  # "list" or "detail"
    success: bool
    status_code: int
    html: str | None = None
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None

    @property
    def nothing_found(self) -> bool:
        return bool(self.success and self.result is not None and self.result.is_empty)


class IngestPipeline:
    """Fetch a page and run an extractor over it.

    Fetch failures (network, timeout, HTTP >= 400, robots, non-HTML) come back
    as unsuccessful results; the extractor is only invoked on HTML text.
    """

    def __init__(
        self,
        *,
        static_fetcher: Optional[StaticFetcher] = None,
        static_timeout_s: float | None = None,
        user_agent: str = DEFAULT_UA,
        respect_robots: bool = True,
    ):
        if static_fetcher is None:
            self.static_fetcher = StaticFetcher(
                timeout_s=float(static_timeout_s or DEFAULT_TIMEOUT_S),
                user_agent=user_agent,
                respect_robots=respect_robots,
            )
        else:
            self.static_fetcher = static_fetcher
        # OPS logging toggle (env or runner flag)
        self.ops_json_enabled = False
        self._last_ops_record: Optional[Dict[str, Any]] = None

    def _extract_domain(self, url: str) -> str:
        return (urlparse(url).netloc or "").lower()

    def _ops_enabled(self) -> bool:
        return os.environ.get("STAFFDIR_OPS_JSON", "0") == "1" or bool(self.ops_json_enabled)

    def _fail(self, url: str, kind: str, status_code: int, error: str, html: str | None = None) -> IngestResult:
        return IngestResult(url=url, kind=kind, success=False, status_code=status_code, html=html, error=error)

    def ingest(self, url: str, extractor: Extractor) -> IngestResult:
        """Fetch ``url`` and extract with ``extractor``."""
        kind = getattr(extractor, "kind", "unknown")
        t0 = time.perf_counter()
        t_fetch = 0.0
        t_extract = 0.0

        def _record(res: IngestResult) -> IngestResult:
            self._last_ops_record = None
            if not self._ops_enabled():
                return res
            count = 0
            if isinstance(res.result, EntryList):
                count = len(res.result.entries)
            elif isinstance(res.result, FieldResult):
                count = sum(1 for v in res.result.values.values() if v)
            self._last_ops_record = {
                "staffdir_ops": 1,
                "url": url,
                "domain": self._extract_domain(url),
                "kind": kind,
                "success": res.success,
                "status_code": res.status_code,
                "durations": {
                    "fetch_s": round(t_fetch, 4),
                    "extract_s": round(t_extract, 4),
                    "total_s": round(max(0.0, time.perf_counter() - t0), 4),
                },
                "counts": {"items": count},
                "error": res.error,
            }
            return res

        try:
            t_start = time.perf_counter()
            fetched: FetchResult = self.static_fetcher.fetch(url)
            t_fetch = time.perf_counter() - t_start
        except httpx.TimeoutException as e:
            return _record(self._fail(url, kind, 0, f"Timeout: {e}"))
        except httpx.HTTPError as e:
            return _record(self._fail(url, kind, 0, f"Network error: {e}"))

        if fetched.blocked_by_robots:
            return _record(self._fail(url, kind, 0, "Blocked by robots.txt"))
        if fetched.status_code >= 400:
            return _record(self._fail(url, kind, fetched.status_code, f"HTTP {fetched.status_code}", fetched.html))
        if not fetched.is_html:
            return _record(self._fail(url, kind, fetched.status_code, f"Unsupported content type: {fetched.mime}"))

        t_start = time.perf_counter()
        result = extractor.extract(fetched.html, source_url=fetched.url)
        t_extract = time.perf_counter() - t_start
        return _record(
            IngestResult(
                url=url,
                kind=kind,
                success=True,
                status_code=fetched.status_code,
                html=fetched.html,
                result=result,
            )
        )

    def close(self) -> None:
        """Clean up resources."""
        self.static_fetcher.close()
