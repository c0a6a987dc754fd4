from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import httpx


DEFAULT_UA = "StaffDir-StaticFetcher/0.1 (+https://example.com)"
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_ACCEPT_LANGUAGE = "de-AT,de;q=0.9,en;q=0.5"

HTML_MEDIA_TYPES = frozenset({"text/html", "application/xhtml+xml"})


def media_type(content_type: Optional[str]) -> Optional[str]:
    """'text/html; charset=utf-8' -> 'text/html'; None for a missing header."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


@dataclass(frozen=True)
class FetchResult:
    """A fetched page. ``html`` is only set for HTML media types."""
    url: str  # after redirects
    status_code: int
    mime: Optional[str]
    html: Optional[str]
    blocked_by_robots: bool = False

    @property
    def is_html(self) -> bool:
        return self.mime in HTML_MEDIA_TYPES and self.html is not None

    @classmethod
    def blocked(cls, url: str) -> "FetchResult":
        return cls(url=url, status_code=0, mime=None, html=None, blocked_by_robots=True)


class StaticFetcher:
    """Fetches staff pages over plain HTTP GET.

    - One httpx client per fetcher; its timeout is the only timeout, no retries
    - robots.txt is read once per site and cached for the fetcher's lifetime
    - httpx.HTTPError propagates; HTTP error statuses are returned, not raised
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_UA,
        respect_robots: bool = True,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.respect_robots = respect_robots
        self._robots: Dict[str, Optional[RobotFileParser]] = {}
        self._client = httpx.Client(
            timeout=self.timeout_s,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.1",
                "Accept-Language": accept_language,
            },
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "StaticFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _robots_for(self, site: str) -> Optional[RobotFileParser]:
        """Parsed robots.txt for ``scheme://host``; None when there is none to honour."""
        if site in self._robots:
            return self._robots[site]
        rules: Optional[RobotFileParser] = None
        try:
            resp = self._client.get(f"{site}/robots.txt")
        except httpx.HTTPError:
            resp = None
        if resp is not None and resp.status_code < 400:
            rules = RobotFileParser()
            rules.parse(resp.text.splitlines())
        self._robots[site] = rules
        return rules

    def allowed(self, url: str) -> bool:
        if not self.respect_robots:
            return True
        parts = urlsplit(url)
        rules = self._robots_for(f"{parts.scheme}://{parts.netloc}")
        if rules is None:
            return True
        return rules.can_fetch(self.user_agent, url) and rules.can_fetch("*", url)

    def fetch(self, url: str) -> FetchResult:
        if not self.allowed(url):
            return FetchResult.blocked(url)
        resp = self._client.get(url)
        mime = media_type(resp.headers.get("Content-Type"))
        return FetchResult(
            url=str(resp.url),
            status_code=resp.status_code,
            mime=mime,
            html=resp.text if mime in HTML_MEDIA_TYPES else None,
        )
