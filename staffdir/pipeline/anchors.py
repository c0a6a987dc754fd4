"""
Anchor-List Extraction - Link Labels to Directory Entries

Pulls the visible text of every <a>...</a> element out of a page and filters
it down to plausible directory entries ("Surname Firstname, Title").

Two scanners satisfy the same contract:
- extract_anchor_texts: regex over raw markup (default, cheap)
- extract_anchor_texts_dom: selectolax tree walk

Both keep document order and raw duplicates; filter_candidates dedupes.
Known heuristic limits: unterminated links are silently skipped, nested
tags inside tags are not handled.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

from selectolax.parser import HTMLParser

from .entities import DEFAULT_ENTITY_TABLE, decode_entities
from .navigation import DEFAULT_NAV_KEYWORDS, is_likely_navigation_text


# <a ...>inner</a>; \b keeps <abbr>, <area>, <article> out
ANCHOR_RE = re.compile(r"<a\b[^>]*>(.*?)</a\s*>", re.IGNORECASE | re.DOTALL)
# Simple single-pass tag removal (not recursive)
TAG_RE = re.compile(r"<.*?>", re.DOTALL)

DEFAULT_MAX_COUNT = 5
DEFAULT_MIN_LENGTH = 6

CandidateFilter = Callable[[str], bool]


def strip_tags(s: str) -> str:
    return TAG_RE.sub("", s or "")


def extract_anchor_texts(html: str) -> List[str]:
    """Return the inner text of each link in document order.

    Nested markup is removed; entries that end up blank are skipped.
    """
    out: List[str] = []
    if not html:
        return out
    for m in ANCHOR_RE.finditer(html):
        inner = strip_tags(m.group(1))
        if inner.strip():
            out.append(inner)
    return out


def extract_anchor_texts_dom(html: str) -> List[str]:
    """Same contract as extract_anchor_texts, using the selectolax tree.

    selectolax already resolves entities in text(), so later decoding is a no-op
    for the common cases.
    """
    out: List[str] = []
    if not html or not html.strip():
        return out
    parser = HTMLParser(html)
    for a in parser.css("a"):
        inner = a.text(deep=True) or ""
        if inner.strip():
            out.append(inner)
    return out


def filter_candidates(
    raw_texts: Iterable[str],
    max_count: int = DEFAULT_MAX_COUNT,
    nav_keywords: Iterable[str] = DEFAULT_NAV_KEYWORDS,
    *,
    require_comma: bool = True,
    min_length: int = DEFAULT_MIN_LENGTH,
    entity_table: Mapping[str, str] | Sequence[Tuple[str, str]] = DEFAULT_ENTITY_TABLE,
    extra_filters: Sequence[CandidateFilter] = (),
) -> List[str]:
    """Clean raw link texts and keep the first ``max_count`` plausible entries.

    Order of steps matters:
      1) drop blanks
      2) trim + decode entities
      3) require a comma (heuristic for "Name, Title" records)
      4) require at least ``min_length`` characters
      5) reject navigation labels
      6) caller-supplied predicates (all must pass)
      7) dedupe, first seen wins
      8) truncate to ``max_count``
    """
    if max_count <= 0:
        return []
    keywords = tuple(nav_keywords)
    seen: set[str] = set()
    out: List[str] = []
    for raw in raw_texts:
        if not raw or not raw.strip():
            continue
        text = decode_entities(raw.strip(), entity_table)
        if not text.strip():
            continue
        if require_comma and "," not in text:
            continue
        if len(text) < min_length:
            continue
        if is_likely_navigation_text(text, keywords):
            continue
        if not all(f(text) for f in extra_filters):
            continue
        if text in seen:
            continue
        seen.add(text)
        out.append(text)
        if len(out) >= max_count:
            break
    return out
