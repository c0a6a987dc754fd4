from __future__ import annotations

import re
from typing import Dict, Iterable, Optional

from selectolax.parser import HTMLParser

from ..schemas import FieldSpec
from .entities import decode_entities


_PATTERN_CACHE: Dict[tuple, re.Pattern[str]] = {}


def field_pattern(spec: FieldSpec) -> re.Pattern[str]:
    """marker ... value_open (value) value_close, spanning lines, shortest match."""
    key = (spec.marker, spec.value_open, spec.value_close)
    pat = _PATTERN_CACHE.get(key)
    if pat is None:
        pat = re.compile(
            re.escape(spec.marker) + r".*?" + re.escape(spec.value_open) + r"(.*?)" + re.escape(spec.value_close),
            re.DOTALL,
        )
        _PATTERN_CACHE[key] = pat
    return pat


def clean_value(value: str) -> str:
    return decode_entities(value or "").strip()


def extract_fields(html: str, specs: Iterable[FieldSpec], clean: bool = False) -> Dict[str, str]:
    """Return ``{spec.name: value}`` for every spec, '' where nothing matched.

    Specs are matched independently; values are raw unless ``clean`` is set.
    """
    out: Dict[str, str] = {}
    doc = html or ""
    for spec in specs:
        m = field_pattern(spec).search(doc)
        value = m.group(1) if m else ""
        out[spec.name] = clean_value(value) if clean else value
    return out


_TAG_NAME_RE = re.compile(r"\s*<\s*([A-Za-z][\w:-]*)")

# td/th/tr are dropped by the parser unless they sit inside a table
_TABLE_CONTEXT = "<table><tr>{}</tr></table>"


class _TagMatcher:
    """A literal opening tag (plus optional text) turned into a node predicate."""

    def __init__(self, tag: str, attributes: Dict[str, Optional[str]], text: str):
        self.tag = tag
        self.attributes = attributes
        self.text = text

    def matches(self, node) -> bool:
        if node.tag != self.tag or dict(node.attributes or {}) != self.attributes:
            return False
        return not self.text or (node.text(deep=True) or "").strip() == self.text


def _matcher_for(tag_markup: str) -> Optional[_TagMatcher]:
    """Parse markup like '<div class="field Raum">' or '<dt>Telefon</dt>'."""
    m = _TAG_NAME_RE.match(tag_markup or "")
    if not m:
        return None
    name = m.group(1).lower()
    for source in (tag_markup, _TABLE_CONTEXT.format(tag_markup)):
        node = HTMLParser(source).css_first(name)
        if node is not None:
            return _TagMatcher(name, dict(node.attributes or {}), (node.text(deep=True) or "").strip())
    return None


def extract_fields_dom(html: str, specs: Iterable[FieldSpec], clean: bool = False) -> Dict[str, str]:
    """selectolax variant of extract_fields.

    The marker is the first element whose tag and attributes equal the
    marker's, and whose text equals the marker text when it has any. The
    value is the first element after it in document order whose opening tag
    equals ``value_open``.

    Values are element text content, so character references always come back
    decoded by the parser (``&amp;`` -> ``&``, ``&nbsp;`` -> U+00A0), even
    with ``clean=False``; ``clean`` only trims.
    """
    specs = list(specs)
    out: Dict[str, str] = {spec.name: "" for spec in specs}
    if not html or not html.strip():
        return out
    nodes = list(HTMLParser(html).root.traverse())
    for spec in specs:
        marker = _matcher_for(spec.marker)
        value_tag = _matcher_for(spec.value_open)
        if marker is None or value_tag is None:
            continue
        found = None
        seen_marker = False
        for node in nodes:
            if not seen_marker:
                seen_marker = marker.matches(node)
            elif value_tag.matches(node):
                found = node
                break
        if found is None:
            continue
        value = found.text(deep=True) or ""
        out[spec.name] = value.strip() if clean else value
    return out
