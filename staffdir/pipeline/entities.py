from __future__ import annotations

import re
from typing import Mapping, Sequence, Tuple

# Entities common on German-language school pages. Not a full HTML5 table:
# anything missing here passes through untouched.
DEFAULT_ENTITY_TABLE: Tuple[Tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&nbsp;", " "),
    ("&ouml;", "ö"),
    ("&uuml;", "ü"),
    ("&auml;", "ä"),
    ("&Ouml;", "Ö"),
    ("&Uuml;", "Ü"),
    ("&Auml;", "Ä"),
    ("&szlig;", "ß"),
    ("&#39;", "'"),
    ("&quot;", '"'),
)

_PATTERN_CACHE: dict[Tuple[Tuple[str, str], ...], re.Pattern[str]] = {}


def _as_pairs(table: Mapping[str, str] | Sequence[Tuple[str, str]]) -> Tuple[Tuple[str, str], ...]:
    items = table.items() if isinstance(table, Mapping) else table
    return tuple((str(k), str(v)) for k, v in items if k)


def _compile(pairs: Tuple[Tuple[str, str], ...]) -> re.Pattern[str]:
    pat = _PATTERN_CACHE.get(pairs)
    if pat is None:
        # Table order decides which entity wins when two share a prefix
        pat = re.compile("|".join(re.escape(k) for k, _ in pairs))
        _PATTERN_CACHE[pairs] = pat
    return pat


def decode_entities(
    s: str,
    table: Mapping[str, str] | Sequence[Tuple[str, str]] = DEFAULT_ENTITY_TABLE,
) -> str:
    """Replace the entities listed in ``table`` with their literal characters.

    Runs as a single left-to-right pass, so replacement text is never scanned
    again: ``"&amp;uuml;"`` decodes to ``"&uuml;"`` rather than ``"ü"``.
    """
    if not s:
        return s or ""
    pairs = _as_pairs(table)
    if not pairs:
        return s
    lookup: dict[str, str] = {}
    for k, v in pairs:
        lookup.setdefault(k, v)
    return _compile(pairs).sub(lambda m: lookup[m.group(0)], s)
