from __future__ import annotations

from typing import Iterable, Optional, Tuple

# Site-wide menu labels seen on staff list pages (German labels first)
DEFAULT_NAV_KEYWORDS: Tuple[str, ...] = (
    "Anmeldung",
    "News",
    "Kontakt",
    "Service",
    "Ausbildung",
    "Reset",
    "Contact",
    "Login",
    "Enrollment",
)


def _normalize(s: Optional[str]) -> str:
    if s is None:
        return ""
    return str(s).lower()


def is_likely_navigation_text(s: Optional[str], keywords: Iterable[str] = DEFAULT_NAV_KEYWORDS) -> bool:
    """Return True if ``s`` looks like a navigation/service label.

    - Case-insensitive substring match, no word boundaries ("Newsletter" hits "news")
    - Empty keywords are ignored
    - Robust to None/empty inputs
    """
    text = _normalize(s)
    if not text:
        return False
    for kw in keywords:
        k = _normalize(kw)
        if k and k in text:
            return True
    return False
