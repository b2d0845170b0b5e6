"""Link detection (core domain)."""

from __future__ import annotations

import re
from typing import List, Optional

from core.models import LinkVerdict

# Scheme or www. prefixed tokens, then bare domains such as example.com/path.
_LINK_RE = re.compile(
    r"(?:https?://|www\.)\S+|(?:[a-z0-9-]+\.)+[a-z]{2,}(?:/\S*)?",
    re.IGNORECASE,
)


def find_links(text: Optional[str]) -> List[str]:
    """Return every non-overlapping link-like token in the text."""

    if not text:
        return []
    return [match.group(0) for match in _LINK_RE.finditer(text)]


def classify(text: Optional[str]) -> LinkVerdict:
    if text and _LINK_RE.search(text):
        return LinkVerdict.CONTAINS_LINK
    return LinkVerdict.NO_LINK
