"""Shared outbound text formatting helpers.

Telegram renders mentions as HTML links to ``tg://user?id=...``; keeping the
escaping here means the core can stay with plain text plus Mention records.
"""

from __future__ import annotations

import html
from typing import Sequence

from core.models import Mention


def mention_link(mention: Mention) -> str:
    """Return an HTML link that notifies the mentioned user."""

    label = html.escape(f"@{mention.label}")
    return f'<a href="tg://user?id={mention.user_id}">{label}</a>'


def format_html(text: str, mentions: Sequence[Mention] = ()) -> str:
    """Escape text for Telegram HTML and turn each ``@label`` into a mention link.

    Only the first occurrence of each label is linked.
    """

    body = html.escape(text)
    for mention in mentions:
        plain = html.escape(f"@{mention.label}")
        body = body.replace(plain, mention_link(mention), 1)
    return body
