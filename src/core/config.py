"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ReconnectConfig:
    """Exponential backoff settings for the connection supervisor."""

    initial_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0


@dataclass(frozen=True)
class MessagesConfig:
    """Texts posted to groups. ``{mention}`` is replaced with ``@label``."""

    link_warning: str = "🚫 Link detected, removing {mention}"
    enabled: str = "✅ Anti-link has been enabled."
    disabled: str = "❌ Anti-link has been disabled."
