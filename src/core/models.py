"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

# Groups without a stored record disallow links.
DEFAULT_LINK_POLICY = True


class LinkVerdict(str, Enum):
    CONTAINS_LINK = "contains_link"
    NO_LINK = "no_link"


class ConnectionState(str, Enum):
    """Lifecycle states of the messaging session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AWAITING_PAIRING = "awaiting_pairing"
    OPEN = "open"
    LOGGED_OUT = "logged_out"


class CloseReason(str, Enum):
    """Why an open session ended."""

    LOGGED_OUT = "logged_out"
    CONNECTION_LOST = "connection_lost"


class MemberRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


@dataclass(frozen=True)
class GroupPolicy:
    """Moderation policy of one group; link_policy=True disallows links."""

    group_id: int
    link_policy: bool = DEFAULT_LINK_POLICY


@dataclass(frozen=True)
class MessageRef:
    """Handle used to delete a message after it was received."""

    chat_id: int
    message_id: int


@dataclass(frozen=True)
class InboundMessage:
    """Minimal message shape used by the moderation pipeline."""

    group_id: int
    sender_id: int
    text: str
    is_from_self: bool
    is_group: bool
    message_ref: MessageRef
    sender_name: Optional[str] = None

    @property
    def sender_label(self) -> str:
        return self.sender_name or str(self.sender_id)


@dataclass(frozen=True)
class GroupMember:
    user_id: int
    role: MemberRole

    @property
    def is_elevated(self) -> bool:
        return self.role in (MemberRole.ADMIN, MemberRole.SUPERADMIN)


@dataclass(frozen=True)
class Mention:
    """A user mention embedded in outbound text as ``@label``."""

    user_id: int
    label: str


@dataclass(frozen=True)
class PairingToken:
    """Out-of-band pairing payload, rendered as a QR code for scanning."""

    url: str
    expires: Optional[datetime] = None
