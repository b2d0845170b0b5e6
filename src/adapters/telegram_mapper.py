"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline. The message is
validated once here so the core only ever sees a fixed-shape InboundMessage.
"""

from __future__ import annotations

from typing import Optional

from telethon import utils
from telethon.tl.custom import Message

from core.models import InboundMessage, MessageRef


def sender_label(sender) -> Optional[str]:
    """Return the label used when mentioning a sender, preferring the username."""

    if sender is None:
        return None
    username = getattr(sender, "username", None)
    if isinstance(username, str) and username:
        return username
    return utils.get_display_name(sender) or None


async def build_inbound(message: Message) -> Optional[InboundMessage]:
    """Build a core InboundMessage from a Telethon Message.

    Returns None for messages without a chat or a sender (service messages,
    anonymous channel posts), which the core has nothing to moderate on.
    """

    chat_id = getattr(message, "chat_id", None)
    sender_id = getattr(message, "sender_id", None)
    if chat_id is None or sender_id is None:
        return None

    is_from_self = bool(message.out)
    is_group = bool(message.is_group)
    # Only group messages from others are moderated; skip the sender lookup otherwise.
    sender = await message.get_sender() if is_group and not is_from_self else None
    return InboundMessage(
        group_id=chat_id,
        sender_id=sender_id,
        text=message.raw_text or "",
        is_from_self=is_from_self,
        is_group=is_group,
        message_ref=MessageRef(chat_id=chat_id, message_id=message.id),
        sender_name=sender_label(sender),
    )
