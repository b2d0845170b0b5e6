"""Telegram messaging adapter.

Implements the core MessagingPort on a Telethon client: sending warnings and
confirmations, deleting messages, removing participants and reading admins.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from telethon import errors
from telethon.tl.types import (
    ChannelParticipantAdmin,
    ChannelParticipantCreator,
    ChannelParticipantsAdmins,
    ChatParticipantAdmin,
    ChatParticipantCreator,
)

from adapters.notification_formatting import format_html
from core.errors import MessagingFailure, RoleLookupFailure
from core.models import GroupMember, MemberRole, Mention, MessageRef

LOGGER = logging.getLogger(__name__)

# Unknown entities surface as ValueError and network faults as OSError.
_CLIENT_ERRORS = (errors.RPCError, ValueError, OSError)


def role_of(participant) -> MemberRole:
    """Map a Telethon participant record to a member role."""

    if isinstance(participant, (ChannelParticipantCreator, ChatParticipantCreator)):
        return MemberRole.SUPERADMIN
    if isinstance(participant, (ChannelParticipantAdmin, ChatParticipantAdmin)):
        return MemberRole.ADMIN
    return MemberRole.MEMBER


class TelethonMessaging:
    """MessagingPort adapter backed by a connected TelegramClient."""

    def __init__(self, client) -> None:
        self._client = client

    async def send_text(self, group_id: int, text: str, mentions: Sequence[Mention] = ()) -> None:
        try:
            await self._client.send_message(
                group_id,
                format_html(text, mentions),
                parse_mode="html",
                link_preview=False,
            )
        except _CLIENT_ERRORS as exc:
            raise MessagingFailure(f"send to {group_id} failed: {exc}") from exc

    async def delete_message(self, message_ref: MessageRef) -> None:
        try:
            await self._client.delete_messages(message_ref.chat_id, [message_ref.message_id])
        except _CLIENT_ERRORS as exc:
            raise MessagingFailure(f"delete of {message_ref.message_id} failed: {exc}") from exc

    async def remove_participant(self, group_id: int, user_id: int) -> None:
        try:
            await self._client.kick_participant(group_id, user_id)
        except _CLIENT_ERRORS as exc:
            raise MessagingFailure(f"removing {user_id} from {group_id} failed: {exc}") from exc

    async def get_group_membership(self, group_id: int) -> List[GroupMember]:
        """Return the admins and the creator of a group.

        Members not listed hold the plain MEMBER role; fetching every member
        of a large group for each message would be too slow.
        """

        members: List[GroupMember] = []
        try:
            async for user in self._client.iter_participants(group_id, filter=ChannelParticipantsAdmins):
                members.append(
                    GroupMember(user_id=user.id, role=role_of(getattr(user, "participant", None)))
                )
        except _CLIENT_ERRORS as exc:
            raise RoleLookupFailure(f"membership of {group_id} unavailable: {exc}") from exc
        LOGGER.debug("Fetched %s admins for %s", len(members), group_id)
        return members
