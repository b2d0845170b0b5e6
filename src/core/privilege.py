"""Sender privilege checks (core domain)."""

from __future__ import annotations

import logging

from core.errors import RoleLookupFailure
from core.ports import MessagingPort

LOGGER = logging.getLogger(__name__)


class PrivilegeOracle:
    """Decide whether a sender is an admin or the creator of a group.

    Roles can change at any time, so every call performs a fresh membership
    lookup. A failed lookup counts as not elevated so that an outage cannot
    be used to bypass enforcement.
    """

    def __init__(self, messaging: MessagingPort) -> None:
        self._messaging = messaging

    async def is_elevated(self, group_id: int, sender_id: int) -> bool:
        try:
            members = await self._messaging.get_group_membership(group_id)
        except RoleLookupFailure as exc:
            LOGGER.warning("Role lookup failed for %s in %s, treating as member: %s", sender_id, group_id, exc)
            return False
        return any(member.user_id == sender_id and member.is_elevated for member in members)
