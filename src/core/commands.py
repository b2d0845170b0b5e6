"""Admin commands that toggle the link policy (core domain)."""

from __future__ import annotations

import logging
from typing import Optional

from core.config import MessagesConfig
from core.errors import MessagingFailure, StoreUnavailable
from core.models import InboundMessage
from core.ports import MessagingPort, PolicyStorePort
from core.privilege import PrivilegeOracle

LOGGER = logging.getLogger(__name__)

COMMANDS = {
    "!antilink on": True,
    "!antilink off": False,
}


def parse_command(text: Optional[str]) -> Optional[bool]:
    """Return the requested link policy, or None if the text is not a command.

    Matching is exact apart from letter case.
    """

    if not text:
        return None
    return COMMANDS.get(text.lower())


class CommandRouter:
    """Apply ``!antilink on|off`` from elevated senders.

    Commands from anyone else are ignored without a reply.
    """

    def __init__(
        self,
        store: PolicyStorePort,
        oracle: PrivilegeOracle,
        messaging: MessagingPort,
        messages: MessagesConfig = MessagesConfig(),
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._messaging = messaging
        self._messages = messages

    async def handle(self, message: InboundMessage) -> bool:
        """Process one admitted message; return True if the policy changed."""

        value = parse_command(message.text)
        if value is None:
            return False

        if not await self._oracle.is_elevated(message.group_id, message.sender_id):
            LOGGER.debug("Ignoring command from non-admin %s in %s", message.sender_id, message.group_id)
            return False

        try:
            self._store.set_link_policy(message.group_id, value)
        except StoreUnavailable as exc:
            LOGGER.error("Policy store unavailable, command skipped for %s: %s", message.group_id, exc)
            return False

        LOGGER.info(
            "Link policy for %s set to %s by %s",
            message.group_id,
            "disallowed" if value else "allowed",
            message.sender_id,
        )
        confirmation = self._messages.enabled if value else self._messages.disabled
        try:
            await self._messaging.send_text(message.group_id, confirmation)
        except MessagingFailure as exc:
            LOGGER.warning("Could not confirm policy change in %s: %s", message.group_id, exc)
        return True
