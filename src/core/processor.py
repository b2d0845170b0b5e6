"""Core message processing pipeline.

This module is integration-agnostic. It only relies on ports for storage and
messaging, enabling other transports or stores without changes here.

The pipeline enforces a strict order, cheapest checks first:
1) Admit only group messages not sent by ourselves
2) Look up (or lazily create) the group policy
3) Classify the text
4) Exempt elevated senders
5) Remediate
"""

from __future__ import annotations

import logging

from core.classifier import classify, find_links
from core.commands import CommandRouter
from core.enforcer import Enforcer
from core.errors import StoreUnavailable
from core.models import InboundMessage, LinkVerdict
from core.ports import PolicyStorePort
from core.privilege import PrivilegeOracle

LOGGER = logging.getLogger(__name__)


def is_admissible(message: InboundMessage) -> bool:
    """Only group messages from other members are moderated."""

    return message.is_group and not message.is_from_self


class ModerationPipeline:
    """Orchestrates policy lookup, classification, privilege check and enforcement."""

    def __init__(
        self,
        store: PolicyStorePort,
        oracle: PrivilegeOracle,
        enforcer: Enforcer,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._enforcer = enforcer

    async def handle(self, message: InboundMessage) -> bool:
        """Process one message; return True if remediation ran."""

        if not is_admissible(message):
            return False

        # Store outages fail open: the message is let through and logged.
        try:
            policy = self._store.get_or_create(message.group_id)
        except StoreUnavailable as exc:
            LOGGER.error("Policy store unavailable, skipping %s: %s", message.group_id, exc)
            return False

        if not policy.link_policy:
            return False

        if classify(message.text) is LinkVerdict.NO_LINK:
            return False

        if await self._oracle.is_elevated(message.group_id, message.sender_id):
            LOGGER.debug("Admin %s posted a link in %s, exempt", message.sender_id, message.group_id)
            return False

        LOGGER.info(
            "Link from %s in %s: %s",
            message.sender_id,
            message.group_id,
            ", ".join(find_links(message.text)),
        )
        await self._enforcer.remediate(message)
        return True


async def dispatch(message: InboundMessage, pipeline: ModerationPipeline, router: CommandRouter) -> None:
    """Feed one inbound message to the moderation pipeline and the command router."""

    await pipeline.handle(message)
    if is_admissible(message):
        await router.handle(message)
