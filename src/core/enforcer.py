"""Remediation of link violations (core domain)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List

from core.config import MessagesConfig
from core.errors import EnforcementStepFailure, MessagingFailure
from core.models import InboundMessage, Mention
from core.ports import MessagingPort

LOGGER = logging.getLogger(__name__)


@dataclass
class RemediationReport:
    """Outcome of one remediation run."""

    group_id: int
    sender_id: int
    failures: List[EnforcementStepFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failed_steps(self) -> List[str]:
        return [failure.step for failure in self.failures]


class Enforcer:
    """Warn, delete, then remove. Every step is attempted even if an earlier one failed."""

    def __init__(self, messaging: MessagingPort, messages: MessagesConfig = MessagesConfig()) -> None:
        self._messaging = messaging
        self._messages = messages

    async def _warn(self, message: InboundMessage) -> None:
        mention = Mention(user_id=message.sender_id, label=message.sender_label)
        text = self._messages.link_warning.format(mention=f"@{mention.label}")
        await self._messaging.send_text(message.group_id, text, mentions=[mention])

    async def _delete(self, message: InboundMessage) -> None:
        await self._messaging.delete_message(message.message_ref)

    async def _remove(self, message: InboundMessage) -> None:
        await self._messaging.remove_participant(message.group_id, message.sender_id)

    async def remediate(self, message: InboundMessage) -> RemediationReport:
        report = RemediationReport(group_id=message.group_id, sender_id=message.sender_id)
        steps: List[tuple[str, Callable[[InboundMessage], Awaitable[None]]]] = [
            ("warn", self._warn),
            ("delete", self._delete),
            ("remove", self._remove),
        ]
        for name, step in steps:
            try:
                await step(message)
            except MessagingFailure as exc:
                failure = EnforcementStepFailure(name, exc)
                report.failures.append(failure)
                LOGGER.warning(
                    "Remediation step %s failed for %s in %s: %s",
                    name,
                    message.sender_id,
                    message.group_id,
                    exc,
                )

        if report.succeeded:
            LOGGER.info("Removed %s from %s for posting a link", message.sender_id, message.group_id)
        return report
