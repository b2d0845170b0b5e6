"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, messaging and session
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence

from core.models import CloseReason, GroupMember, GroupPolicy, Mention, MessageRef, PairingToken


class PolicyStorePort(Protocol):
    """Policy persistence required by the pipeline and command router.

    Implementations raise StoreUnavailable when the backend cannot be used.
    """

    def get_or_create(self, group_id: int) -> GroupPolicy:
        ...

    def set_link_policy(self, group_id: int, value: bool) -> None:
        ...


class MessagingPort(Protocol):
    """Outbound operations and membership lookups on the messaging session.

    Outbound calls raise MessagingFailure; get_group_membership raises
    RoleLookupFailure.
    """

    async def send_text(self, group_id: int, text: str, mentions: Sequence[Mention] = ()) -> None:
        ...

    async def delete_message(self, message_ref: MessageRef) -> None:
        ...

    async def remove_participant(self, group_id: int, user_id: int) -> None:
        ...

    async def get_group_membership(self, group_id: int) -> List[GroupMember]:
        ...


class SessionPort(Protocol):
    """Lifecycle of the underlying messaging session.

    connect() and is_paired() raise TransportDrop for recoverable faults and
    LoggedOut when the session was revoked.
    """

    async def connect(self) -> None:
        ...

    async def is_paired(self) -> bool:
        ...

    async def pair(self, on_token: Callable[[PairingToken], None]) -> None:
        ...

    async def wait_closed(self) -> CloseReason:
        ...

    def persist_credentials(self) -> None:
        """Write the credential snapshot; raises CredentialPersistFailure."""
        ...

    async def disconnect(self) -> None:
        ...
