"""Error taxonomy shared by the core and adapters.

Adapters translate integration-specific exceptions (Telethon, sqlite3) into
these types so the core never has to know which backend failed.
"""

from __future__ import annotations


class GroupGuardError(Exception):
    """Base class for every recoverable or terminal failure we handle."""


class TransportDrop(GroupGuardError):
    """The connection to the messaging service was lost; reconnect."""


class LoggedOut(GroupGuardError):
    """The session was revoked remotely; do not reconnect."""


class StoreUnavailable(GroupGuardError):
    """The policy store could not be reached or queried."""


class CredentialPersistFailure(GroupGuardError):
    """The session credentials could not be written to disk."""


class RoleLookupFailure(GroupGuardError):
    """Group membership or roles could not be fetched."""


class MessagingFailure(GroupGuardError):
    """An outbound operation (send, delete, remove) was rejected."""


class EnforcementStepFailure(GroupGuardError):
    """One step of the remediation sequence failed."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"{step} failed: {cause}")
        self.step = step
        self.cause = cause
