"""Session lifecycle state machine (core domain).

The supervisor keeps the bot attached to the messaging session:

    DISCONNECTED -> CONNECTING -> (AWAITING_PAIRING) -> OPEN
    OPEN -> DISCONNECTED -> CONNECTING ...     on any drop
    any -> LOGGED_OUT                          when the session was revoked

LOGGED_OUT is terminal. Reconnects wait an exponential backoff delay and the
whole loop can be cancelled with stop().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from core.config import ReconnectConfig
from core.errors import CredentialPersistFailure, LoggedOut, TransportDrop
from core.models import CloseReason, ConnectionState, PairingToken
from core.ports import SessionPort

LOGGER = logging.getLogger(__name__)


def backoff_delay(attempt: int, config: ReconnectConfig) -> float:
    """Return the wait before reconnect attempt ``attempt`` (1-based)."""

    if attempt <= 0:
        return 0.0
    delay = config.initial_delay * (config.multiplier ** (attempt - 1))
    return min(delay, config.max_delay)


class ConnectionSupervisor:
    """Owns the session and drives it through the lifecycle states."""

    def __init__(
        self,
        session: SessionPort,
        reconnect: ReconnectConfig = ReconnectConfig(),
        on_pairing_token: Optional[Callable[[PairingToken], None]] = None,
        on_state_change: Optional[Callable[[ConnectionState, ConnectionState], None]] = None,
    ) -> None:
        self._session = session
        self._reconnect = reconnect
        self._on_pairing_token = on_pairing_token
        self._on_state_change = on_state_change
        self._state = ConnectionState.DISCONNECTED
        self._stop = asyncio.Event()
        self.attempts = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        LOGGER.debug("Connection state %s -> %s", old_state.value, new_state.value)
        if self._on_state_change is not None:
            self._on_state_change(old_state, new_state)

    def _surface_token(self, token: PairingToken) -> None:
        LOGGER.info("Pairing required, scan the QR code to log in")
        if self._on_pairing_token is not None:
            self._on_pairing_token(token)

    def _persist_credentials(self) -> None:
        try:
            self._session.persist_credentials()
        except CredentialPersistFailure as exc:
            LOGGER.error("Failed to persist session credentials: %s", exc)

    def credentials_rotated(self) -> None:
        """Persist the credential snapshot after the session rotated it."""

        if self._state is ConnectionState.OPEN:
            self._persist_credentials()

    async def _open_session(self) -> CloseReason:
        """Connect, pair if needed, and block until the session closes."""

        await self._session.connect()
        if not await self._session.is_paired():
            self._transition(ConnectionState.AWAITING_PAIRING)
            await self._session.pair(self._surface_token)

        self._transition(ConnectionState.OPEN)
        self.attempts = 0
        self._persist_credentials()
        LOGGER.info("Session is open, watching group messages")
        return await self._session.wait_closed()

    async def _wait_for_stop(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True if stop() was requested meanwhile."""

        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def run(self) -> ConnectionState:
        """Run the lifecycle loop until logged out or stopped; return the final state."""

        while not self._stop.is_set():
            self._transition(ConnectionState.CONNECTING)
            try:
                reason = await self._open_session()
            except LoggedOut as exc:
                LOGGER.debug("Session revoked: %s", exc)
                reason = CloseReason.LOGGED_OUT
            except TransportDrop as exc:
                LOGGER.warning("Connection failed: %s", exc)
                reason = CloseReason.CONNECTION_LOST

            if reason is CloseReason.LOGGED_OUT:
                self._transition(ConnectionState.LOGGED_OUT)
                LOGGER.error("Session was logged out remotely, pair again to continue")
                return self._state

            self._transition(ConnectionState.DISCONNECTED)
            if self._stop.is_set():
                break

            self.attempts += 1
            delay = backoff_delay(self.attempts, self._reconnect)
            LOGGER.warning("Reconnecting in %.1fs (attempt %s)", delay, self.attempts)
            if await self._wait_for_stop(delay):
                break

        LOGGER.info("Connection supervisor stopped")
        return self._state

    async def stop(self) -> None:
        """Cancel reconnects and close the session."""

        self._stop.set()
        await self._session.disconnect()
