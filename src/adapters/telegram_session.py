"""Telethon session adapter.

Implements the core SessionPort: connecting, QR pairing, waiting for the
session to close with a reason, and saving the session file.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from getpass import getpass
from typing import Callable, Optional

from telethon import TelegramClient, errors

from core.errors import CredentialPersistFailure, LoggedOut, TransportDrop
from core.models import CloseReason, PairingToken

LOGGER = logging.getLogger(__name__)

# Errors meaning the authorization is gone and pairing must start over.
LOGOUT_ERRORS = (
    errors.AuthKeyUnregisteredError,
    errors.AuthKeyDuplicatedError,
    errors.SessionRevokedError,
    errors.SessionExpiredError,
    errors.UserDeactivatedError,
    errors.UserDeactivatedBanError,
)

_TRANSPORT_ERRORS = (errors.RPCError, OSError)


def resolve_2fa_password() -> str:
    password = os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


class TelethonSession:
    """SessionPort adapter around a TelegramClient."""

    def __init__(
        self,
        client: TelegramClient,
        qr_timeout: float = 120,
        password_provider: Callable[[], str] = resolve_2fa_password,
    ) -> None:
        self._client = client
        self._qr_timeout = qr_timeout
        self._password_provider = password_provider

    async def connect(self) -> None:
        try:
            await self._client.connect()
        except LOGOUT_ERRORS as exc:
            raise LoggedOut(str(exc)) from exc
        except _TRANSPORT_ERRORS as exc:
            raise TransportDrop(f"connect failed: {exc}") from exc

    async def is_paired(self) -> bool:
        try:
            return await self._client.is_user_authorized()
        except LOGOUT_ERRORS as exc:
            raise LoggedOut(str(exc)) from exc
        except _TRANSPORT_ERRORS as exc:
            raise TransportDrop(f"authorization check failed: {exc}") from exc

    async def pair(self, on_token: Callable[[PairingToken], None]) -> None:
        """Log in by QR code, showing a fresh code each time the previous one expires."""

        try:
            qr = await self._client.qr_login()
            while True:
                on_token(PairingToken(url=qr.url, expires=qr.expires))
                try:
                    await qr.wait(timeout=self._qr_timeout)
                    return
                except asyncio.TimeoutError:
                    LOGGER.info("QR code expired, generating a new one")
                    await qr.recreate()
                except errors.SessionPasswordNeededError:
                    await self._client.sign_in(password=self._password_provider())
                    return
        except _TRANSPORT_ERRORS as exc:
            raise TransportDrop(f"pairing failed: {exc}") from exc

    async def wait_closed(self) -> CloseReason:
        """Block until the client disconnects and report why."""

        try:
            await self._client.run_until_disconnected()
        except LOGOUT_ERRORS as exc:
            LOGGER.error("Session revoked: %s", exc)
            return CloseReason.LOGGED_OUT
        except _TRANSPORT_ERRORS as exc:
            LOGGER.warning("Session closed: %s", exc)
        return CloseReason.CONNECTION_LOST

    def persist_credentials(self) -> None:
        try:
            self._client.session.save()
        except (sqlite3.Error, OSError) as exc:
            raise CredentialPersistFailure(str(exc)) from exc
        LOGGER.debug("Session credentials saved")

    async def disconnect(self) -> None:
        if self._client.is_connected():
            await self._client.disconnect()


def describe_account(me) -> Optional[str]:
    """Return a short label for the logged-in account."""

    if me is None:
        return None
    username = getattr(me, "username", None)
    if username:
        return f"@{username}"
    return getattr(me, "first_name", None) or str(getattr(me, "id", ""))
