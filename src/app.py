"""Application entry point for the groupguard moderator."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import qrcode
from art import tprint
from telethon import events
from telethon.tl import types

import settings
from adapters.sqlite_storage import SQLitePolicyStore
from adapters.telegram_mapper import build_inbound
from adapters.telegram_messaging import TelethonMessaging
from adapters.telegram_session import TelethonSession, describe_account
from client import build_client
from core.commands import CommandRouter
from core.enforcer import Enforcer
from core.errors import GroupGuardError, StoreUnavailable
from core.models import ConnectionState, PairingToken
from core.privilege import PrivilegeOracle
from core.processor import ModerationPipeline, dispatch
from core.supervisor import ConnectionSupervisor

NAME = "GROUPGUARD"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/groupguard.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon is chatty at INFO about its own reconnects.
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


def _show_pairing_token(token: PairingToken) -> None:
    """Render the QR login URL in the terminal for scanning with the phone app."""

    qr = qrcode.QRCode(border=1)
    qr.add_data(token.url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)
    logging.getLogger(__name__).info("QR login URL: %s (expires %s)", token.url, token.expires)


def _log_state_change(old: ConnectionState, new: ConnectionState) -> None:
    logging.getLogger(__name__).info("Connection %s -> %s", old.value, new.value)


def _open_store() -> SQLitePolicyStore:
    try:
        return SQLitePolicyStore(settings.DATABASE_URL)
    except ValueError as exc:
        raise SystemExit(f"Invalid DATABASE_URL: {exc}") from exc


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting groupguard")

    storage = _open_store()
    try:
        storage.init_db()
    except StoreUnavailable as exc:
        # Moderation fails open until the store is reachable again; the table
        # is created on the first call that gets through.
        logger.error("Policy store unavailable at startup: %s", exc)

    client = build_client(settings.SESSION_DIR, settings.SESSION_NAME)
    messaging = TelethonMessaging(client)
    oracle = PrivilegeOracle(messaging)
    pipeline = ModerationPipeline(storage, oracle, Enforcer(messaging, settings.MESSAGES))
    router = CommandRouter(storage, oracle, messaging, settings.MESSAGES)
    supervisor = ConnectionSupervisor(
        TelethonSession(client, qr_timeout=settings.QR_TIMEOUT),
        reconnect=settings.RECONNECT,
        on_pairing_token=_show_pairing_token,
        on_state_change=_log_state_change,
    )

    # Single handler keeps Telethon integration minimal and defers all filtering
    # to the core for consistency and testability.
    @client.on(events.NewMessage())
    async def handler(event) -> None:
        try:
            message = await build_inbound(event.message)
            if message is None:
                return
            await dispatch(message, pipeline, router)
        except Exception:
            logger.exception("Error while processing message")

    # New datacenter options mean the session file may have changed.
    @client.on(events.Raw(types.UpdateDcOptions))
    async def on_dc_options(event) -> None:
        supervisor.credentials_rotated()

    try:
        final_state = client.loop.run_until_complete(supervisor.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        client.loop.run_until_complete(supervisor.stop())
        return

    if final_state is ConnectionState.LOGGED_OUT:
        raise SystemExit("Session logged out; run `groupguard login` to pair again")


def _login() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    client = build_client(settings.SESSION_DIR, settings.SESSION_NAME)
    session = TelethonSession(client, qr_timeout=settings.QR_TIMEOUT)

    async def _run_login() -> None:
        await session.connect()
        if not await session.is_paired():
            await session.pair(_show_pairing_token)
        me = await client.get_me()
        session.persist_credentials()
        logger.info("Logged in as: %s", describe_account(me))
        await session.disconnect()

    try:
        client.loop.run_until_complete(_run_login())
    except GroupGuardError as exc:
        raise SystemExit(f"Login failed: {exc}") from exc


def _policies() -> None:
    storage = _open_store()
    try:
        storage.init_db()
        policies = storage.list_policies()
    except StoreUnavailable as exc:
        raise SystemExit(f"Policy store unavailable: {exc}") from exc

    if not policies:
        print("No groups seen yet.")
        return

    for policy in policies:
        state = "links disallowed" if policy.link_policy else "links allowed"
        print(f"{policy.group_id} | {state}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="groupguard")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the moderator")
    subparsers.add_parser("login", help="Pair the account by QR code and exit")
    subparsers.add_parser("policies", help="List stored group policies")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return
    if args.command == "policies":
        _policies()
        return
    _run()


if __name__ == "__main__":
    main()
