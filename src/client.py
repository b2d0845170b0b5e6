"""Telegram client factory for groupguard.

We explicitly manage the client's lifecycle (connect/run_until_disconnected)
through the connection supervisor, so the factory only builds the client.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient


def build_client(session_dir: str, session_name: str) -> TelegramClient:
    """Create a Telethon client from environment variables.

    We read API_ID/API_HASH via python-dotenv to keep secrets out of the repo.
    The session file lives in ``session_dir``, which is created if absent.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    os.makedirs(session_dir, exist_ok=True)
    logging.getLogger(__name__).info("Initializing Telegram client")

    return TelegramClient(os.path.join(session_dir, session_name), int(api_id), api_hash)
