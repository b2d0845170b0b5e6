"""Static configuration for groupguard.

Secrets and the database connection string come from the environment (or a
.env file). Tunables live in an optional config.json so they can be edited
without touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import MessagesConfig, ReconnectConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("CONFIG_PATH", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json; a missing file means all defaults."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

CONFIG = _CONFIG

# Single connection string for the policy store: sqlite:///path or a bare path.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///" + _project_path("groupguard.db"))

# Telethon keeps the credentials in <SESSION_DIR>/<SESSION_NAME>.session.
SESSION_DIR = _project_path(os.getenv("SESSION_DIR", "session"))
SESSION_NAME = os.getenv("SESSION_NAME", "groupguard")

# Reconnect backoff: initial_delay * multiplier ** (attempt - 1), capped.
_reconnect = _CONFIG.get("reconnect", {})
RECONNECT = ReconnectConfig(
    initial_delay=float(_reconnect.get("initial_delay", 1.0)),
    max_delay=float(_reconnect.get("max_delay", 60.0)),
    multiplier=float(_reconnect.get("multiplier", 2.0)),
)

# Seconds each QR code stays valid before a new one is shown.
_pairing = _CONFIG.get("pairing", {})
QR_TIMEOUT = float(_pairing.get("qr_timeout", 120))

# Texts posted to groups.
_messages = _CONFIG.get("messages", {})
_default_messages = MessagesConfig()
MESSAGES = MessagesConfig(
    link_warning=_messages.get("link_warning", _default_messages.link_warning),
    enabled=_messages.get("enabled", _default_messages.enabled),
    disabled=_messages.get("disabled", _default_messages.disabled),
)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
