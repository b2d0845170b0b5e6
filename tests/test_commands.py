from __future__ import annotations

import asyncio

import pytest

from core.commands import CommandRouter, parse_command
from core.config import MessagesConfig
from core.privilege import PrivilegeOracle
from fakes import ADMIN_ID, GROUP_ID, MEMBER_ID, FakeMessaging, FakeStore, default_admins, make_message


def _router(store: FakeStore, messaging: FakeMessaging) -> CommandRouter:
    return CommandRouter(store, PrivilegeOracle(messaging), messaging, MessagesConfig())


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("!antilink on", True),
        ("!AntiLink ON", True),
        ("!antilink off", False),
        ("!ANTILINK Off", False),
        ("!antilink", None),
        ("please !antilink on", None),
        ("!antilink on now", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_command(text, expected) -> None:
    assert parse_command(text) is expected


def test_admin_disables_links_and_gets_confirmation() -> None:
    store = FakeStore()
    messaging = FakeMessaging(admins=default_admins())

    changed = asyncio.run(_router(store, messaging).handle(make_message("!antilink off", sender_id=ADMIN_ID)))

    assert changed is True
    assert store.policies[GROUP_ID].link_policy is False
    assert messaging.calls == [("send", GROUP_ID, MessagesConfig().disabled, ())]


def test_command_is_case_insensitive() -> None:
    store = FakeStore()
    store.set_link_policy(GROUP_ID, False)
    messaging = FakeMessaging(admins=default_admins())

    asyncio.run(_router(store, messaging).handle(make_message("!AntiLink ON", sender_id=ADMIN_ID)))

    assert store.policies[GROUP_ID].link_policy is True
    assert messaging.calls[-1][2] == MessagesConfig().enabled


def test_non_admin_command_is_silently_ignored() -> None:
    store = FakeStore()
    messaging = FakeMessaging(admins=default_admins())

    changed = asyncio.run(_router(store, messaging).handle(make_message("!antilink off", sender_id=MEMBER_ID)))

    assert changed is False
    assert GROUP_ID not in store.policies
    assert messaging.calls == []


def test_ordinary_text_skips_the_role_lookup() -> None:
    messaging = FakeMessaging(admins=default_admins())

    asyncio.run(_router(FakeStore(), messaging).handle(make_message("good morning", sender_id=ADMIN_ID)))

    assert messaging.membership_lookups == 0


def test_store_outage_applies_nothing_and_sends_nothing() -> None:
    store = FakeStore(unavailable=True)
    messaging = FakeMessaging(admins=default_admins())

    changed = asyncio.run(_router(store, messaging).handle(make_message("!antilink off", sender_id=ADMIN_ID)))

    assert changed is False
    assert messaging.calls == []


def test_failed_confirmation_keeps_the_change() -> None:
    store = FakeStore()
    messaging = FakeMessaging(admins=default_admins(), fail=("send",))

    changed = asyncio.run(_router(store, messaging).handle(make_message("!antilink off", sender_id=ADMIN_ID)))

    assert changed is True
    assert store.policies[GROUP_ID].link_policy is False
