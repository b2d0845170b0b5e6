from __future__ import annotations

import asyncio

from telethon.tl.types import User

from adapters.telegram_mapper import build_inbound, sender_label
from core.models import MessageRef


class DummySender:
    def __init__(self, username: "str | None" = None) -> None:
        self.username = username


class DummyMessage:
    def __init__(
        self,
        *,
        chat_id: "int | None",
        sender_id: "int | None",
        message_id: int = 10,
        text: "str | None" = "hello",
        out: bool = False,
        is_group: bool = True,
        sender=None,
    ) -> None:
        self.chat_id = chat_id
        self.sender_id = sender_id
        self.id = message_id
        self.raw_text = text
        self.out = out
        self.is_group = is_group
        self._sender = sender
        self.sender_lookups = 0

    async def get_sender(self):
        self.sender_lookups += 1
        return self._sender


def test_build_inbound_maps_group_message() -> None:
    message = DummyMessage(
        chat_id=-100123,
        sender_id=42,
        message_id=7,
        text="see example.com",
        sender=DummySender(username="mallory"),
    )

    inbound = asyncio.run(build_inbound(message))

    assert inbound is not None
    assert inbound.group_id == -100123
    assert inbound.sender_id == 42
    assert inbound.text == "see example.com"
    assert inbound.is_group is True
    assert inbound.is_from_self is False
    assert inbound.message_ref == MessageRef(chat_id=-100123, message_id=7)
    assert inbound.sender_label == "mallory"


def test_build_inbound_marks_own_and_private_messages() -> None:
    message = DummyMessage(chat_id=42, sender_id=42, out=True, is_group=False)

    inbound = asyncio.run(build_inbound(message))

    assert inbound is not None
    assert inbound.is_from_self is True
    assert inbound.is_group is False
    assert inbound.sender_name is None
    assert message.sender_lookups == 0


def test_build_inbound_skips_sender_lookup_for_own_group_messages() -> None:
    message = DummyMessage(chat_id=-100123, sender_id=42, out=True, sender=DummySender(username="me"))

    inbound = asyncio.run(build_inbound(message))

    assert inbound is not None
    assert inbound.is_from_self is True
    assert message.sender_lookups == 0


def test_build_inbound_treats_missing_text_as_empty() -> None:
    message = DummyMessage(chat_id=-1, sender_id=2, text=None)

    inbound = asyncio.run(build_inbound(message))

    assert inbound is not None
    assert inbound.text == ""


def test_build_inbound_skips_messages_without_sender() -> None:
    message = DummyMessage(chat_id=-100123, sender_id=None)

    assert asyncio.run(build_inbound(message)) is None


def test_sender_label_falls_back_to_display_name() -> None:
    assert sender_label(User(id=5, first_name="Ann", last_name="Lee")) == "Ann Lee"
    assert sender_label(DummySender(username="bob")) == "bob"
    assert sender_label(None) is None
