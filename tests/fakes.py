"""In-memory stand-ins for the core ports, shared by the tests."""

from __future__ import annotations

import asyncio
from typing import Optional

from core.errors import MessagingFailure, RoleLookupFailure, StoreUnavailable
from core.models import GroupMember, GroupPolicy, InboundMessage, MemberRole, MessageRef

GROUP_ID = -100123
ADMIN_ID = 1
OWNER_ID = 2
MEMBER_ID = 7


class FakeStore:
    def __init__(self, unavailable: bool = False) -> None:
        self.policies: dict[int, GroupPolicy] = {}
        self.creates = 0
        self.unavailable = unavailable

    def get_or_create(self, group_id: int) -> GroupPolicy:
        if self.unavailable:
            raise StoreUnavailable("store offline")
        if group_id not in self.policies:
            self.policies[group_id] = GroupPolicy(group_id=group_id)
            self.creates += 1
        return self.policies[group_id]

    def set_link_policy(self, group_id: int, value: bool) -> None:
        if self.unavailable:
            raise StoreUnavailable("store offline")
        self.policies[group_id] = GroupPolicy(group_id=group_id, link_policy=value)


class FakeMessaging:
    def __init__(
        self,
        admins: Optional[dict[int, MemberRole]] = None,
        fail: tuple[str, ...] = (),
        membership_error: bool = False,
    ) -> None:
        self.admins = dict(admins or {})
        self.fail = set(fail)
        self.membership_error = membership_error
        self.calls: list[tuple] = []
        self.membership_lookups = 0

    async def send_text(self, group_id: int, text: str, mentions=()) -> None:
        await asyncio.sleep(0)
        if "send" in self.fail:
            raise MessagingFailure("send rejected")
        self.calls.append(("send", group_id, text, tuple(mentions)))

    async def delete_message(self, message_ref: MessageRef) -> None:
        await asyncio.sleep(0)
        if "delete" in self.fail:
            raise MessagingFailure("delete rejected")
        self.calls.append(("delete", message_ref))

    async def remove_participant(self, group_id: int, user_id: int) -> None:
        await asyncio.sleep(0)
        if "remove" in self.fail:
            raise MessagingFailure("remove rejected")
        self.calls.append(("remove", group_id, user_id))

    async def get_group_membership(self, group_id: int) -> list[GroupMember]:
        self.membership_lookups += 1
        await asyncio.sleep(0)
        if self.membership_error:
            raise RoleLookupFailure("membership offline")
        return [GroupMember(user_id=user_id, role=role) for user_id, role in self.admins.items()]

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]


def make_message(
    text: str,
    *,
    sender_id: int = MEMBER_ID,
    group_id: int = GROUP_ID,
    message_id: int = 1,
    is_group: bool = True,
    is_from_self: bool = False,
    sender_name: Optional[str] = "mallory",
) -> InboundMessage:
    return InboundMessage(
        group_id=group_id,
        sender_id=sender_id,
        text=text,
        is_from_self=is_from_self,
        is_group=is_group,
        message_ref=MessageRef(chat_id=group_id, message_id=message_id),
        sender_name=sender_name,
    )


def default_admins() -> dict[int, MemberRole]:
    return {ADMIN_ID: MemberRole.ADMIN, OWNER_ID: MemberRole.SUPERADMIN}
