"""
成员角色判定
Member role resolution, cached per group for ROLE_TTL seconds
"""

from typing import Union

from aiogram.enums import ChatMemberStatus
from loguru import logger

from manager import manager
from manager.group import GroupSettings, Role

NOT_MEMBER_STATUSES = (ChatMemberStatus.LEFT, ChatMemberStatus.KICKED)


def classify(member) -> Role:
    """
    Role of a ``get_chat_member`` result, ``None`` meaning the lookup failed.
    """
    if member is None or member.status in NOT_MEMBER_STATUSES:
        return Role.NONE

    # restricted members may have left the group already
    if member.status == ChatMemberStatus.RESTRICTED and not getattr(member, "is_member", True):
        return Role.NONE

    if member.status == ChatMemberStatus.CREATOR or getattr(member, "can_restrict_members", False):
        return Role.ADMIN

    return Role.MEMBER


async def resolve_role(settings: GroupSettings, chat_id: Union[int, str], user_id: int) -> Role:
    role = await settings.get_role(user_id)
    if role is not None:
        return role

    role = classify(await manager.chat_member(chat_id, user_id))
    await settings.set_role(user_id, role)
    logger.debug(f"[角色] chat {chat_id} member {user_id} role {role.value} is cached")

    return role
