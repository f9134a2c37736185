"""
入群验证主模块
Member verification main module
"""

from aiogram import types
from loguru import logger

from manager import manager

from .config import SUPPORT_GROUP_TYPES
from .exceptions import StoreUnavailableError
from .group import registry


@manager.register("message")
async def group_message(msg: types.Message):
    """
    所有群组消息的入口：入群事件、待验证成员的消息和管理命令
    """
    chat = msg.chat
    if chat.type not in SUPPORT_GROUP_TYPES:
        return

    group = registry.get(chat.id)

    try:
        handled = await group.handle_message(msg)
    except StoreUnavailableError as e:
        logger.error(f"chat {chat.id} msg {msg.message_id} is dropped: {e}")
        return

    if not handled:
        logger.debug(f"chat {chat.id}({chat.title}) msg {msg.message_id} is not handled")
