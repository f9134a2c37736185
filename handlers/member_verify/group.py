"""
群组处理
Per-group message handling and the process-wide group registry
"""

import asyncio
from typing import Dict, Optional, Union

from aiogram import types
from loguru import logger

from manager import manager
from manager.group import GroupSettings, Role
from utils.i18n import i18n

from .commands import handle_command
from .engine import VerificationEngine
from .exceptions import StoreUnavailableError
from .render import render
from .roles import resolve_role


def is_response(msg: types.Message) -> bool:
    """a pending member passes by sending any sticker"""
    return msg.sticker is not None


class Group:
    def __init__(self, chat_id: Union[int, str]):
        self.id = chat_id
        self.engine = VerificationEngine(self)

    async def settings(self) -> GroupSettings:
        rdb = await manager.get_redis()
        if rdb is None:
            raise StoreUnavailableError("redis is not configured", self.id)
        return GroupSettings(rdb, self.id)

    async def handle_message(self, msg: types.Message) -> bool:
        """
        route one message of this group, returns False when nothing handled it
        """
        settings = await self.settings()
        for user in msg.new_chat_members or []:
            await settings.invalidate_role(user.id)

        if await self.handle_verification(msg):
            return True

        return await handle_command(self, msg)

    async def handle_verification(self, msg: types.Message) -> bool:
        settings = await self.settings()
        user = msg.from_user

        if user is not None and await settings.is_pending(user.id):
            if is_response(msg):
                await self.engine.on_pass(user.id, msg.message_id)
            else:
                await self.delete(msg.message_id)
                logger.debug(f"chat {self.id} member {user.id} is pending, message {msg.message_id} deleted")
            return True

        if not await settings.is_enabled():
            return False

        if msg.new_chat_members:
            await asyncio.gather(*(self.engine.on_join(msg, member) for member in msg.new_chat_members))
            return True

        return False

    async def role(self, user_id: int) -> Role:
        return await resolve_role(await self.settings(), self.id, user_id)

    async def timeout(self) -> int:
        return await (await self.settings()).get_timeout()

    async def sleep(self):
        """wait one timeout period"""
        await asyncio.sleep(await self.timeout())

    async def format(self, key: str, *args) -> str:
        lang = await (await self.settings()).get_lang()
        return i18n.format(lang, key, *args)

    async def template(self, stage: str) -> str:
        template = await (await self.settings()).get_template(stage)
        if template is None:
            return await self.format(f"{stage}.default")
        return template

    async def render(self, stage: str, user: types.User) -> str:
        return render(await self.template(stage), user, await self.timeout())

    async def send(self, html: str, reply_to: Optional[int] = None) -> int:
        return await manager.send(self.id, html, reply_to)

    async def delete(self, message_id: Optional[int]) -> bool:
        return await manager.delete_message(self.id, message_id)


class GroupRegistry:
    """one Group per chat id for the whole process"""

    def __init__(self):
        self._groups: Dict[Union[int, str], Group] = {}

    def get(self, chat_id: Union[int, str]) -> Group:
        # no await between lookup and insert, so concurrent updates share one instance
        group = self._groups.get(chat_id)
        if group is None:
            group = self._groups[chat_id] = Group(chat_id)
            logger.debug(f"chat {chat_id} group is created")
        return group

    def __len__(self):
        return len(self._groups)


registry = GroupRegistry()
