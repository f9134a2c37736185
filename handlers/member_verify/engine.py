"""
入群验证状态机
Join verification state machine

Per (group, member): NONE -> PENDING -> PASSED | TIMED_OUT | FAILED.
A new join for a member who is still pending supersedes the outstanding
challenge: the old flow removes its challenge message and ends without
applying any moderation action.
"""

import asyncio
from typing import TYPE_CHECKING, Dict, Optional

from aiogram import types
from loguru import logger

from manager import manager
from manager.group import Action, GroupSettings

from .config import Verdict
from .exceptions import LogContext
from .render import display_name
from .waiter import Resolution, Waiter

if TYPE_CHECKING:
    from .group import Group


class VerificationEngine:
    def __init__(self, group: "Group"):
        self.group = group
        # member id => outstanding waiter, only touched by this engine
        self.waiters: Dict[int, Waiter] = {}

    def _discard(self, user_id: int, waiter: Waiter):
        if self.waiters.get(user_id) is waiter:
            del self.waiters[user_id]

    def _superseded(self, user_id: int, waiter: Waiter) -> bool:
        """a newer challenge for the member owns the pending flag"""
        current = self.waiters.get(user_id)
        return current is not None and current is not waiter

    async def on_join(self, msg: types.Message, user: types.User):
        """
        challenge a member and wait for the outcome

        msg: the join message (or the message an admin asked to reverify)
        user: the member to verify
        """
        prefix = LogContext(self.group.id, user.id, display_name(user)).log_prefix
        group = self.group
        settings = await group.settings()

        previous = self.waiters.pop(user.id, None)
        if previous is not None and previous.resolve(Resolution(Verdict.SUPERSEDED)):
            logger.info(f"{prefix} | 旧的验证被取代")

        # registered before the challenge is visible, so an early response is never lost
        waiter = Waiter()
        self.waiters[user.id] = waiter

        try:
            await settings.set_pending(user.id)
            challenge = await group.send(await group.render("onjoin", user), msg.message_id)
        except Exception:
            self._discard(user.id, waiter)
            if not self._superseded(user.id, waiter):
                await settings.clear_pending(user.id)
            raise

        logger.info(f"{prefix} | 已发送验证消息 | 消息ID:{challenge}")

        try:
            resolution = await waiter.race(group.sleep())
        finally:
            self._discard(user.id, waiter)

        await group.delete(challenge)

        logger.info(f"{prefix} | 验证结束 | 结果:{resolution.verdict}")

        if resolution.verdict == Verdict.SUPERSEDED:
            return

        if resolution.verdict == Verdict.PASSED:
            await self._passed(settings, user, challenge, resolution.message_id)
            return

        await self._failed(settings, msg, user, waiter, prefix)

    async def _passed(self, settings: GroupSettings, user: types.User, challenge: int, message_id: Optional[int]):
        group = self.group

        if await settings.is_quiet():
            await group.delete(message_id)
            return

        acknowledgement = await group.send(await group.render("onpass", user), message_id)
        if await settings.is_verbose():
            return

        await group.sleep()
        await asyncio.gather(group.delete(challenge), group.delete(acknowledgement))

    async def _failed(self, settings: GroupSettings, msg: types.Message, user: types.User, waiter: Waiter, prefix: str):
        group = self.group

        # a reverify may have started while the challenge was being deleted
        if not self._superseded(user.id, waiter):
            await settings.clear_pending(user.id)
        if not await settings.is_verbose():
            await group.delete(msg.message_id)

        action = await self.moderate(settings, user.id)
        logger.warning(f"{prefix} | 未通过验证 | 处理方式:{action.value}")

        if await settings.is_quiet():
            return

        notice = await group.send(await group.render("onfail", user))
        if await settings.is_verbose():
            return

        await group.sleep()
        await group.delete(notice)

    async def on_pass(self, user_id: int, message_id: Optional[int] = None) -> bool:
        """
        mark a member as passed, returns False when nothing was waiting

        message_id: the message that proved the member, the pass notice replies to it
        """
        settings = await self.group.settings()
        await settings.clear_pending(user_id)

        waiter = self.waiters.get(user_id)
        if waiter is None:
            return False

        return waiter.resolve(Resolution(Verdict.PASSED, message_id))

    def fail(self, user_id: int) -> bool:
        """fail a member without waiting for the timer"""
        waiter = self.waiters.get(user_id)
        if waiter is None:
            return False

        return waiter.resolve(Resolution(Verdict.FAILED))

    # moderation actions

    async def kick(self, settings: GroupSettings, user_id: int):
        await manager.ban(self.group.id, user_id)
        await settings.invalidate_role(user_id)
        await manager.unban(self.group.id, user_id)

    async def mute(self, settings: GroupSettings, user_id: int):
        await manager.restrict(self.group.id, user_id)

    async def ban(self, settings: GroupSettings, user_id: int):
        await manager.ban(self.group.id, user_id)
        await settings.invalidate_role(user_id)

    ACTIONS = {
        Action.KICK: kick,
        Action.MUTE: mute,
        Action.BAN: ban,
    }

    async def moderate(self, settings: GroupSettings, user_id: int) -> Action:
        action = await settings.get_action()
        await self.ACTIONS[action](self, settings, user_id)
        return action
