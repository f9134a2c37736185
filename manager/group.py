"""
群组配置存储
Per-group settings store over redis

Every setting lives in its own key, ``group:<chat_id>:<field>``. A missing
key always means "use the default", unrecognised stored values are treated
the same way.
"""

from enum import Enum
from typing import Optional, Union

from redis import asyncio as aioredis

SETTINGS_KEY_PREFIX = "group:"

DEFAULT_TIMEOUT = 60
DEFAULT_LANG = "en_US"

TIMEOUT_MIN = 1
TIMEOUT_MAX = 2**31 - 1

ROLE_TTL = 120  # seconds

TEMPLATE_STAGES = ("onjoin", "onpass", "onfail")
DISPLAY_MODES = ("verbose", "quiet")


class Role(str, Enum):
    NONE = "none"
    MEMBER = "member"
    ADMIN = "admin"


class Action(str, Enum):
    KICK = "kick"
    MUTE = "mute"
    BAN = "ban"


DEFAULT_ACTION = Action.KICK


def parse_timeout(raw: str) -> int:
    """
    解析管理员输入的超时时间

    Raises ValueError unless ``raw`` is a decimal integer in 1..2147483647.
    """
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()):
        raise ValueError(f"timeout {raw!r} is not a decimal integer")

    value = int(raw)
    if value < TIMEOUT_MIN or value > TIMEOUT_MAX:
        raise ValueError(f"timeout {value} is out of range")
    return value


class GroupSettings:
    """Typed accessor for one group's settings"""

    def __init__(self, rdb: "aioredis.Redis", chat_id: Union[int, str]):
        self.rdb = rdb
        self.chat_id = chat_id

    def key(self, key: str) -> str:
        return f"{SETTINGS_KEY_PREFIX}{self.chat_id}:{key}"

    async def get(self, key: str) -> Optional[str]:
        value = await self.rdb.get(self.key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None):
        await self.rdb.set(self.key(key), value, ex=ttl)

    async def delete(self, key: str):
        await self.rdb.delete(self.key(key))

    async def exists(self, key: str) -> bool:
        return await self.rdb.exists(self.key(key)) > 0

    # enabled

    async def is_enabled(self) -> bool:
        return await self.exists("enabled")

    async def set_enabled(self, enabled: bool):
        if enabled:
            await self.set("enabled", "true")
        else:
            await self.delete("enabled")

    # verbose / quiet

    async def is_verbose(self) -> bool:
        return await self.exists("verbose")

    async def is_quiet(self) -> bool:
        return await self.exists("quiet")

    async def set_display_mode(self, mode: str, on: bool):
        """turning one mode on clears the other, turning it off only removes itself"""
        if mode not in DISPLAY_MODES:
            raise ValueError(f"unknown display mode {mode}")

        if not on:
            await self.delete(mode)
            return

        conflict = "quiet" if mode == "verbose" else "verbose"
        await self.set(mode, "true")
        await self.delete(conflict)

    # timeout

    async def get_timeout(self) -> int:
        raw = await self.get("timeout")
        if raw is None:
            return DEFAULT_TIMEOUT
        try:
            return parse_timeout(raw)
        except ValueError:
            return DEFAULT_TIMEOUT

    async def set_timeout(self, raw: str) -> int:
        value = parse_timeout(raw)
        await self.set("timeout", str(value))
        return value

    # action

    async def get_action(self) -> Action:
        raw = await self.get("action")
        try:
            return Action(raw)
        except ValueError:
            return DEFAULT_ACTION

    async def set_action(self, raw: str) -> Action:
        action = Action(raw)
        await self.set("action", action.value)
        return action

    # templates

    async def get_template(self, stage: str) -> Optional[str]:
        return await self.get(f"{stage}:template")

    async def set_template(self, stage: str, template: str):
        if stage not in TEMPLATE_STAGES:
            raise ValueError(f"unknown template stage {stage}")
        await self.set(f"{stage}:template", template)

    # language

    async def get_lang(self) -> str:
        return await self.get("lang") or DEFAULT_LANG

    async def set_lang(self, lang: str):
        await self.set("lang", lang)

    # member role cache

    async def get_role(self, user_id: int) -> Optional[Role]:
        raw = await self.get(f"user:{user_id}:role")
        try:
            return Role(raw)
        except ValueError:
            return None

    async def set_role(self, user_id: int, role: Role):
        await self.set(f"user:{user_id}:role", role.value, ROLE_TTL)

    async def invalidate_role(self, user_id: int):
        await self.delete(f"user:{user_id}:role")

    # pending verification flag

    async def is_pending(self, user_id: int) -> bool:
        return await self.exists(f"user:{user_id}:pending")

    async def set_pending(self, user_id: int):
        await self.set(f"user:{user_id}:pending", "true")

    async def clear_pending(self, user_id: int):
        await self.delete(f"user:{user_id}:pending")
