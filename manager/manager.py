import os.path
import sys
from configparser import ConfigParser
from functools import wraps
from typing import Optional, Union

import loguru
from aiogram import Bot, Dispatcher, types
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from redis import asyncio as aioredis

from .settings import SETTINGS_TEMPLATE

logger = loguru.logger


class Manager:
    """管理模块"""

    # aiogram instance
    bot: Bot
    dp: Dispatcher = Dispatcher()  # static dispatcher

    # redis connection
    rdb: Optional["aioredis.Redis"] = None

    # global config
    config = ConfigParser()

    # routes
    handlers = []

    # bot username, used to filter commands addressed to other bots
    username: Optional[str] = None

    logger = logger

    def setup(self):
        self.load_config()

        self.setup_logger()

        token = self.config["telegram"]["token"]
        if not token:
            logger.error("telegram token is missing")
            sys.exit(1)

        self.bot = Bot(token)
        logger.info("bot is setup")

        self.setup_handlers()

    def load_config(self):
        """加载 main.ini，默认会配置相关代码"""
        config = self.config

        # 设置默认模板
        for key, section in SETTINGS_TEMPLATE.items():
            config.setdefault(key, section)

        # 从文件读取
        if os.path.isfile("main.ini"):
            try:
                with open("main.ini", "r", encoding="utf-8") as f:
                    config.read_file(f)

                logger.info("settings is loaded from main.ini")
            except IOError:
                logger.warning("main.ini is not readable, defaults are used")

    def setup_logger(self):
        """设置logger"""
        logger = self.logger

        if self.config["default"].getboolean("debug", False):
            logger.remove()
            logger.add(sys.stderr, level=10)
            logger.debug("logger is setup with debug level")
            return

        logger.remove()
        logger.add(sys.stderr, level=20)
        logger.info("logger is setup")

    def setup_handlers(self):
        """
        设置事件处理
        """
        for func, type_name, args, kwargs in self.handlers:
            observer = self.dp.observers.get(type_name, None)
            if not observer or not hasattr(observer, "register"):
                logger.warning(f"dispatcher:unknown type {type_name}")
                continue

            method = observer.register
            method(func, *args, **kwargs)
            logger.info(f"dispatcher {func.__name__}:{observer.event_name}.{method.__name__}({args}, {kwargs})")

    def register(self, type_name, *args, **kwargs):
        """
        延迟注册到 Dispatcher
        """

        def wrapper(func):
            self.handlers.append((func, type_name, args, kwargs))
            logger.debug(f"dispatcher {func.__name__}:{type_name}({args}, {kwargs})")

            @wraps(func)
            async def _wrapper(*args, **kwargs):
                return await func(*args, **kwargs)

            return _wrapper

        return wrapper

    async def start(self):
        me = await self.bot.me()
        self.username = me.username

        await self.notification("bot is started")

        await self.dp.start_polling(self.bot)

    async def stop(self):
        if self.rdb is not None:
            await self.rdb.aclose()
            self.rdb = None

        await self.bot.session.close()

    async def notification(self, content: str):
        if "admin" in self.config["telegram"]:
            admin = self.config["telegram"]["admin"]
            await self.bot.send_message(admin, content)

    async def get_redis(self):
        """setup redis connections"""
        if self.rdb is None:
            if "redis" not in self.config or not self.config["redis"].get("dsn"):
                return None

            redis_dsn = self.config["redis"]["dsn"]
            self.rdb = aioredis.from_url(redis_dsn)

        return self.rdb

    async def send(self, chat: int, html: str, reply_to: Optional[int] = None) -> int:
        """
        发送 HTML 消息，返回消息 ID
        chat: target chat
        html: message content
        reply_to: reply to the message, sent normally if it is gone
        """
        reply_parameters = None
        if reply_to is not None:
            reply_parameters = types.ReplyParameters(message_id=reply_to, allow_sending_without_reply=True)

        resp = await self.bot.send_message(
            chat,
            html,
            parse_mode=ParseMode.HTML,
            reply_parameters=reply_parameters,
            disable_notification=True,
        )
        logger.info(f"chat {chat} message {resp.message_id} sent")

        return resp.message_id

    async def delete_message(self, chat: int, msg: Union[int, types.Message, None]) -> bool:
        """
        删除消息，消息已不存在时返回 False
        chat: chat with msg
        msg: msg will be deleted
        """
        if msg is None:
            return False

        id_message: int = msg.message_id if isinstance(msg, types.Message) else msg

        try:
            await self.bot.delete_message(chat, id_message)
        except TelegramBadRequest:
            logger.warning(f"chat {chat} message {id_message} not found")
            return False

        logger.info(f"chat {chat} message {id_message} deleted")
        return True

    async def restrict(self, chat: int, member: int) -> bool:
        """禁止成员发言"""
        permissions = types.ChatPermissions(
            can_send_messages=False,
            can_send_audios=False,
            can_send_documents=False,
            can_send_photos=False,
            can_send_videos=False,
            can_send_video_notes=False,
            can_send_voice_notes=False,
            can_send_polls=False,
            can_send_other_messages=False,
            can_add_web_page_previews=False,
        )
        result = await self.bot.restrict_chat_member(chat, member, permissions=permissions)
        logger.info(f"chat {chat} member {member} is restricted")
        return result

    async def ban(self, chat: int, member: int):
        await self.bot.ban_chat_member(chat, member)
        logger.info(f"chat {chat} member {member} is banned")

    async def unban(self, chat: int, member: int) -> bool:
        result = await self.bot.unban_chat_member(chat, member, only_if_banned=True)
        logger.info(f"chat {chat} member {member} is unbanned")
        return result

    async def chat_member(self, chat: int, member: int):
        try:
            return await self.bot.get_chat_member(chat, member)
        except TelegramBadRequest as e:
            logger.warning(f"chat {chat} member {member} lookup failed:{e}")
