"""
群组管理命令
Group administration commands

Every command handler is called as ``func(group, msg, command, argument)``.
Handlers raise CommandError subclasses for user mistakes, the dispatcher
answers them with the localized text.
"""

import asyncio
import time
from functools import wraps
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional

from aiogram import types
from aiogram.utils.text_decorations import html_decoration
from loguru import logger

from manager import manager
from manager.group import Role
from utils.i18n import i18n
from utils.tg import parse_command

from .config import LOW_TIMEOUT_NOTICE
from .exceptions import BadParameterError, CommandError, NeedReplyError, NotAdminError

if TYPE_CHECKING:
    from .group import Group

CommandHandler = Callable[["Group", types.Message, str, Optional[str]], Awaitable[None]]

COMMANDS: Dict[str, CommandHandler] = {}


def command(*names: str):
    def wrapper(func: CommandHandler):
        for name in names:
            COMMANDS[name] = func
        return func

    return wrapper


def admin_only(func: CommandHandler):
    @wraps(func)
    async def _wrapper(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
        user = msg.from_user
        if user is None or await group.role(user.id) != Role.ADMIN:
            raise NotAdminError(f"/{cmd} from non-admin", chat_id=group.id, member_id=user.id if user else None)
        return await func(group, msg, cmd, arg)

    return _wrapper


def need_reply(func: CommandHandler):
    @wraps(func)
    async def _wrapper(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
        if msg.reply_to_message is None:
            raise NeedReplyError(f"/{cmd} without reply", chat_id=group.id)
        return await func(group, msg, cmd, arg)

    return _wrapper


async def handle_command(group: "Group", msg: types.Message) -> bool:
    """
    run the command in ``msg``, returns False when it is not a known command
    """
    cmd, arg = parse_command(msg.text, manager.username)
    func = COMMANDS.get(cmd) if cmd else None
    if func is None:
        return False

    prefix = f"[命令] chat {group.id} msg {msg.message_id}"
    logger.info(f"{prefix} /{cmd} {arg!r}")

    try:
        await func(group, msg, cmd, arg)
    except CommandError as e:
        logger.info(f"{prefix} /{cmd} rejected: {e}")
        texts = [await group.format(key) for key in e.keys]
        await group.send("\n\n".join(texts), msg.message_id)

    return True


def replied_members(reply: types.Message) -> List[types.User]:
    """members a reply points at, every new member of a join message or the sender"""
    if reply.new_chat_members:
        return list(reply.new_chat_members)
    if reply.from_user is not None:
        return [reply.from_user]
    return []


@command("ping")
async def ping(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    latency = int(time.time()) - int(msg.date.timestamp())
    await group.send(await group.format("ping.pong", f"{latency}s"), msg.message_id)


@command("help")
async def show_help(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    pass


@command("status")
@admin_only
async def status(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    key = "status.enable" if await settings.is_enabled() else "status.disable"
    await group.send(await group.format(key), msg.message_id)


@command("enable", "disable")
@admin_only
async def enable(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    await settings.set_enabled(cmd == "enable")
    await group.send(await group.format(f"status.{cmd}"), msg.message_id)


@command("action")
@admin_only
async def action(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    if arg is not None:
        try:
            await settings.set_action(arg)
        except ValueError:
            raise BadParameterError(f"bad action {arg!r}", "action.help.full", chat_id=group.id)

    current = await settings.get_action()
    name = await group.format(f"action.{current.value}")
    await group.send(await group.format("action.query", name), msg.message_id)


@command("timeout")
@admin_only
async def timeout(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    if arg is not None:
        try:
            await settings.set_timeout(arg)
        except ValueError:
            raise BadParameterError(f"bad timeout {arg!r}", "timeout.help.full", chat_id=group.id)

    current = await settings.get_timeout()
    text = await group.format("timeout.query", current)
    if current < LOW_TIMEOUT_NOTICE:
        text += "\n\n" + await group.format("timeout.notice")
    await group.send(text, msg.message_id)


@command("lang")
@admin_only
async def lang(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    if arg is not None:
        await settings.set_lang(arg)

    current = await settings.get_lang()
    langs = ", ".join(i18n.langs())
    await group.send(
        await group.format("lang.query", html_decoration.quote(current), langs),
        msg.message_id,
    )


@command("verbose", "quiet")
@admin_only
async def display_mode(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()

    if arg is None:
        on = await (settings.is_verbose() if cmd == "verbose" else settings.is_quiet())
    elif arg in ("on", "off"):
        on = arg == "on"
        await settings.set_display_mode(cmd, on)
    else:
        raise BadParameterError(f"bad {cmd} switch {arg!r}", f"{cmd}.help.full", chat_id=group.id)

    await group.send(await group.format(f"{cmd}.{'on' if on else 'off'}"), msg.message_id)


@command("onjoin", "onpass", "onfail")
@admin_only
async def template(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    settings = await group.settings()
    if arg is not None:
        await settings.set_template(cmd, arg)

    current = await group.template(cmd)
    await group.send(await group.format(f"{cmd}.query", html_decoration.quote(current)), msg.message_id)


@command("refresh")
async def refresh(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    user = msg.from_user
    if msg.reply_to_message is not None:
        user = msg.reply_to_message.from_user

    if user is not None:
        settings = await group.settings()
        await settings.invalidate_role(user.id)
        logger.info(f"[命令] chat {group.id} member {user.id} role is refreshed")

    await group.delete(msg.message_id)


@command("reverify")
@admin_only
@need_reply
async def reverify(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    reply = msg.reply_to_message
    await asyncio.gather(*(group.engine.on_join(reply, user) for user in replied_members(reply)))


@command("pass")
@admin_only
@need_reply
async def force_pass(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    reply = msg.reply_to_message
    await asyncio.gather(*(group.engine.on_pass(user.id, reply.message_id) for user in replied_members(reply)))


@command("fail")
@admin_only
@need_reply
async def force_fail(group: "Group", msg: types.Message, cmd: str, arg: Optional[str]):
    for user in replied_members(msg.reply_to_message):
        if group.engine.fail(user.id):
            logger.info(f"[命令] chat {group.id} member {user.id} is failed by admin")
