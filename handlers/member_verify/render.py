"""
消息模板渲染
Message template rendering

Placeholders, applied after the whole template is HTML escaped:

- ``$$`` a literal ``$``
- ``$u`` a mention of the member, linking to ``tg://user?id=<id>``
- ``$t`` the group timeout in seconds

``$`` followed by anything else is dropped together with that character.
"""

from typing import Iterator

from aiogram import types
from aiogram.utils.text_decorations import html_decoration


def display_name(user: types.User) -> str:
    name = user.first_name
    if user.last_name:
        name = f"{name} {user.last_name}"
    return name


def mention(user: types.User) -> str:
    return f'<a href="tg://user?id={user.id}">{html_decoration.quote(display_name(user))}</a>'


def _expand(text: str, user: types.User, timeout: int) -> Iterator[str]:
    chars = iter(text)
    for c in chars:
        if c != "$":
            yield c
            continue

        placeholder = next(chars, None)
        if placeholder == "$":
            yield "$"
        elif placeholder == "u":
            yield mention(user)
        elif placeholder == "t":
            yield str(timeout)


def render(template: str, user: types.User, timeout: int) -> str:
    return "".join(_expand(html_decoration.quote(template), user, timeout))
