import asyncio
from datetime import datetime, timezone
from itertools import count
from types import SimpleNamespace

import pytest

from handlers.member_verify.group import Group
from manager import manager

CHAT_ID = -1001234567890
ADMIN_ID = 7


class FakeRedis:
    """in-memory double for the redis.asyncio commands the bot uses, records TTLs"""

    def __init__(self):
        self.data = {}
        self.ttl = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = str(value).encode()
        if ex is None:
            self.ttl.pop(key, None)
        else:
            self.ttl[key] = ex
        return True

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttl.pop(key, None)
                deleted += 1
        return deleted

    async def exists(self, *keys):
        return sum(1 for key in keys if key in self.data)

    def expire(self, key):
        """let a key with a TTL run out"""
        self.data.pop(key, None)
        self.ttl.pop(key, None)


class FakePlatform:
    """records every chat platform call made through ``manager``"""

    def __init__(self):
        self.ids = count(1000)
        self.sent = []
        self.deleted = []
        self.calls = []
        self.lookups = []
        self.members = {}

    async def send(self, chat, html, reply_to=None):
        message_id = next(self.ids)
        self.sent.append(SimpleNamespace(chat=chat, html=html, reply_to=reply_to, message_id=message_id))
        return message_id

    async def delete_message(self, chat, msg):
        if msg is None:
            return False
        first = msg not in self.deleted
        self.deleted.append(msg)
        return first

    async def restrict(self, chat, member):
        self.calls.append(("restrict", member))
        return True

    async def ban(self, chat, member):
        self.calls.append(("ban", member))

    async def unban(self, chat, member):
        self.calls.append(("unban", member))
        return True

    async def chat_member(self, chat, member):
        self.lookups.append(member)
        return self.members.get(member)

    @property
    def texts(self):
        return [i.html for i in self.sent]


class FakeClock:
    """every ``Group.sleep`` blocks until the test fires it"""

    def __init__(self):
        self.timers = []

    async def wait(self):
        timer = asyncio.get_running_loop().create_future()
        self.timers.append(timer)
        await timer

    @property
    def waiting(self):
        return [i for i in self.timers if not i.done()]

    def fire(self):
        """elapse every running timer"""
        for timer in self.waiting:
            timer.set_result(None)


async def _settle(rounds: int = 30):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def rdb(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(manager, "rdb", fake)
    return fake


@pytest.fixture
def platform(monkeypatch):
    fake = FakePlatform()
    for name in ("send", "delete_message", "restrict", "ban", "unban", "chat_member"):
        monkeypatch.setattr(manager, name, getattr(fake, name))
    monkeypatch.setattr(manager, "username", "joinguard_bot")

    fake.members[ADMIN_ID] = SimpleNamespace(status="creator", can_restrict_members=False)
    return fake


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(Group, "sleep", lambda group: fake.wait())
    return fake


@pytest.fixture
def group(rdb, platform, clock):
    return Group(CHAT_ID)


@pytest.fixture
def make_user():
    def factory(user_id, first_name="Alice", last_name=None):
        return SimpleNamespace(id=user_id, first_name=first_name, last_name=last_name, is_bot=False)

    return factory


@pytest.fixture
def make_message():
    ids = count(1)

    def factory(user=None, text=None, sticker=None, new_chat_members=None, reply_to_message=None, date=None):
        return SimpleNamespace(
            message_id=next(ids),
            chat=SimpleNamespace(id=CHAT_ID, type="supergroup", title="test group"),
            from_user=user,
            text=text,
            sticker=sticker,
            new_chat_members=new_chat_members,
            reply_to_message=reply_to_message,
            date=date or datetime.now(timezone.utc),
        )

    return factory


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN_ID, "Admin")
