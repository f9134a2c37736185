import pytest

from conftest import CHAT_ID
from manager.group import (
    DEFAULT_ACTION,
    DEFAULT_LANG,
    DEFAULT_TIMEOUT,
    ROLE_TTL,
    Action,
    GroupSettings,
    Role,
    parse_timeout,
)


@pytest.fixture
def settings(rdb):
    return GroupSettings(rdb, CHAT_ID)


def test_parse_timeout_accepts_range():
    assert parse_timeout("1") == 1
    assert parse_timeout(" 30 ") == 30
    assert parse_timeout("2147483647") == 2147483647


@pytest.mark.parametrize("raw", ["0", "-5", "abc", "", "1.5", "2147483648", "99999999999", "1_000", "+5", "٣٠"])
def test_parse_timeout_rejects(raw):
    with pytest.raises(ValueError):
        parse_timeout(raw)


@pytest.mark.asyncio
async def test_keys_are_namespaced_per_group(settings, rdb):
    await settings.set("enabled", "true")
    assert f"group:{CHAT_ID}:enabled" in rdb.data
    assert await settings.get("enabled") == "true"
    assert await GroupSettings(rdb, 1).get("enabled") is None


@pytest.mark.asyncio
async def test_defaults_when_absent(settings):
    assert not await settings.is_enabled()
    assert not await settings.is_verbose()
    assert not await settings.is_quiet()
    assert await settings.get_timeout() == DEFAULT_TIMEOUT
    assert await settings.get_action() == DEFAULT_ACTION == Action.KICK
    assert await settings.get_lang() == DEFAULT_LANG
    assert await settings.get_template("onjoin") is None
    assert await settings.get_role(42) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["1", "10", "60", "2147483647"])
async def test_timeout_round_trip(settings, raw):
    assert await settings.set_timeout(raw) == int(raw)
    assert await settings.get_timeout() == int(raw)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["abc", "0", "-1", "2147483648"])
async def test_bad_timeout_keeps_previous_value(settings, raw):
    with pytest.raises(ValueError):
        await settings.set_timeout(raw)
    assert await settings.get_timeout() == DEFAULT_TIMEOUT

    await settings.set_timeout("15")
    with pytest.raises(ValueError):
        await settings.set_timeout(raw)
    assert await settings.get_timeout() == 15


@pytest.mark.asyncio
async def test_unrecognised_stored_values_fall_back(settings):
    await settings.set("timeout", "soon")
    await settings.set("action", "explode")
    await settings.set("user:42:role", "owner")

    assert await settings.get_timeout() == DEFAULT_TIMEOUT
    assert await settings.get_action() == Action.KICK
    assert await settings.get_role(42) is None


@pytest.mark.asyncio
async def test_set_action(settings):
    assert await settings.set_action("ban") == Action.BAN
    assert await settings.get_action() == Action.BAN

    with pytest.raises(ValueError):
        await settings.set_action("shout")
    assert await settings.get_action() == Action.BAN


@pytest.mark.asyncio
async def test_verbose_and_quiet_exclude_each_other(settings):
    await settings.set_display_mode("verbose", True)
    assert await settings.is_verbose()

    await settings.set_display_mode("quiet", True)
    assert await settings.is_quiet()
    assert not await settings.is_verbose()

    await settings.set_display_mode("verbose", True)
    assert await settings.is_verbose()
    assert not await settings.is_quiet()


@pytest.mark.asyncio
async def test_display_mode_off_only_removes_itself(settings):
    await settings.set_display_mode("quiet", True)
    await settings.set_display_mode("verbose", False)
    assert await settings.is_quiet()

    await settings.set_display_mode("quiet", False)
    assert not await settings.is_quiet()
    assert not await settings.is_verbose()


@pytest.mark.asyncio
async def test_role_cache_has_ttl(settings, rdb):
    await settings.set_role(42, Role.ADMIN)
    assert await settings.get_role(42) == Role.ADMIN
    assert rdb.ttl[f"group:{CHAT_ID}:user:42:role"] == ROLE_TTL

    await settings.invalidate_role(42)
    assert await settings.get_role(42) is None


@pytest.mark.asyncio
async def test_pending_flag_has_no_ttl(settings, rdb):
    await settings.set_pending(42)
    assert await settings.is_pending(42)
    assert f"group:{CHAT_ID}:user:42:pending" not in rdb.ttl

    await settings.clear_pending(42)
    assert not await settings.is_pending(42)


@pytest.mark.asyncio
async def test_templates(settings):
    await settings.set_template("onpass", "Hi $u")
    assert await settings.get_template("onpass") == "Hi $u"

    with pytest.raises(ValueError):
        await settings.set_template("onleave", "bye")
