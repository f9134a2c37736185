from types import SimpleNamespace

import pytest

from .render import display_name, render


@pytest.fixture
def user():
    return SimpleNamespace(id=42, first_name="Alice", last_name=None)


def test_plain_text_is_escaped(user):
    assert render("a < b & c", user, 60) == "a &lt; b &amp; c"


def test_dollar_escape(user):
    assert render("costs $$5", user, 60) == "costs $5"
    assert render("$$$$", user, 60) == "$$"


def test_timeout(user):
    assert render("within $t seconds", user, 30) == "within 30 seconds"


def test_mention(user):
    assert render("hi $u!", user, 60) == 'hi <a href="tg://user?id=42">Alice</a>!'


def test_mention_escapes_full_name_once():
    user = SimpleNamespace(id=7, first_name="<Bob>", last_name="& Co")
    assert display_name(user) == "<Bob> & Co"
    assert render("$u", user, 60) == '<a href="tg://user?id=7">&lt;Bob&gt; &amp; Co</a>'


def test_unknown_placeholder_is_dropped(user):
    assert render("a$xb", user, 60) == "ab"


def test_trailing_dollar_emits_nothing(user):
    assert render("end$", user, 60) == "end"


def test_placeholder_after_escaping(user):
    # escaping happens first, "$&" becomes "$&amp;" and only "$&" is dropped
    assert render("$&t", user, 60) == "amp;t"


def test_placeholder_free_text_is_stable(user):
    text = "Welcome! <b>read the rules</b>"
    assert render(text, user, 60) == render(text, user, 10)
