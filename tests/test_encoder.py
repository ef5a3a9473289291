from __future__ import annotations

import pytest

from tmi_client.constants import MAX_MESSAGE_LENGTH
from tmi_client.errors import EncodeError, EncodeErrorKind
from tmi_client.irc.commands import (
    CapRequest,
    ChatCommand,
    JoinChannel,
    Nick,
    PartChannel,
    Pass,
    Ping,
    Pong,
    RawCommand,
    SendMessage,
    SendWhisper,
)
from tmi_client.irc.encoder import encode, normalize_channel
from tmi_client.irc.events import ChannelMessage, Join, Part
from tmi_client.irc.mapper import map_message
from tmi_client.irc.parser import parse_line
from tmi_client.rate.categories import RateLimitCategory


@pytest.mark.parametrize(
    ("message", "line"),
    [
        (JoinChannel(channel="Ronni"), "JOIN #ronni\r\n"),
        (PartChannel(channel="#ronni"), "PART #ronni\r\n"),
        (SendMessage(channel="#Chan", body="hello world"), "PRIVMSG #chan :hello world\r\n"),
        (SendMessage(channel="chan", body="waves", action=True), "PRIVMSG #chan :\x01ACTION waves\x01\r\n"),
        (SendWhisper(recipient="@SomeOne", body="psst"), "PRIVMSG #jtv :/w someone psst\r\n"),
        (RawCommand(line="PRIVMSG #chan :/color blue"), "PRIVMSG #chan :/color blue\r\n"),
        (Pong(), "PONG :tmi.twitch.tv\r\n"),
        (Ping(argument="probe"), "PING :probe\r\n"),
        (Pass(token="oauth:abc"), "PASS oauth:abc\r\n"),
        (Nick(nickname="TestBot"), "NICK testbot\r\n"),
        (CapRequest(capabilities=("twitch.tv/tags", "twitch.tv/commands")), "CAP REQ :twitch.tv/tags twitch.tv/commands\r\n"),
    ],
)
def test_encode_lines(message, line):
    assert encode(message) == line


def test_reply_carries_escaped_parent_tag():
    line = encode(SendMessage(channel="chan", body="ok", reply_to="abc def;1"))
    assert line == "@reply-parent-msg-id=abc\\sdef\\:1 PRIVMSG #chan :ok\r\n"


@pytest.mark.parametrize("name", ["foo", "#foo", "##Foo", "FOO"])
def test_normalize_channel(name):
    assert normalize_channel(name) == "#foo"


@pytest.mark.parametrize("name", ["", "#", "two words", "a,b"])
def test_invalid_channel(name):
    with pytest.raises(EncodeError) as exc_info:
        encode(JoinChannel(channel=name))
    assert exc_info.value.kind is EncodeErrorKind.INVALID_CHANNEL


@pytest.mark.parametrize("body", ["", "   "])
def test_empty_body(body):
    with pytest.raises(EncodeError) as exc_info:
        encode(SendMessage(channel="chan", body=body))
    assert exc_info.value.kind is EncodeErrorKind.EMPTY_BODY


def test_body_at_limit_is_accepted_and_over_limit_rejected():
    encode(SendMessage(channel="chan", body="x" * MAX_MESSAGE_LENGTH))
    with pytest.raises(EncodeError) as exc_info:
        encode(SendMessage(channel="chan", body="x" * (MAX_MESSAGE_LENGTH + 1)))
    assert exc_info.value.kind is EncodeErrorKind.TOO_LONG


def test_raw_line_over_byte_limit_rejected():
    with pytest.raises(EncodeError) as exc_info:
        encode(RawCommand(line="PRIVMSG #c :" + "é" * 3000))
    assert exc_info.value.kind is EncodeErrorKind.TOO_LONG


@pytest.mark.parametrize(
    "message",
    [
        SendMessage(channel="chan", body="hi\r\nJOIN #evil"),
        SendMessage(channel="chan", body="nul\0"),
        SendMessage(channel="chan", body="ok", reply_to="id\n"),
        RawCommand(line="PING\nPING"),
        SendWhisper(recipient="user", body="a\rb"),
    ],
)
def test_line_breaks_rejected(message):
    with pytest.raises(EncodeError) as exc_info:
        encode(message)
    assert exc_info.value.kind is EncodeErrorKind.INVALID_CHARACTERS


def test_categories_and_rate_limit_channel():
    assert JoinChannel(channel="a").category is RateLimitCategory.JOIN
    assert PartChannel(channel="a").category is RateLimitCategory.JOIN
    assert SendMessage(channel="a", body="b").category is RateLimitCategory.MESSAGE
    assert SendWhisper(recipient="a", body="b").category is RateLimitCategory.WHISPER
    assert RawCommand(line="x").category is RateLimitCategory.MESSAGE
    assert Pong().category is RateLimitCategory.UNLIMITED
    assert SendMessage(channel="#a", body="b").rate_limit_channel == "#a"
    assert SendWhisper(recipient="a", body="b").rate_limit_channel is None
    assert RawCommand(line="x", channel="#c").rate_limit_channel == "#c"


def test_pass_repr_hides_token():
    assert "secret" not in repr(Pass(token="oauth:secret"))


@pytest.mark.parametrize(
    ("message", "line"),
    [
        (ChatCommand(channel="Chan", name="ban", args=("baduser",)), "PRIVMSG #chan :/ban baduser\r\n"),
        (ChatCommand(channel="chan", name="timeout", args=("u", "60", "spam")), "PRIVMSG #chan :/timeout u 60 spam\r\n"),
        (ChatCommand(channel="chan", name="clear"), "PRIVMSG #chan :/clear\r\n"),
        (ChatCommand(channel="chan", name="SlowOff"), "PRIVMSG #chan :/slowoff\r\n"),
        (ChatCommand(channel="chan", name="marker", args=("big play",)), "PRIVMSG #chan :/marker big play\r\n"),
    ],
)
def test_chat_command_lines(message, line):
    assert encode(message) == line


@pytest.mark.parametrize(
    ("message", "kind"),
    [
        (ChatCommand(channel="chan", name="ban me"), EncodeErrorKind.INVALID_CHARACTERS),
        (ChatCommand(channel="chan", name="/ban"), EncodeErrorKind.INVALID_CHARACTERS),
        (ChatCommand(channel="chan", name="ban", args=("u\r\nQUIT",)), EncodeErrorKind.INVALID_CHARACTERS),
        (ChatCommand(channel="chan", name="ban", args=(" ",)), EncodeErrorKind.EMPTY_BODY),
        (ChatCommand(channel="chan", name="marker", args=("x" * MAX_MESSAGE_LENGTH,)), EncodeErrorKind.TOO_LONG),
        (ChatCommand(channel="", name="clear"), EncodeErrorKind.INVALID_CHANNEL),
    ],
)
def test_chat_command_rejected(message, kind):
    with pytest.raises(EncodeError) as exc_info:
        encode(message)
    assert exc_info.value.kind is kind


def test_chat_command_is_charged_as_message():
    command = ChatCommand(channel="#Chan", name="ban", args=("u",))
    assert command.category is RateLimitCategory.MESSAGE
    assert command.rate_limit_channel == "#Chan"


@pytest.mark.parametrize(
    "line",
    [
        "PRIVMSG #chan :hello there",
        "JOIN #chan",
        "PART #chan",
    ],
)
def test_parsed_line_encodes_back_to_same_line(line):
    event = map_message(parse_line(f":testbot!testbot@testbot.tmi.twitch.tv {line}"))
    if isinstance(event, ChannelMessage):
        message = SendMessage(channel=event.channel, body=event.message)
    elif isinstance(event, Join):
        message = JoinChannel(channel=event.channel)
    else:
        assert isinstance(event, Part)
        message = PartChannel(channel=event.channel)
    assert encode(message) == f"{line}\r\n"


def test_parsed_action_encodes_back_to_same_line():
    line = "PRIVMSG #chan :\x01ACTION waves\x01"
    event = map_message(parse_line(f":u!u@u.tmi.twitch.tv {line}"))
    assert isinstance(event, ChannelMessage)
    message = SendMessage(channel=event.channel, body=event.message, action=event.is_action)
    assert encode(message) == f"{line}\r\n"
