"""Encoding of ``ClientMessage`` commands into IRC wire lines."""

from __future__ import annotations

from ..constants import MAX_LINE_BYTES, MAX_MESSAGE_LENGTH
from ..errors import EncodeError, EncodeErrorKind
from .commands import (
    CapRequest,
    ChatCommand,
    ClientMessage,
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
from .tags import escape_tag_value

_FORBIDDEN = ("\r", "\n", "\0")
WHISPER_CHANNEL = "#jtv"


def normalize_channel(name: str) -> str:
    """Lower-case a channel name and give it exactly one leading ``#``."""
    stripped = name.lstrip("#")
    if not stripped or any(ch.isspace() for ch in stripped) or "," in stripped:
        raise EncodeError(
            EncodeErrorKind.INVALID_CHANNEL, f"Invalid channel name: {name!r}"
        )
    _check_characters(stripped)
    return f"#{stripped.lower()}"


def _check_characters(*fields: str) -> None:
    for value in fields:
        if any(ch in value for ch in _FORBIDDEN):
            raise EncodeError(
                EncodeErrorKind.INVALID_CHARACTERS,
                "Line breaks and NUL are not allowed in commands",
            )


def _check_body(body: str) -> None:
    _check_characters(body)
    if not body.strip():
        raise EncodeError(EncodeErrorKind.EMPTY_BODY, "Message body is empty")
    if len(body) > MAX_MESSAGE_LENGTH:
        raise EncodeError(
            EncodeErrorKind.TOO_LONG,
            f"Message body is {len(body)} characters, limit is {MAX_MESSAGE_LENGTH}",
        )


def _check_login(login: str) -> str:
    _check_characters(login)
    login = login.strip().lstrip("@")
    if not login or any(ch.isspace() for ch in login):
        raise EncodeError(
            EncodeErrorKind.INVALID_CHARACTERS, f"Invalid user name: {login!r}"
        )
    return login.lower()


def _line(message: ClientMessage) -> str:
    match message:
        case JoinChannel(channel=channel):
            return f"JOIN {normalize_channel(channel)}"
        case PartChannel(channel=channel):
            return f"PART {normalize_channel(channel)}"
        case SendMessage(channel=channel, body=body, reply_to=reply_to, action=action):
            target = normalize_channel(channel)
            _check_body(body)
            text = f"\x01ACTION {body}\x01" if action else body
            line = f"PRIVMSG {target} :{text}"
            if reply_to is not None:
                _check_characters(reply_to)
                line = f"@reply-parent-msg-id={escape_tag_value(reply_to)} {line}"
            return line
        case SendWhisper(recipient=recipient, body=body):
            user = _check_login(recipient)
            _check_body(body)
            return f"PRIVMSG {WHISPER_CHANNEL} :/w {user} {body}"
        case RawCommand(line=line, channel=channel):
            if channel is not None:
                normalize_channel(channel)
            _check_characters(line)
            if not line.strip():
                raise EncodeError(EncodeErrorKind.EMPTY_BODY, "Raw command is empty")
            return line
        case ChatCommand(channel=channel, name=name, args=args):
            target = normalize_channel(channel)
            _check_characters(name, *args)
            if not name.isascii() or not name.isalnum():
                raise EncodeError(
                    EncodeErrorKind.INVALID_CHARACTERS, f"Invalid chat command: {name!r}"
                )
            if any(not arg.strip() for arg in args):
                raise EncodeError(EncodeErrorKind.EMPTY_BODY, "Command argument is empty")
            text = " ".join((f"/{name.lower()}", *args))
            _check_body(text)
            return f"PRIVMSG {target} :{text}"
        case Pong(argument=argument):
            _check_characters(argument)
            return f"PONG :{argument}"
        case Ping(argument=argument):
            _check_characters(argument)
            return f"PING :{argument}"
        case Pass(token=token):
            _check_characters(token)
            return f"PASS {token}"
        case Nick(nickname=nickname):
            return f"NICK {_check_login(nickname)}"
        case CapRequest(capabilities=capabilities):
            _check_characters(*capabilities)
            return f"CAP REQ :{' '.join(capabilities)}"
    raise TypeError(f"Unsupported client message: {type(message).__name__}")


def encode(message: ClientMessage) -> str:
    """Encode a command into one CRLF terminated line.

    Raises:
        EncodeError: The command is invalid or the line would be too long.
    """
    line = _line(message)
    if len(line.encode("utf-8")) > MAX_LINE_BYTES:
        raise EncodeError(
            EncodeErrorKind.TOO_LONG, f"Encoded line exceeds {MAX_LINE_BYTES} bytes"
        )
    return f"{line}\r\n"


__all__ = ["encode", "normalize_channel", "WHISPER_CHANNEL"]
