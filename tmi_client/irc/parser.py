"""IRC line parsing into ``RawMessage``."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import ParseError, ParseErrorKind
from .tags import MessageTags, decode_tags

# Minimum argument counts (params plus trailing) for well-known commands.
REQUIRED_ARGUMENTS: dict[str, int] = {
    "PRIVMSG": 2,
    "WHISPER": 2,
    "CLEARMSG": 2,
    "NOTICE": 2,
    "CAP": 2,
    "JOIN": 1,
    "PART": 1,
    "ROOMSTATE": 1,
    "USERSTATE": 1,
    "USERNOTICE": 1,
    "CLEARCHAT": 1,
    "HOSTTARGET": 1,
}


@dataclass
class RawMessage:
    command: str
    params: list[str] = field(default_factory=list)
    trailing: str | None = None
    prefix: str | None = None
    tags: MessageTags = field(default_factory=MessageTags)

    @property
    def nick(self) -> str | None:
        if not self.prefix:
            return None
        nick, sep, _ = self.prefix.partition("!")
        if sep:
            return nick or None
        nick, sep, _ = self.prefix.partition("@")
        if sep:
            return nick or None
        # A bare server name such as tmi.twitch.tv carries no nick.
        return None if "." in self.prefix else self.prefix

    @property
    def user(self) -> str | None:
        if not self.prefix or "!" not in self.prefix:
            return None
        user = self.prefix.split("!", 1)[1].split("@", 1)[0]
        return user or None

    @property
    def host(self) -> str | None:
        if not self.prefix:
            return None
        if "@" in self.prefix:
            return self.prefix.rsplit("@", 1)[1] or None
        if "!" not in self.prefix and "." in self.prefix:
            return self.prefix
        return None

    @property
    def sender(self) -> str | None:
        return self.user or self.nick

    @property
    def arguments(self) -> list[str]:
        if self.trailing is None:
            return list(self.params)
        return [*self.params, self.trailing]

    def param(self, index: int, default: str | None = None) -> str | None:
        args = self.arguments
        return args[index] if 0 <= index < len(args) else default


def _valid_command(token: str) -> bool:
    if token.isascii() and token.isalpha():
        return True
    return len(token) == 3 and token.isascii() and token.isdigit()


def parse_line(line: str) -> RawMessage:
    """Parse one IRC line (CRLF optional) into a ``RawMessage``.

    Raises:
        ParseError: The line has no valid command, or a well-known command
            is missing required arguments.
    """
    original = line
    rest = line.rstrip("\r\n")

    tags = MessageTags()
    if rest.startswith("@"):
        blob, _, rest = rest.partition(" ")
        tags = MessageTags(decode_tags(blob[1:]))
        rest = rest.lstrip(" ")

    prefix: str | None = None
    if rest.startswith(":"):
        prefix, _, rest = rest[1:].partition(" ")
        rest = rest.lstrip(" ")

    trailing: str | None = None
    head, sep, tail = rest.partition(" :")
    if sep:
        trailing = tail
    elif rest.startswith(":"):
        # Only a trailing parameter; no command token.
        head = ""
    head_tokens = head.split()
    if not head_tokens:
        raise ParseError(ParseErrorKind.MALFORMED, original, "Line has no command")
    command = head_tokens[0]
    if not _valid_command(command):
        raise ParseError(
            ParseErrorKind.MALFORMED, original, f"Invalid command token {command!r}"
        )
    command = command.upper()
    params = head_tokens[1:]

    message = RawMessage(
        command=command, params=params, trailing=trailing, prefix=prefix, tags=tags
    )
    required = REQUIRED_ARGUMENTS.get(command, 0)
    if len(message.arguments) < required:
        raise ParseError(
            ParseErrorKind.MISSING_PARAMETERS,
            original,
            f"{command} needs {required} argument(s), got {len(message.arguments)}",
        )
    return message


__all__ = ["RawMessage", "parse_line", "REQUIRED_ARGUMENTS"]
