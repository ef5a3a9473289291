"""IRCv3 message tag codec and typed accessors for Twitch tags."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum

_UNESCAPE = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}
_ESCAPE = {";": "\\:", " ": "\\s", "\\": "\\\\", "\r": "\\r", "\n": "\\n"}


class TagKey(StrEnum):
    BADGE_INFO = "badge-info"
    BADGES = "badges"
    COLOR = "color"
    DISPLAY_NAME = "display-name"
    EMOTES = "emotes"
    EMOTE_SETS = "emote-sets"
    ID = "id"
    MOD = "mod"
    SUBSCRIBER = "subscriber"
    TURBO = "turbo"
    ROOM_ID = "room-id"
    USER_ID = "user-id"
    USER_TYPE = "user-type"
    TMI_SENT_TS = "tmi-sent-ts"
    MESSAGE_ID = "message-id"
    THREAD_ID = "thread-id"
    LOGIN = "login"
    MSG_ID = "msg-id"
    SYSTEM_MSG = "system-msg"
    TARGET_MSG_ID = "target-msg-id"
    BAN_DURATION = "ban-duration"
    BITS = "bits"
    VIP = "vip"
    EMOTE_ONLY = "emote-only"
    FOLLOWERS_ONLY = "followers-only"
    R9K = "r9k"
    SLOW = "slow"
    SUBS_ONLY = "subs-only"
    REPLY_PARENT_MSG_ID = "reply-parent-msg-id"


def unescape_tag_value(value: str) -> str:
    r"""Reverse IRCv3 tag escaping.

    ``\:`` becomes ``;``, ``\s`` a space, ``\\`` a backslash, ``\r`` and
    ``\n`` CR and LF. Any other escaped character stands for itself and a
    trailing lone backslash is dropped.
    """
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            break
        out.append(_UNESCAPE.get(nxt, nxt))
    return "".join(out)


def escape_tag_value(value: str) -> str:
    return "".join(_ESCAPE.get(ch, ch) for ch in value)


def decode_tags(blob: str) -> dict[str, str]:
    """Decode a tag section (without the leading ``@``) into a dict.

    Empty entries are skipped, a key without ``=`` maps to ``""`` and the
    last occurrence of a duplicated key wins.
    """
    tags: dict[str, str] = {}
    for entry in blob.split(";"):
        if not entry:
            continue
        key, _, value = entry.partition("=")
        tags[key] = unescape_tag_value(value)
    return tags


def encode_tags(tags: Mapping[str, str]) -> str:
    """Encode tags without the leading ``@``; empty values keep the ``=``."""
    return ";".join(f"{key}={escape_tag_value(value)}" for key, value in tags.items())


@dataclass(frozen=True, slots=True)
class Badge:
    name: str
    version: str


@dataclass(frozen=True, slots=True)
class EmoteReplacement:
    """One occurrence of an emote, as inclusive character offsets."""

    emote_id: str
    start: int
    end: int


def parse_badges(value: str) -> list[Badge]:
    badges: list[Badge] = []
    for item in value.split(","):
        name, sep, version = item.partition("/")
        if not name or not sep:
            continue
        badges.append(Badge(name=name, version=version))
    return badges


def parse_emotes(value: str) -> list[EmoteReplacement]:
    emotes: list[EmoteReplacement] = []
    for group in value.split("/"):
        emote_id, sep, ranges = group.partition(":")
        if not emote_id or not sep:
            continue
        for span in ranges.split(","):
            start_s, dash, end_s = span.partition("-")
            if not dash:
                continue
            try:
                start, end = int(start_s), int(end_s)
            except ValueError:
                continue
            if start > end:
                continue
            emotes.append(EmoteReplacement(emote_id=emote_id, start=start, end=end))
    emotes.sort(key=lambda e: e.start)
    return emotes


def _parse_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class MessageTags(Mapping[str, str]):
    """Read-only view over decoded tags with typed accessors.

    Keys can be looked up with plain strings or ``TagKey`` members. Missing
    and empty tags both read as ``None`` through the typed accessors.
    """

    __slots__ = ("_tags",)

    def __init__(self, tags: Mapping[str, str] | None = None) -> None:
        self._tags: dict[str, str] = dict(tags) if tags else {}

    def __getitem__(self, key: str) -> str:
        return self._tags[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"MessageTags({self._tags!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MessageTags):
            return self._tags == other._tags
        if isinstance(other, Mapping):
            return self._tags == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def value(self, key: str) -> str | None:
        """Tag value, or None when missing or empty."""
        return self._tags.get(key) or None

    def flag(self, key: str) -> bool:
        return self._tags.get(key) == "1"

    def integer(self, key: str) -> int | None:
        return _parse_int(self._tags.get(key))

    @property
    def badges(self) -> list[Badge]:
        return parse_badges(self._tags.get(TagKey.BADGES, ""))

    @property
    def badge_info(self) -> list[Badge]:
        return parse_badges(self._tags.get(TagKey.BADGE_INFO, ""))

    def has_badge(self, name: str) -> bool:
        return any(b.name == name for b in self.badges)

    @property
    def emotes(self) -> list[EmoteReplacement]:
        return parse_emotes(self._tags.get(TagKey.EMOTES, ""))

    @property
    def emote_sets(self) -> list[int]:
        sets = []
        for item in self._tags.get(TagKey.EMOTE_SETS, "").split(","):
            parsed = _parse_int(item)
            if parsed is not None:
                sets.append(parsed)
        return sets

    @property
    def color(self) -> str | None:
        return self.value(TagKey.COLOR)

    @property
    def display_name(self) -> str | None:
        return self.value(TagKey.DISPLAY_NAME)

    @property
    def id(self) -> str | None:
        return self.value(TagKey.ID)

    @property
    def user_id(self) -> str | None:
        return self.value(TagKey.USER_ID)

    @property
    def room_id(self) -> str | None:
        return self.value(TagKey.ROOM_ID)

    @property
    def user_type(self) -> str | None:
        return self.value(TagKey.USER_TYPE)

    @property
    def login(self) -> str | None:
        return self.value(TagKey.LOGIN)

    @property
    def msg_id(self) -> str | None:
        return self.value(TagKey.MSG_ID)

    @property
    def system_msg(self) -> str | None:
        return self.value(TagKey.SYSTEM_MSG)

    @property
    def target_msg_id(self) -> str | None:
        return self.value(TagKey.TARGET_MSG_ID)

    @property
    def message_id(self) -> str | None:
        return self.value(TagKey.MESSAGE_ID)

    @property
    def thread_id(self) -> str | None:
        return self.value(TagKey.THREAD_ID)

    @property
    def reply_parent_msg_id(self) -> str | None:
        return self.value(TagKey.REPLY_PARENT_MSG_ID)

    @property
    def is_mod(self) -> bool:
        return self.flag(TagKey.MOD)

    @property
    def is_vip(self) -> bool:
        return self.flag(TagKey.VIP) or self.has_badge("vip")

    @property
    def is_subscriber(self) -> bool:
        return self.flag(TagKey.SUBSCRIBER)

    @property
    def is_turbo(self) -> bool:
        return self.flag(TagKey.TURBO)

    @property
    def emote_only(self) -> bool | None:
        raw = self.value(TagKey.EMOTE_ONLY)
        return None if raw is None else raw == "1"

    @property
    def r9k(self) -> bool | None:
        raw = self.value(TagKey.R9K)
        return None if raw is None else raw == "1"

    @property
    def subs_only(self) -> bool | None:
        raw = self.value(TagKey.SUBS_ONLY)
        return None if raw is None else raw == "1"

    @property
    def followers_only(self) -> int | None:
        """Minutes of follow age required; -1 means disabled."""
        return self.integer(TagKey.FOLLOWERS_ONLY)

    @property
    def slow(self) -> int | None:
        return self.integer(TagKey.SLOW)

    @property
    def ban_duration(self) -> int | None:
        return self.integer(TagKey.BAN_DURATION)

    @property
    def bits(self) -> int | None:
        return self.integer(TagKey.BITS)

    @property
    def tmi_sent_ts(self) -> int | None:
        return self.integer(TagKey.TMI_SENT_TS)


__all__ = [
    "TagKey",
    "Badge",
    "EmoteReplacement",
    "MessageTags",
    "decode_tags",
    "encode_tags",
    "escape_tag_value",
    "unescape_tag_value",
    "parse_badges",
    "parse_emotes",
]
