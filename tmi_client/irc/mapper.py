"""Mapping of parsed IRC messages to typed events."""

from __future__ import annotations

from collections.abc import Callable

from ..rate.categories import PrivilegeTier
from .events import (
    Capability,
    CapabilitySubcommand,
    ChannelMessage,
    ClearChat,
    ClearMessage,
    ConnectMessage,
    EndOfNames,
    Event,
    GlobalUserState,
    HostTarget,
    Join,
    Names,
    Notice,
    Part,
    Ping,
    Pong,
    PrivilegeUpdate,
    Reconnect,
    RoomState,
    SlowModeUpdate,
    Unrecognized,
    UserNotice,
    UserState,
    Whisper,
)
from .parser import RawMessage

_ACTION_PREFIX = "\x01ACTION "
_ACTION_SUFFIX = "\x01"
CONNECT_CODES = frozenset({"001", "002", "003", "004", "372", "375", "376"})


class _MissingField(LookupError):
    pass


def _arg(raw: RawMessage, index: int) -> str:
    value = raw.param(index)
    if value is None:
        raise _MissingField(index)
    return value


def _last(raw: RawMessage) -> str:
    args = raw.arguments
    if not args:
        raise _MissingField(-1)
    return args[-1]


def _privmsg(raw: RawMessage) -> Event:
    text = _arg(raw, 1)
    is_action = text.startswith(_ACTION_PREFIX) and text.endswith(_ACTION_SUFFIX)
    if is_action:
        text = text[len(_ACTION_PREFIX) : -len(_ACTION_SUFFIX)]
    return ChannelMessage(
        tags=raw.tags,
        sender=raw.sender,
        channel=_arg(raw, 0),
        message=text,
        is_action=is_action,
    )


def _whisper(raw: RawMessage) -> Event:
    return Whisper(
        tags=raw.tags, sender=raw.sender, recipient=_arg(raw, 0), message=_arg(raw, 1)
    )


def _channel_event(cls: type[Event]) -> Callable[[RawMessage], Event]:
    def build(raw: RawMessage) -> Event:
        return cls(tags=raw.tags, sender=raw.sender, channel=_arg(raw, 0))  # type: ignore[call-arg]

    return build


def _usernotice(raw: RawMessage) -> Event:
    return UserNotice(
        tags=raw.tags, sender=raw.sender, channel=_arg(raw, 0), message=raw.param(1)
    )


def _clearchat(raw: RawMessage) -> Event:
    return ClearChat(
        tags=raw.tags,
        sender=raw.sender,
        channel=_arg(raw, 0),
        target_user=raw.param(1) or None,
    )


def _clearmsg(raw: RawMessage) -> Event:
    return ClearMessage(
        tags=raw.tags, sender=raw.sender, channel=_arg(raw, 0), message=_arg(raw, 1)
    )


def _notice(raw: RawMessage) -> Event:
    return Notice(
        tags=raw.tags, sender=raw.sender, target=_arg(raw, 0), message=_arg(raw, 1)
    )


def _hosttarget(raw: RawMessage) -> Event:
    # HOSTTARGET #host :<target|-> [viewers]
    target_token, _, viewers_token = (raw.param(1) or "").partition(" ")
    target = None if target_token in ("", "-") else target_token
    viewers = int(viewers_token) if viewers_token.strip().isdigit() else None
    return HostTarget(
        tags=raw.tags,
        sender=raw.sender,
        channel=_arg(raw, 0),
        target=target,
        viewers=viewers,
    )


def _names(raw: RawMessage) -> Event:
    # 353 <nick> <=|*|@> <#channel> :<names...>
    return Names(
        tags=raw.tags,
        sender=raw.sender,
        channel=_arg(raw, 2),
        names=_arg(raw, 3).split(),
    )


def _end_of_names(raw: RawMessage) -> Event:
    return EndOfNames(tags=raw.tags, sender=raw.sender, channel=_arg(raw, 1))


def _connect_message(raw: RawMessage) -> Event:
    return ConnectMessage(
        tags=raw.tags,
        sender=raw.sender,
        code=raw.command,
        target=_arg(raw, 0),
        message=_last(raw) if len(raw.arguments) > 1 else "",
    )


def _ping(raw: RawMessage) -> Event:
    return Ping(tags=raw.tags, sender=raw.sender, argument=raw.param(0))


def _pong(raw: RawMessage) -> Event:
    return Pong(tags=raw.tags, sender=raw.sender, argument=_last(raw) if raw.arguments else None)


def _reconnect(raw: RawMessage) -> Event:
    return Reconnect(tags=raw.tags, sender=raw.sender)


def _global_userstate(raw: RawMessage) -> Event:
    return GlobalUserState(tags=raw.tags, sender=raw.sender)


def _capability(raw: RawMessage) -> Event:
    try:
        subcommand = CapabilitySubcommand(_arg(raw, 1).upper())
    except ValueError as e:
        raise _MissingField(1) from e
    caps = raw.param(2) or ""
    return Capability(
        tags=raw.tags,
        sender=raw.sender,
        subcommand=subcommand,
        capabilities=caps.split(),
    )


_BUILDERS: dict[str, Callable[[RawMessage], Event]] = {
    "PRIVMSG": _privmsg,
    "WHISPER": _whisper,
    "JOIN": _channel_event(Join),
    "PART": _channel_event(Part),
    "ROOMSTATE": _channel_event(RoomState),
    "USERSTATE": _channel_event(UserState),
    "GLOBALUSERSTATE": _global_userstate,
    "USERNOTICE": _usernotice,
    "CLEARCHAT": _clearchat,
    "CLEARMSG": _clearmsg,
    "NOTICE": _notice,
    "HOSTTARGET": _hosttarget,
    "353": _names,
    "366": _end_of_names,
    "PING": _ping,
    "PONG": _pong,
    "RECONNECT": _reconnect,
    "CAP": _capability,
    **{code: _connect_message for code in CONNECT_CODES},
}


def map_message(raw: RawMessage) -> Event:
    """Turn a parsed message into exactly one event.

    Commands without a builder, or whose required fields are missing, become
    ``Unrecognized`` so no inbound line is ever dropped silently.
    """
    builder = _BUILDERS.get(raw.command)
    if builder is None:
        return Unrecognized(tags=raw.tags, sender=raw.sender, raw=raw)
    try:
        return builder(raw)
    except _MissingField:
        return Unrecognized(tags=raw.tags, sender=raw.sender, raw=raw)


def privilege_update(event: Event) -> PrivilegeUpdate | None:
    """Derive our privilege tier in a channel from a USERSTATE event.

    Other users' messages never change our own limits, so only ``UserState``
    is considered.
    """
    if not isinstance(event, UserState):
        return None
    tags = event.tags
    if tags.has_badge("broadcaster"):
        tier = PrivilegeTier.BROADCASTER
    elif tags.has_badge("moderator") or tags.is_mod or tags.is_vip:
        tier = PrivilegeTier.MODERATOR
    else:
        tier = PrivilegeTier.UNPRIVILEGED
    return PrivilegeUpdate(channel=event.channel, tier=tier)


def slow_mode_update(event: Event) -> SlowModeUpdate | None:
    if not isinstance(event, RoomState):
        return None
    seconds = event.tags.slow
    if seconds is None:
        return None
    return SlowModeUpdate(channel=event.channel, seconds=max(seconds, 0))


__all__ = ["map_message", "privilege_update", "slow_mode_update", "CONNECT_CODES"]
