"""IRC wire format: tags, parsing, events and outbound commands."""

from .encoder import encode, normalize_channel  # noqa: F401
from .mapper import map_message, privilege_update, slow_mode_update  # noqa: F401
from .parser import RawMessage, parse_line  # noqa: F401
from .tags import MessageTags, TagKey, decode_tags, encode_tags  # noqa: F401

__all__ = [
    "RawMessage",
    "parse_line",
    "MessageTags",
    "TagKey",
    "decode_tags",
    "encode_tags",
    "map_message",
    "privilege_update",
    "slow_mode_update",
    "encode",
    "normalize_channel",
]
