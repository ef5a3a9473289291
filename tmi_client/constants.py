"""
Configuration constants for the TMI client

This module contains the defaults used throughout the client.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Transport
TMI_WEBSOCKET_URL = os.getenv(
    "TMI_WEBSOCKET_URL", "wss://irc-ws.chat.twitch.tv:443"
)  # Twitch chat websocket endpoint

# Wire format limits
MAX_MESSAGE_LENGTH = _get_env_int(
    "MAX_MESSAGE_LENGTH", 500
)  # Twitch rejects chat bodies above 500 characters
MAX_LINE_BYTES = _get_env_int(
    "MAX_LINE_BYTES", 4096
)  # Encoded line limit in UTF-8 bytes, CRLF excluded

# Connection lifecycle
HANDSHAKE_TIMEOUT_SECONDS = _get_env_float(
    "HANDSHAKE_TIMEOUT_SECONDS", 15.0
)  # Login + capability negotiation deadline
HEARTBEAT_INTERVAL_SECONDS = _get_env_float(
    "HEARTBEAT_INTERVAL_SECONDS", 60.0
)  # Client-initiated PING interval
HEARTBEAT_TIMEOUT_SECONDS = _get_env_float(
    "HEARTBEAT_TIMEOUT_SECONDS", 20.0
)  # Seconds to wait for PONG before declaring the connection dead

# Channels
INTAKE_QUEUE_DEPTH = _get_env_int(
    "INTAKE_QUEUE_DEPTH", 20
)  # Outbound commands accepted but not yet written
EVENT_BUFFER_SIZE = _get_env_int(
    "EVENT_BUFFER_SIZE", 100
)  # Events buffered before the read task waits on the consumer
ERROR_BUFFER_SIZE = _get_env_int(
    "ERROR_BUFFER_SIZE", 100
)  # Errors retained; the oldest is dropped beyond this

# Rate limits (Twitch documented defaults)
MESSAGE_LIMIT_UNPRIVILEGED = _get_env_int("MESSAGE_LIMIT_UNPRIVILEGED", 20)
MESSAGE_LIMIT_PRIVILEGED = _get_env_int("MESSAGE_LIMIT_PRIVILEGED", 100)
MESSAGE_LIMIT_WINDOW_SECONDS = _get_env_float("MESSAGE_LIMIT_WINDOW_SECONDS", 30.0)
JOIN_LIMIT = _get_env_int("JOIN_LIMIT", 20)
JOIN_LIMIT_WINDOW_SECONDS = _get_env_float("JOIN_LIMIT_WINDOW_SECONDS", 10.0)
WHISPER_LIMIT = _get_env_int("WHISPER_LIMIT", 3)
WHISPER_LIMIT_WINDOW_SECONDS = _get_env_float("WHISPER_LIMIT_WINDOW_SECONDS", 1.0)

# Duplicate message bypass
DEDUP_WINDOW_SECONDS = _get_env_float(
    "DEDUP_WINDOW_SECONDS", 30.0
)  # Twitch's duplicate message detection window
DEDUP_SUFFIX = " \U000e0000"  # Invisible tag character appended to repeats
