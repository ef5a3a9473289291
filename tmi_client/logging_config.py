"""
Logging setup for applications embedding the TMI client.

Provides a colored console configuration using the colorlog library. The
client itself only logs through its own named logger and never touches the
root logger unless an application calls ``LoggerConfigurator.configure``.
"""

import logging
import os
import sys

import colorlog


class NoisyLibraryFilter(logging.Filter):
    """Filter to suppress per-frame debug chatter from the websockets library."""

    def filter(self, record):
        return not (
            record.name.startswith("websockets") and record.levelno < logging.INFO
        )


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Supports environment variable configuration for log levels.
    """

    def __init__(self, config=None):
        """Initialize the configurator.

        Args:
            config: Optional dict; ``level`` overrides the environment.
        """
        self.config = config or {}

    def resolve_level(self) -> int:
        if "level" in self.config:
            return self.config["level"]
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

    def configure(self):
        """Configure logging with colored output using colorlog.

        Uses environment variables:
        - DEBUG: Set to 'true', '1', or 'yes' for DEBUG level, otherwise INFO
        """
        log_level = self.resolve_level()
        formatter = self.build_formatter()

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        handler.addFilter(NoisyLibraryFilter())

        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)
        logging.getLogger("tmi_client").setLevel(log_level)

        # Suppress websockets library debug messages
        logging.getLogger("websockets").setLevel(logging.INFO)
        return handler
