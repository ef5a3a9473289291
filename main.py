#!/usr/bin/env python3
"""
Example runner: joins channels and logs chat until interrupted.

Reads TWITCH_USERNAME, TWITCH_TOKEN and TWITCH_CHANNELS (comma separated)
from the environment.
"""

import asyncio
import logging
import os
import sys

from pydantic import ValidationError

from tmi_client import ChannelMessage, ClientConfig, TMIError, connect
from tmi_client.logging_config import LoggerConfigurator


async def _log_errors(client) -> None:
    async for error in client.errors:
        logging.warning(f"⚠️ {type(error).__name__}: {error}")


async def main():
    """Main function"""
    LoggerConfigurator().configure()
    try:
        config = ClientConfig(
            username=os.environ.get("TWITCH_USERNAME", ""),
            token=os.environ.get("TWITCH_TOKEN", ""),
        )
    except ValidationError as e:
        logging.critical(f"❌ Invalid configuration: {e}")
        sys.exit(2)
    channels = [
        ch.strip() for ch in os.environ.get("TWITCH_CHANNELS", "").split(",") if ch.strip()
    ]

    logging.info("🚀 Connecting to Twitch chat")
    try:
        client = await connect(config)
    except TMIError as e:
        logging.critical(f"❌ Could not connect: {e}")
        sys.exit(1)

    async with client:
        errors_task = asyncio.create_task(_log_errors(client))
        for channel in channels:
            await client.sender.join(channel)
        async for event in client.events:
            if isinstance(event, ChannelMessage):
                name = event.display_name or event.sender
                logging.info(f"💬 {event.channel} {name}: {event.message}")
        await errors_task
    logging.info("🏁 Disconnected")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.warning("⌨️ Interrupted by user")
