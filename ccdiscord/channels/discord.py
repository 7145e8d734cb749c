"""Discord channel implementation using discord.py."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import discord
from loguru import logger

from ccdiscord.channels.base import BaseChannel, InboundChat
from ccdiscord.config.schema import DiscordConfig


class _RelayClient(discord.Client):
    """discord.py client that hands gateway events to the channel."""

    def __init__(self, channel: DiscordChannel, **kwargs: Any):
        super().__init__(**kwargs)
        self._channel = channel

    async def on_ready(self) -> None:
        await self._channel._on_ready()

    async def on_message(self, message: discord.Message) -> None:
        await self._channel._on_message(message)

    async def on_error(self, event_method: str, *args: Any, **kwargs: Any) -> None:
        logger.exception(f"Discord client error in {event_method}")


class DiscordChannel(BaseChannel):
    """
    One Discord thread per run.

    On ready, a public thread is created in the configured text channel and
    the intro block is posted there. Only non-empty messages from the
    configured user inside that thread are forwarded.
    """

    name = "discord"

    def __init__(self, config: DiscordConfig, intro: str | None = None, goodbye: str | None = None):
        super().__init__()
        self.config = config
        self.intro = intro
        self.goodbye = goodbye
        self._client: _RelayClient | None = None
        self._thread: discord.Thread | None = None

    @staticmethod
    def _intents() -> discord.Intents:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True
        return intents

    async def start(self) -> None:
        """Log in and run the gateway connection until ``stop``."""
        if not self.config.token:
            logger.error("Discord bot token not configured")
            return

        self._running = True
        self._client = _RelayClient(self, intents=self._intents())
        logger.info("Starting Discord adapter...")
        try:
            await self._client.start(self.config.token)
        except discord.LoginFailure as e:
            logger.error(f"Failed to login: {e}")
            self._running = False
            raise

    async def stop(self) -> None:
        self._running = False
        if self._client is None:
            return
        logger.info("Stopping Discord adapter...")
        if self._thread is not None and self.goodbye:
            try:
                await self._thread.send(self.goodbye)
            except discord.DiscordException as e:
                logger.warning(f"Failed to send goodbye message: {e}")
        await self._client.close()
        self._client = None
        self._thread = None

    async def send_text(self, text: str) -> discord.Message | None:
        if self._thread is None:
            logger.warning("Discord thread not ready; dropping outbound message")
            return None
        return await self._thread.send(text)

    async def edit_text(self, handle: discord.Message, text: str) -> None:
        await handle.edit(content=text)

    async def delete(self, handle: discord.Message) -> None:
        await handle.delete()

    @property
    def thread_id(self) -> int | None:
        return self._thread.id if self._thread else None

    async def _on_ready(self) -> None:
        user = self._client.user if self._client else None
        logger.info(f"Discord bot ready: {user}")
        if self._thread is not None:
            return
        try:
            channel = await self._client.fetch_channel(int(self.config.channel_id))
        except (ValueError, discord.DiscordException) as e:
            logger.error(f"Failed to setup channel {self.config.channel_id}: {e}")
            return
        if not isinstance(channel, discord.TextChannel):
            logger.error(f"Channel {self.config.channel_id} is not a text channel")
            return

        thread_name = f"Claude Session - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        try:
            self._thread = await channel.create_thread(
                name=thread_name,
                auto_archive_duration=self.config.thread_auto_archive_minutes,
                type=discord.ChannelType.public_thread,
                reason="Claude Code session thread",
            )
        except discord.DiscordException as e:
            logger.error(f"Failed to create thread: {e}")
            return
        logger.info(f"Thread created: {thread_name} ({self._thread.id})")

        if self.intro:
            try:
                await self._thread.send(self.intro)
            except discord.DiscordException as e:
                logger.error(f"Failed to send message: {e}")

    def _accepts(self, message: discord.Message) -> bool:
        return (
            self._thread is not None
            and message.channel.id == self._thread.id
            and str(message.author.id) == str(self.config.user_id)
            and not message.author.bot
            and bool(message.content.strip())
        )

    async def _on_message(self, message: discord.Message) -> None:
        if not self._accepts(message):
            return
        logger.info(f"Received message from {message.author.name}: {message.content[:80]}")
        await self._handle_message(
            InboundChat(
                text=message.content,
                author_id=str(message.author.id),
                channel_id=str(message.channel.id),
                author_name=message.author.name,
            )
        )
