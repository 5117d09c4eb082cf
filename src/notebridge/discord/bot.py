"""Discord transport: feeds chat messages into the note pipeline."""

from __future__ import annotations

import discord

from notebridge.constants import MAX_DISCORD_MESSAGE_LENGTH
from notebridge.logging import get_logger
from notebridge.pipeline.models import NoteCreated
from notebridge.pipeline.orchestrator import NotePipeline
from notebridge.utils import split_text_chunks

log = get_logger("notebridge.discord.bot")

QUEUED_REACTION = "\N{INBOX TRAY}"


class NoteBridgeBot(discord.Client):
    """Discord client that submits DMs and mentions to the pipeline."""

    def __init__(self, pipeline: NotePipeline, *, reply_with_note_path: bool = True) -> None:
        """Initialize the bot.

        Args:
            pipeline: The note pipeline messages are submitted to.
            reply_with_note_path: Reply to the original message once its
                note has been written.
        """
        intents = discord.Intents.default()
        intents.message_content = True
        intents.dm_messages = True

        super().__init__(intents=intents)

        self._pipeline = pipeline
        self._reply_with_note_path = reply_with_note_path

    async def on_ready(self) -> None:
        """Called when the bot is fully ready."""
        log.info(
            "bot_ready",
            user=str(self.user),
            guilds=len(self.guilds),
        )

    async def on_message(self, message: discord.Message) -> None:
        """Handle incoming messages."""
        # Ignore own messages
        if message.author == self.user:
            return

        # Ignore messages from bots
        if message.author.bot:
            return

        # Only react to DMs or mentions
        is_dm = isinstance(message.channel, discord.DMChannel)
        is_mention = self.user in message.mentions if self.user else False
        if not (is_dm or is_mention):
            return

        content = message.content
        if is_mention and self.user:
            content = content.replace(f"<@{self.user.id}>", "").strip()
        if not content:
            return

        correlation_id = await self._pipeline.submit(
            content,
            chat_id=message.channel.id,
            message_id=str(message.id),
        )
        log.info(
            "chat_message_queued",
            channel_id=message.channel.id,
            message_id=message.id,
            correlation_id=correlation_id,
        )
        try:
            await message.add_reaction(QUEUED_REACTION)
        except discord.HTTPException as e:
            log.debug("reaction_failed", error=str(e))

    async def notify_note_created(self, created: NoteCreated) -> None:
        """Reply to the originating chat message with the note path."""
        if not self._reply_with_note_path:
            return

        channel = self.get_channel(created.meta.chat_id)
        if channel is None:
            try:
                channel = await self.fetch_channel(created.meta.chat_id)
            except discord.HTTPException as e:
                log.warning("note_channel_unavailable", error=str(e), **created.meta.log_fields())
                return

        text = f"Note saved: `{created.file_path}`"
        origin = channel.get_partial_message(int(created.meta.message_id))  # type: ignore[union-attr]
        for chunk in split_text_chunks(text, MAX_DISCORD_MESSAGE_LENGTH):
            await origin.reply(chunk, mention_author=False)
