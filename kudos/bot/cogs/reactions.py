"""
kudos.bot.cogs.reactions — Reaction Credit Listener
====================================================

Listens for ``on_raw_reaction_add`` and credits the author of the
reacted-to message through the ledger.  Raw events are used so
reactions on old, uncached messages still count.

Gates applied here (Discord-specific): DMs, bot reactors and
bot-authored messages are ignored.  Everything else — ignore list,
self-reactions, one credit per message — is the ledger's call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from kudos.storage.bridge import run_io

if TYPE_CHECKING:
    from kudos.bot.core import KudosBot

logger = logging.getLogger(__name__)


class Reactions(commands.Cog, name="Reactions"):
    """Turns reactions into credits for message authors."""

    def __init__(self, bot: KudosBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Fire when any reaction is added, even on uncached messages."""
        logger.debug(
            "Gateway event: REACTION_ADD from user %s on message %s in channel %s",
            payload.user_id, payload.message_id, payload.channel_id,
        )
        try:
            await self.handle_reaction(payload)
        except Exception:
            logger.exception(
                "Error processing reaction on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    async def handle_reaction(self, payload: discord.RawReactionActionEvent) -> bool:
        """Inner reaction handler.  Returns True when a credit was issued."""
        ledger = self.bot.ledger

        # Gate: Ignore DMs
        if payload.guild_id is None:
            return False

        # Gate: Ignore bots
        if payload.member is None or payload.member.bot:
            return False

        # Cheap exits before an API round-trip to fetch the message
        if ledger.is_ignored(payload.user_id) or ledger.is_credited(payload.message_id):
            return False

        channel = self.bot.get_channel(payload.channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(payload.channel_id)
            except (discord.NotFound, discord.Forbidden, discord.HTTPException):
                return False

        # We need to fetch the message to know who wrote it.
        try:
            allowed = (discord.TextChannel, discord.Thread, discord.VoiceChannel)
            if not isinstance(channel, allowed):
                return False
            message = await channel.fetch_message(payload.message_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            return False  # Can't fetch — skip

        # Don't award for bot messages
        if message.author.bot:
            return False

        return await run_io(
            ledger.record_reaction,
            payload.user_id,
            message.author.id,
            payload.message_id,
        )


async def setup(bot: KudosBot) -> None:
    await bot.add_cog(Reactions(bot))
