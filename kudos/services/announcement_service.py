"""
kudos.services.announcement_service — Channel Notifications
============================================================

:class:`ChannelNotifier` is the bot-side implementation of the
:class:`~kudos.services.redemption_service.Notifier` protocol.  It
resolves a channel id (cache first, then the API) and posts plain text.
Every failure is logged and reported as ``False``; nothing raises.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.abc import Messageable

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger(__name__)


async def resolve_channel(bot: commands.Bot, channel_id: int) -> Messageable | None:
    """Return a messageable channel for *channel_id*, or ``None``."""
    channel = bot.get_channel(channel_id)
    if channel is None:
        try:
            channel = await bot.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            logger.warning("Channel %d could not be fetched", channel_id)
            return None
    if not isinstance(channel, Messageable):
        logger.warning("Channel %d is not a text channel", channel_id)
        return None
    return channel


class ChannelNotifier:
    """Posts notices to Discord channels on behalf of the services."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def notify(self, channel_id: int, text: str) -> bool:
        channel = await resolve_channel(self.bot, channel_id)
        if channel is None:
            return False
        try:
            await channel.send(text, allowed_mentions=discord.AllowedMentions(users=True))
        except (discord.Forbidden, discord.HTTPException):
            logger.exception("Failed to send notice to channel %d", channel_id)
            return False
        return True
