"""
kudos.bot.core — Bot Instance & Cog Loader
===========================================

Defines :class:`KudosBot`, a ``commands.Bot`` subclass that:

1. Carries the shared state every Cog needs — ``bot.cfg``,
   ``bot.store``, ``bot.ledger`` and ``bot.redemptions`` — so Cogs reach
   it via ``self.bot.*`` instead of module globals.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by ``cfg.dev_guild_id``).
4. Makes a last attempt to flush unsaved balances on shutdown.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from kudos.config import KudosConfig
from kudos.engine.ledger import CreditLedger
from kudos.services.announcement_service import ChannelNotifier
from kudos.services.redemption_service import RedemptionFlow
from kudos.storage.bridge import run_io
from kudos.storage.records import RecordStore

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "kudos.bot.cogs.reactions",
    "kudos.bot.cogs.menu",
    "kudos.bot.cogs.meta",
    "kudos.bot.cogs.tasks",
]


class KudosBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The resolved :class:`KudosConfig`.
    store:
        The CSV :class:`RecordStore`.
    ledger:
        The process-wide :class:`CreditLedger`, already loaded.
    """

    def __init__(self, cfg: KudosConfig, store: RecordStore, ledger: CreditLedger) -> None:
        # Default intents cover GUILD_MESSAGE_REACTIONS; fetching a message
        # to learn its author needs no privileged intent.
        intents = discord.Intents.default()

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description="Kudos — credits for the messages people love",
        )

        self.cfg = cfg
        self.store = store
        self.ledger = ledger
        self.redemptions = RedemptionFlow(
            ledger,
            store,
            notifier=ChannelNotifier(self),
            target_channel_id=cfg.target_channel_id,
        )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  One broken Cog doesn't take down the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = self.cfg.dev_guild_id
        if dev_guild_id:
            guild = discord.Object(id=dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

        if self.cfg.target_channel_id is None:
            logger.warning("TARGET_CHANNEL_ID is not set — redemptions will not be announced")

    async def close(self) -> None:
        """Graceful shutdown — flush balances that never reached disk."""
        logger.info("Bot shutting down…")
        if self.ledger.dirty:
            if await run_io(self.ledger.flush):
                logger.info("Unsaved balances flushed on shutdown")
            else:
                logger.error("Unsaved balances could not be flushed and are lost")
        await super().close()
