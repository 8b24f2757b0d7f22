"""
kudos.bot.cogs.tasks — Periodic Background Tasks
================================================

- **Flush retry** — every ``FLUSH_RETRY_SECONDS`` (default 60), re-flushes
  the balances if the last write-through failed.  Nothing happens while
  the ledger is clean.

Runs via ``run_io()`` to avoid blocking the event loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from kudos.storage.bridge import run_io

if TYPE_CHECKING:
    from kudos.bot.core import KudosBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background maintenance tasks."""

    def __init__(self, bot: KudosBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        """Start task loops when the cog is loaded."""
        self.flush_retry_loop.change_interval(seconds=self.bot.cfg.flush_retry_seconds)
        self.flush_retry_loop.start()

    async def cog_unload(self) -> None:
        """Cancel task loops on unload."""
        self.flush_retry_loop.cancel()

    @tasks.loop(seconds=60)
    async def flush_retry_loop(self):
        """Retry persisting balances that the last write-through failed to save."""
        await self.retry_flush()

    async def retry_flush(self) -> bool | None:
        """One retry attempt.  Returns None when there was nothing to do."""
        if not self.bot.ledger.dirty:
            return None
        try:
            ok = await run_io(self.bot.ledger.flush)
        except Exception:
            logger.exception("Flush retry failed", extra={"task": "flush_retry"})
            return False
        if not ok:
            logger.warning("Flush retry failed, will try again in %ds",
                           self.bot.cfg.flush_retry_seconds)
        return ok

    @flush_retry_loop.before_loop
    async def _wait_flush_retry(self):
        await self.bot.wait_until_ready()


async def setup(bot: KudosBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
