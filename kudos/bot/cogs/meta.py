"""
kudos.bot.cogs.meta — Balance, Leaderboard & Reward History
============================================================

Hybrid commands for member self-service:
- /balance — View your (or another member's) credits
- /leaderboard — Top members by credits
- /rewards — Most recent redemptions from the reward log
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from kudos.services.embeds import (
    build_balance_embed,
    build_leaderboard_embed,
    build_rewards_history_embed,
)
from kudos.storage.bridge import run_io

if TYPE_CHECKING:
    from kudos.bot.core import KudosBot

REWARD_HISTORY_SIZE = 10


class Meta(commands.Cog, name="Meta"):
    """Read-only views of the ledger and the reward log."""

    def __init__(self, bot: KudosBot) -> None:
        self.bot = bot

    def _display_name(self, guild: discord.Guild | None, user_id: int) -> str:
        """Best-effort name from the member or user cache."""
        if guild is not None:
            member = guild.get_member(user_id)
            if member is not None:
                return member.display_name
        user = self.bot.get_user(user_id)
        if user is not None:
            return user.display_name
        return f"User {user_id}"

    # -------------------------------------------------------------------
    # /balance
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="balance",
        description="View your (or another member's) credits.",
    )
    @app_commands.describe(member="The member to look up (defaults to you)")
    async def balance(self, ctx: commands.Context, member: discord.Member | None = None) -> None:
        target = member or ctx.author
        amount = self.bot.ledger.get_balance(target.id)
        embed = build_balance_embed(target.display_name, target.display_avatar.url, amount)
        await ctx.send(embed=embed, ephemeral=True)

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="leaderboard",
        description="View the members with the most credits.",
    )
    async def leaderboard(self, ctx: commands.Context) -> None:
        top = await run_io(self.bot.ledger.leaderboard, self.bot.cfg.leaderboard_size)
        if not top:
            await ctx.send(
                "No credits yet! React to great messages to get things going.",
                ephemeral=True,
            )
            return

        rows = [(self._display_name(ctx.guild, uid), amount) for uid, amount in top]
        embed = build_leaderboard_embed(rows, ctx.guild.name if ctx.guild else None)
        await ctx.send(embed=embed)

    # -------------------------------------------------------------------
    # /rewards
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="rewards",
        description="See the most recently redeemed rewards.",
    )
    async def rewards(self, ctx: commands.Context) -> None:
        entries = await run_io(self.bot.store.load_rewards, REWARD_HISTORY_SIZE)
        await ctx.send(embed=build_rewards_history_embed(entries), ephemeral=True)


async def setup(bot: KudosBot) -> None:
    await bot.add_cog(Meta(bot))
