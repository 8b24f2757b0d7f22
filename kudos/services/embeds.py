"""
kudos.services.embeds — Discord embed builders
===============================================

All embed construction lives here so cogs and views only need to supply
data — no layout concerns.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import discord

from kudos.constants import CREDIT_EMOJI, RANK_BADGES
from kudos.services.redemption_service import RedemptionResult, RedemptionStatus

if TYPE_CHECKING:
    from kudos.config import RewardOption
    from kudos.storage.models import RewardLogEntry


def build_menu_embed(rewards: Sequence[RewardOption], balance: int) -> discord.Embed:
    """The embed shown above the ``/menu`` select."""
    embed = discord.Embed(
        title="\U0001f4cb Menu",
        description="Please select an option from the menu below:",
        color=discord.Color.blue(),
    )
    embed.add_field(name="Your credits", value=f"{CREDIT_EMOJI} {balance}", inline=False)
    if rewards:
        embed.add_field(
            name="Rewards",
            value="\n".join(
                f"**{r.label}** — {r.price} {CREDIT_EMOJI}" for r in rewards
            ),
            inline=False,
        )
    return embed


def build_balance_embed(display_name: str, avatar_url: str, balance: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"{CREDIT_EMOJI} {display_name}'s Credits",
        description=f"**{balance}** credit{'s' if balance != 1 else ''}",
        color=discord.Color.gold(),
    )
    embed.set_thumbnail(url=avatar_url)
    return embed


def build_redemption_embed(result: RedemptionResult) -> discord.Embed:
    """Private result of a redemption attempt, shown in place of the menu."""
    reward = result.reward
    if result.status is RedemptionStatus.REDEEMED:
        return discord.Embed(
            title="✅ Reward Redeemed!",
            description=(
                f"You redeemed **{reward.label}** for {reward.price} {CREDIT_EMOJI}.\n"
                f"Remaining: {result.balance} {CREDIT_EMOJI}"
            ),
            color=discord.Color.green(),
        )
    if result.status is RedemptionStatus.REJECTED:
        return discord.Embed(
            title="❌ Not Enough Credits",
            description=(
                f"**{reward.label}** costs {reward.price} {CREDIT_EMOJI}. "
                f"You have {result.balance} — {result.shortfall} more to go."
            ),
            color=discord.Color.red(),
        )
    return discord.Embed(
        title="⚠️ Redemption Failed",
        description=(
            "Your credits could not be saved, so nothing was spent. "
            "Please try again later."
        ),
        color=discord.Color.orange(),
    )


def build_leaderboard_embed(
    rows: Sequence[tuple[str, int]], community_name: str | None = None
) -> discord.Embed:
    """Rank ``(name, balance)`` rows, medals for the top three."""
    lines = []
    for i, (name, balance) in enumerate(rows, 1):
        medal = RANK_BADGES[i - 1] if i <= len(RANK_BADGES) else f"**{i}.**"
        lines.append(f"{medal} **{name}** — {balance:,} {CREDIT_EMOJI}")
    embed = discord.Embed(
        title=f"\U0001f3c6 Leaderboard — Top {len(rows)}",
        description="\n".join(lines),
        color=discord.Color.gold(),
    )
    if community_name:
        embed.set_footer(text=community_name)
    return embed


def build_rewards_history_embed(entries: Sequence[RewardLogEntry]) -> discord.Embed:
    """Most recent reward-log entries, newest first."""
    lines = [
        f"`{e.date_added:%Y-%m-%d %H:%M}` **{e.reward_type}** ×{e.quantity}"
        for e in reversed(entries)
    ]
    return discord.Embed(
        title="\U0001f381 Recent Rewards",
        description="\n".join(lines) or "No rewards redeemed yet.",
        color=discord.Color.purple(),
    )
