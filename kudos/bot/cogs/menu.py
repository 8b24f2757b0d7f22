"""
kudos.bot.cogs.menu — /menu and the Redemption Select
=====================================================

``/menu`` replies with an embed and a select menu:

- **Check balance** — refreshes the embed with the member's credits.
- **One option per reward** — runs the redemption flow and replaces the
  embed with the outcome.

The menu is ephemeral, belongs to the member who opened it and times
out after five minutes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from kudos.constants import (
    CREDIT_EMOJI,
    MENU_BALANCE_VALUE,
    MENU_CUSTOM_ID,
    MENU_REWARD_PREFIX,
    MENU_TIMEOUT_SECONDS,
)
from kudos.services.embeds import build_menu_embed, build_redemption_embed

if TYPE_CHECKING:
    from kudos.bot.core import KudosBot
    from kudos.config import RewardOption

logger = logging.getLogger(__name__)


def build_menu_options(rewards: tuple[RewardOption, ...]) -> list[discord.SelectOption]:
    """Select options: the balance check first, then every reward."""
    options = [
        discord.SelectOption(
            label="Check balance",
            value=MENU_BALANCE_VALUE,
            description="See how many credits you have.",
            emoji=CREDIT_EMOJI,
        ),
    ]
    for reward in rewards:
        options.append(discord.SelectOption(
            label=f"{reward.label} ({reward.price})",
            value=f"{MENU_REWARD_PREFIX}{reward.tag}",
            description=reward.description[:100] or None,
        ))
    return options


class RewardSelect(discord.ui.Select["RewardMenuView"]):
    def __init__(self, rewards: tuple[RewardOption, ...]) -> None:
        super().__init__(
            custom_id=MENU_CUSTOM_ID,
            placeholder="Select an option",
            min_values=1,
            max_values=1,
            options=build_menu_options(rewards),
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        assert self.view is not None
        await self.view.handle_selection(interaction, self.values[0])


class RewardMenuView(discord.ui.View):
    """Interactive menu owned by a single member."""

    def __init__(self, bot: KudosBot, owner_id: int, timeout: float = MENU_TIMEOUT_SECONDS) -> None:
        super().__init__(timeout=timeout)
        self.bot = bot
        self.owner_id = owner_id
        self.add_item(RewardSelect(bot.cfg.rewards))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(
                "This menu belongs to someone else. Use `/menu` to open your own.",
                ephemeral=True,
            )
            return False
        return True

    async def handle_selection(self, interaction: discord.Interaction, value: str) -> None:
        """Dispatch one select-menu choice."""
        if value == MENU_BALANCE_VALUE:
            balance = self.bot.ledger.get_balance(interaction.user.id)
            await interaction.response.edit_message(
                content=f"You have {balance} {CREDIT_EMOJI}.",
                embed=build_menu_embed(self.bot.cfg.rewards, balance),
                view=self,
            )
            return

        tag = value.removeprefix(MENU_REWARD_PREFIX)
        reward = self.bot.cfg.get_reward(tag)
        if reward is None:
            logger.warning("Unknown menu value %r from user %d", value, interaction.user.id)
            await interaction.response.send_message(
                "❌ That reward is no longer available.", ephemeral=True,
            )
            return

        await interaction.response.defer()
        result = await self.bot.redemptions.redeem(
            interaction.user.id, interaction.user.display_name, reward,
        )
        await interaction.edit_original_response(
            content=None,
            embed=build_redemption_embed(result),
            view=self,
        )

    async def on_timeout(self) -> None:
        for item in self.children:
            if isinstance(item, discord.ui.Select):
                item.disabled = True


class Menu(commands.Cog, name="Menu"):
    """Balance check and reward redemption menu."""

    def __init__(self, bot: KudosBot) -> None:
        self.bot = bot

    @app_commands.command(name="menu", description="Check your credits or redeem a reward.")
    async def menu(self, interaction: discord.Interaction) -> None:
        balance = self.bot.ledger.get_balance(interaction.user.id)
        await interaction.response.send_message(
            embed=build_menu_embed(self.bot.cfg.rewards, balance),
            view=RewardMenuView(self.bot, interaction.user.id),
            ephemeral=True,
        )


async def setup(bot: KudosBot) -> None:
    await bot.add_cog(Menu(bot))
