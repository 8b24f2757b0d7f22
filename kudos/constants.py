"""
kudos.constants — Shared Constants
===================================

Single source of truth for file schemas, reward defaults and
presentation constants.  Import from here instead of duplicating in
cogs and services.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# CSV schemas (header rows)
# ---------------------------------------------------------------------------
BALANCES_HEADER: list[str] = ["UserId", "ReactionCount"]
IGNORED_USERS_HEADER: list[str] = ["UserId"]
REWARDS_HEADER: list[str] = ["RewardType", "Quantity", "DateAdded"]

# ---------------------------------------------------------------------------
# Reward defaults
# ---------------------------------------------------------------------------
DEFAULT_REWARD_TAG = "recuerdate"
DEFAULT_REWARD_LABEL = "Recuérdate"
DEFAULT_REWARD_DESCRIPTION = "A friendly reminder, delivered in style."
DEFAULT_REWARD_PRICE = 5
DEFAULT_REACTION_INCREMENT = 1

# Every redemption buys exactly one unit of a reward.
REDEMPTION_QUANTITY = 1

# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------
MENU_CUSTOM_ID = "kudos-menu"
MENU_BALANCE_VALUE = "balance"
MENU_REWARD_PREFIX = "reward:"
MENU_TIMEOUT_SECONDS = 300.0

# Discord caps a select menu at 25 options; one slot is the balance check.
MAX_MENU_REWARDS = 24

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
CREDIT_EMOJI = "\U0001fa99"  # 🪙
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
