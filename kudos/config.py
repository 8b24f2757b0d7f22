"""
kudos.config — Environment + YAML Configuration Loader
======================================================

**Why this file exists:**
Kudos is configured the twelve-factor way: every setting is an
environment variable (usually loaded from ``.env`` by ``python-dotenv``
in the entry point).  An optional ``config.yaml`` can supply the same
keys in lower case, plus the reward catalog shown in ``/menu``.
Environment variables always win over YAML values.

The bot token is *not* part of this object — it is read and validated
in :mod:`kudos.bot.__main__` so it never ends up in a repr or a log line.

Usage::

    from kudos.config import load_config

    cfg = load_config()              # reads os.environ + ./config.yaml
    print(cfg.balances_path)         # user_reactions.csv
    print(cfg.get_reward("recuerdate").price)   # 5
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from kudos.constants import (
    DEFAULT_REACTION_INCREMENT,
    DEFAULT_REWARD_DESCRIPTION,
    DEFAULT_REWARD_LABEL,
    DEFAULT_REWARD_PRICE,
    DEFAULT_REWARD_TAG,
    MAX_MENU_REWARDS,
)


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RewardOption:
    """One entry of the reward catalog."""

    tag: str
    label: str
    price: int
    description: str = ""


@dataclass(frozen=True, slots=True)
class KudosConfig:
    """Immutable configuration resolved at startup."""

    # Storage
    balances_path: Path
    ignored_users_path: Path
    rewards_path: Path

    # Economy
    reaction_increment: int
    rewards: tuple[RewardOption, ...]

    # Discord
    target_channel_id: int | None = None  # Where redemption notices go
    dev_guild_id: int | None = None  # Guild-scoped command sync while developing

    # Housekeeping
    flush_retry_seconds: int = 60
    leaderboard_size: int = 10

    def get_reward(self, tag: str) -> RewardOption | None:
        """Return the catalog entry for *tag*, or ``None``."""
        for reward in self.rewards:
            if reward.tag == tag:
                return reward
        return None


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
def _lookup(key: str, env: Mapping[str, str], raw: dict) -> str | None:
    """Resolve *key* from the environment first, then from YAML (lower-case)."""
    value = env.get(key)
    if value is None or value == "":
        value = raw.get(key.lower())
    if value is None or value == "":
        return None
    return str(value)


def _int_setting(
    key: str,
    env: Mapping[str, str],
    raw: dict,
    default: int,
    *,
    minimum: int | None = None,
) -> int:
    value = _lookup(key, env, raw)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {parsed}")
    return parsed


def _optional_id(key: str, env: Mapping[str, str], raw: dict) -> int | None:
    value = _lookup(key, env, raw)
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{key} must be a Discord snowflake, got {value!r}") from None
    if parsed < 0:
        raise ValueError(f"{key} must be a Discord snowflake, got {value!r}")
    return parsed


def _parse_rewards(raw: dict, default_price: int) -> tuple[RewardOption, ...]:
    """Build the reward catalog.

    With no ``rewards:`` list in YAML the catalog holds the single default
    reward.  ``RECUERDATE_PRICE`` prices the default reward even when the
    YAML lists it explicitly.
    """
    entries = raw.get("rewards") or []
    if not entries:
        return (
            RewardOption(
                tag=DEFAULT_REWARD_TAG,
                label=DEFAULT_REWARD_LABEL,
                price=default_price,
                description=DEFAULT_REWARD_DESCRIPTION,
            ),
        )

    rewards: list[RewardOption] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("tag"):
            raise ValueError(f"Every reward needs a tag, got {entry!r}")
        tag = str(entry["tag"])
        if tag in seen:
            raise ValueError(f"Duplicate reward tag in config: {tag!r}")
        seen.add(tag)
        try:
            price = (
                default_price if tag == DEFAULT_REWARD_TAG
                else int(entry.get("price", 0))
            )
        except (TypeError, ValueError):
            raise ValueError(f"Reward {tag!r} has a malformed price") from None
        if price < 1:
            raise ValueError(f"Reward {tag!r} must cost at least 1 credit")
        rewards.append(RewardOption(
            tag=tag,
            label=str(entry.get("label") or tag),
            price=price,
            description=str(entry.get("description") or ""),
        ))

    if len(rewards) > MAX_MENU_REWARDS:
        raise ValueError(
            f"At most {MAX_MENU_REWARDS} rewards fit in the menu, got {len(rewards)}"
        )
    return tuple(rewards)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(
    path: str | Path = "config.yaml",
    env: Mapping[str, str] | None = None,
) -> KudosConfig:
    """Resolve a :class:`KudosConfig` from *env* and the optional YAML at *path*.

    Parameters
    ----------
    path:
        Optional YAML file.  A missing file is not an error — every key
        has a default.
    env:
        Mapping to read variables from.  Defaults to ``os.environ``.

    Raises
    ------
    ValueError
        If a numeric setting is malformed or out of range, or the YAML
        file cannot be parsed.
    """
    if env is None:
        env = os.environ

    raw: dict = {}
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f"{config_path} is not valid YAML: {exc}") from None
        if isinstance(loaded, dict):
            raw = loaded

    price = _int_setting("RECUERDATE_PRICE", env, raw, DEFAULT_REWARD_PRICE, minimum=1)

    return KudosConfig(
        balances_path=Path(_lookup("CSV_FILE_PATH", env, raw) or "user_reactions.csv"),
        ignored_users_path=Path(
            _lookup("IGNORED_USERS_FILE_PATH", env, raw) or "ignored_users.csv"
        ),
        rewards_path=Path(_lookup("REWARDS_FILE_PATH", env, raw) or "rewards.csv"),
        reaction_increment=_int_setting(
            "REACTION_INCREMENT", env, raw, DEFAULT_REACTION_INCREMENT, minimum=1,
        ),
        rewards=_parse_rewards(raw, price),
        target_channel_id=_optional_id("TARGET_CHANNEL_ID", env, raw),
        dev_guild_id=_optional_id("DEV_GUILD_ID", env, raw),
        flush_retry_seconds=_int_setting("FLUSH_RETRY_SECONDS", env, raw, 60, minimum=1),
        leaderboard_size=_int_setting("LEADERBOARD_SIZE", env, raw, 10, minimum=1),
    )
