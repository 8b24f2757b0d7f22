"""
tests/conftest.py — Shared Test Fixtures
=========================================

Every test gets its own CSV files under ``tmp_path`` and a fresh ledger,
so nothing leaks between tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from kudos.config import KudosConfig, RewardOption
from kudos.constants import DEFAULT_REWARD_LABEL, DEFAULT_REWARD_TAG
from kudos.engine.ledger import CreditLedger
from kudos.storage.records import RecordStore


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    """A RecordStore pointed at three not-yet-existing files."""
    return RecordStore(
        tmp_path / "user_reactions.csv",
        tmp_path / "ignored_users.csv",
        tmp_path / "rewards.csv",
    )


@pytest.fixture
def ledger(store: RecordStore) -> CreditLedger:
    """A clean ledger with no ignored users and increment 1."""
    return CreditLedger(store)


@pytest.fixture
def recuerdate() -> RewardOption:
    return RewardOption(tag=DEFAULT_REWARD_TAG, label=DEFAULT_REWARD_LABEL, price=5)


@pytest.fixture
def cfg(tmp_path: Path, recuerdate: RewardOption) -> KudosConfig:
    return KudosConfig(
        balances_path=tmp_path / "user_reactions.csv",
        ignored_users_path=tmp_path / "ignored_users.csv",
        rewards_path=tmp_path / "rewards.csv",
        reaction_increment=1,
        rewards=(recuerdate, RewardOption(tag="shoutout", label="Shout-out", price=10)),
        target_channel_id=4242,
    )
