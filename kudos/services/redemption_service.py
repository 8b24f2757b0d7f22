"""
kudos.services.redemption_service — Spend Credits on Rewards
=============================================================

One redemption attempt walks a small state machine::

    Priced ──► Checked ──┬──► Debited ─► Logged ─► Notified   (REDEEMED)
                         ├──► Rejected                         (REJECTED)
                         └──► rolled back                      (FAILED)

- **Checked / Debited** happen in :meth:`CreditLedger.redeem`, inside the
  same lock as reaction crediting, and include the balance flush.
- **Logged** appends one row to the reward log.  If that write fails the
  debit is refunded — a member never pays for a reward nobody recorded.
- **Notified** is best-effort.  A missing channel or a failed send is
  logged and the redemption still counts.

Callable from any async context; blocking work goes through ``run_io()``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from kudos.constants import CREDIT_EMOJI, REDEMPTION_QUANTITY
from kudos.engine.ledger import DebitOutcome
from kudos.storage.bridge import run_io

if TYPE_CHECKING:
    from kudos.config import RewardOption
    from kudos.engine.ledger import CreditLedger
    from kudos.storage.records import RecordStore

logger = logging.getLogger(__name__)


class RedemptionStatus(enum.StrEnum):
    REDEEMED = "REDEEMED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


@dataclass(slots=True)
class RedemptionResult:
    """Outcome of one redemption attempt, ready for display."""

    status: RedemptionStatus
    reward: RewardOption
    balance: int  # Balance after the attempt
    shortfall: int = 0  # Credits missing when REJECTED
    notified: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status is RedemptionStatus.REDEEMED


class Notifier(Protocol):
    """Anything that can post a line of text to a channel."""

    async def notify(self, channel_id: int, text: str) -> bool: ...


def format_redemption_notice(user_id: int, display_name: str, reward: RewardOption) -> str:
    """Broadcast text announcing a redemption."""
    return (
        f"\U0001f389 <@{user_id}> ({display_name}) redeemed **{reward.label}** "
        f"for {reward.price} {CREDIT_EMOJI}!"
    )


class RedemptionFlow:
    """Validates, debits, logs and announces redemptions.

    Parameters
    ----------
    ledger:
        The process-wide :class:`CreditLedger`.
    store:
        Record store that owns the reward log.
    notifier:
        Delivers the broadcast notice.  ``None`` disables notices.
    target_channel_id:
        Broadcast channel.  ``None`` disables notices (logged once per attempt).
    reload_before_check:
        Re-read the member's balance from disk before checking it.
    """

    def __init__(
        self,
        ledger: CreditLedger,
        store: RecordStore,
        notifier: Notifier | None = None,
        target_channel_id: int | None = None,
        *,
        reload_before_check: bool = True,
    ) -> None:
        self.ledger = ledger
        self.store = store
        self.notifier = notifier
        self.target_channel_id = target_channel_id
        self.reload_before_check = reload_before_check

    async def redeem(
        self, user_id: int, display_name: str, reward: RewardOption
    ) -> RedemptionResult:
        """Run one redemption attempt for *user_id*."""
        outcome, balance = await run_io(
            self.ledger.redeem, user_id, reward.price, reload=self.reload_before_check,
        )

        if outcome is DebitOutcome.INSUFFICIENT:
            shortfall = reward.price - balance
            logger.info(
                "Redemption of %s by %d rejected — balance %d, short %d",
                reward.tag, user_id, balance, shortfall,
            )
            return RedemptionResult(
                RedemptionStatus.REJECTED, reward, balance, shortfall=shortfall,
            )

        if outcome is DebitOutcome.PERSIST_FAILED:
            return RedemptionResult(RedemptionStatus.FAILED, reward, balance)

        logged = await run_io(
            self.store.append_reward, reward.tag, REDEMPTION_QUANTITY, datetime.now(UTC),
        )
        if not logged:
            refunded = await run_io(self.ledger.credit, user_id, reward.price)
            logger.error(
                "Reward log write failed for %s by %d — refunded %d credit(s)",
                reward.tag, user_id, reward.price,
            )
            return RedemptionResult(RedemptionStatus.FAILED, reward, refunded)

        logger.info(
            "User %d redeemed %s for %d — balance %d",
            user_id, reward.tag, reward.price, balance,
        )
        notified = await self._notify(user_id, display_name, reward)
        return RedemptionResult(
            RedemptionStatus.REDEEMED, reward, balance, notified=notified,
        )

    async def _notify(self, user_id: int, display_name: str, reward: RewardOption) -> bool:
        if self.notifier is None or self.target_channel_id is None:
            logger.warning(
                "No target channel configured — redemption of %s by %d not announced",
                reward.tag, user_id,
            )
            return False
        try:
            return await self.notifier.notify(
                self.target_channel_id,
                format_redemption_notice(user_id, display_name, reward),
            )
        except Exception:
            logger.exception(
                "Failed to announce redemption of %s by %d", reward.tag, user_id,
            )
            return False
