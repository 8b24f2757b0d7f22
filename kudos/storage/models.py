"""
kudos.storage.models — Record Schemas for the CSV Files
=========================================================

Each class maps one row of one flat file.  Field aliases are the CSV
column names, so ``Model.model_validate(csv_row)`` both parses and
validates a row straight out of :class:`csv.DictReader`, and
:meth:`to_row` produces the dict :class:`csv.DictWriter` expects.

Files:
- balances       — ``UserId, ReactionCount``  (full rewrite on save)
- ignored users  — ``UserId``                 (read once at startup)
- rewards        — ``RewardType, Quantity, DateAdded``  (append-only)
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Discord snowflakes are unsigned 64-bit integers.
UINT64_MAX = 2**64 - 1


class _Row(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class UserCreditBalance(_Row):
    """A member's credit balance."""

    user_id: int = Field(alias="UserId", ge=0, le=UINT64_MAX)
    balance: int = Field(alias="ReactionCount", ge=0)

    def to_row(self) -> dict[str, str]:
        return {"UserId": str(self.user_id), "ReactionCount": str(self.balance)}


class IgnoredUser(_Row):
    """A member excluded from credit accounting, as reactor and as author."""

    user_id: int = Field(alias="UserId", ge=0, le=UINT64_MAX)


class RewardLogEntry(_Row):
    """One redeemed reward.  Never mutated after it is written."""

    reward_type: str = Field(alias="RewardType", min_length=1)
    quantity: int = Field(alias="Quantity", ge=1)
    date_added: datetime = Field(alias="DateAdded")

    @field_validator("date_added")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are read as UTC; aware ones are converted."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def to_row(self) -> dict[str, str]:
        return {
            "RewardType": self.reward_type,
            "Quantity": str(self.quantity),
            "DateAdded": self.date_added.isoformat(),
        }
