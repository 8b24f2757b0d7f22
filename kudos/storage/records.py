"""
kudos.storage.records — CSV-Backed Record Store
================================================

**Why this file exists:**
All persistence in Kudos is three flat CSV files.  :class:`RecordStore`
is the only code that touches them.  It is a stateless facade: it caches
nothing, so every ``load_*`` call re-reads the file and every
:meth:`RecordStore.save_balances` rewrites the balances file in full.

Failure policy — availability over durability:
    The bot must keep running even when its files are unreadable or
    unwritable.  Every operation catches I/O and parse errors, logs them
    and degrades to "no data" (loads) or ``False`` (writes).  Nothing in
    here raises to the caller.  A single malformed row is skipped with a
    warning; the rest of the file still loads.
"""

from __future__ import annotations

import csv
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from kudos.constants import BALANCES_HEADER, IGNORED_USERS_HEADER, REWARDS_HEADER
from kudos.storage.models import IgnoredUser, RewardLogEntry, UserCreditBalance

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


class RecordStore:
    """Read/write facade over the balances, ignore-list and reward files.

    Parameters
    ----------
    balances_path:
        ``UserId,ReactionCount`` — rewritten on every save.
    ignored_users_path:
        ``UserId`` — read-only.
    rewards_path:
        ``RewardType,Quantity,DateAdded`` — append-only.
    """

    def __init__(
        self,
        balances_path: str | Path,
        ignored_users_path: str | Path,
        rewards_path: str | Path,
    ) -> None:
        self.balances_path = Path(balances_path)
        self.ignored_users_path = Path(ignored_users_path)
        self.rewards_path = Path(rewards_path)

    # -------------------------------------------------------------------
    # Generic reader
    # -------------------------------------------------------------------
    def _read_rows(
        self, path: Path, header: list[str], model: type[RowT]
    ) -> list[RowT]:
        """Parse every valid row of *path* into *model* instances.

        Returns an empty list when the file is missing, unreadable or lacks
        the expected header.
        """
        if not path.exists():
            logger.info("%s not found, starting empty", path)
            return []

        rows: list[RowT] = []
        try:
            with open(path, newline="", encoding="utf-8") as fh:
                reader = csv.DictReader(fh)
                missing = [col for col in header if col not in (reader.fieldnames or [])]
                if missing:
                    logger.error(
                        "%s is missing column(s) %s — ignoring file",
                        path, ", ".join(missing),
                    )
                    return []
                for line_no, raw in enumerate(reader, start=2):
                    try:
                        rows.append(model.model_validate(raw))
                    except ValidationError as exc:
                        logger.warning(
                            "Skipping malformed row %d in %s: %s",
                            line_no, path, exc.errors(include_url=False),
                        )
        except (OSError, UnicodeDecodeError, csv.Error):
            logger.exception("Failed to read %s", path)
            return []
        return rows

    # -------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------
    def load_balances(self) -> dict[int, int]:
        """Return ``{user_id: balance}`` from the balances file."""
        balances: dict[int, int] = {}
        for record in self._read_rows(self.balances_path, BALANCES_HEADER, UserCreditBalance):
            if record.user_id in balances:
                logger.warning(
                    "Duplicate balance row for user %d in %s — keeping the last one",
                    record.user_id, self.balances_path,
                )
            balances[record.user_id] = record.balance
        return balances

    def save_balances(self, balances: Mapping[int, int]) -> bool:
        """Overwrite the balances file with *balances*.

        The rows go to a temporary file next to the target which is then
        renamed over it, so readers never see a half-written file.

        Returns ``True`` on success, ``False`` (after logging) on failure.
        """
        try:
            records = [
                UserCreditBalance(user_id=user_id, balance=balance)
                for user_id, balance in sorted(balances.items())
            ]
        except ValidationError:
            logger.exception("Refusing to save invalid balances")
            return False

        directory = self.balances_path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                dir=directory,
                prefix=f".{self.balances_path.name}.",
                suffix=".tmp",
                newline="",
                encoding="utf-8",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                writer = csv.DictWriter(fh, fieldnames=BALANCES_HEADER)
                writer.writeheader()
                writer.writerows(record.to_row() for record in records)
            os.replace(tmp_name, self.balances_path)
        except OSError:
            logger.exception("Failed to save balances to %s", self.balances_path)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return False

        logger.debug("Saved %d balance(s) to %s", len(records), self.balances_path)
        return True

    # -------------------------------------------------------------------
    # Ignore list
    # -------------------------------------------------------------------
    def load_ignored_users(self) -> set[int]:
        """Return the set of ignored user ids."""
        return {
            record.user_id
            for record in self._read_rows(
                self.ignored_users_path, IGNORED_USERS_HEADER, IgnoredUser
            )
        }

    # -------------------------------------------------------------------
    # Reward log
    # -------------------------------------------------------------------
    def append_reward(
        self,
        reward_type: str,
        quantity: int,
        timestamp: datetime | None = None,
    ) -> bool:
        """Append one row to the reward log, writing the header if the file is new.

        Returns ``True`` on success, ``False`` (after logging) on failure.
        """
        try:
            entry = RewardLogEntry(
                reward_type=reward_type,
                quantity=quantity,
                date_added=timestamp or datetime.now(UTC),
            )
        except ValidationError:
            logger.exception("Refusing to log invalid reward %r", reward_type)
            return False

        try:
            self.rewards_path.parent.mkdir(parents=True, exist_ok=True)
            with self._append_lock:
                needs_header = (
                    not self.rewards_path.exists()
                    or self.rewards_path.stat().st_size == 0
                )
                with open(self.rewards_path, "a", newline="", encoding="utf-8") as fh:
                    writer = csv.DictWriter(fh, fieldnames=REWARDS_HEADER)
                    if needs_header:
                        writer.writeheader()
                    writer.writerow(entry.to_row())
        except OSError:
            logger.exception("Failed to append reward to %s", self.rewards_path)
            return False

        logger.info(
            "Logged reward %s x%d at %s",
            entry.reward_type, entry.quantity, entry.date_added.isoformat(),
        )
        return True

    def load_rewards(self, limit: int | None = None) -> list[RewardLogEntry]:
        """Return reward-log entries oldest first (the last *limit* if given)."""
        entries = self._read_rows(self.rewards_path, REWARDS_HEADER, RewardLogEntry)
        if limit is not None:
            return entries[-limit:] if limit > 0 else []
        return entries
