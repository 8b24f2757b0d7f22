"""
kudos.engine.ledger — Credit Ledger
====================================

Owns every member's credit balance and the set of messages that have
already earned their author a credit.  One :class:`CreditLedger` is built
at startup and handed to the bot; nothing here is module-global.

Crediting rule — one credit per *message*, not per reaction:
    The first qualifying reaction on a message credits its author.
    Every later reaction on that message — from the same reactor,
    a different reactor, or a gateway re-delivery — is a no-op.

Thread safety:
    Cogs call the ledger through ``run_io()``, so methods run on worker
    threads.  Every mutation (plus the balance flush that follows it)
    happens under one ``threading.Lock``, making "check credited set →
    mutate balance → persist" a single atomic unit.  Reads of a single
    balance are plain dict lookups and take no lock.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections import defaultdict
from typing import TYPE_CHECKING

from kudos.constants import DEFAULT_REACTION_INCREMENT

if TYPE_CHECKING:
    from kudos.storage.records import RecordStore

logger = logging.getLogger(__name__)


class DebitOutcome(enum.StrEnum):
    """Result of :meth:`CreditLedger.redeem`."""
    DEBITED = "DEBITED"
    INSUFFICIENT = "INSUFFICIENT"
    PERSIST_FAILED = "PERSIST_FAILED"


class CreditLedger:
    """In-memory balances with write-through persistence.

    Parameters
    ----------
    store:
        Where balances are flushed after every mutation.
    ignored_users:
        Members excluded from accounting both as reactor and as author.
    increment:
        Credits granted per credited message.
    """

    def __init__(
        self,
        store: RecordStore,
        ignored_users: set[int] | frozenset[int] = frozenset(),
        increment: int = DEFAULT_REACTION_INCREMENT,
    ) -> None:
        if increment < 1:
            raise ValueError(f"increment must be positive, got {increment}")
        self.store = store
        self.ignored_users = frozenset(ignored_users)
        self.increment = increment
        self._balances: dict[int, int] = {}
        self._credited: defaultdict[int, set[int]] = defaultdict(set)
        self._message_author: dict[int, int] = {}
        self._lock = threading.Lock()
        self._dirty = False

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def load(self) -> int:
        """Replace in-memory balances with the contents of the balances file.

        Returns the number of balances loaded.
        """
        balances = self.store.load_balances()
        with self._lock:
            self._balances = balances
            self._dirty = False
        logger.info("Ledger loaded %d balance(s)", len(balances))
        return len(balances)

    @property
    def dirty(self) -> bool:
        """True when the last flush failed and disk lags behind memory."""
        return self._dirty

    def flush(self) -> bool:
        """Persist a snapshot of all balances.  Safe to call at any time."""
        with self._lock:
            return self._flush_locked()

    def _flush_locked(self) -> bool:
        ok = self.store.save_balances(dict(self._balances))
        if ok:
            if self._dirty:
                logger.info("Ledger flushed after earlier failure")
            self._dirty = False
        else:
            self._dirty = True
            logger.warning(
                "Balance flush failed — keeping %d balance(s) in memory until the next flush",
                len(self._balances),
            )
        return ok

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_balance(self, user_id: int) -> int:
        """Return *user_id*'s balance, 0 if unknown.  Never creates an entry."""
        return self._balances.get(user_id, 0)

    def is_ignored(self, user_id: int) -> bool:
        return user_id in self.ignored_users

    def is_credited(self, message_id: int) -> bool:
        return message_id in self._message_author

    def credited_messages(self, author_id: int) -> frozenset[int]:
        """Messages that have earned *author_id* a credit."""
        with self._lock:
            return frozenset(self._credited.get(author_id, ()))

    def snapshot(self) -> dict[int, int]:
        """Return a copy of every balance."""
        with self._lock:
            return dict(self._balances)

    def leaderboard(self, limit: int = 10) -> list[tuple[int, int]]:
        """Top *limit* ``(user_id, balance)`` pairs, highest first, ties by id."""
        ranked = sorted(self.snapshot().items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:limit]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def record_reaction(self, reactor_id: int, author_id: int, message_id: int) -> bool:
        """Credit *author_id* for a reaction on *message_id* if it qualifies.

        Skip rules, in order: ignored reactor, ignored author, self-reaction,
        message already credited.  Returns ``True`` only when a credit was
        issued.  A failed flush does not undo the credit — memory stays the
        source of truth and :attr:`dirty` is set.
        """
        if reactor_id in self.ignored_users:
            logger.debug("Reaction by ignored user %d skipped", reactor_id)
            return False
        if author_id in self.ignored_users:
            logger.debug("Reaction on ignored author %d skipped", author_id)
            return False
        if reactor_id == author_id:
            logger.debug("Self-reaction by %d on message %d skipped", reactor_id, message_id)
            return False

        with self._lock:
            owner = self._message_author.get(message_id)
            if owner is not None:
                logger.debug("Message %d already credited to %d", message_id, owner)
                return False
            self._message_author[message_id] = author_id
            self._credited[author_id].add(message_id)
            self._balances[author_id] = self._balances.get(author_id, 0) + self.increment
            logger.info(
                "Credited %d for message %d (reactor %d) — balance %d",
                author_id, message_id, reactor_id, self._balances[author_id],
            )
            self._flush_locked()
        return True

    def debit(self, user_id: int, amount: int) -> bool:
        """Subtract *amount* if the balance covers it.  No flush.

        Returns ``False`` without mutating anything when the balance is short.
        A successful debit marks the ledger :attr:`dirty`, so the flush retry
        persists it and :meth:`redeem` will not reload over it.
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        with self._lock:
            if not self._debit_locked(user_id, amount):
                return False
            self._dirty = True
            return True

    def _debit_locked(self, user_id: int, amount: int) -> bool:
        current = self._balances.get(user_id, 0)
        if current < amount:
            return False
        self._balances[user_id] = current - amount
        return True

    def credit(self, user_id: int, amount: int) -> int:
        """Add *amount* to *user_id* and flush.  Returns the new balance.

        Used to refund a redemption whose reward could not be logged.
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        with self._lock:
            self._balances[user_id] = self._balances.get(user_id, 0) + amount
            self._flush_locked()
            return self._balances[user_id]

    def redeem(
        self, user_id: int, price: int, *, reload: bool = True
    ) -> tuple[DebitOutcome, int]:
        """Check and debit *price* from *user_id* in one critical section.

        When *reload* is set and the ledger is clean, the member's balance is
        re-read from disk first so external edits to the balances file are
        honoured.  A member absent from disk keeps the in-memory value, and a
        dirty ledger skips the reload entirely (disk is stale, memory wins).

        The debit is flushed before the lock is released.  If the flush
        fails the debit is rolled back and ``PERSIST_FAILED`` is returned.

        Returns ``(outcome, balance)`` where *balance* is the balance after
        the operation (unchanged unless ``DEBITED``).
        """
        if price < 0:
            raise ValueError(f"price must be non-negative, got {price}")
        with self._lock:
            if reload and not self._dirty:
                on_disk = self.store.load_balances().get(user_id)
                if on_disk is not None and on_disk != self._balances.get(user_id, 0):
                    logger.info(
                        "Balance of %d changed on disk (%d -> %d), using disk value",
                        user_id, self._balances.get(user_id, 0), on_disk,
                    )
                    self._balances[user_id] = on_disk

            before = self._balances.get(user_id, 0)
            if not self._debit_locked(user_id, price):
                return DebitOutcome.INSUFFICIENT, before

            if not self.store.save_balances(dict(self._balances)):
                # Roll back in memory; disk still holds the pre-debit value.
                self._balances[user_id] = before
                logger.error(
                    "Could not persist debit of %d from %d — redemption rolled back",
                    price, user_id,
                )
                return DebitOutcome.PERSIST_FAILED, before

            self._dirty = False
            return DebitOutcome.DEBITED, self._balances[user_id]
