"""
tests/test_ledger.py — CreditLedger Unit Tests
===============================================

Crediting rules (one credit per message, self-reactions, ignore list),
debits, the redeem critical section and thread safety.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from kudos.engine.ledger import CreditLedger, DebitOutcome

ALICE = 1001
BOB = 1002
CAROL = 1003
MALLORY = 6666


class TestRecordReaction:
    def test_first_reaction_credits_author(self, ledger):
        assert ledger.record_reaction(BOB, ALICE, 1) is True
        assert ledger.get_balance(ALICE) == 1
        assert ledger.credited_messages(ALICE) == {1}

    def test_many_reactors_one_message_credit_once(self, ledger):
        results = [ledger.record_reaction(r, ALICE, 1) for r in (BOB, CAROL, 7, 8, 9)]
        assert results == [True, False, False, False, False]
        assert ledger.get_balance(ALICE) == 1
        assert ledger.credited_messages(ALICE) == {1}

    def test_redelivery_is_idempotent(self, ledger):
        ledger.record_reaction(BOB, ALICE, 1)
        ledger.record_reaction(BOB, ALICE, 1)
        assert ledger.get_balance(ALICE) == 1

    def test_distinct_messages_each_credit(self, ledger):
        for message_id in (1, 2, 3):
            ledger.record_reaction(BOB, ALICE, message_id)
        assert ledger.get_balance(ALICE) == 3

    def test_message_belongs_to_one_author(self, ledger):
        ledger.record_reaction(BOB, ALICE, 1)
        assert ledger.record_reaction(BOB, CAROL, 1) is False
        assert ledger.get_balance(CAROL) == 0
        assert ledger.credited_messages(CAROL) == frozenset()

    def test_self_reaction_never_credits(self, ledger):
        assert ledger.record_reaction(ALICE, ALICE, 1) is False
        assert ledger.get_balance(ALICE) == 0
        # A later reaction from someone else still counts
        assert ledger.record_reaction(BOB, ALICE, 1) is True

    def test_ignored_reactor(self, store):
        ledger = CreditLedger(store, ignored_users={MALLORY})
        assert ledger.record_reaction(MALLORY, ALICE, 1) is False
        assert ledger.get_balance(ALICE) == 0
        assert not ledger.is_credited(1)

    def test_ignored_author(self, store):
        ledger = CreditLedger(store, ignored_users={MALLORY})
        assert ledger.record_reaction(ALICE, MALLORY, 1) is False
        assert ledger.get_balance(MALLORY) == 0

    def test_custom_increment(self, store):
        ledger = CreditLedger(store, increment=3)
        ledger.record_reaction(BOB, ALICE, 1)
        ledger.record_reaction(BOB, ALICE, 2)
        assert ledger.get_balance(ALICE) == 6

    def test_rejects_non_positive_increment(self, store):
        with pytest.raises(ValueError):
            CreditLedger(store, increment=0)

    def test_credit_is_flushed_to_disk(self, ledger, store):
        ledger.record_reaction(BOB, ALICE, 1)
        assert store.load_balances() == {ALICE: 1}

    def test_failed_flush_keeps_credit_and_marks_dirty(self, ledger, store):
        with patch.object(store, "save_balances", return_value=False):
            assert ledger.record_reaction(BOB, ALICE, 1) is True
        assert ledger.get_balance(ALICE) == 1
        assert ledger.dirty is True

        assert ledger.flush() is True
        assert ledger.dirty is False
        assert store.load_balances() == {ALICE: 1}


class TestReads:
    def test_unknown_user_is_zero_and_not_created(self, ledger):
        assert ledger.get_balance(ALICE) == 0
        assert ledger.snapshot() == {}

    def test_load_replaces_balances(self, ledger, store):
        store.save_balances({ALICE: 4, BOB: 2})
        assert ledger.load() == 2
        assert ledger.get_balance(ALICE) == 4

    def test_load_with_missing_file(self, ledger):
        assert ledger.load() == 0
        assert ledger.snapshot() == {}

    def test_leaderboard_order(self, ledger, store):
        store.save_balances({ALICE: 2, BOB: 9, CAROL: 2, 7: 0})
        ledger.load()
        assert ledger.leaderboard(3) == [(BOB, 9), (ALICE, 2), (CAROL, 2)]


class TestDebit:
    def test_debit_more_than_balance_fails(self, ledger):
        ledger.record_reaction(BOB, ALICE, 1)
        assert ledger.debit(ALICE, 2) is False
        assert ledger.get_balance(ALICE) == 1

    def test_debit_unknown_user_fails(self, ledger):
        assert ledger.debit(ALICE, 1) is False
        assert ledger.snapshot() == {}

    def test_debit_within_balance(self, ledger):
        for message_id in range(5):
            ledger.record_reaction(BOB, ALICE, message_id)
        assert ledger.debit(ALICE, 5) is True
        assert ledger.get_balance(ALICE) == 0

    def test_debit_marks_ledger_dirty(self, ledger, store):
        ledger.credit(ALICE, 10)
        assert not ledger.dirty
        assert ledger.debit(ALICE, 5) is True
        assert ledger.dirty
        assert store.load_balances() == {ALICE: 10}
        assert ledger.flush() is True
        assert store.load_balances() == {ALICE: 5}

    def test_failed_debit_leaves_ledger_clean(self, ledger):
        ledger.credit(ALICE, 1)
        assert ledger.debit(ALICE, 2) is False
        assert not ledger.dirty

    def test_negative_amount_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.debit(ALICE, -1)

    def test_credit_adds_and_flushes(self, ledger, store):
        assert ledger.credit(ALICE, 4) == 4
        assert store.load_balances() == {ALICE: 4}


class TestRedeem:
    def test_exact_balance_succeeds(self, ledger, store):
        store.save_balances({ALICE: 5})
        ledger.load()
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.DEBITED, 0)
        assert store.load_balances() == {ALICE: 0}

    def test_short_balance_rejected(self, ledger, store):
        store.save_balances({ALICE: 4})
        ledger.load()
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.INSUFFICIENT, 4)
        assert ledger.get_balance(ALICE) == 4

    def test_reload_picks_up_external_edit(self, ledger, store):
        store.save_balances({ALICE: 1})
        ledger.load()
        store.save_balances({ALICE: 10})  # edited by hand while running
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.DEBITED, 5)

    def test_reload_disabled(self, ledger, store):
        store.save_balances({ALICE: 1})
        ledger.load()
        store.save_balances({ALICE: 10})
        assert ledger.redeem(ALICE, 5, reload=False) == (DebitOutcome.INSUFFICIENT, 1)

    def test_dirty_ledger_trusts_memory(self, ledger, store):
        with patch.object(store, "save_balances", return_value=False):
            for message_id in range(5):
                ledger.record_reaction(BOB, ALICE, message_id)
        assert ledger.dirty
        # Disk has nothing for ALICE; memory has 5 and must win.
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.DEBITED, 0)
        assert not ledger.dirty

    def test_reload_keeps_memory_when_user_missing_on_disk(self, ledger, store):
        ledger.credit(ALICE, 5)
        store.balances_path.unlink()
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.DEBITED, 0)

    def test_unflushed_debit_survives_reload(self, ledger, store):
        ledger.credit(ALICE, 10)
        ledger.debit(ALICE, 5)
        assert ledger.redeem(ALICE, 10) == (DebitOutcome.INSUFFICIENT, 5)
        assert ledger.redeem(ALICE, 5) == (DebitOutcome.DEBITED, 0)
        assert store.load_balances() == {ALICE: 0}

    def test_persist_failure_rolls_back(self, ledger, store):
        ledger.credit(ALICE, 5)
        with patch.object(store, "save_balances", return_value=False):
            assert ledger.redeem(ALICE, 5) == (DebitOutcome.PERSIST_FAILED, 5)
        assert ledger.get_balance(ALICE) == 5
        assert store.load_balances() == {ALICE: 5}


class TestConcurrency:
    def test_parallel_credits_are_not_lost(self, ledger, store):
        messages = range(200)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda m: ledger.record_reaction(BOB, ALICE, m), messages))
        assert all(results)
        assert ledger.get_balance(ALICE) == 200
        assert store.load_balances() == {ALICE: 200}

    def test_parallel_reactions_on_one_message_credit_once(self, ledger):
        reactors = range(10_000, 10_100)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda r: ledger.record_reaction(r, ALICE, 1), reactors))
        assert results.count(True) == 1
        assert ledger.get_balance(ALICE) == 1

    def test_debits_and_credits_interleave(self, ledger):
        ledger.credit(ALICE, 50)

        def work(i: int) -> bool:
            if i % 2:
                return ledger.record_reaction(BOB, ALICE, i)
            return ledger.debit(ALICE, 1)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(100)))
        assert all(results)
        # 50 credits of +1 and 50 debits of -1 on a starting balance of 50
        assert ledger.get_balance(ALICE) == 50
