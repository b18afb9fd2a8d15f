"""
tests/test_reentrancy.py

Re-entrant and concurrent access.

  A token collaborator that calls back into the ledger mid-transfer must
  be turned away while the first operation is in flight, and the first
  operation must still complete exactly once.
"""

import threading

import pytest

from conftest import ADMIN, ALICE, BOB, LEDGER, T0, TREASURY, TREASURY_SUPPLY, build_ledger, days
from grantledger.core.exceptions import ReentrantOperation, TransferFailed, ZeroVestedAmount


class CallbackCustody:
    """Runs a callback inside every transfer, recording what it raised."""

    def __init__(self, inner):
        self.inner = inner
        self.on_transfer = None
        self.on_transfer_from = None
        self.errors = []

    def _fire(self, callback):
        if callback is None:
            return
        try:
            callback()
        except ReentrantOperation as exc:
            self.errors.append(exc)

    def transfer(self, to, amount):
        self._fire(self.on_transfer)
        return self.inner.transfer(to, amount)

    def transfer_from(self, source, to, amount):
        self._fire(self.on_transfer_from)
        return self.inner.transfer_from(source, to, amount)


@pytest.fixture
def custody(token):
    return CallbackCustody(token.bind(LEDGER))


@pytest.fixture
def hooked(token, clock, recorder, custody):
    ledger = build_ledger(token, clock, recorder, custody=custody)
    ledger.create_grants(ADMIN, [ALICE, BOB], ["TEAM", "TEAM"], [0, 0], [3000, 3000])
    clock.advance_days(40)
    return ledger


class TestReentrantCalls:

    def test_claim_during_claim_payout(self, hooked, custody, token):
        custody.on_transfer = lambda: hooked.claim(1)

        receipt = hooked.claim(1)

        assert receipt.amount_vested == 400
        assert len(custody.errors) == 1
        assert token.balance_of(ALICE) == 400
        assert hooked.get_grant(1).total_claimed == 400

    def test_remove_during_claim_payout(self, hooked, custody):
        custody.on_transfer = lambda: hooked.remove(ADMIN, 1)

        hooked.claim(1)

        assert len(custody.errors) == 1
        assert not hooked.get_grant(1).is_removed

    def test_other_grant_not_blocked(self, hooked, custody, token):
        receipts = []

        def claim_other():
            custody.on_transfer = None
            receipts.append(hooked.claim(2))

        custody.on_transfer = claim_other
        hooked.claim(1)

        assert custody.errors == []
        assert receipts[0].recipient == BOB
        assert token.balance_of(ALICE) == token.balance_of(BOB) == 400

    def test_create_during_funding(self, hooked, custody):
        custody.on_transfer_from = lambda: hooked.create_grants(
            ADMIN, [BOB], ["TEAM"], [0], [10]
        )

        ids = hooked.create_grants(ADMIN, [ALICE], ["TEAM"], [0], [10])

        assert ids == [3]
        assert len(custody.errors) == 1
        assert len(hooked.registry) == 3

    @pytest.mark.parametrize("call", [
        lambda ledger: ledger.claim(3),
        lambda ledger: ledger.remove(ADMIN, 3),
    ], ids=["claim", "remove"])
    def test_unfunded_grant_untouchable_during_funding(self, hooked, custody, token, call):
        token.approve(TREASURY, LEDGER, 0)
        custody.on_transfer_from = lambda: call(hooked)

        with pytest.raises(TransferFailed):
            hooked.create_grants(ADMIN, [BOB], ["TEAM"], [T0 - days(400)], [3000])

        assert len(custody.errors) == 1
        assert 3 not in hooked.registry
        assert token.balance_of(BOB) == 0
        assert token.balance_of(LEDGER) == 6000
        assert token.balance_of(TREASURY) == TREASURY_SUPPLY - 6000

    def test_funded_grant_claimable_after_creation(self, hooked, custody, token):
        custody.on_transfer_from = lambda: hooked.claim(3)

        [gid] = hooked.create_grants(ADMIN, [BOB], ["TEAM"], [T0 - days(400)], [3000])

        assert len(custody.errors) == 1
        assert hooked.claim(gid).amount_vested == 3000
        assert token.balance_of(BOB) == 3000

    def test_hold_released_after_failure(self, hooked):
        with pytest.raises(ReentrantOperation):
            with hooked.registry.hold(1):
                with hooked.registry.hold(1):
                    pass
        assert hooked.claim(1).amount_vested == 400


class ContendedClock:
    """Clock that asks another thread whether the ledger lock is free."""

    def __init__(self, start):
        self.instant = start
        self.ledger = None
        self.lock_free = []

    def now(self):
        if self.ledger is not None:
            worker = threading.Thread(target=self._try_lock)
            worker.start()
            worker.join()
        return self.instant

    def _try_lock(self):
        lock = self.ledger._lock
        acquired = lock.acquire(blocking=False)
        if acquired:
            lock.release()
        self.lock_free.append(acquired)


class TestThreads:

    def test_reads_consult_clock_under_lock(self, token, recorder):
        clock = ContendedClock(T0)
        ledger = build_ledger(token, clock, recorder)
        [gid] = ledger.create_grants(ADMIN, [ALICE], ["TEAM"], [0], [3000])
        clock.instant += days(40)
        clock.ledger = ledger

        assert ledger.calculate_claim(gid) == (40, 400)
        ledger.phase_of(gid)
        ledger.claim(gid)

        assert clock.lock_free == [False, False, False]

    def test_parallel_claims_pay_once(self, ledger, clock, token):
        ledger.create_grants(ADMIN, [ALICE], ["TEAM"], [0], [3000])
        clock.advance_days(40)

        outcomes = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            try:
                outcomes.append(ledger.claim(1).amount_vested)
            except ZeroVestedAmount:
                outcomes.append(0)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == [0] * 7 + [400]
        assert token.balance_of(ALICE) == 400

    def test_parallel_batches_get_distinct_ids(self, ledger):
        results = []

        def worker(recipient):
            results.extend(ledger.create_grants(ADMIN, [recipient] * 5, ["TEAM"] * 5, [0] * 5, [1] * 5))

        threads = [threading.Thread(target=worker, args=(f"0xr{i}",)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 31))
