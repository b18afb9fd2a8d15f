"""
tests/test_claims.py

Claims through the ledger service.

  ORDER
    counters booked before the payout, restored if the payout fails
    observers hear only about confirmed payouts
    a raising observer is logged and never undoes a payout

  SCENARIO (3000 over 10 months, 1 month cliff)
    day 15  -> ZeroVestedAmount
    day 40  -> 400, days_claimed 40
    day 305 -> remaining 2600
"""

import logging

import pytest

from conftest import ADMIN, ALICE, BOB, LEDGER, T0, build_ledger
from grantledger.core.exceptions import (
    GrantNotFound,
    GrantRemoved,
    JournalError,
    TransferFailed,
    ZeroVestedAmount,
)
from grantledger.core.models import GrantPhase
from grantledger.core.observers import EventType, Observer, RecordingObserver


class FlakyCustody:
    """Custody wrapper whose payouts can be switched off."""

    def __init__(self, inner):
        self.inner = inner
        self.fail_payouts = False
        self.raise_payouts = False

    def transfer(self, to, amount):
        if self.raise_payouts:
            raise ConnectionError("token node unreachable")
        if self.fail_payouts:
            return False
        return self.inner.transfer(to, amount)

    def transfer_from(self, source, to, amount):
        return self.inner.transfer_from(source, to, amount)


@pytest.fixture
def grant_id(ledger):
    [gid] = ledger.create_grants(ADMIN, [ALICE], ["TEAM"], [0], [3000])
    return gid


class TestClaimScenario:

    def test_before_cliff_is_rejected(self, ledger, clock, grant_id):
        clock.advance_days(15)
        with pytest.raises(ZeroVestedAmount):
            ledger.claim(grant_id)
        grant = ledger.get_grant(grant_id)
        assert (grant.days_claimed, grant.total_claimed) == (0, 0)

    def test_mid_vesting_claim(self, ledger, clock, token, grant_id):
        clock.advance_days(40)
        receipt = ledger.claim(grant_id)

        assert receipt.grant_id == grant_id
        assert receipt.recipient == ALICE
        assert receipt.days_vested == 40
        assert receipt.amount_vested == 400
        assert receipt.claimed_at == clock.now()

        grant = ledger.get_grant(grant_id)
        assert grant.days_claimed == 40
        assert grant.total_claimed == 400
        assert token.balance_of(ALICE) == 400
        assert token.balance_of(LEDGER) == 2600

    def test_full_lifecycle(self, ledger, clock, token, grant_id):
        clock.advance_days(40)
        ledger.claim(grant_id)
        clock.advance_days(265)

        assert ledger.claim(grant_id).amount_vested == 2600
        grant = ledger.get_grant(grant_id)
        assert grant.total_claimed == 3000
        assert grant.days_claimed == grant.duration_days
        assert token.balance_of(ALICE) == 3000
        assert token.balance_of(LEDGER) == 0

    def test_nothing_left_after_full_claim(self, ledger, clock, grant_id):
        clock.advance_days(400)
        ledger.claim(grant_id)
        clock.advance_days(30)
        with pytest.raises(ZeroVestedAmount):
            ledger.claim(grant_id)

    def test_second_claim_same_day_rejected(self, ledger, clock, grant_id):
        clock.advance_days(40)
        ledger.claim(grant_id)
        clock.advance(3600)
        with pytest.raises(ZeroVestedAmount):
            ledger.claim(grant_id)

    def test_future_start_not_claimable(self, ledger, clock):
        [gid] = ledger.create_grants(ADMIN, [ALICE], ["TEAM"], [T0 + 100 * 86_400], [3000])
        clock.advance_days(60)
        assert ledger.phase_of(gid) is GrantPhase.PENDING
        with pytest.raises(ZeroVestedAmount):
            ledger.claim(gid)

    def test_anyone_may_trigger_payout_to_recipient(self, ledger, clock, token, grant_id):
        """Claims take no caller; the payout always goes to the recipient."""
        clock.advance_days(40)
        ledger.claim(grant_id)
        assert token.balance_of(ALICE) == 400
        assert token.balance_of(BOB) == 0

    def test_observer_receives_claim(self, ledger, clock, recorder, grant_id):
        clock.advance_days(40)
        ledger.claim(grant_id)
        [event] = recorder.of_type(EventType.CLAIM_PROCESSED)
        assert event.grant_id == grant_id
        assert event.subject == ALICE
        assert event.data == {"days_vested": 40, "amount_vested": 400}


class TestClaimErrors:

    def test_unknown_grant(self, ledger):
        with pytest.raises(GrantNotFound):
            ledger.claim(42)

    def test_removed_grant(self, ledger, clock, grant_id):
        clock.advance_days(40)
        ledger.remove(ADMIN, grant_id)
        clock.advance_days(40)
        with pytest.raises(GrantRemoved):
            ledger.claim(grant_id)


class TestPayoutFailure:

    @pytest.fixture
    def flaky(self, token):
        return FlakyCustody(token.bind(LEDGER))

    @pytest.fixture
    def flaky_ledger(self, token, clock, recorder, flaky):
        ledger = build_ledger(token, clock, recorder, custody=flaky)
        ledger.create_grants(ADMIN, [ALICE], ["TEAM"], [0], [3000])
        return ledger

    def test_rejected_payout_restores_counters(self, flaky_ledger, flaky, clock, token, recorder):
        clock.advance_days(40)
        flaky.fail_payouts = True
        with pytest.raises(TransferFailed):
            flaky_ledger.claim(1)

        grant = flaky_ledger.get_grant(1)
        assert (grant.days_claimed, grant.total_claimed) == (0, 0)
        assert token.balance_of(ALICE) == 0
        assert recorder.of_type(EventType.CLAIM_PROCESSED) == []

    def test_raising_payout_restores_counters(self, flaky_ledger, flaky, clock):
        clock.advance_days(40)
        flaky.raise_payouts = True
        with pytest.raises(TransferFailed) as exc_info:
            flaky_ledger.claim(1)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert flaky_ledger.get_grant(1).total_claimed == 0

    def test_claim_succeeds_once_token_recovers(self, flaky_ledger, flaky, clock, token):
        clock.advance_days(40)
        flaky.fail_payouts = True
        with pytest.raises(TransferFailed):
            flaky_ledger.claim(1)

        flaky.fail_payouts = False
        assert flaky_ledger.claim(1).amount_vested == 400
        assert token.balance_of(ALICE) == 400


class BrokenJournal(Observer):
    """Observer whose storage has gone away."""

    def __init__(self):
        super().__init__("broken-journal")

    def observe(self, event):
        raise JournalError("journal directory is read-only")


class TestObserverFailure:

    @pytest.fixture
    def late(self, ledger):
        ledger.add_observer(BrokenJournal())
        late = RecordingObserver("late")
        ledger.add_observer(late)
        return late

    def test_committed_claim_still_returns_receipt(self, ledger, clock, token, recorder, late, grant_id, caplog):
        clock.advance_days(40)

        with caplog.at_level(logging.ERROR, logger="grantledger.core.observers"):
            receipt = ledger.claim(grant_id)

        assert receipt.amount_vested == 400
        assert token.balance_of(ALICE) == 400
        assert ledger.get_grant(grant_id).total_claimed == 400
        assert len(recorder.of_type(EventType.CLAIM_PROCESSED)) == 1
        assert len(late.of_type(EventType.CLAIM_PROCESSED)) == 1
        assert "broken-journal" in caplog.text

        clock.advance(3600)
        with pytest.raises(ZeroVestedAmount):
            ledger.claim(grant_id)

    def test_batch_reported_to_every_healthy_observer(self, ledger, late):
        ids = ledger.create_grants(ADMIN, [ALICE, BOB], ["TEAM", "TEAM"], [0, 0], [10, 20])
        assert ids == [1, 2]
        assert [e.grant_id for e in late.of_type(EventType.GRANT_CREATED)] == [1, 2]

    def test_removal_completes(self, ledger, clock, late, grant_id):
        clock.advance_days(40)
        result = ledger.remove(ADMIN, grant_id)
        assert result.amount_vested == 400
        assert ledger.get_grant(grant_id).is_removed
        assert len(late.of_type(EventType.GRANT_REMOVED)) == 1


class TestReads:

    def test_calculate_claim_has_no_side_effects(self, ledger, clock, grant_id):
        clock.advance_days(40)
        assert ledger.calculate_claim(grant_id) == (40, 400)
        assert ledger.calculate_claim(grant_id) == (40, 400)
        assert ledger.get_grant(grant_id).total_claimed == 0

    def test_calculate_claim_at_explicit_instant(self, ledger, grant_id):
        assert ledger.calculate_claim(grant_id, T0 + 305 * 86_400) == (10, 3000)

    def test_projection_from_current_state(self, ledger, clock, grant_id):
        clock.advance_days(40)
        ledger.claim(grant_id)

        steps = ledger.projection(grant_id, [T0 + 100 * 86_400, T0 + 305 * 86_400])
        assert [r.amount_vested for _, r in steps] == [600, 2000]
        assert ledger.get_grant(grant_id).total_claimed == 400

    def test_summary(self, ledger, clock, grant_id):
        ledger.create_grants(ADMIN, [BOB], ["ADVISORS"], [0], [1200])
        clock.advance_days(40)
        ledger.claim(grant_id)

        summary = ledger.summary()
        assert summary["grants"] == 2
        assert summary["active"] == 2
        assert summary["total_granted"] == 4200
        assert summary["total_claimed"] == 400
        assert summary["outstanding"] == 3800
        assert summary["next_id"] == 3
        assert summary["allocated_pct"] == 20
        assert summary["admin"] == ADMIN

    def test_clock_going_backwards_is_held(self, ledger, grant_id):
        class Rewinding:
            def __init__(self):
                self.values = [T0 + 50 * 86_400, T0 + 10 * 86_400]

            def now(self):
                return self.values.pop(0)

        ledger.clock = Rewinding()
        assert ledger.now() == T0 + 50 * 86_400
        assert ledger.now() == T0 + 50 * 86_400
