"""
Shared fixtures for the grantledger test suite.
"""

import pytest

from grantledger import InMemoryToken, ManualClock, RecordingObserver, VestingLedger
from grantledger.core.models import SECONDS_PER_DAY, UnvestedPolicy


ADMIN    = "0xadmin"
TREASURY = "0xtreasury"
LEDGER   = "0xledger"
TOKEN    = "0xtoken"
ALICE    = "0xalice"
BOB      = "0xbob"

T0 = 1_700_000_000
TREASURY_SUPPLY = 10_000_000


def days(n: int) -> int:
    return n * SECONDS_PER_DAY


@pytest.fixture
def clock():
    return ManualClock(start=T0)


@pytest.fixture
def token():
    """Token book with a funded treasury that has approved the ledger."""
    book = InMemoryToken(TOKEN)
    book.mint(TREASURY, TREASURY_SUPPLY)
    book.approve(TREASURY, LEDGER, TREASURY_SUPPLY)
    return book


@pytest.fixture
def recorder():
    return RecordingObserver()


def build_ledger(token, clock, recorder, policy=UnvestedPolicy.RETURN, custody=None):
    ledger = VestingLedger(
        admin=ADMIN,
        treasury=TREASURY,
        ledger_identity=LEDGER,
        token_identity=TOKEN,
        token=custody or token.bind(LEDGER),
        clock=clock,
        unvested_policy=policy,
        observers=[recorder],
    )
    ledger.set_group_parameters(ADMIN, "TEAM", 10, 1, 15)
    ledger.set_group_parameters(ADMIN, "ADVISORS", 12, 3, 5)
    return ledger


@pytest.fixture
def ledger(token, clock, recorder):
    """Ledger with TEAM (10 months, 1 month cliff) and ADVISORS (12, 3) set."""
    return build_ledger(token, clock, recorder)


@pytest.fixture
def retaining_ledger(token, clock, recorder):
    return build_ledger(token, clock, recorder, policy=UnvestedPolicy.RETAIN)
