"""
grantledger/__init__.py

grantledger: time-based token vesting grants.

A recipient is promised a fixed amount that unlocks gradually between a
cliff and a final vesting date, and claims the unlocked part as it goes.
"""

__version__ = "0.3.0"

from grantledger.core.exceptions import GrantLedgerError
from grantledger.core.models import (
    ClaimReceipt,
    ClaimResult,
    Grant,
    GrantPhase,
    GrantStatus,
    RemovalResult,
    UnvestedPolicy,
    VestingGroup,
    VestingGroupName,
)
from grantledger.core.observers import Observer, RecordingObserver
from grantledger.core.time import Clock, ManualClock, SystemClock
from grantledger.adapters.token import InMemoryToken, TokenTransfer
from grantledger.settlement.engine import calculate_claim
from grantledger.runtime.service import VestingLedger

__all__ = [
    # Service
    "VestingLedger",
    "calculate_claim",
    # Model
    "Grant",
    "GrantStatus",
    "GrantPhase",
    "VestingGroup",
    "VestingGroupName",
    "UnvestedPolicy",
    "ClaimResult",
    "ClaimReceipt",
    "RemovalResult",
    # Collaborators
    "Clock",
    "ManualClock",
    "SystemClock",
    "TokenTransfer",
    "InMemoryToken",
    "Observer",
    "RecordingObserver",
    # Errors
    "GrantLedgerError",
]
