"""
grantledger/core/models.py

Grant Ledger Data Model

═══════════════════════════════════════════════════════════════════
LEDGER CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1 - Identifiers
    grant_id starts at 1, increments by one, is never reused.
    A removed grant keeps its slot and its id.

CONTRACT 2 - Units
    all quantities are integers (smallest token unit).
    a month is exactly DAYS_PER_MONTH days, a day SECONDS_PER_DAY seconds.

CONTRACT 3 - Counters
    days_claimed and total_claimed never decrease.
    0 <= total_claimed <= amount
    0 <= days_claimed  <= duration_months * DAYS_PER_MONTH

CONTRACT 4 - Snapshot
    duration_months / cliff_months are copied from the catalog at creation.
    Later catalog edits never reach an existing grant.

CONTRACT 5 - Soft delete
    status == REMOVED is the ONLY removal signal.
    Removal zeroes quantitative fields and clears recipient in place.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

SECONDS_PER_DAY = 86_400
DAYS_PER_MONTH  = 30


# ─────────────────────────────────────────────────────────────
# Vocabulary
# ─────────────────────────────────────────────────────────────

class VestingGroupName(str, Enum):
    """Closed set of vesting group names a catalog entry can be stored under."""
    SEED         = "SEED"
    PRIVATE_SALE = "PRIVATE_SALE"
    STRATEGIC    = "STRATEGIC"
    TEAM         = "TEAM"
    ADVISORS     = "ADVISORS"
    ECOSYSTEM    = "ECOSYSTEM"
    MARKETING    = "MARKETING"
    LIQUIDITY    = "LIQUIDITY"


class GrantStatus(Enum):
    """Registry value tag."""
    ACTIVE  = "active"
    REMOVED = "removed"


class GrantPhase(Enum):
    """Where a grant sits on its vesting timeline."""
    PENDING      = "pending"
    BEFORE_CLIFF = "before_cliff"
    VESTING      = "vesting"
    FULLY_VESTED = "fully_vested"
    REMOVED      = "removed"


class UnvestedPolicy(Enum):
    """What termination does with the unvested remainder."""
    RETURN = "return"   # transfer back to the treasury immediately
    RETAIN = "retain"   # keep in custody, pooled for future grants


# ─────────────────────────────────────────────────────────────
# VestingGroup
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class VestingGroup:
    """Catalog entry. Descriptive metadata consumed at grant creation only."""
    duration_months:         int
    cliff_months:            int
    percent_of_total_supply: float = 0

    @property
    def duration_days(self) -> int:
        return self.duration_months * DAYS_PER_MONTH

    @property
    def cliff_days(self) -> int:
        return self.cliff_months * DAYS_PER_MONTH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_months":         self.duration_months,
            "cliff_months":            self.cliff_months,
            "percent_of_total_supply": self.percent_of_total_supply,
        }


# ─────────────────────────────────────────────────────────────
# Grant
# ─────────────────────────────────────────────────────────────

@dataclass
class Grant:
    """
    A promise of a fixed token amount to a recipient, released over time.

    Mutated only by the registry, the claim processor and termination.
    Readers always receive a copy (see GrantRegistry.get).
    """

    grant_id:        int
    recipient:       Optional[str]
    start_time:      int
    amount:          int
    duration_months: int
    cliff_months:    int
    days_claimed:    int = 0
    total_claimed:   int = 0
    status:          GrantStatus = GrantStatus.ACTIVE
    group:           Optional[str] = None

    @property
    def is_removed(self) -> bool:
        return self.status is GrantStatus.REMOVED

    @property
    def duration_days(self) -> int:
        return self.duration_months * DAYS_PER_MONTH

    @property
    def cliff_days(self) -> int:
        return self.cliff_months * DAYS_PER_MONTH

    @property
    def remaining(self) -> int:
        """Quantity not yet paid out."""
        return self.amount - self.total_claimed

    def mark_removed(self) -> None:
        """Zero the grant in place. The id stays allocated."""
        self.recipient       = None
        self.start_time      = 0
        self.amount          = 0
        self.duration_months = 0
        self.cliff_months    = 0
        self.days_claimed    = 0
        self.total_claimed   = 0
        self.status          = GrantStatus.REMOVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grant_id":        self.grant_id,
            "recipient":       self.recipient,
            "start_time":      self.start_time,
            "amount":          self.amount,
            "duration_months": self.duration_months,
            "cliff_months":    self.cliff_months,
            "days_claimed":    self.days_claimed,
            "total_claimed":   self.total_claimed,
            "status":          self.status.value,
            "group":           self.group,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Grant":
        return cls(
            grant_id=        data["grant_id"],
            recipient=       data.get("recipient"),
            start_time=      data["start_time"],
            amount=          data["amount"],
            duration_months= data["duration_months"],
            cliff_months=    data["cliff_months"],
            days_claimed=    data.get("days_claimed", 0),
            total_claimed=   data.get("total_claimed", 0),
            status=          GrantStatus(data.get("status", GrantStatus.ACTIVE.value)),
            group=           data.get("group"),
        )


# ─────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────

class ClaimResult(NamedTuple):
    """
    Output of ClaimEngine.calculate_claim().

    days_vested may be nonzero while amount_vested is zero (before the
    cliff). Only amount_vested says whether anything is claimable.
    """
    days_vested:   int
    amount_vested: int


@dataclass(frozen=True)
class ClaimReceipt:
    """A processed claim."""
    grant_id:      int
    recipient:     str
    days_vested:   int
    amount_vested: int
    claimed_at:    int


@dataclass(frozen=True)
class RemovalResult:
    """A processed termination."""
    grant_id:          int
    recipient:         str
    amount_vested:     int
    amount_not_vested: int
    policy:            UnvestedPolicy
    removed_at:        int
