"""
VestingLedger - the public surface of grantledger.

Wires catalog, registry, claim processor and termination together, feeds
them time from an injected Clock, and serializes every public operation
under one re-entrant lock.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from grantledger.adapters.token import TokenTransfer
from grantledger.core.models import (
    ClaimReceipt,
    ClaimResult,
    Grant,
    GrantPhase,
    RemovalResult,
    UnvestedPolicy,
    VestingGroup,
)
from grantledger.core.observers import Observer, ObserverSet
from grantledger.core.time import Clock, SystemClock
from grantledger.ledger.catalog import VestingScheduleCatalog
from grantledger.ledger.registry import DEFAULT_MAX_BATCH_SIZE, GrantRegistry
from grantledger.policy.authority import AdminAuthority
from grantledger.settlement.engine import ClaimEngine
from grantledger.settlement.processor import ClaimProcessor
from grantledger.settlement.termination import GrantTermination


logger = logging.getLogger(__name__)


class VestingLedger:
    """
    Grant ledger service.

        ledger = VestingLedger(
            admin="0xadmin", treasury="0xtreasury",
            ledger_identity="0xledger", token_identity="0xtoken",
            token=token.bind("0xledger"), clock=ManualClock(start),
        )
        ledger.set_group_parameters("0xadmin", "TEAM", 10, 1, 15)
        [gid] = ledger.create_grants("0xadmin", ["0xalice"], ["TEAM"], [0], [3000])
        ledger.claim(gid)
    """

    def __init__(
        self,
        admin: str,
        treasury: str,
        ledger_identity: str,
        token_identity: str,
        token: TokenTransfer,
        clock: Optional[Clock] = None,
        unvested_policy: UnvestedPolicy = UnvestedPolicy.RETURN,
        max_batch_size: Optional[int] = DEFAULT_MAX_BATCH_SIZE,
        observers: Sequence[Observer] = (),
    ):
        self.clock = clock or SystemClock()
        self.observers = ObserverSet(observers)
        self.engine = ClaimEngine()

        self.authority = AdminAuthority(
            admin, ledger_identity, token_identity, observers=self.observers
        )
        self.authority.validate_address(treasury)
        self.catalog = VestingScheduleCatalog(self.authority)
        self.registry = GrantRegistry(
            catalog=self.catalog,
            authority=self.authority,
            token=token,
            treasury=treasury,
            observers=self.observers,
            max_batch_size=max_batch_size,
        )
        self.processor = ClaimProcessor(self.registry, self.engine, self.observers)
        self.termination = GrantTermination(
            self.registry, unvested_policy, self.engine, self.observers
        )

        self._lock = threading.RLock()
        self._last_now = 0

    # ── Time ──────────────────────────────────────────────────

    def now(self) -> int:
        """
        Current instant from the clock, never earlier than one already used.
        """
        try:
            instant = int(self.clock.now())
        except (TypeError, ValueError) as exc:
            raise ValueError("clock must return an integer timestamp") from exc
        if instant < self._last_now:
            logger.warning(
                "Clock moved backwards (%s < %s); holding at last instant",
                instant, self._last_now,
            )
            return self._last_now
        self._last_now = instant
        return instant

    # ── Admin operations ──────────────────────────────────────

    def set_group_parameters(
        self,
        caller: str,
        name: str,
        duration_months: int,
        cliff_months: int,
        percent: float = 0,
    ) -> VestingGroup:
        with self._lock:
            return self.catalog.set_group_parameters(
                caller, name, duration_months, cliff_months, percent
            )

    def create_grants(
        self,
        caller: str,
        recipients: Sequence[str],
        group_names: Sequence[str],
        start_times: Sequence[int],
        amounts: Sequence[int],
    ) -> List[int]:
        with self._lock:
            return self.registry.create_grants(
                caller, recipients, group_names, start_times, amounts, self.now()
            )

    def remove(self, caller: str, grant_id: int) -> RemovalResult:
        with self._lock:
            return self.termination.remove(caller, grant_id, self.now())

    def change_admin(self, caller: str, new_admin: str) -> None:
        with self._lock:
            self.authority.change_admin(caller, new_admin)

    # ── Recipient operations ──────────────────────────────────

    def claim(self, grant_id: int) -> ClaimReceipt:
        with self._lock:
            return self.processor.claim(grant_id, self.now())

    # ── Reads ─────────────────────────────────────────────────

    def calculate_claim(self, grant_id: int, now: Optional[int] = None) -> ClaimResult:
        """What a claim would pay at now (default: the clock). No side effects."""
        with self._lock:
            grant = self.registry.get(grant_id)
            return self.engine.calculate_claim(grant, self.now() if now is None else now)

    def phase_of(self, grant_id: int, now: Optional[int] = None) -> GrantPhase:
        with self._lock:
            grant = self.registry.get(grant_id)
            return self.engine.phase(grant, self.now() if now is None else now)

    def projection(self, grant_id: int, instants: Iterable[int]) -> List[Tuple[int, ClaimResult]]:
        """Claims the grant would pay if claimed at each instant in turn."""
        with self._lock:
            grant = self.registry.get(grant_id)
        return self.engine.vesting_projection(grant, instants)

    def get_grant(self, grant_id: int) -> Grant:
        return self.registry.get(grant_id)

    def list_grants_of(self, recipient: str) -> List[int]:
        return self.registry.list_grants_of(recipient)

    def add_observer(self, observer: Observer) -> None:
        self.observers.add(observer)

    @property
    def admin(self) -> str:
        return self.authority.admin

    def summary(self) -> Dict[str, Any]:
        """Totals across the registry."""
        with self._lock:
            grants = self.registry.grants()
            active = [g for g in grants if not g.is_removed]
            return {
                "grants":         len(grants),
                "active":         len(active),
                "removed":        len(grants) - len(active),
                "total_granted":  sum(g.amount for g in active),
                "total_claimed":  sum(g.total_claimed for g in active),
                "outstanding":    sum(g.remaining for g in active),
                "pooled":         self.registry.pooled_balance,
                "allocated_pct":  self.catalog.total_percent(),
                "next_id":        self.registry.next_id,
                "admin":          self.authority.admin,
            }
