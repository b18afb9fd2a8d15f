"""
Grant termination: early exit for an active grant.

remove() settles the vested part with the recipient, disposes of the
unvested part according to UnvestedPolicy, and zeroes the grant in place.

Order:
  1. Hold the grant, compute (days_vested, amount_vested) at now
  2. Soft-delete the grant                 - effects before external calls
  3. Pay amount_vested to the recipient    - failure restores the grant
  4. RETURN: pay amount_not_vested to the treasury
     RETAIN: add amount_not_vested to the registry pool
  5. Notify observers

If step 4 fails after step 3 paid out, the recipient really holds the
vested tokens: the grant is restored to ACTIVE with that payout booked as
a claim, and TransferFailed is raised.
"""

import logging
from dataclasses import replace
from typing import Optional

from grantledger.core.exceptions import GrantRemoved, TransferFailed
from grantledger.core.models import RemovalResult, UnvestedPolicy
from grantledger.core.observers import ObserverSet
from grantledger.ledger.registry import GrantRegistry
from grantledger.settlement.engine import ClaimEngine, apply_claim
from grantledger.settlement.processor import pay


logger = logging.getLogger(__name__)


class GrantTermination:
    """Privileged early closure of grants."""

    def __init__(
        self,
        registry: GrantRegistry,
        policy: UnvestedPolicy = UnvestedPolicy.RETURN,
        engine: Optional[ClaimEngine] = None,
        observers: Optional[ObserverSet] = None,
    ):
        self.registry = registry
        self.policy = policy
        self.engine = engine or ClaimEngine()
        self.observers = observers if observers is not None else registry.observers

    def remove(self, caller: str, grant_id: int, now: int) -> RemovalResult:
        """
        Terminate grant_id at now.

        Removing an already removed grant raises GrantRemoved.
        """
        self.registry.authority.require(caller)

        with self.registry.hold(grant_id) as grant:
            if grant.is_removed:
                raise GrantRemoved(
                    f"Grant {grant_id} was already removed", {"grant_id": grant_id}
                )

            result = self.engine.calculate_claim(grant, now)
            amount_vested = result.amount_vested
            amount_not_vested = grant.remaining - amount_vested
            recipient = grant.recipient
            snapshot = replace(grant)

            grant.mark_removed()

            if amount_vested > 0:
                try:
                    pay(self.registry.token, recipient, amount_vested, {"grant_id": grant_id})
                except TransferFailed:
                    self.registry.restore(snapshot)
                    raise

            try:
                self._dispose(amount_not_vested, grant_id)
            except TransferFailed:
                settled = replace(snapshot)
                if amount_vested > 0:
                    apply_claim(settled, result)
                self.registry.restore(settled)
                logger.warning(
                    "Grant %s: unvested return failed after paying %s to %s; "
                    "kept active with the payout booked as a claim",
                    grant_id, amount_vested, recipient,
                )
                raise

        logger.info(
            "Grant %s removed: vested=%s paid to %s, not_vested=%s (%s)",
            grant_id, amount_vested, recipient, amount_not_vested, self.policy.value,
        )
        self.observers.grant_removed(grant_id, recipient, amount_vested, amount_not_vested)
        return RemovalResult(
            grant_id=grant_id,
            recipient=recipient,
            amount_vested=amount_vested,
            amount_not_vested=amount_not_vested,
            policy=self.policy,
            removed_at=now,
        )

    def _dispose(self, amount_not_vested: int, grant_id: int) -> None:
        if amount_not_vested <= 0:
            return
        if self.policy is UnvestedPolicy.RETURN:
            pay(self.registry.token, self.registry.treasury, amount_not_vested,
                {"grant_id": grant_id, "disposition": "return"})
        else:
            self.registry.add_to_pool(amount_not_vested)
