"""
Claim processor: pays out the vested, unpaid part of a grant.

claim() MUST, in this exact order:
  1. Hold the grant         - rejects re-entrant calls on the same grant
  2. Compute the claim      - ClaimEngine, read-only
  3. Book both counters     - effects before the external call
  4. transfer(recipient)    - failure restores the counters
  5. Notify observers       - only after a confirmed payout
"""

import logging
from dataclasses import replace
from typing import Optional

from grantledger.core.exceptions import GrantRemoved, TransferFailed, ZeroVestedAmount
from grantledger.core.models import ClaimReceipt, ClaimResult
from grantledger.core.observers import ObserverSet
from grantledger.ledger.registry import GrantRegistry
from grantledger.settlement.engine import ClaimEngine, apply_claim


logger = logging.getLogger(__name__)


def pay(token, to: str, amount: int, context: dict) -> None:
    """Run one payout through the token collaborator or raise TransferFailed."""
    try:
        ok = token.transfer(to, amount)
    except Exception as exc:
        logger.warning("Payout of %s to %s raised: %s", amount, to, exc)
        raise TransferFailed("Token transfer failed", {"to": to, "amount": amount, **context}) from exc
    if not ok:
        logger.warning("Payout of %s to %s rejected", amount, to)
        raise TransferFailed("Token transfer rejected", {"to": to, "amount": amount, **context})


class ClaimProcessor:
    """Applies ClaimEngine results to stored grants and triggers payouts."""

    def __init__(
        self,
        registry: GrantRegistry,
        engine: Optional[ClaimEngine] = None,
        observers: Optional[ObserverSet] = None,
    ):
        self.registry = registry
        self.engine = engine or ClaimEngine()
        self.observers = observers if observers is not None else registry.observers

    def claim(self, grant_id: int, now: int) -> ClaimReceipt:
        with self.registry.hold(grant_id) as grant:
            if grant.is_removed:
                raise GrantRemoved(f"Grant {grant_id} was removed", {"grant_id": grant_id})

            result: ClaimResult = self.engine.calculate_claim(grant, now)
            if result.amount_vested == 0:
                raise ZeroVestedAmount(
                    "Nothing vested to claim",
                    {"grant_id": grant_id, "days_vested": result.days_vested},
                )

            snapshot = replace(grant)
            apply_claim(grant, result)
            try:
                pay(self.registry.token, grant.recipient, result.amount_vested,
                    {"grant_id": grant_id})
            except TransferFailed:
                self.registry.restore(snapshot)
                raise

            recipient = grant.recipient

        logger.info(
            "Grant %s claimed %s for %s days by %s",
            grant_id, result.amount_vested, result.days_vested, recipient,
        )
        self.observers.claim_processed(
            grant_id, recipient, result.days_vested, result.amount_vested
        )
        return ClaimReceipt(
            grant_id=grant_id,
            recipient=recipient,
            days_vested=result.days_vested,
            amount_vested=result.amount_vested,
            claimed_at=now,
        )
