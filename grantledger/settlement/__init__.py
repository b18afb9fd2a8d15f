"""
grantledger Settlement

Turns elapsed time into payouts:
- ClaimEngine computes what is vested (pure)
- ClaimProcessor books and pays a claim
- GrantTermination settles and closes a grant early

Critical Invariants:
- Counters move before the token is called, and move back if it fails
- total_claimed never exceeds amount
- Full vesting pays exactly the remainder, so no rounding dust is lost
"""

from grantledger.settlement.engine import ClaimEngine, calculate_claim
from grantledger.settlement.processor import ClaimProcessor
from grantledger.settlement.termination import GrantTermination

__all__ = ["ClaimEngine", "calculate_claim", "ClaimProcessor", "GrantTermination"]
