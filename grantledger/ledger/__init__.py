"""
grantledger Ledger - vesting catalog and grant registry

The registry is the source of truth for every grant and its counters.
"""

from grantledger.ledger.catalog import VestingScheduleCatalog
from grantledger.ledger.registry import GrantRegistry

__all__ = ["VestingScheduleCatalog", "GrantRegistry"]
