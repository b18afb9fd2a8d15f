"""
grantledger Runtime - the ledger service and its configured context.
"""

from grantledger.runtime.config import LedgerConfig, load_config
from grantledger.runtime.context import RuntimeContext
from grantledger.runtime.service import VestingLedger

__all__ = [
    "LedgerConfig",
    "load_config",
    "RuntimeContext",
    "VestingLedger",
]
