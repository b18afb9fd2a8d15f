"""
grantledger Adapters - external collaborators the ledger calls out to.
"""

from grantledger.adapters.token import BoundToken, InMemoryToken, TokenTransfer

__all__ = ["TokenTransfer", "InMemoryToken", "BoundToken"]
