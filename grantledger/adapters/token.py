"""
Token transfer collaborator.

The ledger only needs two calls, both made from its own custody account:

    transfer(to, amount)              -> bool
    transfer_from(source, to, amount) -> bool

A falsy return or a raised exception is treated as a failed transfer.
InMemoryToken is the reference book used by tests and examples.
"""

from typing import Dict, Tuple


class TokenTransfer:
    """Transfer capability bound to one holder (the ledger's custody)."""

    def transfer(self, to: str, amount: int) -> bool:
        raise NotImplementedError

    def transfer_from(self, source: str, to: str, amount: int) -> bool:
        raise NotImplementedError


class InMemoryToken:
    """
    Minimal fungible token book with balances and allowances.

        token = InMemoryToken("0xtoken")
        token.mint("0xtreasury", 1_000_000)
        token.approve("0xtreasury", "0xledger", 1_000_000)
        custody = token.bind("0xledger")
    """

    def __init__(self, identity: str):
        self.identity = identity
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, holder: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("mint amount must be positive")
        self.balances[holder] = self.balance_of(holder) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("allowance cannot be negative")
        self.allowances[(owner, spender)] = amount

    def move(self, source: str, to: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(source) < amount:
            return False
        self.balances[source] = self.balance_of(source) - amount
        self.balances[to] = self.balance_of(to) + amount
        return True

    def bind(self, holder: str) -> "BoundToken":
        return BoundToken(self, holder)


class BoundToken(TokenTransfer):
    """InMemoryToken seen from one holder's account."""

    def __init__(self, token: InMemoryToken, holder: str):
        self.token = token
        self.holder = holder

    def transfer(self, to: str, amount: int) -> bool:
        return self.token.move(self.holder, to, amount)

    def transfer_from(self, source: str, to: str, amount: int) -> bool:
        allowed = self.token.allowance(source, self.holder)
        if allowed < amount:
            return False
        if not self.token.move(source, to, amount):
            return False
        self.token.allowances[(source, self.holder)] = allowed - amount
        return True
