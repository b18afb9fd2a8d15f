"""
Grant registry.

Durable table of grants keyed by sequential id, plus a per-recipient index
of grant ids in creation order. No entry is ever hard-deleted and ids are
never recycled; removed grants stay in the table tagged REMOVED.

Batch creation is all-or-nothing:
    1. Validate every entry              - no mutation yet
    2. Insert every grant                - effects before the external call,
                                           new ids held in flight until funded
    3. Debit the batch total in ONE transfer_from(treasury, custody, total)
    4. Transfer failed → rewind ids, index and pool, raise TransferFailed
    5. Notify observers                  - only after a confirmed debit
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional, Sequence, Set

from grantledger.adapters.token import TokenTransfer
from grantledger.core.exceptions import (
    AmountNonPositive,
    BatchTooLarge,
    GrantNotFound,
    InvalidSchedule,
    LengthMismatch,
    ReentrantOperation,
    TransferFailed,
)
from grantledger.core.models import Grant
from grantledger.core.observers import ObserverSet
from grantledger.ledger.catalog import VestingScheduleCatalog, resolve_group_name
from grantledger.policy.authority import AdminAuthority


logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 20


class GrantRegistry:
    """
    Grant table, recipient index and custody pool.

    Args:
        catalog:        source of vesting group parameters
        authority:      admin / address checks
        token:          transfer capability bound to the ledger's custody
        treasury:       identity debited when grants are funded
        observers:      receives grant_created notifications
        max_batch_size: entries allowed per create_grants call, None = unbounded
    """

    def __init__(
        self,
        catalog: VestingScheduleCatalog,
        authority: AdminAuthority,
        token: TokenTransfer,
        treasury: str,
        observers: Optional[ObserverSet] = None,
        max_batch_size: Optional[int] = DEFAULT_MAX_BATCH_SIZE,
    ):
        self.catalog = catalog
        self.authority = authority
        self.token = token
        self.treasury = treasury
        self.observers = observers if observers is not None else ObserverSet()
        self.max_batch_size = max_batch_size

        self._grants: Dict[int, Grant] = {}
        self._by_recipient: Dict[str, List[int]] = {}
        self._next_id = 1
        self._pooled = 0
        self._creating = False
        self._in_flight: Set[int] = set()

    # ── Creation ──────────────────────────────────────────────

    def create_grants(
        self,
        caller: str,
        recipients: Sequence[str],
        group_names: Sequence[str],
        start_times: Sequence[int],
        amounts: Sequence[int],
        now: int,
    ) -> List[int]:
        """
        Create a batch of grants. Returns the new ids in input order.

        Any failing entry aborts the whole batch with nothing created.
        """
        self.authority.require(caller)

        lengths = {len(recipients), len(group_names), len(start_times), len(amounts)}
        if len(lengths) != 1:
            raise LengthMismatch(
                "Batch inputs must have equal lengths",
                {
                    "recipients": len(recipients),
                    "group_names": len(group_names),
                    "start_times": len(start_times),
                    "amounts": len(amounts),
                },
            )
        size = len(recipients)
        if self.max_batch_size is not None and size > self.max_batch_size:
            raise BatchTooLarge(
                "Batch exceeds maximum size",
                {"size": size, "max_batch_size": self.max_batch_size},
            )
        if self._creating:
            raise ReentrantOperation("create_grants re-entered during funding")

        pending = [
            self._prepare(index, recipient, group_name, start_time, amount, now)
            for index, (recipient, group_name, start_time, amount)
            in enumerate(zip(recipients, group_names, start_times, amounts))
        ]
        if not pending:
            return []

        checkpoint = self._next_id
        pool_before = self._pooled
        created: List[Grant] = []
        self._creating = True
        try:
            for grant in pending:
                created.append(self._insert(grant))
                # unfunded until the debit lands
                self._in_flight.add(grant.grant_id)

            total = sum(g.amount for g in created)
            from_pool = min(self._pooled, total)
            self._pooled -= from_pool
            debit = total - from_pool
            if debit > 0:
                self._debit_treasury(debit)
        except BaseException:
            self._rewind(checkpoint, pool_before)
            raise
        finally:
            self._in_flight.difference_update(g.grant_id for g in created)
            self._creating = False

        logger.info(
            "Created %s grants (ids %s-%s), total=%s, from_pool=%s",
            len(created), created[0].grant_id, created[-1].grant_id, total, from_pool,
        )
        for grant in created:
            self.observers.grant_created(grant.grant_id, grant.recipient)
        return [g.grant_id for g in created]

    def _prepare(
        self,
        index: int,
        recipient: str,
        group_name: str,
        start_time: int,
        amount: int,
        now: int,
    ) -> Grant:
        self.authority.validate_address(recipient)

        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError(
                f"amount must be int, got {type(amount).__name__} at index {index}"
            )
        if amount <= 0:
            raise AmountNonPositive(
                "Grant amount must be positive", {"index": index, "amount": amount}
            )
        if not isinstance(start_time, int) or start_time < 0:
            raise InvalidSchedule(
                "start_time must be a non-negative integer",
                {"index": index, "start_time": start_time},
            )

        group_key = resolve_group_name(group_name)
        group = self.catalog.get(group_key)

        return Grant(
            grant_id=0,
            recipient=recipient,
            start_time=start_time or now,
            amount=amount,
            duration_months=group.duration_months,
            cliff_months=group.cliff_months,
            group=group_key.value,
        )

    def _insert(self, grant: Grant) -> Grant:
        grant.grant_id = self._next_id
        self._next_id += 1
        self._grants[grant.grant_id] = grant
        self._by_recipient.setdefault(grant.recipient, []).append(grant.grant_id)
        return grant

    def _rewind(self, checkpoint: int, pool_before: int) -> None:
        for grant_id in range(self._next_id - 1, checkpoint - 1, -1):
            grant = self._grants.pop(grant_id)
            ids = self._by_recipient[grant.recipient]
            ids.pop()
            if not ids:
                del self._by_recipient[grant.recipient]
        self._next_id = checkpoint
        self._pooled = pool_before

    def _debit_treasury(self, amount: int) -> None:
        custody = self.authority.ledger_identity
        try:
            ok = self.token.transfer_from(self.treasury, custody, amount)
        except Exception as exc:
            logger.warning("Treasury debit of %s raised: %s", amount, exc)
            raise TransferFailed(
                "Treasury debit failed",
                {"treasury": self.treasury, "amount": amount},
            ) from exc
        if not ok:
            logger.warning("Treasury debit of %s rejected", amount)
            raise TransferFailed(
                "Treasury debit rejected",
                {"treasury": self.treasury, "amount": amount},
            )

    # ── Reads ─────────────────────────────────────────────────

    def get(self, grant_id: int) -> Grant:
        """Return a copy of the grant. Raises GrantNotFound for unissued ids."""
        return replace(self.slot(grant_id))

    def list_grants_of(self, recipient: str) -> List[int]:
        return list(self._by_recipient.get(recipient, ()))

    def grants(self) -> List[Grant]:
        return [replace(g) for g in self._grants.values()]

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def pooled_balance(self) -> int:
        """Unvested tokens retained in custody, spent first by create_grants."""
        return self._pooled

    def __len__(self) -> int:
        return len(self._grants)

    def __contains__(self, grant_id: object) -> bool:
        return grant_id in self._grants

    # ── Mutation hooks for claim / termination ────────────────

    def slot(self, grant_id: int) -> Grant:
        """The live stored grant. Callers outside settlement use get()."""
        grant = self._grants.get(grant_id)
        if grant is None:
            raise GrantNotFound(f"Grant {grant_id} does not exist", {"grant_id": grant_id})
        return grant

    def restore(self, snapshot: Grant) -> None:
        """Put a previously copied grant back in its slot."""
        self._grants[snapshot.grant_id] = snapshot

    def add_to_pool(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("pooled amount cannot be negative")
        self._pooled += amount

    @contextmanager
    def hold(self, grant_id: int) -> Iterator[Grant]:
        """
        Mark a grant in flight while its payout is pending.

        A second hold on the same grant (a re-entrant call from the token
        collaborator) raises ReentrantOperation.
        """
        if grant_id in self._in_flight:
            logger.warning("Re-entrant operation on grant %s rejected", grant_id)
            raise ReentrantOperation(
                f"Grant {grant_id} has a payout in flight", {"grant_id": grant_id}
            )
        grant = self.slot(grant_id)
        self._in_flight.add(grant_id)
        try:
            yield grant
        finally:
            self._in_flight.discard(grant_id)
