"""
grantledger/core/observers.py

Ledger notifications.

Every state change the ledger commits is reported exactly once, after the
token collaborator has confirmed the payout. Failed operations report
nothing. An observer that raises is logged and does not undo the
operation.
"""

import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from grantledger.core.time import journal_timestamp


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of ledger notifications."""
    GRANT_CREATED   = "grant_created"
    CLAIM_PROCESSED = "claim_processed"
    GRANT_REMOVED   = "grant_removed"
    ADMIN_CHANGED   = "admin_changed"


@dataclass
class LedgerEvent:
    """One notification emitted by the ledger."""
    event_type: EventType
    subject:    Optional[str]
    grant_id:   Optional[int] = None
    data:       Dict[str, Any] = field(default_factory=dict)
    event_id:   str = field(default_factory=lambda: f"event-{secrets.token_hex(12)}")
    timestamp:  str = field(default_factory=journal_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id":   self.event_id,
            "event_type": self.event_type.value,
            "subject":    self.subject,
            "grant_id":   self.grant_id,
            "data":       dict(self.data),
            "timestamp":  self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEvent":
        return cls(
            event_type= EventType(data["event_type"]),
            subject=    data.get("subject"),
            grant_id=   data.get("grant_id"),
            data=       data.get("data", {}),
            event_id=   data["event_id"],
            timestamp=  data["timestamp"],
        )


class Observer:
    """
    Observer base class.

    Override observe() to receive every event, or the on_* hooks to
    shape events differently. Default observe() does nothing.
    """

    def __init__(self, observer_id: str):
        self.observer_id = observer_id

    def observe(self, event: LedgerEvent) -> None:
        pass

    def on_grant_created(self, grant_id: int, recipient: str) -> None:
        self.observe(LedgerEvent(
            event_type=EventType.GRANT_CREATED,
            subject=recipient,
            grant_id=grant_id,
        ))

    def on_claim_processed(
        self,
        grant_id: int,
        recipient: str,
        days_vested: int,
        amount_vested: int,
    ) -> None:
        self.observe(LedgerEvent(
            event_type=EventType.CLAIM_PROCESSED,
            subject=recipient,
            grant_id=grant_id,
            data={
                "days_vested": days_vested,
                "amount_vested": amount_vested,
            },
        ))

    def on_grant_removed(
        self,
        grant_id: int,
        recipient: str,
        amount_vested: int,
        amount_not_vested: int,
    ) -> None:
        self.observe(LedgerEvent(
            event_type=EventType.GRANT_REMOVED,
            subject=recipient,
            grant_id=grant_id,
            data={
                "amount_vested": amount_vested,
                "amount_not_vested": amount_not_vested,
            },
        ))

    def on_admin_changed(self, old_admin: str, new_admin: str) -> None:
        self.observe(LedgerEvent(
            event_type=EventType.ADMIN_CHANGED,
            subject=new_admin,
            data={"old_admin": old_admin, "new_admin": new_admin},
        ))


class RecordingObserver(Observer):
    """Keeps every event in memory. Useful for tests and dashboards."""

    def __init__(self, observer_id: str = "recorder"):
        super().__init__(observer_id)
        self.events: List[LedgerEvent] = []

    def observe(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> List[LedgerEvent]:
        return [e for e in self.events if e.event_type is event_type]


class ObserverSet:
    """
    Fan-out to every registered observer.

    By the time observers run the operation has committed and tokens have
    moved, so an observer that raises is logged and skipped. The caller
    still gets its result and the remaining observers still run.
    """

    def __init__(self, observers: Iterable[Observer] = ()):
        self._observers: List[Observer] = list(observers)

    def add(self, observer: Observer) -> None:
        self._observers.append(observer)

    def __len__(self) -> int:
        return len(self._observers)

    def _notify(self, hook: str, *args: Any) -> None:
        for observer in self._observers:
            try:
                getattr(observer, hook)(*args)
            except Exception:
                logger.exception(
                    "Observer %s failed in %s%r",
                    getattr(observer, "observer_id", observer), hook, args,
                )

    def grant_created(self, grant_id: int, recipient: str) -> None:
        self._notify("on_grant_created", grant_id, recipient)

    def claim_processed(
        self, grant_id: int, recipient: str, days_vested: int, amount_vested: int
    ) -> None:
        self._notify("on_claim_processed", grant_id, recipient, days_vested, amount_vested)

    def grant_removed(
        self, grant_id: int, recipient: str, amount_vested: int, amount_not_vested: int
    ) -> None:
        self._notify("on_grant_removed", grant_id, recipient, amount_vested, amount_not_vested)

    def admin_changed(self, old_admin: str, new_admin: str) -> None:
        self._notify("on_admin_changed", old_admin, new_admin)
