"""
grantledger/core/journal.py

Audit Journal - signed, hash-chained JSONL of ledger notifications.

append() MUST, in this exact order:
  1. Acquire lock
  2. Build JournalRecord.create(event, sequence, prev=last_record)
  3. Sign it
  4. Append to JSONL file
  5. Advance internal state   - only after confirmed write
  6. Return signed record

Chain rule:
    causal_hash = SHA-256(JCS(prev.to_signing_dict()))
    first record = GENESIS_HASH ("0" * 64)
"""

import json
import threading
import uuid
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from grantledger.core.canonical import canonical_hash, canonicalize
from grantledger.core.crypto import Ed25519KeyManager
from grantledger.core.exceptions import JournalError
from grantledger.core.observers import LedgerEvent, Observer
from grantledger.core.time import journal_timestamp


JOURNAL_VERSION = "1"
GENESIS_HASH    = "0" * 64
JOURNAL_FILE    = "journal.jsonl"


# ─────────────────────────────────────────────────────────────
# JournalRecord
# ─────────────────────────────────────────────────────────────

@dataclass
class JournalRecord:
    """One line of the audit journal."""

    journal_version:   str
    record_id:         str
    sequence:          int
    timestamp:         str
    signer_public_key: str
    causal_hash:       str
    event:             Dict[str, Any]
    signature:         Optional[str] = None

    @classmethod
    def create(
        cls,
        event:             LedgerEvent,
        sequence:          int,
        signer_public_key: str,
        prev:              Optional["JournalRecord"] = None,
    ) -> "JournalRecord":
        if not isinstance(sequence, int) or sequence < 0:
            raise ValueError(f"sequence must be non-negative int, got {sequence!r}")
        return cls(
            journal_version=   JOURNAL_VERSION,
            record_id=         f"rec-{uuid.uuid4()}",
            sequence=          sequence,
            timestamp=         journal_timestamp(),
            signer_public_key= signer_public_key,
            causal_hash=       cls.expected_causal_hash(prev),
            event=             event.to_dict(),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalRecord":
        return cls(
            journal_version=   data["journal_version"],
            record_id=         data["record_id"],
            sequence=          data["sequence"],
            timestamp=         data["timestamp"],
            signer_public_key= data["signer_public_key"],
            causal_hash=       data["causal_hash"],
            event=             data.get("event", {}),
            signature=         data.get("signature"),
        )

    def to_signing_dict(self) -> Dict[str, Any]:
        """Every field except the signature. Also what the next record chains to."""
        return {
            "causal_hash":       self.causal_hash,
            "event":             self.event,
            "journal_version":   self.journal_version,
            "record_id":         self.record_id,
            "sequence":          self.sequence,
            "signer_public_key": self.signer_public_key,
            "timestamp":         self.timestamp,
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_signing_dict().copy()
        d["signature"] = self.signature
        return d

    @staticmethod
    def expected_causal_hash(prev: Optional["JournalRecord"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return canonical_hash(prev.to_signing_dict())

    def sign(self, key_manager: Ed25519KeyManager) -> "JournalRecord":
        self.signature = key_manager.sign(canonicalize(self.to_signing_dict()))
        return self

    def verify_signature(self) -> bool:
        if not self.signature:
            return False
        return Ed25519KeyManager.verify_detached(
            canonicalize(self.to_signing_dict()),
            self.signature,
            self.signer_public_key,
        )

    def verify_chain(self, prev: Optional["JournalRecord"]) -> bool:
        return self.causal_hash == self.expected_causal_hash(prev)

    @property
    def ledger_event(self) -> LedgerEvent:
        return LedgerEvent.from_dict(self.event)


# ─────────────────────────────────────────────────────────────
# Verification report
# ─────────────────────────────────────────────────────────────

@dataclass
class JournalViolation:
    """A single detected violation in a journal file."""
    at_sequence:    int
    record_id:      str
    violation_type: str   # "sequence_gap" | "chain_break" | "invalid_signature"
    detail:         str


@dataclass
class JournalReport:
    """Result of verify_journal()."""
    total_records: int = 0
    violations:    List[JournalViolation] = field(default_factory=list)
    event_counts:  Dict[str, int] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid":         self.valid,
            "total_records": self.total_records,
            "event_counts":  dict(self.event_counts),
            "violations": [
                {
                    "at_sequence":    v.at_sequence,
                    "record_id":      v.record_id,
                    "violation_type": v.violation_type,
                    "detail":         v.detail,
                }
                for v in self.violations
            ],
        }


def iter_records(path: Union[str, Path]) -> Iterator[JournalRecord]:
    """
    Yield records from a JSONL journal file.
    Raises JournalError on malformed lines.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield JournalRecord.from_dict(json.loads(line))
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                raise JournalError(
                    f"Malformed journal record at line {line_num}",
                    {"path": str(path), "error": exc},
                ) from exc


def verify_journal(path: Union[str, Path]) -> JournalReport:
    """Check sequence, chain linkage and signatures of every record."""
    report = JournalReport()
    prev: Optional[JournalRecord] = None

    for i, record in enumerate(iter_records(path)):
        report.total_records += 1
        event_type = record.event.get("event_type", "unknown")
        report.event_counts[event_type] = report.event_counts.get(event_type, 0) + 1

        if record.sequence != i:
            report.violations.append(JournalViolation(
                i, record.record_id, "sequence_gap",
                f"expected sequence {i}, got {record.sequence}",
            ))
        if not record.verify_chain(prev):
            report.violations.append(JournalViolation(
                record.sequence, record.record_id, "chain_break",
                "causal_hash does not match previous record",
            ))
        if not record.verify_signature():
            report.violations.append(JournalViolation(
                record.sequence, record.record_id, "invalid_signature",
                "signature does not verify",
            ))
        prev = record

    return report


# ─────────────────────────────────────────────────────────────
# EventJournal
# ─────────────────────────────────────────────────────────────

class EventJournal:
    """
    Append-only signed journal.

    Thread-safe via internal lock (single-process only).
    State survives process restart by reading the last line on __init__.
    """

    def __init__(
        self,
        key_manager:  Ed25519KeyManager,
        journal_path: Union[str, Path] = ".grantledger",
    ) -> None:
        self.key_manager = key_manager

        self._lock:        threading.Lock          = threading.Lock()
        self._sequence:    int                     = 0
        self._last_record: Optional[JournalRecord] = None

        self._journal_dir  = Path(journal_path)
        self._journal_dir.mkdir(parents=True, exist_ok=True)
        self._journal_file = self._journal_dir / JOURNAL_FILE

        self._restore_state()

    @property
    def path(self) -> Path:
        return self._journal_file

    def append(self, event: LedgerEvent) -> JournalRecord:
        """
        Append one signed record for event.
        Raises JournalError on write failure; state does not advance then.
        """
        with self._lock:
            record = JournalRecord.create(
                event=             event,
                sequence=          self._sequence,
                signer_public_key= self.key_manager.public_key_hex,
                prev=              self._last_record,
            ).sign(self.key_manager)

            try:
                with open(self._journal_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record.to_dict()) + "\n")
            except OSError as exc:
                raise JournalError(
                    "Journal write failed", {"path": str(self._journal_file)}
                ) from exc

            self._sequence    += 1
            self._last_record  = record
            return record

    def verify_chain(self) -> bool:
        if not self._journal_file.exists():
            return True
        try:
            return verify_journal(self._journal_file).valid
        except JournalError:
            return False

    def records(self) -> List[JournalRecord]:
        if not self._journal_file.exists():
            return []
        return list(iter_records(self._journal_file))

    def get_stats(self) -> Dict[str, Any]:
        return {
            "next_sequence":    self._sequence,
            "last_record_id":   self._last_record.record_id if self._last_record else None,
            "journal_file":     str(self._journal_file),
            "journal_version":  JOURNAL_VERSION,
        }

    def _restore_state(self) -> None:
        """
        Restore sequence and last record from an existing journal.
        A corrupted last line leaves state at genesis and warns.
        """
        if not self._journal_file.exists():
            return

        last_line = None
        with open(self._journal_file, "r", encoding="utf-8") as f:
            for line in f:
                stripped = line.strip()
                if stripped:
                    last_line = stripped

        if not last_line:
            return

        try:
            record = JournalRecord.from_dict(json.loads(last_line))
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            warnings.warn(
                f"EventJournal: could not restore state from {self._journal_file}: {exc}. "
                "Last line may be corrupted. Run `grantledger verify` before appending.",
                RuntimeWarning,
                stacklevel=3,
            )
            return

        self._sequence    = record.sequence + 1
        self._last_record = record


class JournalObserver(Observer):
    """Writes every ledger notification to an EventJournal."""

    def __init__(self, journal: EventJournal, observer_id: str = "journal"):
        super().__init__(observer_id)
        self.journal = journal

    def observe(self, event: LedgerEvent) -> None:
        self.journal.append(event)
