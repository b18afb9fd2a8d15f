"""
grantledger/core/time.py

Time sources for the ledger.

Vesting math never reads the wall clock. The service asks an injected
Clock for "now" (integer seconds since epoch) and passes it down, so the
claim engine stays pure and tests can move time by hand.

journal_timestamp() is the only wall-clock string used by the audit
journal. Format: YYYY-MM-DDTHH:MM:SS.mmmZ
"""

import time
from datetime import datetime, timezone

from grantledger.core.models import SECONDS_PER_DAY


class Clock:
    """Source of the current instant, in integer seconds since epoch."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """
    Clock moved by hand. Refuses to go backwards.

        clock = ManualClock(start=1_700_000_000)
        clock.advance_days(40)
    """

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, instant: int) -> None:
        instant = int(instant)
        if instant < self._now:
            raise ValueError(
                f"ManualClock cannot move backwards: {instant} < {self._now}"
            )
        self._now = instant

    def advance(self, seconds: int) -> int:
        self.set(self._now + int(seconds))
        return self._now

    def advance_days(self, days: int) -> int:
        return self.advance(days * SECONDS_PER_DAY)


def journal_timestamp() -> str:
    """
    Return current UTC time in journal wire format.
    Format: YYYY-MM-DDTHH:MM:SS.mmmZ  (exactly 3 fractional digits, Z suffix)
    """
    now = datetime.now(timezone.utc)
    ms  = now.microsecond // 1000
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms:03d}Z"
