"""
Claim engine: how much of a grant is vested at a given instant.

Pure functions over a Grant snapshot and an integer "now". No clock reads,
no mutation, no I/O. Safe to call at any time, including after full
vesting or after removal.

Rounding policy lives in amount_per_day() and nowhere else: the daily
rate is floor-divided, so every mid-vesting claim under-pays by a little.
The full-vesting branch pays amount - total_claimed, which absorbs all of
that residue in the final claim.
"""

from typing import Iterable, List, Tuple

from grantledger.core.models import (
    ClaimResult,
    DAYS_PER_MONTH,
    Grant,
    GrantPhase,
    SECONDS_PER_DAY,
)


def amount_per_day(amount: int, duration_days: int) -> int:
    """Daily vesting rate, truncated toward zero."""
    if duration_days <= 0:
        raise ValueError(f"duration_days must be positive, got {duration_days}")
    return amount // duration_days


def elapsed_days(grant: Grant, now: int) -> int:
    """Whole days since start_time; zero before the grant starts."""
    if now < grant.start_time:
        return 0
    return (now - grant.start_time) // SECONDS_PER_DAY


def calculate_claim(grant: Grant, now: int) -> ClaimResult:
    """
    Compute (days_vested, amount_vested) for grant at now.

    Before start:         (0, 0)
    Before cliff:         (elapsed_days, 0)   days reported, nothing claimable
    At/after duration:    (duration_months, amount - total_claimed)
    Mid-vesting:          (new_days, new_days * amount_per_day)
                          where new_days = elapsed_days - days_claimed
    """
    if now < grant.start_time:
        return ClaimResult(0, 0)

    days = elapsed_days(grant, now)

    cliff_days = grant.cliff_months * DAYS_PER_MONTH
    if days < cliff_days:
        return ClaimResult(days, 0)

    duration_days = grant.duration_months * DAYS_PER_MONTH
    if days >= duration_days:
        return ClaimResult(grant.duration_months, grant.amount - grant.total_claimed)

    # now is only ever fed forward, but a stale instant must not go negative
    time_vested = max(0, days - grant.days_claimed)
    return ClaimResult(time_vested, time_vested * amount_per_day(grant.amount, duration_days))


def phase(grant: Grant, now: int) -> GrantPhase:
    """Position of grant on its vesting timeline at now."""
    if grant.is_removed:
        return GrantPhase.REMOVED
    if now < grant.start_time:
        return GrantPhase.PENDING
    days = elapsed_days(grant, now)
    if days < grant.cliff_days:
        return GrantPhase.BEFORE_CLIFF
    if days < grant.duration_days:
        return GrantPhase.VESTING
    return GrantPhase.FULLY_VESTED


def vesting_projection(grant: Grant, instants: Iterable[int]) -> List[Tuple[int, ClaimResult]]:
    """
    Replay claims at each instant on a private copy of grant.

    Each step claims whatever is vested at that instant and books it the
    way the claim processor would, so the amounts add up to exactly what
    a recipient claiming on that cadence would receive.
    """
    projected = Grant.from_dict(grant.to_dict())
    steps: List[Tuple[int, ClaimResult]] = []
    for now in instants:
        result = calculate_claim(projected, now)
        if result.amount_vested > 0:
            apply_claim(projected, result)
        steps.append((now, result))
    return steps


def apply_claim(grant: Grant, result: ClaimResult) -> None:
    """
    Book a claim on grant in place: both counters move together.

    The full-vesting branch reports whole months rather than days, so once
    the whole amount is paid days_claimed is set to the grant's duration in
    days. Before that it never passes the duration either.
    """
    grant.total_claimed += result.amount_vested
    if grant.total_claimed >= grant.amount:
        grant.days_claimed = grant.duration_days
    else:
        grant.days_claimed = min(grant.days_claimed + result.days_vested, grant.duration_days)


class ClaimEngine:
    """Object face of the module functions, for injection into processors."""

    amount_per_day = staticmethod(amount_per_day)
    calculate_claim = staticmethod(calculate_claim)
    phase = staticmethod(phase)
    vesting_projection = staticmethod(vesting_projection)
