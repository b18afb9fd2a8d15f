"""
grantledger: Basic Usage Example

Demonstrates:
- In-memory token with a funded treasury
- Vesting group setup
- Batch grant creation
- Claims over a manual clock
- Early removal
"""

from grantledger import InMemoryToken, ManualClock, RecordingObserver, VestingLedger
from grantledger.core.exceptions import ZeroVestedAmount


ADMIN    = "0xadmin"
TREASURY = "0xtreasury"
LEDGER   = "0xledger"
TOKEN    = "0xtoken"


def main():
    """Basic grantledger usage."""

    print("=" * 60)
    print("grantledger: Basic Usage Example")
    print("=" * 60)
    print()

    # 1. Token book and treasury allowance
    print("1. Funding the treasury...")
    token = InMemoryToken(TOKEN)
    token.mint(TREASURY, 1_000_000)
    token.approve(TREASURY, LEDGER, 1_000_000)
    print(f"  treasury balance: {token.balance_of(TREASURY)}")
    print()

    # 2. Ledger with a manual clock
    print("2. Creating the ledger...")
    clock = ManualClock(start=1_700_000_000)
    recorder = RecordingObserver()
    ledger = VestingLedger(
        admin=ADMIN,
        treasury=TREASURY,
        ledger_identity=LEDGER,
        token_identity=TOKEN,
        token=token.bind(LEDGER),
        clock=clock,
        observers=[recorder],
    )
    ledger.set_group_parameters(ADMIN, "TEAM", 10, 1, 15)
    ledger.set_group_parameters(ADMIN, "ADVISORS", 12, 3, 5)
    print("  groups: TEAM (10 months, 1 month cliff), ADVISORS (12, 3)")
    print()

    # 3. One batch, one treasury debit
    print("3. Creating grants...")
    alice, bob = ledger.create_grants(
        ADMIN,
        ["0xalice", "0xbob"],
        ["TEAM", "ADVISORS"],
        [0, 0],
        [3000, 1200],
    )
    print(f"  grant ids: {alice}, {bob}")
    print(f"  custody balance: {token.balance_of(LEDGER)}")
    print()

    # 4. Claims
    print("4. Claiming...")
    clock.advance_days(15)
    try:
        ledger.claim(alice)
    except ZeroVestedAmount:
        print("  day 15: still before the cliff")

    clock.advance_days(25)
    receipt = ledger.claim(alice)
    print(f"  day 40: {receipt.amount_vested} for {receipt.days_vested} days")

    clock.advance_days(265)
    receipt = ledger.claim(alice)
    print(f"  day 305: {receipt.amount_vested} (rest of the grant)")
    print()

    # 5. Early removal
    print("5. Removing the advisor grant...")
    result = ledger.remove(ADMIN, bob)
    print(f"  vested paid: {result.amount_vested}")
    print(f"  unvested returned: {result.amount_not_vested}")
    print()

    print("Summary:")
    for key, value in ledger.summary().items():
        print(f"  {key:<14} {value}")
    print(f"  events         {len(recorder.events)}")


if __name__ == "__main__":
    main()
