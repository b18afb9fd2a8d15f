"""
grantledger: Production Setup Example

Demonstrates:
- Loading ledger configuration from YAML
- Persistent signing key
- Signed audit journal of every ledger notification
- Journal verification
"""

from pathlib import Path

from grantledger import InMemoryToken, ManualClock
from grantledger.core.journal import verify_journal
from grantledger.runtime import RuntimeContext


HERE = Path(__file__).parent


def setup_production():
    """Build a configured ledger with a journal and run a few operations."""

    print("=" * 60)
    print("grantledger: Production Setup")
    print("=" * 60)
    print()

    state_dir = Path(".grantledger")

    # 1. Token collaborator
    print("1. Connecting the token...")
    token = InMemoryToken("0xtoken")
    token.mint("0xtreasury", 50_000_000)
    token.approve("0xtreasury", "0xledger", 50_000_000)
    print()

    # 2. Runtime context from config
    print("2. Loading ledger.yaml...")
    clock = ManualClock(start=1_700_000_000)
    ctx = RuntimeContext.from_config(
        config_file=  HERE / "ledger.yaml",
        journal_path= state_dir,
        token=        token.bind("0xledger"),
        key_path=     state_dir / "signing.pem",
        clock=        clock,
    )
    print(f"  {ctx!r}")
    print(f"  signer: {ctx.key_manager.public_key_hex[:16]}...")
    print(f"  groups: {', '.join(g.value for g in ctx.ledger.catalog.names())}")
    print()

    # 3. Operations
    print("3. Running operations...")
    ledger = ctx.ledger
    ids = ledger.create_grants(
        ctx.config.admin,
        ["0xalice", "0xbob", "0xcarol"],
        ["TEAM", "SEED", "ADVISORS"],
        [0, 0, 0],
        [2_400_000, 5_400_000, 720_000],
    )
    clock.advance_days(200)
    for grant_id in ids:
        result = ledger.calculate_claim(grant_id)
        if result.amount_vested:
            receipt = ledger.claim(grant_id)
            print(f"  grant {grant_id}: claimed {receipt.amount_vested}")
        else:
            print(f"  grant {grant_id}: {ledger.phase_of(grant_id).value}")
    print()

    # 4. Verify
    print("4. Verifying journal...")
    report = verify_journal(ctx.journal.path)
    print(f"  records: {report.total_records}")
    print(f"  valid:   {report.valid}")
    print()
    print(f"Run: grantledger verify {ctx.journal.path}")


if __name__ == "__main__":
    setup_production()
