"""
grantledger project - vesting projection for a hypothetical grant

Usage:
    grantledger project --amount 3000 --duration 10 --cliff 1
    grantledger project --amount 3000 --duration 10 --cliff 1 --claim-every 45
    grantledger project ... --format json
"""

import json

import click

from grantledger.core.exceptions import InvalidSchedule
from grantledger.core.models import DAYS_PER_MONTH, Grant, SECONDS_PER_DAY
from grantledger.ledger.catalog import validate_schedule
from grantledger.settlement.engine import vesting_projection


@click.command(name="project")
@click.option("--amount", type=click.IntRange(min=1), required=True, help="Granted amount.")
@click.option("--duration", type=int, required=True, help="Vesting duration in months.")
@click.option("--cliff", type=int, default=0, show_default=True, help="Cliff in months.")
@click.option(
    "--claim-every", type=click.IntRange(min=1), default=30, show_default=True,
    help="Days between simulated claims.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
)
def project_command(amount: int, duration: int, cliff: int, claim_every: int, fmt: str) -> None:
    """Show what a recipient claiming every N days would receive."""
    try:
        validate_schedule(duration, cliff, 0)
    except InvalidSchedule as exc:
        raise click.BadParameter(str(exc)) from exc

    grant = Grant(
        grant_id=0,
        recipient="projection",
        start_time=0,
        amount=amount,
        duration_months=duration,
        cliff_months=cliff,
    )
    last_day = duration * DAYS_PER_MONTH
    days = list(range(claim_every, last_day, claim_every)) + [last_day]
    steps = vesting_projection(grant, (d * SECONDS_PER_DAY for d in days))

    rows = []
    cumulative = 0
    for now, result in steps:
        cumulative += result.amount_vested
        rows.append({
            "day":           now // SECONDS_PER_DAY,
            "days_vested":   result.days_vested,
            "amount_vested": result.amount_vested,
            "cumulative":    cumulative,
        })

    if fmt == "json":
        click.echo(json.dumps(rows, indent=2))
        return

    click.echo(f"{'day':>6}  {'days':>6}  {'claimed':>14}  {'cumulative':>14}")
    for row in rows:
        click.echo(
            f"{row['day']:>6}  {row['days_vested']:>6}  "
            f"{row['amount_vested']:>14}  {row['cumulative']:>14}"
        )
