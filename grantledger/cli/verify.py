"""
grantledger verify - audit journal verification

Usage:
    grantledger verify <journal>                  Human output (default)
    grantledger verify <journal> --format json    Machine-readable JSON
    grantledger verify <journal> --quiet          Exit code only

Exit codes:
    0  Journal fully valid  (sequence + chain + signatures)
    1  Journal has violations
    2  Error  (file missing, malformed line)
"""

import json
import sys
from pathlib import Path

import click

from grantledger.core.exceptions import JournalError
from grantledger.core.journal import JOURNAL_FILE, verify_journal


class _Color:
    """Auto-disables when stdout is not a TTY or --no-color is passed."""
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return f"\033[32m{s}\033[0m" if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return f"\033[31m{s}\033[0m" if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return f"\033[2m{s}\033[0m" if cls._on else s


@click.command(name="verify")
@click.argument("journal", type=click.Path())
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option("--quiet", is_flag=True, default=False,
              help="Suppress output. Exit code only (0=valid, 1=invalid, 2=error).")
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI colors.")
def verify_command(journal: str, fmt: str, quiet: bool, no_color: bool) -> None:
    """Verify a grantledger audit journal: sequence, chain and signatures."""
    _Color.configure(not no_color)

    path = Path(journal)
    if path.is_dir():
        path = path / JOURNAL_FILE
    if not path.exists():
        if not quiet:
            click.echo(f"Error: journal not found: {path}", err=True)
        sys.exit(2)

    try:
        report = verify_journal(path)
    except JournalError as exc:
        if not quiet:
            click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if quiet:
        sys.exit(0 if report.valid else 1)

    if fmt == "json":
        data = report.to_dict()
        data["journal"] = str(path)
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(f"Journal   {path}")
        click.echo(f"Records   {report.total_records}")
        for event_type, count in sorted(report.event_counts.items()):
            click.echo(_Color.dim(f"  {event_type:<16} {count}"))
        if report.valid:
            click.echo(_Color.green("VALID") + "  chain and signatures intact")
        else:
            click.echo(_Color.red("INVALID") + f"  {len(report.violations)} violation(s)")
            for v in report.violations:
                click.echo(f"  #{v.at_sequence} {v.violation_type}: {v.detail}")

    sys.exit(0 if report.valid else 1)
