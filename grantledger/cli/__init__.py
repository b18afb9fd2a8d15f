"""
grantledger/cli/__init__.py

grantledger CLI - root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    grantledger = "grantledger.cli:cli"

Adding a new command:
    1. Create grantledger/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from grantledger.cli.project import project_command
from grantledger.cli.verify import verify_command


@click.group()
@click.version_option(package_name="grantledger")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def cli(log_level: str) -> None:
    """
    grantledger - token vesting grant ledger.

    \b
    Commands:
      verify    Verify an audit journal - chain, signatures.
      project   Project claims for a hypothetical grant.

    \b
    Quick start:
      grantledger verify .grantledger/journal.jsonl
      grantledger project --amount 3000 --duration 10 --cliff 1
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(verify_command)
cli.add_command(project_command)
