"""
Runtime context for a configured grant ledger.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from grantledger.adapters.token import TokenTransfer
from grantledger.core.crypto import Ed25519KeyManager
from grantledger.core.journal import EventJournal, JournalObserver
from grantledger.core.time import Clock
from grantledger.runtime.config import LedgerConfig, load_config
from grantledger.runtime.service import VestingLedger


@dataclass
class RuntimeContext:
    """A ledger, its configuration and its audit journal."""

    config: LedgerConfig
    ledger: VestingLedger
    journal: EventJournal
    key_manager: Ed25519KeyManager

    @classmethod
    def from_config(
        cls,
        config_file: Path,
        journal_path: Path,
        token: TokenTransfer,
        key_path: Optional[Path] = None,
        clock: Optional[Clock] = None,
    ) -> "RuntimeContext":
        """
        Build a ledger from a YAML config file.

        The signing key is loaded from key_path, or generated (and saved
        there when a path is given). Catalog entries from the config are
        installed as the configured admin.
        """
        config = load_config(config_file)

        if key_path:
            key_manager = Ed25519KeyManager.load_or_generate(key_path)
        else:
            key_manager = Ed25519KeyManager.generate()

        journal = EventJournal(key_manager, journal_path)
        ledger = VestingLedger(
            admin=config.admin,
            treasury=config.treasury,
            ledger_identity=config.ledger_identity,
            token_identity=config.token_identity,
            token=token,
            clock=clock,
            unvested_policy=config.unvested_policy,
            max_batch_size=config.max_batch_size,
            observers=[JournalObserver(journal)],
        )
        for name, group in config.vesting_groups.items():
            ledger.set_group_parameters(
                config.admin,
                name,
                group.duration_months,
                group.cliff_months,
                group.percent_of_total_supply,
            )

        return cls(
            config=config,
            ledger=ledger,
            journal=journal,
            key_manager=key_manager,
        )

    def __repr__(self) -> str:
        return (
            f"RuntimeContext("
            f"admin={self.ledger.admin!r}, "
            f"grants={len(self.ledger.registry)}, "
            f"journal={str(self.journal.path)!r})"
        )
