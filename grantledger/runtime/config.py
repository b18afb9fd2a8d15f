"""
Ledger configuration loaded from YAML.

    admin: "0xadmin"
    treasury: "0xtreasury"
    ledger_identity: "0xledger"
    token_identity: "0xtoken"
    max_batch_size: 20          # null = unbounded
    unvested_policy: return     # return | retain
    vesting_groups:
      TEAM: {duration_months: 24, cliff_months: 6, percent_of_total_supply: 15}
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from grantledger.core.exceptions import ConfigError, GrantLedgerError
from grantledger.core.models import UnvestedPolicy, VestingGroup, VestingGroupName
from grantledger.ledger.catalog import resolve_group_name, validate_schedule
from grantledger.ledger.registry import DEFAULT_MAX_BATCH_SIZE


_REQUIRED = ("admin", "treasury", "ledger_identity", "token_identity")


@dataclass
class LedgerConfig:
    admin:           str
    treasury:        str
    ledger_identity: str
    token_identity:  str
    max_batch_size:  Optional[int] = DEFAULT_MAX_BATCH_SIZE
    unvested_policy: UnvestedPolicy = UnvestedPolicy.RETURN
    vesting_groups:  Dict[VestingGroupName, VestingGroup] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        missing = [k for k in _REQUIRED if not data.get(k)]
        if missing:
            raise ConfigError("Missing required configuration keys", {"missing": missing})

        max_batch_size = data.get("max_batch_size", DEFAULT_MAX_BATCH_SIZE)
        if max_batch_size is not None and (
            not isinstance(max_batch_size, int) or max_batch_size < 1
        ):
            raise ConfigError(
                "max_batch_size must be a positive integer or null",
                {"max_batch_size": max_batch_size},
            )

        try:
            policy = UnvestedPolicy(data.get("unvested_policy", UnvestedPolicy.RETURN.value))
        except ValueError:
            raise ConfigError(
                "unvested_policy must be 'return' or 'retain'",
                {"unvested_policy": data.get("unvested_policy")},
            ) from None

        groups: Dict[VestingGroupName, VestingGroup] = {}
        for name, params in (data.get("vesting_groups") or {}).items():
            try:
                key = resolve_group_name(name)
                group = VestingGroup(
                    duration_months=params["duration_months"],
                    cliff_months=params.get("cliff_months", 0),
                    percent_of_total_supply=params.get("percent_of_total_supply", 0),
                )
                validate_schedule(
                    group.duration_months, group.cliff_months, group.percent_of_total_supply
                )
            except (GrantLedgerError, KeyError, TypeError) as exc:
                raise ConfigError(
                    f"Invalid vesting group '{name}'", {"error": exc}
                ) from exc
            groups[key] = group

        return cls(
            admin=data["admin"],
            treasury=data["treasury"],
            ledger_identity=data["ledger_identity"],
            token_identity=data["token_identity"],
            max_batch_size=max_batch_size,
            unvested_policy=policy,
            vesting_groups=groups,
        )


def load_config(path: Union[str, Path]) -> LedgerConfig:
    """Load a LedgerConfig from a YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError("Configuration file not found", {"path": str(path)}) from None
    except yaml.YAMLError as exc:
        raise ConfigError("Configuration is not valid YAML", {"path": str(path)}) from exc
    return LedgerConfig.from_dict(data)
