"""
Vesting schedule catalog.

Named presets (duration, cliff, percent of supply) keyed by a closed
VestingGroupName enumeration. Entries are frozen records: grant creation
copies the numbers out, so overwriting an entry never reaches grants that
already exist.
"""

import logging
from typing import Dict, List, Union

from grantledger.core.exceptions import InvalidSchedule, UnknownVestingGroup
from grantledger.core.models import VestingGroup, VestingGroupName
from grantledger.policy.authority import AdminAuthority


logger = logging.getLogger(__name__)

GroupKey = Union[VestingGroupName, str]


def resolve_group_name(name: GroupKey) -> VestingGroupName:
    """Coerce a string to a VestingGroupName or raise UnknownVestingGroup."""
    if isinstance(name, VestingGroupName):
        return name
    try:
        return VestingGroupName(name)
    except ValueError:
        raise UnknownVestingGroup(
            f"Unknown vesting group '{name}'",
            {"valid": sorted(g.value for g in VestingGroupName)},
        ) from None


def validate_schedule(duration_months: int, cliff_months: int, percent: float) -> None:
    if not isinstance(duration_months, int) or not isinstance(cliff_months, int):
        raise InvalidSchedule(
            "Duration and cliff must be whole months",
            {"duration_months": duration_months, "cliff_months": cliff_months},
        )
    if duration_months < 1:
        raise InvalidSchedule(
            "Duration must be at least one month",
            {"duration_months": duration_months},
        )
    if cliff_months < 0:
        raise InvalidSchedule(
            "Cliff cannot be negative", {"cliff_months": cliff_months}
        )
    if duration_months < cliff_months:
        raise InvalidSchedule(
            "Duration cannot be shorter than the cliff",
            {"duration_months": duration_months, "cliff_months": cliff_months},
        )
    if not 0 <= percent <= 100:
        raise InvalidSchedule(
            "Percent of total supply must be within [0, 100]",
            {"percent": percent},
        )


class VestingScheduleCatalog:
    """Mapping of VestingGroupName to VestingGroup, edited only by the admin."""

    def __init__(self, authority: AdminAuthority):
        self.authority = authority
        self._groups: Dict[VestingGroupName, VestingGroup] = {}

    def set_group_parameters(
        self,
        caller: str,
        name: GroupKey,
        duration_months: int,
        cliff_months: int,
        percent: float = 0,
    ) -> VestingGroup:
        """
        Store (or overwrite) a vesting group.

        No versioning: the old entry is replaced. Grants created against it
        keep their own copy of the old numbers.
        """
        self.authority.require(caller)
        key = resolve_group_name(name)
        validate_schedule(duration_months, cliff_months, percent)

        group = VestingGroup(
            duration_months=duration_months,
            cliff_months=cliff_months,
            percent_of_total_supply=percent,
        )
        replaced = key in self._groups
        self._groups[key] = group
        logger.info(
            "Vesting group %s %s: duration=%s cliff=%s percent=%s",
            key.value, "overwritten" if replaced else "set",
            duration_months, cliff_months, percent,
        )
        return group

    def get(self, name: GroupKey) -> VestingGroup:
        key = resolve_group_name(name)
        group = self._groups.get(key)
        if group is None:
            raise UnknownVestingGroup(
                f"Vesting group '{key.value}' has no parameters set",
                {"group": key.value},
            )
        return group

    def names(self) -> List[VestingGroupName]:
        return list(self._groups)

    def total_percent(self) -> float:
        """Sum of percent_of_total_supply across configured groups."""
        return sum(g.percent_of_total_supply for g in self._groups.values())

    def __contains__(self, name: object) -> bool:
        try:
            return resolve_group_name(name) in self._groups
        except UnknownVestingGroup:
            return False

    def __len__(self) -> int:
        return len(self._groups)
