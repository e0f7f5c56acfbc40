"""Decide what one speaker should do, given the zone topology it reports.

A topology snapshot maps a group's coordinator uid to the members of that
group, each a ``SpeakerRef``. Only groups with two or more members count as
real groups; a lone speaker is its own one-member group and is "ungrouped".
"""
from collections import namedtuple
from enum import Enum
from typing import Dict, Optional, Tuple

from autogroup_errors import TopologyError

SpeakerRef = namedtuple("SpeakerRef", ["name", "uid"])

ZoneTopology = Dict[str, Tuple[SpeakerRef, ...]]


class Action(Enum):
    ALREADY_GROUPED = "already_grouped"
    JOIN_COORDINATOR = "join_coordinator"
    NO_GROUP_AVAILABLE = "no_group_available"


class Disposition(namedtuple("Disposition", ["action", "coordinator"])):
    """Outcome for one speaker in one pass. ``coordinator`` is set only for JOIN_COORDINATOR."""

    __slots__ = ()

    @classmethod
    def already_grouped(cls):
        return cls(Action.ALREADY_GROUPED, None)

    @classmethod
    def join(cls, coordinator_name):
        return cls(Action.JOIN_COORDINATOR, coordinator_name)

    @classmethod
    def no_group(cls):
        return cls(Action.NO_GROUP_AVAILABLE, None)

    def __str__(self):
        if self.action is Action.JOIN_COORDINATOR:
            return f"join '{self.coordinator}'"
        return self.action.value.replace("_", " ")


def _real_groups(topology: ZoneTopology):
    return [(coord_id, members) for coord_id, members in topology.items() if len(members) > 1]


def _find_coordinator(coord_id, members) -> SpeakerRef:
    # Sonos uids are RINCON_* strings; the zone group state does not promise consistent case
    wanted = coord_id.casefold()
    for m in members:
        if m.uid.casefold() == wanted:
            return m
    raise TopologyError(
        f"No coordinator for group {coord_id}: members are {', '.join(m.name for m in members)}"
    )


def is_already_grouped(name: str, topology: ZoneTopology) -> bool:
    for _, members in _real_groups(topology):
        if any(m.name == name for m in members):
            return True
    return False


def find_coordinator_to_join(name: str, topology: ZoneTopology) -> Optional[str]:
    """Name of the coordinator ``name`` should join, or None.

    Only the first real group is considered; a speaker is expected to be
    relevant to at most one group in its own snapshot. Returns None when that
    group is led by ``name`` itself or already lists it as a member.

    Raises TopologyError when no member of the group carries the coordinator uid.
    """
    groups = _real_groups(topology)
    if not groups:
        # no group, no coordinator
        return None

    coord_id, members = groups[0]
    coordinator = _find_coordinator(coord_id, members)
    if coordinator.name == name:
        return None
    if any(m.name == name for m in members):
        return None
    return coordinator.name


def classify(name: str, topology: ZoneTopology) -> Disposition:
    if is_already_grouped(name, topology):
        return Disposition.already_grouped()
    coordinator = find_coordinator_to_join(name, topology)
    if coordinator is not None:
        return Disposition.join(coordinator)
    return Disposition.no_group()
