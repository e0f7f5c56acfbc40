"""Thin adapter over soco: discovery, lookup by name, zone topology and joins."""
import logging

import soco
from soco.exceptions import SoCoException

from autogroup_errors import DirectoryError, DiscoveryError, ResolutionError, JoinError
from group_classifier import SpeakerRef

logger = logging.getLogger(__name__)


# ---------- soco-backed directory ----------
class SonosDirectory:
    def discover(self, timeout=5):
        try:
            zones = soco.discover(timeout=timeout) or set()
        except (SoCoException, OSError) as e:
            raise DiscoveryError(f"Discovery failed: {e}") from e
        logger.debug(f"Discovered {len(zones)} speakers.")
        # soco hands back a set; keep the pass order stable
        return sorted(zones, key=lambda z: z.uid)

    def find_by_name(self, name, timeout=5):
        for zone in self.discover(timeout=timeout):
            if self.get_name(zone) == name:
                return zone
        return None

    def get_name(self, speaker) -> str:
        try:
            return speaker.player_name
        except (SoCoException, OSError) as e:
            raise DirectoryError(f"Could not read name of {_describe(speaker)}: {e}") from e

    def get_uid(self, speaker) -> str:
        try:
            return speaker.uid
        except (SoCoException, OSError) as e:
            raise DirectoryError(f"Could not read uid of {_describe(speaker)}: {e}") from e

    def get_topology(self, speaker):
        """Snapshot of every group as seen from ``speaker``, keyed by coordinator uid.

        Invisible members (bonded subs and surrounds) are left out so a single
        home-theatre room does not count as a real group.
        """
        try:
            groups = sorted(speaker.all_groups, key=lambda g: g.uid)
            topology = {}
            for g in groups:
                # soco leaves coordinator unset when no member carries the declared uid
                coordinator_id = g.coordinator.uid if g.coordinator is not None else g.uid
                members = [m for m in g.members if m.is_visible]
                topology[coordinator_id] = tuple(
                    SpeakerRef(m.player_name, m.uid) for m in sorted(members, key=lambda m: m.uid)
                )
            return topology
        except (SoCoException, OSError) as e:
            raise DirectoryError(f"Could not read zone topology from {_describe(speaker)}: {e}") from e

    def join(self, speaker, coordinator_name, timeout=5):
        """Make ``speaker`` a member of the group led by ``coordinator_name``."""
        coordinator = self._resolve(coordinator_name, timeout)
        self._join(speaker, coordinator)

    def add_member(self, coordinator, member_name, timeout=5):
        """Pull the speaker named ``member_name`` into ``coordinator``'s group."""
        member = self._resolve(member_name, timeout)
        self._join(member, coordinator)

    def _resolve(self, name, timeout):
        speaker = self.find_by_name(name, timeout=timeout)
        if speaker is None:
            raise ResolutionError(f"Speaker '{name}' doesn't exist")
        return speaker

    def _join(self, member, coordinator):
        try:
            member.join(coordinator)
        except (SoCoException, OSError) as e:
            raise JoinError(f"{_describe(member)} could not join {_describe(coordinator)}: {e}") from e


def _describe(speaker):
    return getattr(speaker, "ip_address", None) or repr(speaker)
