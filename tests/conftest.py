"""Shared fixtures: an in-memory speaker directory that records every command."""

import pytest

from autogroup_errors import JoinError
from group_classifier import SpeakerRef


class FakeSpeaker:
    def __init__(self, name: str, uid: str, ip_address: str = "10.0.0.10") -> None:
        self.name = name
        self.uid = uid
        self.ip_address = ip_address

    def __repr__(self) -> str:
        return f"FakeSpeaker({self.name!r})"


class FakeDirectory:
    """Speakers and their topology snapshots, held in memory.

    ``topologies`` maps a speaker name to the snapshot it reports. Speakers
    without an entry report only themselves as a one-member group. Joins are
    recorded in ``commands`` as ``(verb, speaker_name, target_name)`` and do
    not change any snapshot.
    """

    def __init__(self, names, topologies=None) -> None:
        self.speakers = [
            FakeSpeaker(n, f"RINCON_{i:04d}01400", f"10.0.0.{i + 10}") for i, n in enumerate(names)
        ]
        self.topologies = topologies or {}
        self.commands = []
        self.lookups = []
        self.missing = set()
        self.failing_joins = set()

    def uid_of(self, name: str) -> str:
        return self._by_name(name).uid

    def ref(self, name: str) -> SpeakerRef:
        return SpeakerRef(name, self.uid_of(name))

    def _by_name(self, name):
        for s in self.speakers:
            if s.name == name:
                return s
        raise KeyError(name)

    def discover(self, timeout=5):
        return list(self.speakers)

    def find_by_name(self, name, timeout=5):
        self.lookups.append((name, timeout))
        if name in self.missing:
            return None
        for s in self.speakers:
            if s.name == name:
                return s
        return None

    def get_name(self, speaker):
        return speaker.name

    def get_uid(self, speaker):
        return speaker.uid

    def get_topology(self, speaker):
        if speaker.name in self.topologies:
            return self.topologies[speaker.name]
        return {s.uid: (SpeakerRef(s.name, s.uid),) for s in self.speakers}

    def join(self, speaker, coordinator_name, timeout=5):
        self._record("join", speaker.name, coordinator_name)

    def add_member(self, coordinator, member_name, timeout=5):
        self._record("add_member", coordinator.name, member_name)

    def _record(self, verb, speaker_name, target_name):
        if target_name in self.failing_joins:
            raise JoinError(f"{speaker_name} could not reach {target_name}")
        self.commands.append((verb, speaker_name, target_name))


@pytest.fixture
def make_directory():
    return FakeDirectory
