#!/usr/bin/env python3
# Diagnostics: list every speaker, its current group, and what the next auto-grouping pass would do with it.
# Read-only; nothing is joined.
from autogroup_errors import TopologyError
from group_classifier import classify
from speaker_directory import SonosDirectory


def describe_speakers(directory, timeout=5):
    lines = []
    for d in directory.discover(timeout=timeout):
        name = directory.get_name(d)
        topology = directory.get_topology(d)
        group = next((members for members in topology.values() if any(m.name == name for m in members)), ())
        members = ", ".join(m.name for m in group) or name
        try:
            plan = str(classify(name, topology))
        except TopologyError as e:
            plan = f"malformed topology ({e})"
        ip = getattr(d, "ip_address", "?")
        lines.append(f"{ip:>15}  {name:<20}  Group: {members:<40}  Next pass: {plan}")
    return lines


def main():
    lines = describe_speakers(SonosDirectory())
    if not lines:
        print("No Sonos devices found.")
    for line in lines:
        print(line)


if __name__ == "__main__":
    main()
