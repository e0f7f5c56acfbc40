"""Errors raised during an auto-grouping pass.

Every one of these aborts the current pass; the supervisor loop logs it and
tries again on the next tick.
"""


class AutogroupError(Exception):
    pass


class DirectoryError(AutogroupError):
    """A speaker could not be queried or commanded."""


class DiscoveryError(DirectoryError):
    """Network enumeration of speakers failed."""


class ResolutionError(DirectoryError):
    """A named speaker was not found on the network."""


class JoinError(DirectoryError):
    pass


class TopologyError(AutogroupError):
    """A group declares a coordinator that none of its members matches."""
