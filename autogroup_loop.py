#!/usr/bin/env python3
import os
import time
import signal
import logging
from collections import namedtuple
from logging.handlers import RotatingFileHandler

from soco import config as soco_config

from autogroup_errors import AutogroupError, ResolutionError
from group_classifier import Action, classify
from speaker_directory import SonosDirectory

logger = logging.getLogger(__name__)

# ---------- Config ----------
INTERVAL_SEC = float(os.environ.get("AUTOGROUP_INTERVAL_SEC", "5"))
DISCOVERY_TIMEOUT_SEC = int(os.environ.get("AUTOGROUP_DISCOVERY_TIMEOUT_SEC", "5"))
LOOKUP_TIMEOUT_SEC = int(os.environ.get("AUTOGROUP_LOOKUP_TIMEOUT_SEC", "3"))
REQUEST_TIMEOUT_SEC = float(os.environ.get("AUTOGROUP_REQUEST_TIMEOUT_SEC", "10"))
LOG_PATH = os.environ.get("AUTOGROUP_LOG_PATH")
LOG_LEVEL = os.environ.get("AUTOGROUP_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


# ---------- Logging ----------
def setup_logging(log_path=LOG_PATH, level=LOG_LEVEL):
    if log_path:
        handler = RotatingFileHandler(log_path, maxBytes=1024 * 1024, backupCount=3)
    else:
        handler = logging.StreamHandler()
    logging.basicConfig(handlers=[handler], level=level, format=LOG_FORMAT)


# ---------- Shutdown handling ----------
running = True
def _handle_sigterm(signum, frame):
    global running
    running = False


# ---------- One pass ----------
PassReport = namedtuple("PassReport", ["dispositions", "candidates", "joined"])


def group_all(directory, names, lookup_timeout=LOOKUP_TIMEOUT_SEC):
    """Make the first speaker in ``names`` the coordinator of a new group holding all of them.

    Returns the names that were added. Stops at the first failed join; the
    speakers already moved stay where they are.
    """
    if not names:
        return []

    logger.info(f"Candidate group: {', '.join(names)}")
    first = directory.find_by_name(names[0], timeout=lookup_timeout)
    if first is None:
        raise ResolutionError(f"Speaker '{names[0]}' doesn't exist")

    joined = []
    for name in names[1:]:
        directory.add_member(first, name, timeout=lookup_timeout)
        logger.info(f"Joined: {name} -> {names[0]}")
        joined.append(name)
    return joined


def run_pass(directory, discovery_timeout=DISCOVERY_TIMEOUT_SEC, lookup_timeout=LOOKUP_TIMEOUT_SEC):
    """Discover every speaker, join the ones a group is waiting for, group the rest.

    Speakers are handled one at a time in discovery order, since every join
    changes the topology the next speaker will report. Any error aborts the pass.
    """
    devices = directory.discover(timeout=discovery_timeout)
    logger.debug(f"Pass over {len(devices)} speakers.")

    dispositions = []
    candidates = []
    for device in devices:
        name = directory.get_name(device)
        # Names are the join key; two speakers sharing a name would be conflated here.
        speaker = directory.find_by_name(name, timeout=discovery_timeout)
        if speaker is None:
            raise ResolutionError(f"Speaker '{name}' doesn't exist")

        disposition = classify(name, directory.get_topology(speaker))
        dispositions.append((name, disposition))

        if disposition.action is Action.ALREADY_GROUPED:
            logger.info(f"{name}: already grouped, nothing to join")
        elif disposition.action is Action.JOIN_COORDINATOR:
            directory.join(speaker, disposition.coordinator, timeout=discovery_timeout)
            logger.info(f"{name}: joined group of {disposition.coordinator}")
        else:
            logger.info(f"{name}: no coordinator, collecting")
            candidates.append(name)

    joined = group_all(directory, candidates, lookup_timeout=lookup_timeout)
    return PassReport(dispositions, candidates, joined)


# ---------- Main loop ----------
def run_forever(directory, interval=INTERVAL_SEC, max_passes=None):
    passes = 0
    while running and (max_passes is None or passes < max_passes):
        try:
            report = run_pass(directory)
            logger.info(
                f"Pass done: {len(report.dispositions)} speakers, "
                f"{len(report.candidates)} ungrouped, {len(report.joined)} joined."
            )
        except AutogroupError as e:
            logger.error(f"Pass failed: {e}")
        except Exception:
            logger.exception("Pass crashed")
        passes += 1
        time.sleep(interval)
    return passes


def main():
    setup_logging()
    soco_config.REQUEST_TIMEOUT = REQUEST_TIMEOUT_SEC
    signal.signal(signal.SIGTERM, _handle_sigterm)
    logger.info(f"Auto-grouping Sonos speakers every {INTERVAL_SEC:g}s.")
    run_forever(SonosDirectory())
    logger.info("Shutting down.")


if __name__ == "__main__":
    main()
