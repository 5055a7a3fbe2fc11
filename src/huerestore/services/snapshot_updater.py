import logging
from dataclasses import dataclass
from typing import Mapping

from huerestore.models.light import LightMetadata, LightRecord, LightSnapshot, LightState
from huerestore.repo.snapshot_repository import SnapshotRepository
from huerestore.utils.logger import dump

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("name", "swversion")
STATE_FIELDS = ("reachable", "on", "colormode", "ct", "x", "y", "hue", "sat", "bri", "effect", "alert")


def metadata_changed(current: LightMetadata, previous: LightMetadata) -> bool:
    return any(getattr(current, f) != getattr(previous, f) for f in METADATA_FIELDS)


def state_changed(current: LightState, previous: LightState) -> bool:
    return any(getattr(current, f) != getattr(previous, f) for f in STATE_FIELDS)


@dataclass
class SnapshotResult:
    metadata_written: int = 0
    states_written: int = 0


class SnapshotUpdater:
    def __init__(self, repo: SnapshotRepository):
        self.repo = repo

    def update(self, current: Mapping[str, LightRecord], previous: Mapping[str, LightSnapshot]) -> SnapshotResult:
        result = SnapshotResult()

        for uniqueid in sorted(current):
            c = current[uniqueid]
            p = previous.get(uniqueid)
            if p is None:
                logger.warning('No previous snapshot for uniqueid="%s"; skipping', uniqueid)
                continue

            if metadata_changed(c.metadata, p.metadata):
                self.repo.insert_metadata(p.row_id, c.metadata)
                logger.debug("New meta:\n%s", dump(c.metadata))
                result.metadata_written += 1

            if state_changed(c.state, p.state):
                self.repo.insert_state(p.row_id, c.state)
                logger.debug("Old state:\n%s\nNew state:\n%s", dump(p.state), dump(c.state))
                result.states_written += 1

        return result
