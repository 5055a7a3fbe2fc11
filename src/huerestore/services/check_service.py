"""One ``check`` cycle: fetch, detect, then restore or record.

The cycle walks through the phases of :class:`CyclePhase`. A failed fetch ends
the cycle before the store is touched; everything written after the lights are
parsed happens inside a single store transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from huerestore.api.bridge_client import BridgeClient
from huerestore.config import Settings
from huerestore.errors import BridgeError
from huerestore.models.light import LightRecord
from huerestore.repo.snapshot_repository import SnapshotRepository
from huerestore.services.detector import detect
from huerestore.services.normalizer import normalize_lights
from huerestore.services.restore_service import RestoreService
from huerestore.services.snapshot_updater import SnapshotUpdater
from huerestore.utils.logger import dump

logger = logging.getLogger(__name__)


class CyclePhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FETCH_FAILED = "fetch_failed"
    LIGHTS_PARSED = "lights_parsed"
    DETECTING = "detecting"
    RESTORING = "restoring"
    SNAPSHOTTING = "snapshotting"
    DONE = "done"


@dataclass
class CycleReport:
    phase: CyclePhase = CyclePhase.IDLE
    error: Optional[str] = None
    default_count: int = 0
    needs_restore: bool = False
    new_lights: int = 0
    metadata_written: int = 0
    states_written: int = 0
    restored: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.phase is CyclePhase.DONE


class CheckService:
    def __init__(
        self,
        settings: Settings,
        bridge: BridgeClient,
        repo: SnapshotRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        restorer: Optional[RestoreService] = None,
    ):
        self.settings = settings
        self.bridge = bridge
        self.repo = repo
        self.clock = clock
        self.restorer = restorer or RestoreService(bridge, interval=settings.restore_interval)
        self.updater = SnapshotUpdater(repo)

    def run(self) -> CycleReport:
        report = CycleReport()
        observed_at = self.clock()

        report.phase = CyclePhase.FETCHING
        try:
            raw_lights = self.bridge.fetch_lights()
        except BridgeError as e:
            report.phase = CyclePhase.FETCH_FAILED
            report.error = str(e)
            logger.error("Fetching light info from bridge %s failed: %s", self.settings.bridge_url, e)
            return report
        logger.debug("Raw lights:\n%s", dump(raw_lights))

        current = normalize_lights(raw_lights, observed_at)
        report.phase = CyclePhase.LIGHTS_PARSED
        logger.debug("Current lights:\n%s", dump(current))

        with self.repo.transaction():
            report.phase = CyclePhase.DETECTING
            report.default_count, report.needs_restore = detect(
                current.values(), self.settings.default_profile, self.settings.magic_number
            )
            if report.needs_restore:
                logger.info("Magic number of lights in default state has been reached; state restoration required.")

            previous = self.repo.get_all_latest()
            report.new_lights = self._insert_new_lights(current, previous)
            if report.new_lights:
                previous = self.repo.get_all_latest()
            logger.debug("Previous lights:\n%s", dump(previous))

            if report.needs_restore:
                report.phase = CyclePhase.RESTORING
                result = self.restorer.restore(current, previous)
                report.restored = result.restored
                report.failed = result.failed
            else:
                report.phase = CyclePhase.SNAPSHOTTING
                result = self.updater.update(current, previous)
                report.metadata_written = result.metadata_written
                report.states_written = result.states_written

        report.phase = CyclePhase.DONE
        return report

    def _insert_new_lights(self, current: dict[str, LightRecord], previous: dict) -> int:
        count = 0
        for uniqueid in sorted(current):
            if uniqueid in previous:
                continue
            light = current[uniqueid]
            row_id = self.repo.insert_identity(light.identity, light.metadata.observed_at)
            self.repo.insert_metadata(row_id, light.metadata)
            self.repo.insert_state(row_id, light.state)
            count += 1
        return count
