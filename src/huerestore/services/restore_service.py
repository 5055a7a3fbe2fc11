import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from pydantic import ValidationError

from huerestore.api.bridge_client import BridgeClient, bridge_error
from huerestore.commands.base import StateCommand
from huerestore.errors import BridgeError
from huerestore.models.light import LightRecord, LightSnapshot
from huerestore.services.planner import plan_restore

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    restored: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    unchanged: list[str] = field(default_factory=list)


class RestoreService:
    def __init__(self, bridge: BridgeClient, interval: float = 0.1, sleep: Callable[[float], None] = time.sleep):
        self.bridge = bridge
        self.interval = interval
        self.sleep = sleep

    def restore(self, current: Mapping[str, LightRecord], previous: Mapping[str, LightSnapshot]) -> RestoreResult:
        result = RestoreResult()

        for uniqueid in sorted(current):
            c = current[uniqueid]
            p = previous.get(uniqueid)
            if p is None:
                logger.warning('No previous snapshot for uniqueid="%s"; cannot restore', uniqueid)
                continue

            try:
                command = plan_restore(c.state, p.state)
            except ValidationError as e:
                # Recorded values the bridge would not accept
                logger.warning('Cannot restore uniqueid="%s" id=%d to: %s (%s)', uniqueid, c.index, p.state.describe(), e)
                result.failed[uniqueid] = str(e)
                continue

            if command.is_empty():
                result.unchanged.append(uniqueid)
                continue

            logger.debug('Command for uniqueid="%s": %s', uniqueid, command.to_payload())
            error = self._apply(c, command)

            logger.log(
                logging.WARNING if error else logging.INFO,
                'Restoring state: uniqueid="%s" id=%d from: %s to: %s result="%s"',
                uniqueid, c.index, c.state.describe(), p.state.describe(), error or "ok",
            )
            if error:
                result.failed[uniqueid] = error
            else:
                result.restored.append(uniqueid)

            self.sleep(self.interval)

        return result

    def _apply(self, light: LightRecord, command: StateCommand) -> Optional[str]:
        try:
            _, response = self.bridge.apply_state(light.index, command)
        except BridgeError as e:
            return str(e)

        error = bridge_error(response)
        return error.description if error else None
