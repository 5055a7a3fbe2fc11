"""Shared fixtures: settings bound to tmp_path, raw bridge payloads and a fake bridge."""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from huerestore.config import Settings
from huerestore.errors import BridgeError
from huerestore.models.light import LightState
from huerestore.repo.snapshot_repository import SnapshotRepository

OBSERVED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeBridge:
    def __init__(self, lights: Optional[dict[str, dict]] = None):
        self.lights = lights or {}
        self.fetch_error: Optional[BridgeError] = None
        self.write_errors: dict[int, Exception] = {}
        self.write_responses: dict[int, Any] = {}
        self.applied: list[tuple[int, dict]] = []
        self.register_response: Any = [{"success": {"username": "huebrohuebro"}}]
        self.unregister_response: Any = [{"success": "/config/whitelist/huebrohuebro deleted"}]

    def fetch_lights(self) -> dict[str, dict]:
        if self.fetch_error:
            raise self.fetch_error
        return self.lights

    def apply_state(self, light_index, command):
        self.applied.append((light_index, command.to_payload()))
        if light_index in self.write_errors:
            raise self.write_errors[light_index]
        response = self.write_responses.get(light_index)
        if response is None:
            response = [{"success": {f"/lights/{light_index}/state/{k}": v}} for k, v in command.to_payload().items()]
        return 200, response

    def register_app(self):
        return self.register_response

    def unregister_app(self):
        return self.unregister_response


@pytest.fixture(autouse=True)
def reset_huerestore_logger():
    yield
    logger = logging.getLogger("huerestore")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(bridge_ip="10.0.0.2", home_dir=tmp_path / "huebro", restore_interval_ms=0)


@pytest.fixture
def repo(settings):
    repository = SnapshotRepository.open(settings.db_path)
    yield repository
    repository.close()


@pytest.fixture
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def make_raw_light():
    def _make(
        uniqueid: Optional[str] = "00:17:88:01:00:aa:bb:01-0b",
        name: str = "Living room",
        type: str = "Extended color light",
        swversion: str = "5.105.0.21169",
        **state: Any,
    ) -> dict:
        light_state = {
            "on": True,
            "reachable": True,
            "colormode": "ct",
            "ct": 300,
            "bri": 200,
            "xy": [0.4573, 0.41],
            "hue": 8418,
            "sat": 140,
            "effect": "none",
            "alert": "none",
        }
        light_state.update(state)
        raw = {
            "state": light_state,
            "type": type,
            "name": name,
            "modelid": "LCT007",
            "swversion": swversion,
        }
        if uniqueid is not None:
            raw["uniqueid"] = uniqueid
        return raw

    return _make


@pytest.fixture
def make_state():
    def _make(**overrides: Any) -> LightState:
        values = {
            "reachable": True,
            "on": True,
            "colormode": "ct",
            "ct": 300,
            "x": 0.4573,
            "y": 0.41,
            "hue": 8418,
            "sat": 140,
            "bri": 200,
            "effect": "none",
            "alert": "none",
            "observed_at": OBSERVED_AT,
        }
        values.update(overrides)
        return LightState(**values)

    return _make
