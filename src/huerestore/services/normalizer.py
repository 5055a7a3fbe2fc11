import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from huerestore.models.light import LightIdentity, LightMetadata, LightRecord, LightState

logger = logging.getLogger(__name__)


def _xy(state: Mapping[str, Any]) -> tuple[Any, Any]:
    xy = state.get("xy")
    if isinstance(xy, (list, tuple)) and len(xy) == 2:
        return xy[0], xy[1]
    return None, None


def normalize_light(index: Any, raw: Any, observed_at: datetime) -> Optional[LightRecord]:
    """Turn one entry of ``GET /lights`` into a LightRecord.

    Returns None (and logs why) when the entry cannot be used this cycle.
    """
    if not isinstance(raw, Mapping):
        logger.warning("Skipping light %s: unexpected payload %r", index, raw)
        return None

    uniqueid = raw.get("uniqueid")
    if not uniqueid:
        logger.warning('Skipping light %s (name="%s"): no uniqueid reported', index, raw.get("name"))
        return None

    state = raw.get("state") or {}
    if not isinstance(state, Mapping):
        logger.warning('Skipping light %s (uniqueid="%s"): unexpected state %r', index, uniqueid, state)
        return None
    x, y = _xy(state)

    try:
        return LightRecord(
            identity=LightIdentity(
                uniqueid=uniqueid,
                modelid=raw.get("modelid") or "",
                type=raw.get("type") or "",
            ),
            metadata=LightMetadata(
                index=int(index),
                name=raw.get("name") or "",
                swversion=str(raw.get("swversion") or ""),
                observed_at=observed_at,
            ),
            state=LightState(
                reachable=bool(state.get("reachable")),
                on=bool(state.get("on")),
                colormode=state.get("colormode"),
                ct=state.get("ct"),
                x=x,
                y=y,
                hue=state.get("hue"),
                sat=state.get("sat"),
                bri=state.get("bri"),
                effect=state.get("effect"),
                alert=state.get("alert"),
                observed_at=observed_at,
            ),
        )
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning('Skipping light %s (uniqueid="%s"): %s', index, uniqueid, e)
        return None


def normalize_lights(raw_lights: Mapping[str, Any], observed_at: datetime) -> dict[str, LightRecord]:
    lights: dict[str, LightRecord] = {}
    for index, raw in raw_lights.items():
        record = normalize_light(index, raw, observed_at)
        if record is not None:
            lights[record.uniqueid] = record
    return lights
