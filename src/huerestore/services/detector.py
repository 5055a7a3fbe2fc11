import logging
from typing import Iterable

from huerestore.config import DefaultProfile
from huerestore.models.light import LightRecord

logger = logging.getLogger(__name__)


def is_default_state(light: LightRecord, profile: DefaultProfile) -> bool:
    state = light.state
    return (
        light.identity.type == profile.type
        and state.colormode == profile.colormode
        and state.ct == profile.ct
        and state.bri == profile.bri
        # Bulbs that are off or unreachable don't count
        and state.on
        and state.reachable
    )


def count_default_lights(lights: Iterable[LightRecord], profile: DefaultProfile) -> int:
    count = 0
    for light in lights:
        if is_default_state(light, profile):
            logger.debug('Default: uniqueid="%s" name="%s"', light.uniqueid, light.metadata.name)
            count += 1
    return count


def detect(lights: Iterable[LightRecord], profile: DefaultProfile, threshold: int) -> tuple[int, bool]:
    """Count the lights at their factory default and decide whether to restore.

    Restoration is required when at least ``threshold`` lights show the
    factory default signature. One bulb at its default might just be set that way; several at once means
    they lost power.
    """
    if threshold < 1:
        raise ValueError(f"'threshold' must be at least 1!\n{threshold=}")

    count = count_default_lights(lights, profile)
    logger.debug("Defaulting bulbs: %d, magic number: %d", count, threshold)
    return count, count >= threshold


def needs_restore(lights: Iterable[LightRecord], profile: DefaultProfile, threshold: int) -> bool:
    """Boolean-only form of :func:`detect`, for callers that do not need the count."""
    return detect(lights, profile, threshold)[1]
