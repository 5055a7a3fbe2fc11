from huerestore.commands.base import StateCommand
from huerestore.models.light import COLORMODE_CT, COLORMODE_XY, LightState


def plan_restore(current: LightState, target: LightState) -> StateCommand:
    """Build the smallest command that takes a light from ``current`` back to ``target``.

    Color fields only matter for the target's color mode, and none of the
    color or brightness fields matter when the light should end up off.
    """
    changes = {}

    if current.on and not target.on:
        changes["on"] = False
    elif not current.on and target.on:
        changes["on"] = True

    if target.on:
        if target.colormode == COLORMODE_XY:
            if (current.x != target.x or current.y != target.y) and target.x is not None and target.y is not None:
                # The bridge only accepts the pair as a whole
                changes["xy"] = (target.x, target.y)
        elif target.colormode == COLORMODE_CT:
            if current.ct != target.ct and target.ct is not None:
                changes["ct"] = target.ct
        else:
            if current.hue != target.hue and target.hue is not None:
                changes["hue"] = target.hue
            if current.sat != target.sat and target.sat is not None:
                changes["sat"] = target.sat

        for field in ("bri", "effect", "alert"):
            wanted = getattr(target, field)
            if getattr(current, field) != wanted and wanted is not None:
                changes[field] = wanted

    return StateCommand(**changes)
