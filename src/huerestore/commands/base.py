from typing import Any, Optional

from pydantic import BaseModel, Field


class StateCommand(BaseModel):
    """Partial state change for a single light, as accepted by ``PUT /lights/<id>/state``.

    Only fields that are set end up in the payload.
    """

    on: Optional[bool] = None
    xy: Optional[tuple[float, float]] = None
    ct: Optional[int] = Field(None, ge=0)
    hue: Optional[int] = Field(None, ge=0, le=65535)
    sat: Optional[int] = Field(None, ge=0, le=254)
    bri: Optional[int] = Field(None, ge=0, le=254)
    effect: Optional[str] = None
    alert: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_payload()
