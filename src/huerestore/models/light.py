from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

COLORMODE_CT = "ct"
COLORMODE_XY = "xy"
COLORMODE_HS = "hs"


class LightIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    uniqueid: str
    modelid: str = ""
    type: str = ""  # e.g. "Extended color light"


class LightMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    name: str = ""
    swversion: str = ""
    observed_at: datetime


class LightState(BaseModel):
    model_config = ConfigDict(frozen=True)

    reachable: bool = False
    on: bool = False
    colormode: Optional[str] = None
    ct: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    hue: Optional[int] = None
    sat: Optional[int] = None
    bri: Optional[int] = None
    effect: Optional[str] = None
    alert: Optional[str] = None
    observed_at: datetime

    def describe(self) -> str:
        xy = "-" if self.x is None or self.y is None else f"[{self.x:.4f},{self.y:.4f}]"
        return (
            f'on="{str(self.on).lower()}" colormode="{self.colormode}" ct={self.ct} xy={xy} '
            f'hue={self.hue} sat={self.sat} bri={self.bri} effect="{self.effect}" alert="{self.alert}"'
        )


class LightRecord(BaseModel):
    identity: LightIdentity
    metadata: LightMetadata
    state: LightState

    @property
    def uniqueid(self) -> str:
        return self.identity.uniqueid

    @property
    def index(self) -> int:
        return self.metadata.index


class LightSnapshot(LightRecord):
    row_id: int
