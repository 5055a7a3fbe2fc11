import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

DB_FILE = "huebro.db"
LOG_FILE = "huebro.log"


# Visual state of a freshly powered "Extended color light"
DEFAULT_TYPE = "Extended color light"
DEFAULT_COLORMODE = "ct"
DEFAULT_CT = 369
DEFAULT_BRI = 254


class DefaultProfile(BaseModel):
    type: str = DEFAULT_TYPE
    colormode: str = DEFAULT_COLORMODE
    ct: int = DEFAULT_CT
    bri: int = DEFAULT_BRI


class Settings(BaseModel):
    bridge_ip: str = "192.168.2.16"
    app_key: str = "huebrohuebro"
    devicetype: str = "Hue#Bro"
    home_dir: Path = Path.home() / ".huebro"

    # How many lights must be in the default state before a power failure is assumed
    magic_number: int = Field(1, ge=1)

    default_type: str = DEFAULT_TYPE
    default_colormode: str = DEFAULT_COLORMODE
    default_ct: int = DEFAULT_CT
    default_bri: int = DEFAULT_BRI

    # The bridge accepts roughly 10 state changes per second
    restore_interval_ms: int = Field(100, ge=0)
    timeout: float = Field(5.0, gt=0)

    @property
    def bridge_url(self) -> str:
        if self.bridge_ip.startswith(("http://", "https://")):
            return self.bridge_ip.rstrip("/")
        return f"http://{self.bridge_ip}"

    @property
    def db_path(self) -> Path:
        return self.home_dir / DB_FILE

    @property
    def log_path(self) -> Path:
        return self.home_dir / LOG_FILE

    @property
    def restore_interval(self) -> float:
        return self.restore_interval_ms / 1000

    @property
    def default_profile(self) -> DefaultProfile:
        return DefaultProfile(
            type=self.default_type,
            colormode=self.default_colormode,
            ct=self.default_ct,
            bri=self.default_bri,
        )

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "Settings":
        if env is None:
            load_dotenv(find_dotenv(usecwd=True))
            env = dict(os.environ)

        mapping = {
            "bridge_ip": "HUE_BRIDGE_IP",
            "app_key": "APP_KEY",
            "devicetype": "HUE_DEVICETYPE",
            "home_dir": "HUEBRO_HOME",
            "magic_number": "HUEBRO_MAGIC_NUMBER",
            "default_type": "HUEBRO_DEFAULT_TYPE",
            "default_colormode": "HUEBRO_DEFAULT_COLORMODE",
            "default_ct": "HUEBRO_DEFAULT_CT",
            "default_bri": "HUEBRO_DEFAULT_BRI",
            "restore_interval_ms": "HUEBRO_RESTORE_INTERVAL_MS",
            "timeout": "HUEBRO_TIMEOUT",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        if "home_dir" in values:
            values["home_dir"] = Path(values["home_dir"]).expanduser()
        return cls(**values)
