from typing import Optional


class HueRestoreError(Exception):
    pass


class BridgeError(HueRestoreError):
    pass


class BridgeTransportError(BridgeError):
    """The bridge could not be reached or answered with something other than JSON."""


class BridgeApiError(BridgeError):
    """The bridge answered with a structured error entry."""

    def __init__(self, description: str, error_type: Optional[int] = None, address: Optional[str] = None):
        super().__init__(description)
        self.description = description
        self.error_type = error_type
        self.address = address

    @classmethod
    def from_entry(cls, entry: dict) -> "BridgeApiError":
        error = entry.get("error") or {}
        return cls(
            description=error.get("description") or "unknown error",
            error_type=error.get("type"),
            address=error.get("address"),
        )


class StorageError(HueRestoreError):
    pass
