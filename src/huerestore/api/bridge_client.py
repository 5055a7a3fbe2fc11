from typing import Any, Optional

import requests

from huerestore.api.http_client import HttpClient
from huerestore.commands.base import StateCommand
from huerestore.config import Settings
from huerestore.errors import BridgeApiError


def bridge_error(response: Any) -> Optional[BridgeApiError]:
    """Return the first error entry of a bridge response, if there is one.

    The v1 API answers writes (and failed reads) with a list such as
    ``[{"error": {"type": 1, "address": "/", "description": "unauthorized user"}}]``.
    """
    if isinstance(response, list):
        for entry in response:
            if isinstance(entry, dict) and "error" in entry:
                return BridgeApiError.from_entry(entry)
    return None


class BridgeClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.http = HttpClient(settings.bridge_url, timeout=settings.timeout, session=session)
        self.key = settings.app_key

    def fetch_lights(self) -> dict[str, dict]:
        _, response = self.http.get(f"api/{self.key}/lights")

        error = bridge_error(response)
        if error:
            raise error
        if not isinstance(response, dict):
            raise BridgeApiError(f"unexpected response type {type(response).__name__}")
        return response

    def apply_state(self, light_index: int, command: StateCommand) -> tuple[int, Any]:
        return self.http.put(f"api/{self.key}/lights/{light_index}/state", command.to_payload())

    def register_app(self) -> Any:
        payload = {"devicetype": self.settings.devicetype, "username": self.key}
        _, response = self.http.post("api", payload)
        return response

    def unregister_app(self) -> Any:
        _, response = self.http.delete(f"api/{self.key}/config/whitelist/{self.key}")
        return response
