import logging
from typing import Any, Optional

import requests

from huerestore.errors import BridgeTransportError

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(self, base_url: str, *, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}

    def get(self, path: str) -> tuple[int, Any]:
        return self._request("GET", path)

    def put(self, path: str, payload: dict) -> tuple[int, Any]:
        return self._request("PUT", path, payload)

    def post(self, path: str, payload: dict) -> tuple[int, Any]:
        return self._request("POST", path, payload)

    def delete(self, path: str) -> tuple[int, Any]:
        return self._request("DELETE", path, {})

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> tuple[int, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("%s %s %s", method, url, payload if payload is not None else "")
        try:
            r = self.session.request(method, url, json=payload, headers=self.headers, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise BridgeTransportError(f"{method} {url} failed: {e}") from e

        try:
            return r.status_code, r.json()
        except ValueError as e:
            raise BridgeTransportError(f"{method} {url} returned invalid JSON") from e
