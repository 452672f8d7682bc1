# bizdesk/api/client.py
"""
Thin JSON client for the organisation REST API.

- One httpx.Client per ApiClient; base URL, timeout and JSON headers from config
- get/post/put return the decoded JSON body
- Any transport failure or non-2xx status is raised as ApiError
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .. import config

_log = logging.getLogger(__name__)


class ApiError(Exception):
    """Remote call failed (network error or non-2xx response)."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: Optional[httpx.BaseTransport] = None,
        cookies: Optional[dict] = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.REQUEST_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
            cookies=cookies,
        )

    # ---- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- verbs --------------------------------------------------------------

    def get(self, path: str, params: dict | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, data: dict | None = None) -> Any:
        return self._request("POST", path, json=data or {})

    def put(self, path: str, data: dict | None = None) -> Any:
        return self._request("PUT", path, json=data or {})

    # ---- internals ----------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            _log.error("%s %s failed: %s", method, path, e)
            raise ApiError(f"Could not reach the server: {e}") from e

        body = self._decode(response)
        if response.is_error:
            message = self._error_message(body) or f"HTTP {response.status_code}"
            _log.error("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code, body=body)
        return body

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(body: Any) -> str | None:
        if isinstance(body, dict):
            for key in ("message", "error", "detail"):
                val = body.get(key)
                if isinstance(val, str) and val.strip():
                    return val.strip()
        if isinstance(body, str) and body.strip():
            return body.strip()
        return None
