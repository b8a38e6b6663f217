"""
client.py - BugBoard REST client
Single responsibility: send HTTP requests with the session token and map failures.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from bugboard.config import API_BASE_URL, HTTP_TIMEOUT
from bugboard.errors import NetworkError, error_from_response
from bugboard.session import Session

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin wrapper over ``httpx.Client``.

    Adds ``Authorization: Bearer <token>`` from the session on every call,
    turns transport failures into NetworkError and non-2xx responses into
    the BugBoardError taxonomy. No retries.
    """

    def __init__(
        self,
        session: Session,
        *,
        base_url: str = API_BASE_URL,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = HTTP_TIMEOUT,
    ):
        self.session = session
        options: dict[str, Any] = {"base_url": base_url.rstrip("/"), "transport": transport}
        if timeout is not None:
            options["timeout"] = timeout
        self._http = httpx.Client(**options)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        token = self.session.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: Any = None,
        files: dict | None = None,
        data: dict | None = None,
    ) -> httpx.Response:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self._http.request(
                method,
                path,
                params=params,
                json=json,
                files=files,
                data=data,
                headers=self._headers(),
            )
        except httpx.TransportError as exc:
            logger.warning(f"{method} {path} failed without response: {exc}")
            raise NetworkError() from exc

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                f"{method} {path} -> {response.status_code}: {error.message}"
            )
            raise error
        return response

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_json(self, path: str, params: dict | None = None) -> Any:
        return _json_body(self.request("GET", path, params=params))

    def post_json(self, path: str, payload: Any = None, params: dict | None = None) -> Any:
        return _json_body(self.request("POST", path, json=payload, params=params))

    def put_json(self, path: str, payload: Any = None, params: dict | None = None) -> Any:
        return _json_body(self.request("PUT", path, json=payload, params=params))

    def patch_json(self, path: str, payload: Any = None) -> Any:
        return _json_body(self.request("PATCH", path, json=payload))

    def delete(self, path: str, params: dict | None = None) -> Any:
        return _json_body(self.request("DELETE", path, params=params))

    def get_bytes(self, path: str) -> bytes:
        return self.request("GET", path).content


def _json_body(response: httpx.Response) -> Any:
    """Decoded JSON body; None for an empty body, raw text for non-JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text

