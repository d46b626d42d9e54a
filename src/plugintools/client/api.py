"""Minimal Mattermost REST API v4 client built on httpx.

Covers only what pluginctl needs: server config, server logs, forced plugin
upload, plugin enable/disable and username/password login.

Every failure (connection error, timeout, expired deadline, non-2xx status)
surfaces as ``PluginctlError(TRANSPORT)``. Nothing is retried.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, BinaryIO

import httpx

from ..errors import ErrorKind, PluginctlError
from .transport import BearerToken, LocalSocket, LoginCreds, Transport

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
# Host part is ignored by the server when talking over the local socket
LOCAL_MODE_BASE_URL = "http://_"
DEFAULT_TIMEOUT = 120.0
USER_AGENT = "pluginctl/1.0.0"


class MattermostClient:
    """Synchronous client for one server session.

    Args:
        base_url:        Site URL without the ``/api/v4`` suffix.
        token:           Bearer token; empty for local mode.
        http_transport:  Optional httpx transport (unix socket, or a mock in tests).
        timeout:         Per-request timeout in seconds.
        deadline:        ``time.monotonic()`` value after which no request may
                         start; in-flight requests are cut to the time left.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        http_transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        deadline: float | None = None,
    ) -> None:
        headers = {"User-Agent": USER_AGENT, "X-Requested-With": "XMLHttpRequest"}
        self._http = httpx.Client(
            base_url=base_url.rstrip("/") + API_PREFIX,
            transport=http_transport,
            timeout=timeout,
            headers=headers,
        )
        self._timeout = timeout
        self.deadline = deadline
        if token:
            self.set_token(token)

    @classmethod
    def connect(
        cls,
        transport: Transport,
        deadline: float | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_transport: httpx.BaseTransport | None = None,
    ) -> "MattermostClient":
        """Build a client for ``transport``, logging in first for LoginCreds."""
        if isinstance(transport, LocalSocket):
            return cls(
                LOCAL_MODE_BASE_URL,
                http_transport=http_transport or httpx.HTTPTransport(uds=transport.path),
                timeout=timeout,
                deadline=deadline,
            )
        if isinstance(transport, BearerToken):
            return cls(
                transport.url,
                token=transport.token,
                http_transport=http_transport,
                timeout=timeout,
                deadline=deadline,
            )
        if isinstance(transport, LoginCreds):
            client = cls(transport.url, http_transport=http_transport, timeout=timeout, deadline=deadline)
            try:
                client.login(transport.username, transport.password)
            except PluginctlError:
                client.close()
                raise
            return client
        raise TypeError(f"unsupported transport: {transport!r}")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def set_token(self, token: str) -> None:
        self._http.headers["Authorization"] = f"Bearer {token}"

    def _request_timeout(self, what: str) -> float:
        if self.deadline is None:
            return self._timeout
        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise PluginctlError(ErrorKind.TRANSPORT, f"{what}: deadline exceeded")
        return min(self._timeout, remaining)

    def _request(self, method: str, path: str, what: str, **kwargs: Any) -> httpx.Response:
        timeout = self._request_timeout(what)
        try:
            response = self._http.request(method, path, timeout=timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise PluginctlError(ErrorKind.TRANSPORT, what) from exc

        if response.is_error:
            raise PluginctlError(
                ErrorKind.TRANSPORT,
                f"{what}: {response.status_code} {_error_message(response)}",
            )
        return response

    def _json(self, response: httpx.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise PluginctlError(ErrorKind.TRANSPORT, f"{what}: response is not JSON") from exc

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MattermostClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> None:
        what = f"failed to login as {username}"
        response = self._request(
            "POST", "/users/login", what, json={"login_id": username, "password": password}
        )
        token = response.headers.get("Token")
        if not token:
            raise PluginctlError(ErrorKind.TRANSPORT, f"{what}: no session token in response")
        self.set_token(token)

    def get_config(self) -> dict[str, Any]:
        what = "failed to fetch config"
        cfg = self._json(self._request("GET", "/config", what), what)
        if not isinstance(cfg, dict):
            raise PluginctlError(ErrorKind.TRANSPORT, f"{what}: unexpected response")
        return cfg

    def get_logs(self, page: int, per_page: int) -> list[str]:
        what = "failed to get logs from Mattermost"
        logs = self._json(
            self._request("GET", "/logs", what, params={"page": page, "logs_per_page": per_page}),
            what,
        )
        if logs is None:
            return []
        if not isinstance(logs, list) or not all(isinstance(e, str) for e in logs):
            raise PluginctlError(ErrorKind.TRANSPORT, f"{what}: unexpected response")
        return logs

    def upload_plugin_forced(self, bundle: BinaryIO, filename: str = "plugin.tar.gz") -> dict[str, Any]:
        """Upload a plugin bundle, replacing any installed version."""
        what = "failed to upload plugin bundle"
        response = self._request(
            "POST",
            "/plugins",
            what,
            files={"plugin": (Path(filename).name, bundle, "application/gzip")},
            data={"force": "true"},
        )
        manifest = self._json(response, what)
        return manifest if isinstance(manifest, dict) else {}

    def enable_plugin(self, plugin_id: str) -> None:
        self._request("POST", f"/plugins/{plugin_id}/enable", "failed to enable plugin")

    def disable_plugin(self, plugin_id: str) -> None:
        self._request("POST", f"/plugins/{plugin_id}/disable", "failed to disable plugin")


def _error_message(response: httpx.Response) -> str:
    """Return the server's AppError message, or the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase
