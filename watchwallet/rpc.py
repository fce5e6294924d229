"""JSON-RPC client for a Bitcoin node."""

from __future__ import annotations

import base64
import json
import urllib.error
import urllib.request
from collections.abc import Iterable
from typing import Any

REQUEST_ID = "wallet-watcher"
JSONRPC_VERSION = "1.0"
DEFAULT_TIMEOUT = 10.0


class RpcError(Exception):
    """Raised when a call fails or the node reports an error."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RpcClient:
    """Makes authenticated JSON-RPC calls over HTTP."""

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.username = username
        self.password = password
        self.timeout = timeout

    def build_request(self, method: str, params: Iterable[Any] | None = None) -> bytes:
        """Return the encoded request body for a call."""
        body = {
            "jsonrpc": JSONRPC_VERSION,
            "id": REQUEST_ID,
            "method": method,
            "params": None if params is None else list(params),
        }
        return json.dumps(body, separators=(",", ":")).encode("utf-8")

    def parse_response(self, body: bytes | str) -> Any:
        """Decode a response body and return its result value."""
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise RpcError(f"invalid response: {exc}") from exc
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise RpcError("invalid response: expected a JSON object")
        error = payload.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise RpcError("invalid response: malformed error field")
            code = error.get("code", 0)
            message = error.get("message", "")
            raise RpcError(f"RPC error: {code} - {message}", code=code)
        return payload.get("result")

    def _authorization(self) -> str:
        credentials = f"{self.username}:{self.password}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def call(self, method: str, params: Iterable[Any] | None = None) -> Any:
        """Call a remote method and return its decoded result."""
        request = urllib.request.Request(
            self.url,
            data=self.build_request(method, params),
            method="POST",
            headers={
                "Authorization": self._authorization(),
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            # The node answers RPC errors with a non-200 status and a JSON body.
            body = exc.read()
        except (urllib.error.URLError, OSError) as exc:
            raise RpcError(f"request failed: {exc}") from exc
        return self.parse_response(body)