"""HTTP access log middleware -- emits structured METRIC lines.

Captures every non-skipped HTTP request/response cycle with method, path,
status code, wall time, caller (from the JWT, no lookups) and request ID.
Domain failures travel as HTTP 200 with ``error: true`` in the envelope,
so the envelope message is captured too and logged at WARNING.
"""

from __future__ import annotations

import json
import logging
import time

import jwt as pyjwt
from starlette.types import ASGIApp, Receive, Scope, Send

from app_engine.auth import decode_token

logger = logging.getLogger("app_engine.access")

_SKIP_PREFIXES = ("/health", "/docs", "/openapi.json", "/favicon.ico")
_MAX_CAPTURE = 64 * 1024


class AccessLogMiddleware:
    """ASGI middleware that logs every HTTP request as a structured METRIC line."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path: str = scope.get("path", "")
        if path.startswith(_SKIP_PREFIXES):
            await self.app(scope, receive, send)
            return

        method: str = scope.get("method", "?")
        request_id: str = scope.get("state", {}).get("request_id", "-")
        username = _extract_username(scope)
        t0 = time.perf_counter()
        status_code = 0
        body = bytearray()

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body" and len(body) < _MAX_CAPTURE:
                body.extend(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if status_code == 0:
                status_code = 500
            raise
        finally:
            wall_ms = (time.perf_counter() - t0) * 1000
            _emit(method, path, status_code, wall_ms, username, request_id, _error_detail(bytes(body)))


def _extract_username(scope: Scope) -> str:
    """Decode the bearer token without any lookups; ``-`` when absent or bad."""
    headers = dict(scope.get("headers", []))
    auth = headers.get(b"authorization", b"").decode("utf-8", errors="ignore")
    if not auth.startswith("Bearer "):
        return "-"
    try:
        return str(decode_token(auth[7:]).get("sub", "-"))
    except pyjwt.PyJWTError:
        return "-"


def _error_detail(body: bytes) -> str:
    """The envelope message when the response reports ``error: true``."""
    if not body:
        return ""
    try:
        payload = json.loads(body)
    except ValueError:
        return ""
    if isinstance(payload, dict) and payload.get("error") is True:
        return str(payload.get("message", ""))[:200]
    return ""


def _emit(
    method: str,
    path: str,
    status_code: int,
    wall_ms: float,
    username: str,
    request_id: str,
    error_detail: str,
) -> None:
    parts = [
        "METRIC | type=http_request",
        f"method={method}",
        f"path={path}",
        f"status={status_code}",
        f"wall_ms={wall_ms:.0f}",
        f"user={username}",
        f"req_id={request_id}",
    ]
    if error_detail:
        # Pipes would break the METRIC format
        parts.append(f"error={error_detail.replace('|', '/')}")
    line = " | ".join(parts)

    if status_code >= 500:
        logger.error(line)
    elif status_code >= 400 or error_detail:
        logger.warning(line)
    else:
        logger.info(line)
