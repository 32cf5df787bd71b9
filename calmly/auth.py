"""Client side of the demo auth API, shared by the CLI and the mobile app."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Optional

from pydantic import ValidationError

from calmly.models import AuthResult, User

log = logging.getLogger(__name__)

_TIMEOUT = 8


def _parse(raw: bytes) -> dict[str, Any]:
    try:
        data = json.loads(raw or b"{}")
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def _post(url: str, payload: dict[str, str]) -> AuthResult:
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", "User-Agent": "Calmly/0.1"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=_TIMEOUT) as resp:
            status = resp.status
            body = _parse(resp.read())
    except urllib.error.HTTPError as exc:
        status = exc.code
        body = _parse(exc.read())
    except (urllib.error.URLError, OSError) as exc:
        log.debug("Auth request to %s failed", url, exc_info=True)
        return AuthResult(ok=False, status=0, message=f"Could not reach the server ({exc}).")

    user: Optional[User] = None
    if isinstance(body.get("user"), dict):
        try:
            user = User.model_validate(body["user"])
        except ValidationError:
            log.warning("Server returned a malformed user: %r", body["user"])
    return AuthResult(
        ok=200 <= status < 300,
        status=status,
        message=str(body.get("message", "")),
        token=body.get("token"),
        user=user,
    )


def login(base_url: str, username: str, password: str) -> AuthResult:
    return _post(f"{base_url.rstrip('/')}/api/login", {"username": username, "password": password})


def register(base_url: str, username: str, password: str, dob: str) -> AuthResult:
    return _post(
        f"{base_url.rstrip('/')}/api/register",
        {"username": username, "password": password, "dob": dob},
    )
