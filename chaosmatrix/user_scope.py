"""Who is calling, and where their tasks live.

The identity provider sits in front of the service and forwards the caller as
``X-Chaos-Matrix-User-Id``. A trusted front end may also be required to send
``X-Chaos-Matrix-Service-Token``. Each user gets a private directory under the
configured data path::

    <CHAOS_MATRIX_DATA_PATH>/users/<user id without dashes>/tasks.json
"""

from __future__ import annotations

import re
from pathlib import Path

from fastapi import Request

from chaosmatrix.errors import ToolError

USER_ID_HEADER = "X-Chaos-Matrix-User-Id"
SERVICE_TOKEN_HEADER = "X-Chaos-Matrix-Service-Token"
AUTH_EXEMPT_PATHS = {"/health"}

USER_ID_PATTERN = re.compile(r"[A-Za-z0-9_]{3,128}")


def _identity_missing() -> ToolError:
    return ToolError(
        "AUTH_REQUIRED",
        "Missing required user identity header.",
        {"header": USER_ID_HEADER},
    )


def normalize_user_id(raw_user_id: str) -> str:
    """Drop dashes so UUID-style ids become safe directory names."""
    if not isinstance(raw_user_id, str):
        raise ToolError(
            "INVALID_USER_ID",
            "User id must be a string.",
            {"type": type(raw_user_id).__name__},
        )
    user_id = raw_user_id.strip().replace("-", "")
    if not user_id:
        raise _identity_missing()
    if USER_ID_PATTERN.fullmatch(user_id) is None:
        raise ToolError(
            "INVALID_USER_ID",
            "User id contains invalid characters.",
            {"user_id": raw_user_id},
        )
    return user_id


def resolve_user_data_root(base_root: Path, user_id: str) -> Path:
    return base_root / "users" / normalize_user_id(user_id)


def get_request_user_id(request: Request) -> str:
    """The middleware stores the caller on ``request.state``; fall back to the header."""
    raw_user_id = getattr(request.state, "user_id", None)
    if not (isinstance(raw_user_id, str) and raw_user_id.strip()):
        raw_user_id = request.headers.get(USER_ID_HEADER)
        if raw_user_id is None:
            raise _identity_missing()
    request.state.user_id = normalize_user_id(raw_user_id)
    return request.state.user_id


def _base_data_path(request: Request) -> Path:
    state = request.app.state
    config = getattr(state, "config", None)
    return Path(getattr(config, "data_path", None) or state.data_path)


def get_request_data_root(request: Request) -> Path:
    """The caller's task directory, created on first use."""
    user_root = resolve_user_data_root(
        _base_data_path(request), get_request_user_id(request)
    )
    user_root.mkdir(parents=True, exist_ok=True)
    return user_root
