"""Bulk entry endpoint: parse a chaos dump and optionally store it."""

from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import Request

from chaosmatrix.chaos_parser import apply_batch_defaults, parse
from chaosmatrix.errors import ToolError, success_response
from chaosmatrix.models import Category, Recurrence
from chaosmatrix.task_store import coerce_task_fields
from chaosmatrix.tool_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
)
from chaosmatrix.tool_router import tool_router
from chaosmatrix.tool_tasks import get_request_store

BATCH_FIELDS = {"targetDate", "recurrence", "category", "clientName"}


def install_random_source(state: Any, seed: int | None) -> None:
    """Give the app one random source for its lifetime, seeded from config."""
    state.rng = random.Random(seed)
    state.rng_lock = threading.Lock()


@contextmanager
def request_rng(request: Request, seed: int | None = None) -> Iterator[random.Random]:
    """A payload seed gets its own generator; otherwise draw from the app's."""
    if seed is not None:
        yield random.Random(seed)
        return
    state = request.app.state
    shared = getattr(state, "rng", None)
    if shared is None:
        yield random.Random()
        return
    with state.rng_lock:
        yield shared


@tool_router.post("/tool:parse_chaos")
def parse_chaos(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Turn a free-form list into drafts; with ``commit`` store them as tasks."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"text", "seed", "commit"} | BATCH_FIELDS)
    _require_fields(payload, ["text"])

    text = payload["text"]
    if not isinstance(text, str):
        raise ToolError(
            "INVALID_TYPE",
            "text must be a string.",
            {"text": str(text)},
        )
    seed = payload.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ToolError(
            "INVALID_TYPE",
            "seed must be an integer.",
            {"seed": str(seed)},
        )
    commit = payload.get("commit", False)
    if not isinstance(commit, bool):
        raise ToolError(
            "INVALID_TYPE",
            "commit must be a boolean.",
            {"commit": str(commit)},
        )

    batch = coerce_task_fields(
        {key: payload[key] for key in BATCH_FIELDS if key in payload}, partial=False
    )
    if batch.get("category") is Category.CLIENT and not batch.get("client_name"):
        raise ToolError(
            "CLIENT_NAME_REQUIRED",
            "clientName is required when category is client.",
            {"category": Category.CLIENT.value},
        )
    with request_rng(request, seed) as rng:
        parsed = parse(text, rng)
    drafts = apply_batch_defaults(
        parsed,
        target_date=batch.get("target_date"),
        recurrence=batch.get("recurrence", Recurrence.NONE),
        category=batch.get("category", Category.OWN),
        client_name=batch.get("client_name"),
    )

    if not commit:
        return success_response({"drafts": [draft.to_dict() for draft in drafts]})
    if not drafts:
        return success_response({"tasks": [], "commitSha": None})

    tasks, commit_sha = get_request_store(request).bulk_create(drafts)
    return success_response(
        {"tasks": [task.to_dict() for task in tasks], "commitSha": commit_sha}
    )
