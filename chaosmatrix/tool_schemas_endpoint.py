"""``GET /tools``: the function-tool catalogue an agent uses to drive the matrix.

Definitions live in ``tools/chaos_tools.json`` with one entry per ``/tool:``
route. They are read on each call so an edited catalogue is picked up
without a restart.
"""

from __future__ import annotations

import logging
from typing import Any

from chaosmatrix.errors import ToolError, success_response
from chaosmatrix.tool_router import tool_router
from tools.chaos_tools import ToolSchemaError, load_tool_definitions

logger = logging.getLogger(__name__)


@tool_router.get("/tools")
def list_tool_schemas() -> dict[str, Any]:
    try:
        tools = load_tool_definitions()
    except ToolSchemaError as exc:
        logger.warning("tool catalogue unavailable: %s", exc)
        raise ToolError(
            "TOOL_SCHEMA_ERROR",
            "Tool definitions could not be loaded.",
            {"error": str(exc)},
        ) from exc
    return success_response({"tools": tools, "count": len(tools)})
