"""Serves the tool definitions at ``GET /tools``."""

from __future__ import annotations

import logging
from typing import Any

from vault_tasks.errors import McpError, success_response
from vault_tasks.mcp_router import mcp_router
from tools.mcp_tools import ToolSchemaError, load_tool_definitions, tool_names

logger = logging.getLogger(__name__)


@mcp_router.get("/tools")
def list_tool_schemas() -> dict[str, Any]:
    try:
        definitions = load_tool_definitions()
    except ToolSchemaError as exc:
        logger.error("Tool definitions unavailable: %s", exc)
        raise McpError(
            "TOOL_SCHEMA_ERROR",
            "Tool definitions could not be loaded.",
            {"error": str(exc)},
        ) from exc
    return success_response({"tools": definitions, "names": tool_names(definitions)})
