"""Tool route registration."""

# ruff: noqa: F401

from __future__ import annotations

from fastapi import FastAPI

from vault_tasks.mcp_router import mcp_router

# Import modules to register routes with the shared router.
from vault_tasks import mcp_tasks, mcp_tools_endpoint

from vault_tasks.mcp_tasks import complete_task, list_all_tasks, query_tasks
from vault_tasks.mcp_tools_endpoint import list_tool_schemas


def register_mcp_handlers(app: FastAPI) -> None:
    """Attach tool routes to the FastAPI application."""
    app.include_router(mcp_router)
