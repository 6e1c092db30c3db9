"""FastAPI entrypoint for the vault task service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vault_tasks.config import ConfigError, load_config
from vault_tasks.errors import ErrorResponse, McpError, error_response
from vault_tasks.logging_setup import setup_logging
from vault_tasks.mcp import register_mcp_handlers

logger = logging.getLogger(__name__)

SERVICE_TOKEN_HEADER = "X-Vault-Tasks-Token"
AUTH_EXEMPT_PATHS = {"/health"}


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = load_config()
        setup_logging(console_level=config.log_level, log_file=config.log_file)
        app.state.config = config
        app.state.vault_path = config.vault_path
        logger.info("Serving tasks from %s", config.vault_path)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.middleware("http")
    async def enforce_service_token(request: Request, call_next):
        if request.url.path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        config = getattr(request.app.state, "config", None)
        service_token = getattr(config, "service_token", None)
        if service_token:
            supplied_token = request.headers.get(SERVICE_TOKEN_HEADER)
            if supplied_token != service_token:
                logger.warning("Rejected request to %s: bad service token", request.url.path)
                error = ErrorResponse(
                    code="AUTH_FORBIDDEN",
                    message="Invalid service token.",
                    details={"header": SERVICE_TOKEN_HEADER},
                )
                return JSONResponse(status_code=403, content=error_response(error))

        return await call_next(request)

    @app.exception_handler(McpError)
    def handle_mcp_error(request: Request, exc: McpError) -> JSONResponse:
        logger.debug("%s failed: %s", request.url.path, exc.error.code)
        return JSONResponse(status_code=400, content=error_response(exc.error))

    @app.get("/health", status_code=200)
    def health(request: Request) -> dict[str, Any]:
        vault_path = getattr(request.app.state, "vault_path", None)
        return {"status": "ok", "vault": vault_path is not None and vault_path.is_dir()}

    register_mcp_handlers(app)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    try:
        config = load_config()
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc
    uvicorn.run("vault_tasks.main:app", host=config.host, port=config.port)
