"""FastAPI entrypoint for the Chaos Matrix service."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chaosmatrix.config import load_config
from chaosmatrix.errors import ErrorResponse, ToolError, error_response
from chaosmatrix.handlers import register_tool_handlers
from chaosmatrix.tool_chaos import install_random_source
from chaosmatrix.user_scope import (
    AUTH_EXEMPT_PATHS,
    SERVICE_TOKEN_HEADER,
    USER_ID_HEADER,
    normalize_user_id,
)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = load_config()
        app.state.config = config
        app.state.data_path = config.data_path
        install_random_source(app.state, config.random_seed)
        yield

    app = FastAPI(title="Chaos Matrix", lifespan=lifespan)

    @app.middleware("http")
    async def enforce_request_identity(request: Request, call_next):
        path = request.url.path
        if path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        config = getattr(request.app.state, "config", None)
        require_user_header = bool(getattr(config, "require_user_header", True))
        service_token = getattr(config, "service_token", None)

        if require_user_header:
            raw_user_id = request.headers.get(USER_ID_HEADER)
            if raw_user_id is None:
                error = ErrorResponse(
                    code="AUTH_REQUIRED",
                    message="Missing required user identity header.",
                    details={"header": USER_ID_HEADER},
                )
                return JSONResponse(status_code=401, content=error_response(error))
            try:
                request.state.user_id = normalize_user_id(raw_user_id)
            except ToolError as exc:
                return JSONResponse(status_code=401, content=error_response(exc.error))

        if service_token:
            supplied_token = request.headers.get(SERVICE_TOKEN_HEADER)
            if supplied_token != service_token:
                error = ErrorResponse(
                    code="AUTH_FORBIDDEN",
                    message="Invalid service token.",
                    details={"header": SERVICE_TOKEN_HEADER},
                )
                return JSONResponse(status_code=403, content=error_response(error))

        return await call_next(request)

    @app.exception_handler(ToolError)
    def handle_tool_error(request: Request, exc: ToolError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_response(exc.error))

    @app.get("/health", status_code=200)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    register_tool_handlers(app)
    return app


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    config = load_config()
    uvicorn.run(
        "chaosmatrix.main:app",
        host=config.host,
        port=config.port,
        log_level="info",
    )


app = create_app()
