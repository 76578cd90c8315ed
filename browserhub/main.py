#!/usr/bin/env python3
"""
browserhub - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the session registry and its browser driver
3. Serves the REST API and shuts every browser down on exit

All lifecycle logic is in the modules, following black box principles.
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from browserhub import __version__
from browserhub.logging_config import LoggingEventListener, configure_logging, get_logging_config
from browserhub.modules.api import (
    CreateSessionRequest,
    DeleteSessionResponse,
    ErrorResponse,
    HealthResponse,
    ServiceInfoResponse,
    SessionInfo,
    SessionListResponse,
    SessionResponse,
)
from browserhub.modules.config import ConfigModule, get_config
from browserhub.modules.driver import ChromiumDriver
from browserhub.modules.session import LaunchError, SessionRegistry, ShuttingDown

SERVICE_NAME = "Browser-as-a-Service"

# Get configuration
config = get_config()

configure_logging(config.get("log_level"))
logger = logging.getLogger("browserhub.api")


def build_registry(config: ConfigModule) -> SessionRegistry:
    """Wire the Chromium driver into a fresh registry."""
    driver = ChromiumDriver(
        executable_path=config.get("chrome_path"),
        # The registry deadline (LAUNCH_TIMEOUT or X-Launch-Timeout) bounds startup
        startup_timeout=None,
        terminate_timeout=config.get("terminate_timeout"),
    )
    return SessionRegistry(
        driver,
        launch_timeout=config.get("launch_timeout"),
        listener=LoggingEventListener(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - build the registry, then drain it on exit.

    uvicorn turns SIGINT/SIGTERM into the shutdown half of this context.
    """
    logger.info("Starting browserhub API...")
    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_registry(app.state.config)
    logger.info("browserhub API started successfully")

    yield

    registry: SessionRegistry = app.state.registry
    logger.info(f"Shutting down... cleaning up {registry.count()} browser sessions")
    failures = await registry.shutdown_all()
    if failures:
        logger.warning(f"{len(failures)} browser(s) did not terminate cleanly")
    logger.info("browserhub API shutdown complete")


def get_registry(request: Request) -> SessionRegistry:
    """Dependency: the registry owned by this application."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(503, "Service not initialized")
    return registry


async def parse_create_request(request: Request) -> CreateSessionRequest:
    """
    Dependency: the optional POST /sessions body.

    An empty or unparsable body means default options. A JSON body is
    validated and rejected with 422 when invalid.
    """
    raw = await request.body()
    try:
        data = json.loads(raw) if raw.strip() else None
    except ValueError:
        data = None
    try:
        return CreateSessionRequest.model_validate({} if data is None else data)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=data) from e


def create_app(
    registry: Optional[SessionRegistry] = None, config: Optional[ConfigModule] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        registry: Pre-built registry (tests); built from config at startup otherwise
        config: Configuration; the process-wide config by default
    """
    config = config or get_config()

    app = FastAPI(
        title="browserhub API",
        description="Remote browser instances with CDP WebSocket endpoints",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("cors_origins"),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health/Monitoring Endpoints

    @app.get("/", response_model=ServiceInfoResponse)
    async def service_info(registry: SessionRegistry = Depends(get_registry)):
        return ServiceInfoResponse(
            service=SERVICE_NAME,
            version=__version__,
            status="shutting_down" if registry.is_shutting_down else "ok",
            active_sessions=registry.count(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    @app.get("/healthz")
    async def healthz():
        """
        Minimal health check endpoint for readiness/liveness probes.

        Returns:
            200: Service is running
        """
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics(registry: SessionRegistry = Depends(get_registry)):
        """Prometheus-compatible metrics endpoint."""
        metrics_text = f"""# HELP browserhub_active_sessions Number of live browser sessions
# TYPE browserhub_active_sessions gauge
browserhub_active_sessions {registry.count()}
"""
        return Response(content=metrics_text, media_type="text/plain")

    # Sessions API

    @app.post("/sessions", response_model=SessionResponse, status_code=201)
    async def create_session(
        options: CreateSessionRequest = Depends(parse_create_request),
        x_launch_timeout: Optional[float] = Header(
            None, gt=0, le=300, description="Launch timeout in seconds"
        ),
        registry: SessionRegistry = Depends(get_registry),
    ):
        """
        Launch a browser and return its CDP endpoint.

        Returns:
            201: Session created
            422: Invalid options
            500: Browser failed to launch
            503: Service is shutting down
        """
        logger.info("Creating session...")
        session = await registry.create(options.to_launch_options(), timeout=x_launch_timeout)
        logger.info(f"Session {session.id} created. WS: {session.endpoint}")
        return SessionResponse(session=SessionInfo.from_session(session))

    @app.get("/sessions", response_model=SessionListResponse)
    async def list_sessions(registry: SessionRegistry = Depends(get_registry)):
        """List all live sessions, oldest first."""
        sessions = sorted(registry.list(), key=lambda s: s.created_at)
        return SessionListResponse(
            count=len(sessions),
            sessions=[SessionInfo.from_session(s) for s in sessions],
        )

    @app.get("/sessions/{session_id}", response_model=SessionResponse)
    async def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        """
        Get session details.

        Returns:
            200: Session details
            404: Session not found
        """
        session = registry.get(session_id)
        if session is None:
            raise HTTPException(404, "Session not found")
        return SessionResponse(session=SessionInfo.from_session(session))

    @app.delete("/sessions/{session_id}", response_model=DeleteSessionResponse)
    async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        """
        Kill a session.

        Returns:
            200: Session terminated
            404: Session not found
        """
        logger.info(f"Killing session {session_id}...")
        if not await registry.terminate(session_id):
            raise HTTPException(404, "Session not found")
        logger.info(f"Session {session_id} killed.")
        return DeleteSessionResponse(message=f"Session {session_id} terminated")

    # Error handlers

    @app.exception_handler(LaunchError)
    async def launch_error_handler(request, exc: LaunchError):
        """Handle browser launch failures."""
        logger.error(f"Failed to create session: {exc.detail} (cause: {exc.cause.value})")
        return _error_response(500, exc.detail, cause=exc.cause.value)

    @app.exception_handler(ShuttingDown)
    async def shutting_down_handler(request, exc: ShuttingDown):
        """Reject new sessions while draining."""
        return _error_response(503, str(exc), cause="shutting_down")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        """Invalid options or headers, in the standard error envelope."""
        return _error_response(422, _describe_errors(exc.errors()), cause="invalid_options")

    return app


def _error_response(status_code: int, error: str, cause: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, cause=cause)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def _describe_errors(errors) -> str:
    messages = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "; ".join(messages)


app = create_app()


def main() -> None:
    """Run the API server."""
    uvicorn.run(
        "browserhub.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    main()
