"""
Flow Bridge main application.

Bridges flow runtime nodes to real-time browser clients. Each endpoint is
a namespace with a data channel and a control channel, mounted at its own
base path and torn down on unmount or shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from shared.config.settings import Settings, settings as default_settings
from shared.config.logging import setup_logging, bridge_logger as logger
from shared.infrastructure.correlation import CorrelationIdMiddleware
from shared.utils.exceptions import ConflictError, NotFoundError, ValidationError
from flow_bridge.components.core.constants import DEFAULT_ALLOWED_ORIGINS
from flow_bridge.components.core.errors import EndpointExistsError, EndpointNotFoundError
from flow_bridge.components.flow.node import RecordingFlowNode
from flow_bridge.endpoint_manager import EndpointManager


class MountRequest(BaseModel):
    """Body of POST /bridge/endpoints. Unset options use the settings defaults."""

    url: str
    data_channel: str | None = None
    control_channel: str | None = None
    allow_scripts: bool | None = None
    allow_styles: bool | None = None
    fwd_in_messages: bool | None = None
    topic: str | None = None


def create_app(app_settings: Settings = default_settings) -> FastAPI:
    """
    Build the bridge application.

    Endpoints listed in BRIDGE_ENDPOINTS are mounted at startup with a
    RecordingFlowNode each; every endpoint is torn down on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        for error in app_settings.validate_production():
            logger.warning("Configuration problem", error=error)

        logger.info(
            "Starting Flow Bridge",
            port=app_settings.bridge_port,
            env=app_settings.environment,
        )
        for url in app_settings.endpoint_urls():
            try:
                manager.mount(url, RecordingFlowNode(url))
            except (EndpointExistsError, ValueError) as e:
                logger.error("Failed to mount configured endpoint", endpoint=url, error=str(e))

        yield

        logger.info("Shutting down Flow Bridge")
        await manager.shutdown()

    app = FastAPI(
        title="Flow Bridge",
        description="Real-time bridge between flow nodes and browser clients",
        version="0.1.0",
        lifespan=lifespan,
    )
    manager = EndpointManager(app.router.routes, settings=app_settings)
    app.state.manager = manager

    allowed_origins = (
        [o.strip() for o in app_settings.allowed_origins.split(",") if o.strip()]
        if app_settings.allowed_origins
        else list(DEFAULT_ALLOWED_ORIGINS)
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", CorrelationIdMiddleware.HEADER_NAME],
    )
    app.add_middleware(CorrelationIdMiddleware)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/bridge/health")
    def health_check():
        """Basic health check endpoint."""
        try:
            stats = manager.server.get_stats()
        except Exception as e:
            logger.warning("Failed to get stats in health check", error=str(e))
            stats = {"error": "stats_unavailable"}
        return {
            "status": "healthy",
            "service": "flow-bridge",
            "version": app.version,
            "environment": app_settings.environment,
            **stats,
        }

    # =========================================================================
    # Endpoint administration
    # =========================================================================

    @app.get("/bridge/endpoints")
    def list_endpoints():
        return manager.get_stats()

    @app.post("/bridge/endpoints", status_code=201)
    def mount_endpoint(body: MountRequest):
        try:
            bridge = manager.mount(
                body.url,
                RecordingFlowNode(body.url),
                data_channel=body.data_channel,
                control_channel=body.control_channel,
                allow_scripts=body.allow_scripts,
                allow_styles=body.allow_styles,
                fwd_in_messages=body.fwd_in_messages,
                topic=body.topic,
            )
        except EndpointExistsError as e:
            raise ConflictError(str(e), endpoint=e.url)
        except ValueError as e:
            raise ValidationError(str(e), endpoint=body.url)
        return bridge.get_stats()

    @app.delete("/bridge/endpoints")
    async def unmount_endpoint(url: str = Query(..., description="Endpoint base path")):
        try:
            await manager.unmount(url)
        except EndpointNotFoundError as e:
            raise NotFoundError("Endpoint", e.url)
        return {"unmounted": url}

    return app


app = create_app()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flow_bridge.main:app",
        host=default_settings.bridge_host,
        port=default_settings.bridge_port,
        reload=default_settings.debug,
    )
