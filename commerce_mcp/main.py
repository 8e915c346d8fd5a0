"""Commerce MCP Gateway application module.

Builds the FastAPI application: configuration, logging, middleware, the
``/mcp`` and ``/health`` routes, and the startup/shutdown lifecycle of the
session sweeper and the upstream HTTP client.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commerce_mcp import __version__
from commerce_mcp.api_client import CommerceAPIClient
from commerce_mcp.config import Settings, settings as default_settings
from commerce_mcp.health import router as health_router
from commerce_mcp.log import configure_logging
from commerce_mcp.middleware import setup_middleware
from commerce_mcp.router import SESSION_HEADER, router as mcp_router
from commerce_mcp.sessions import SessionRegistry
from commerce_mcp.tools import build_registry
from commerce_mcp.transport import SessionTransport

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    api_client: CommerceAPIClient | None = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        settings: Settings to use; defaults to the environment-loaded ones.
        api_client: Upstream client; built from settings when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level, settings.log_json)

    if api_client is None:
        api_client = CommerceAPIClient(
            base_url=settings.commerce_api_url,
            user_agent=settings.commerce_user_agent,
            timeout=settings.commerce_timeout,
            verify=settings.commerce_verify_tls,
        )

    tool_registry = build_registry(api_client)
    sessions = SessionRegistry(
        transport_factory=lambda session_id: SessionTransport(
            session_id,
            tool_registry,
            server_name=settings.server_name,
            server_version=__version__,
        ),
        ttl=settings.session_ttl_seconds,
        sweep_interval=settings.session_sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "Starting Commerce MCP Gateway",
            version=__version__,
            commerce_api_url=settings.commerce_api_url,
            tools=len(tool_registry),
        )
        sessions.start()

        yield

        logger.info("Shutting down Commerce MCP Gateway", active_sessions=len(sessions))
        await sessions.stop()
        sessions.close_all()
        await api_client.close()

    app = FastAPI(
        title="Commerce MCP Gateway",
        description="MCP tools over a commerce REST API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.tools = tool_registry
    app.state.api_client = api_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )
    setup_middleware(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(mcp_router, tags=["MCP"])

    return app


def main() -> None:
    """Run the gateway HTTP server.

    Entry point for the ``commerce-mcp`` console script.
    """
    app = create_app()
    logger.info(
        "Commerce MCP Gateway listening",
        mcp_endpoint=f"http://{default_settings.host}:{default_settings.port}/mcp",
        health_endpoint=f"http://{default_settings.host}:{default_settings.port}/health",
    )
    uvicorn.run(
        app,
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
