# index_mcp/app.py

"""FastAPI Application Factory

Builds the ASGI app served by McpServer:
- MCP SSE/POST transport under ENDPOINT_PATH
- health and administration routers
- CORS configuration
- startup/shutdown logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from index_mcp.routes import admin, health, mcp

logger = logging.getLogger(__name__)


def create_app(server) -> FastAPI:
    """
    Create the FastAPI app for a server

    Args:
        server: McpServer whose registries, history and sessions the routes use

    Returns:
        FastAPI application with server stored in app.state.mcp_server
    """
    settings = server.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"Starting {settings.SERVER_NAME} {settings.SERVER_VERSION}")
        logger.info("=" * 60)
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Tools: {len(server.tools)} registered, {len(settings.DISABLED_TOOLS)} disabled")
        logger.info(f"Resources: {len(server.resources)} registered")
        logger.info(f"Projects: {', '.join(p.name for p in server.projects.projects) or 'none'}")
        logger.info(f"Sync external changes: {settings.SYNC_EXTERNAL_CHANGES}")
        logger.info("Application startup complete")

        yield

        logger.info(f"Shutting down {settings.SERVER_NAME}...")
        server.sessions.close_all()
        logger.info("Cleanup complete")

    app = FastAPI(
        title="Index MCP Server",
        description="Model Context Protocol server exposing code-intelligence tools over SSE",
        version=settings.SERVER_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.mcp_server = server

    @app.get("/")
    async def root():
        return {
            "name": settings.SERVER_NAME,
            "version": settings.SERVER_VERSION,
            "endpoints": {
                "sse": settings.sse_path,
                "messages": settings.ENDPOINT_PATH,
                "health": "/health",
                "history": "/api/history",
                "settings": "/api/settings",
                "docs": "/docs" if settings.ENVIRONMENT == "development" else None
            },
            "protocols": {
                "jsonrpc": "2.0",
                "mcp": settings.PROTOCOL_VERSION
            },
            "status": server.state.value
        }

    app.include_router(health.router)
    app.include_router(admin.router)
    app.include_router(mcp.build_router(settings.ENDPOINT_PATH))

    return app
