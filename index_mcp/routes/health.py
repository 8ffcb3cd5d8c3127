# index_mcp/routes/health.py

"""Health Check Endpoint

Provides health status for the server and its open projects.
"""

from typing import Any, Dict
from datetime import datetime, timezone
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Health check endpoint

    Returns:
        Health status information
    """
    server = request.app.state.mcp_server
    settings = server.settings
    projects = server.projects.projects

    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.SERVER_NAME,
        "version": settings.SERVER_VERSION,
        "server": {
            "state": server.state.value,
            "url": server.get_server_url(),
            "sessions": server.sessions.count,
            "tools": len(server.tools),
            "resources": len(server.resources),
            "historySize": len(server.history),
        },
        "checks": {
            "api": "ok"
        }
    }

    if not projects:
        health_status["checks"]["projects"] = "warning - no project open"
    elif not all(project.is_ready() for project in projects):
        health_status["checks"]["projects"] = "warning - indexing in progress"
    else:
        health_status["checks"]["projects"] = f"ok - {len(projects)} open"

    if any("warning" in str(v) for v in health_status["checks"].values()):
        health_status["status"] = "degraded"

    return JSONResponse(content=health_status, status_code=200)


@router.get("/ready")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """
    Readiness check endpoint

    Ready once at least one project is open and every open project's
    index can answer queries.
    """
    projects = request.app.state.mcp_server.projects.projects
    ready = bool(projects) and all(project.is_ready() for project in projects)

    return JSONResponse(
        content={
            "ready": ready,
            "timestamp": datetime.now(timezone.utc).isoformat()
        },
        status_code=200 if ready else 503
    )


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    return JSONResponse(
        content={
            "alive": True,
            "timestamp": datetime.now(timezone.utc).isoformat()
        },
        status_code=200
    )
