# index_mcp/routes/admin.py

"""Administration Endpoints

History browsing/export and runtime settings for the running server.
"""

from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response

from index_mcp.models.history import CommandFilter, CommandStatus
from index_mcp.schemas.admin import (
    ClearHistoryResponse,
    HistoryListResponse,
    HistorySizeRequest,
    PortChangeRequest,
    PortChangeResponse,
    SettingsResponse,
    ToolSetting,
    ToolToggleRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["admin"])


def _settings_response(server) -> SettingsResponse:
    settings = server.settings
    config = server.config
    return SettingsResponse(
        host=config.host,
        port=config.port,
        endpointPath=config.endpointPath,
        serverUrl=server.get_server_url(),
        running=server.is_running(),
        maxHistorySize=server.history.max_size,
        syncExternalChanges=settings.SYNC_EXTERNAL_CHANGES,
        tools=[
            ToolSetting(name=tool.name, enabled=settings.is_tool_enabled(tool.name))
            for tool in server.tools.list_tools()
        ]
    )


# ============================================================================
# History
# ============================================================================

@router.get("/history", response_model=HistoryListResponse)
async def list_history(
    request: Request,
    toolName: Optional[str] = Query(default=None),
    status: Optional[CommandStatus] = Query(default=None),
    search: Optional[str] = Query(default=None)
):
    """
    List recorded tool calls, most recent first

    Args:
        toolName: Only entries for this tool
        status: Only entries in this status
        search: Case-insensitive text search over name, parameters, result and error
    """
    history = request.app.state.mcp_server.history
    entries = history.query(CommandFilter(toolName=toolName, status=status, searchText=search))
    return HistoryListResponse(entries=entries, total=len(entries), maxHistorySize=history.max_size)


@router.get("/history/tools")
async def list_history_tools(request: Request):
    return {"tools": request.app.state.mcp_server.history.tool_names()}


@router.get("/history/export")
async def export_history(request: Request, format: str = Query(default="json")):
    """Download the history as JSON (lossless) or CSV"""
    history = request.app.state.mcp_server.history
    fmt = format.lower()

    if fmt == "json":
        body, media_type = history.export_json(), "application/json"
    elif fmt == "csv":
        body, media_type = history.export_csv(), "text/csv"
    else:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {format}")

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="mcp-history.{fmt}"'}
    )


@router.delete("/history", response_model=ClearHistoryResponse)
async def clear_history(request: Request):
    history = request.app.state.mcp_server.history
    cleared = len(history)
    history.clear()
    return ClearHistoryResponse(cleared=cleared)


# ============================================================================
# Settings
# ============================================================================

@router.get("/settings", response_model=SettingsResponse)
async def get_settings(request: Request):
    return _settings_response(request.app.state.mcp_server)


@router.put("/settings/tools/{name}", response_model=SettingsResponse)
async def toggle_tool(name: str, body: ToolToggleRequest, request: Request):
    server = request.app.state.mcp_server
    if not server.set_tool_enabled(name, body.enabled):
        raise HTTPException(status_code=404, detail=f"Tool not found: {name}")
    return _settings_response(server)


@router.put("/settings/history-size", response_model=SettingsResponse)
async def set_history_size(body: HistorySizeRequest, request: Request):
    server = request.app.state.mcp_server
    evicted = server.set_max_history_size(body.maxHistorySize)
    logger.info(f"History size set to {body.maxHistorySize} ({evicted} evicted)")
    return _settings_response(server)


@router.put("/settings/port", response_model=PortChangeResponse, status_code=202)
async def change_port(body: PortChangeRequest, request: Request):
    """
    Change the listening port

    The restart runs after this response is sent. If the new port is taken
    the server stays stopped.
    """
    server = request.app.state.mcp_server
    scheduled = server.update_port(body.port)
    return PortChangeResponse(scheduled=scheduled, port=body.port)
