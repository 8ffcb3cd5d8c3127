# index_mcp/schemas/admin.py

"""Administration API Schemas

Request and response bodies for the /api history and settings endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from index_mcp.core.config import MIN_HISTORY_SIZE
from index_mcp.models.history import CommandEntry


# ============================================================================
# History
# ============================================================================

class HistoryListResponse(BaseModel):
    """Filtered history, most recent first"""

    entries: List[CommandEntry] = Field(..., description="Matching entries")
    total: int = Field(..., description="Number of matching entries")
    maxHistorySize: int = Field(..., description="Current history capacity")


class ClearHistoryResponse(BaseModel):
    cleared: int = Field(..., description="Number of entries removed")


# ============================================================================
# Settings
# ============================================================================

class ToolSetting(BaseModel):
    name: str
    enabled: bool


class SettingsResponse(BaseModel):
    """Current runtime settings"""

    host: str
    port: int
    endpointPath: str
    serverUrl: Optional[str] = None
    running: bool
    maxHistorySize: int
    syncExternalChanges: bool
    tools: List[ToolSetting]


class ToolToggleRequest(BaseModel):
    enabled: bool = Field(..., description="Whether the tool is offered to clients")


class HistorySizeRequest(BaseModel):
    maxHistorySize: int = Field(
        ...,
        ge=MIN_HISTORY_SIZE,
        description=f"History capacity (minimum {MIN_HISTORY_SIZE})"
    )


class PortChangeRequest(BaseModel):
    port: int = Field(..., ge=1, le=65535, description="New listening port")


class PortChangeResponse(BaseModel):
    """A restart is scheduled; the current connection closes shortly after"""

    scheduled: bool
    port: int
