# index_mcp/models/server.py

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ServerState(str, Enum):
    """Listener lifecycle"""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class StartStatus(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    PORT_IN_USE = "port_in_use"
    FAILED = "failed"


class ServerConfig(BaseModel):
    host: str
    port: int
    endpointPath: str


class ServerStartResult(BaseModel):
    """Outcome of start()/restart(); PORT_IN_USE is kept apart from FAILED"""
    status: StartStatus
    port: int
    url: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (StartStatus.STARTED, StartStatus.ALREADY_RUNNING)


class SessionInfo(BaseModel):
    sessionId: str
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
