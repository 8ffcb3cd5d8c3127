# index_mcp/models/history.py

"""Command History Models

Entries are immutable; the single PENDING -> SUCCESS/ERROR transition is
applied by replacing the entry value in the store.
"""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field


class CommandStatus(str, Enum):
    """Invocation states"""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class CommandEntry(BaseModel):
    """One recorded tool invocation"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    toolName: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    status: CommandStatus = CommandStatus.PENDING
    result: Optional[str] = None
    error: Optional[str] = None
    durationMs: Optional[int] = None
    affectedFiles: Optional[List[str]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != CommandStatus.PENDING

    def matches_text(self, needle: str) -> bool:
        """Case-insensitive substring match over name, parameters, result and error"""
        needle = needle.lower()
        haystacks = [
            self.toolName,
            json.dumps(self.parameters, sort_keys=True, default=str),
            self.result or "",
            self.error or "",
        ]
        return any(needle in h.lower() for h in haystacks)


class CommandFilter(BaseModel):
    """Conjunction of optional predicates; empty filter matches everything"""
    toolName: Optional[str] = None
    status: Optional[CommandStatus] = None
    searchText: Optional[str] = None

    def is_empty(self) -> bool:
        return self.toolName is None and self.status is None and not self.searchText

    def matches(self, entry: CommandEntry) -> bool:
        if self.toolName is not None and entry.toolName != self.toolName:
            return False
        if self.status is not None and entry.status != self.status:
            return False
        if self.searchText and not entry.matches_text(self.searchText):
            return False
        return True


class HistoryEventType(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    CLEARED = "cleared"


class HistoryEvent(BaseModel):
    type: HistoryEventType
    entry: Optional[CommandEntry] = None


class HistoryListener(Protocol):
    """
    Observer of history mutations

    Called synchronously on the thread that mutated the store, in
    registration order. Listeners must not mutate the store.
    """

    def __call__(self, event: HistoryEvent) -> None: ...
