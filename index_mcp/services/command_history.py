# index_mcp/services/command_history.py

"""Command History Store

Bounded log of tool invocations, most recent first.

Entries are kept in an OrderedDict keyed by id (oldest first internally) so
insertion, eviction and in-place completion are all O(1). Completing an
entry assigns a new value to an existing key, which keeps its position.
Completing an entry that was already evicted is dropped silently.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional
import csv
import io
import json
import logging
import threading

from index_mcp.models.history import (
    CommandEntry,
    CommandFilter,
    CommandStatus,
    HistoryEvent,
    HistoryEventType,
    HistoryListener,
)

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "ID", "Timestamp", "Tool", "Status", "Duration(ms)",
    "Parameters", "Result", "Error", "AffectedFiles"
]


class CommandHistory:
    """Thread-safe bounded history with ordered listener fan-out"""

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: "OrderedDict[str, CommandEntry]" = OrderedDict()
        self._listeners: List[HistoryListener] = []
        self._max_size = max_size
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    @property
    def max_size(self) -> int:
        return self._max_size

    def resize(self, max_size: int) -> int:
        """
        Change capacity; shrinking evicts the surplus oldest entries now

        Returns:
            Number of entries evicted
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        with self._lock:
            self._max_size = max_size
            evicted = self._evict_locked()
        if evicted:
            logger.info(f"History resized to {max_size}, evicted {evicted} entries")
        return evicted

    def _evict_locked(self) -> int:
        evicted = 0
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)
            evicted += 1
        return evicted

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def begin(self, tool_name: str, parameters: Optional[Dict[str, Any]] = None) -> str:
        """
        Record a new PENDING invocation

        Returns:
            The entry id to pass to complete()
        """
        entry = CommandEntry(toolName=tool_name, parameters=dict(parameters or {}))
        with self._lock:
            self._entries[entry.id] = entry
            self._evict_locked()

        logger.debug(f"Recorded command: {tool_name} ({entry.id})")
        self._notify(HistoryEvent(type=HistoryEventType.ADDED, entry=entry))
        return entry.id

    def complete(
        self,
        entry_id: str,
        status: CommandStatus,
        result: Optional[str] = None,
        error: Optional[str] = None,
        duration_ms: Optional[int] = None,
        affected_files: Optional[List[str]] = None
    ) -> bool:
        """
        Move a PENDING entry to its terminal status

        Returns:
            True if the entry transitioned. False if it was evicted already
            or is no longer PENDING (a second complete() is a no-op).
        """
        if status == CommandStatus.PENDING:
            raise ValueError("complete() requires a terminal status")

        with self._lock:
            current = self._entries.get(entry_id)
            if current is None or current.is_terminal:
                updated = None
            else:
                updated = current.model_copy(update={
                    "status": status,
                    "result": result,
                    "error": error,
                    "durationMs": duration_ms,
                    "affectedFiles": affected_files,
                })
                self._entries[entry_id] = updated

        if updated is None:
            logger.debug(f"Dropped completion for unknown or finished entry {entry_id}")
            return False

        logger.debug(f"Updated command status: {updated.toolName} -> {status.value}")
        self._notify(HistoryEvent(type=HistoryEventType.UPDATED, entry=updated))
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Command history cleared")
        self._notify(HistoryEvent(type=HistoryEventType.CLEARED))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> List[CommandEntry]:
        """Snapshot, most recent first"""
        with self._lock:
            return list(reversed(self._entries.values()))

    def get(self, entry_id: str) -> Optional[CommandEntry]:
        return self._entries.get(entry_id)

    def query(self, filter: Optional[CommandFilter] = None) -> List[CommandEntry]:
        entries = self.entries
        if filter is None or filter.is_empty():
            return entries
        return [entry for entry in entries if filter.matches(entry)]

    def tool_names(self) -> List[str]:
        return sorted({entry.toolName for entry in self.entries})

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return json.dumps(
            [entry.model_dump(mode="json") for entry in self.entries],
            indent=2
        )

    def export_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for entry in self.entries:
            writer.writerow([
                entry.id,
                entry.timestamp.isoformat(),
                entry.toolName,
                entry.status.value,
                "" if entry.durationMs is None else entry.durationMs,
                json.dumps(entry.parameters, sort_keys=True, default=str),
                entry.result or "",
                entry.error or "",
                ";".join(entry.affectedFiles or []),
            ])
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: HistoryListener) -> None:
        with self._lock:
            self._listeners = self._listeners + [listener]

    def remove_listener(self, listener: HistoryListener) -> None:
        with self._lock:
            self._listeners = [l for l in self._listeners if l is not listener]

    def _notify(self, event: HistoryEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"History listener failed on {event.type.value} event")
