# index_mcp/services/tool_registry.py

"""Tool Registry

Thread-safe name -> tool map. Re-registering a name replaces the previous
tool (last write wins). The lock only guards map operations; tools are
never executed while it is held.
"""

from typing import Callable, Dict, List, Optional
import logging
import threading

from index_mcp.models.mcp import ToolDefinition
from index_mcp.tools.base import McpTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of MCP tools available to clients"""

    def __init__(self):
        self._tools: Dict[str, McpTool] = {}
        self._lock = threading.Lock()

    def register(self, tool: McpTool) -> None:
        """
        Register a tool

        Args:
            tool: Tool instance; its name is the registry key
        """
        with self._lock:
            replaced = tool.name in self._tools
            self._tools[tool.name] = tool

        if replaced:
            logger.warning(f"Overwriting existing tool: {tool.name}")
        logger.info(f"Registered MCP tool: {tool.name}")

    def unregister(self, name: str) -> None:
        with self._lock:
            removed = self._tools.pop(name, None)
        if removed is not None:
            logger.info(f"Unregistered MCP tool: {name}")

    def get(self, name: str) -> Optional[McpTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[McpTool]:
        with self._lock:
            return sorted(self._tools.values(), key=lambda t: t.name)

    def list_definitions(
        self,
        enabled: Optional[Callable[[str], bool]] = None
    ) -> List[ToolDefinition]:
        """
        Tool definitions for tools/list

        Args:
            enabled: Predicate on the tool name; tools it rejects are omitted

        Returns:
            Definitions sorted by name
        """
        return [
            tool.definition()
            for tool in self.list_tools()
            if enabled is None or enabled(tool.name)
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
