# index_mcp/tools/project.py

from typing import Any, Dict

from index_mcp.models.mcp import ToolCallResult
from index_mcp.tools.base import McpTool

PROJECT_PATH_PROPERTY = {
    "type": "string",
    "description": "Absolute path to the project root. Required when multiple projects are open."
}


class IndexStatusTool(McpTool):
    """Reports whether the project index can answer semantic queries"""

    name = "ide_index_status"
    description = (
        "Check if the index is ready for code intelligence operations. Use when other "
        "tools fail with indexing errors. Returns isDumbMode (true = indexing in "
        "progress, limited functionality) and isIndexing.\n\n"
        "Parameters: project_path (optional, only needed with multiple projects open).\n\n"
        "Example: {}"
    )
    input_schema = {
        "type": "object",
        "properties": {"project_path": PROJECT_PATH_PROPERTY},
        "required": []
    }

    # Only reads a flag
    requires_sync = False

    async def execute(self, context, arguments: Dict[str, Any]) -> ToolCallResult:
        is_dumb = not context.is_ready()
        return self.create_json_result({
            "isDumbMode": is_dumb,
            "isIndexing": is_dumb,
            "projectName": context.name,
        })
