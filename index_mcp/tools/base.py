# index_mcp/tools/base.py

"""Tool Base Class

Every tool is a named, schema-described async callable receiving the
resolved project context and the call arguments. Expected failures are
returned as results with isError=True; argument-shape violations raise
InvalidParamsError.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from index_mcp.core.exceptions import InvalidParamsError
from index_mcp.models.mcp import TextContent, ToolCallResult, ToolDefinition


class McpTool(ABC):
    """Base class for MCP tools"""

    name: str
    description: str
    input_schema: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}

    # Whether external file changes are synced before execution
    requires_sync: bool = True

    @abstractmethod
    async def execute(self, context, arguments: Dict[str, Any]) -> ToolCallResult:
        """
        Run the tool

        Args:
            context: ProjectContext the call is bound to
            arguments: Call arguments (already checked against "required")

        Returns:
            ToolCallResult
        """

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema
        )

    def required_params(self) -> List[str]:
        return list(self.input_schema.get("required", []))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def require_param(arguments: Dict[str, Any], name: str, expected_type: type = str) -> Any:
        value = arguments.get(name)
        if value is None:
            raise InvalidParamsError(f"Missing required parameter: {name}")
        if not isinstance(value, expected_type) or (isinstance(value, bool) and expected_type is int):
            raise InvalidParamsError(
                f"Parameter '{name}' must be of type {expected_type.__name__}"
            )
        return value

    @staticmethod
    def optional_int(arguments: Dict[str, Any], name: str) -> Optional[int]:
        value = arguments.get(name)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidParamsError(f"Parameter '{name}' must be an integer")
        return value

    @staticmethod
    def create_success_result(text: str, affected_files: Optional[List[str]] = None) -> ToolCallResult:
        return ToolCallResult(
            content=[TextContent(text=text)],
            isError=False,
            affected_files=affected_files
        )

    @staticmethod
    def create_error_result(message: str) -> ToolCallResult:
        return ToolCallResult(content=[TextContent(text=message)], isError=True)

    @staticmethod
    def create_json_result(data: Any) -> ToolCallResult:
        if isinstance(data, BaseModel):
            text = data.model_dump_json(exclude_none=True)
        else:
            text = json.dumps(data)
        return ToolCallResult(content=[TextContent(text=text)], isError=False)
