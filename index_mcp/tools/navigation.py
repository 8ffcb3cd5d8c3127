# index_mcp/tools/navigation.py

"""Navigation Tools

File reading and symbol lookup against the bound project.
"""

from pathlib import Path
from typing import Any, Dict
import logging

from index_mcp.core.exceptions import SymbolNotFoundError
from index_mcp.models.mcp import ToolCallResult
from index_mcp.tools.base import McpTool
from index_mcp.tools.project import PROJECT_PATH_PROPERTY
from index_mcp.utils.files import extension_of, get_language, slice_lines, validate_line_range

logger = logging.getLogger(__name__)


class ReadFileTool(McpTool):
    """Returns file content, optionally restricted to a line range"""

    name = "ide_read_file"
    description = (
        "Read a project file by path (relative to the project root, or absolute inside it).\n\n"
        "Returns: file content (full or line range) with metadata (language, lineCount, "
        "startLine, endLine).\n\n"
        "Parameters: file (required), startLine (optional), endLine (optional).\n\n"
        'Example: {"file": "src/app.py", "startLine": 10, "endLine": 20}'
    )
    input_schema = {
        "type": "object",
        "properties": {
            "project_path": PROJECT_PATH_PROPERTY,
            "file": {
                "type": "string",
                "description": "File path relative to the project root."
            },
            "startLine": {
                "type": "integer",
                "description": "Starting line number (1-based, inclusive)."
            },
            "endLine": {
                "type": "integer",
                "description": "Ending line number (1-based, inclusive)."
            }
        },
        "required": ["file"]
    }

    async def execute(self, context, arguments: Dict[str, Any]) -> ToolCallResult:
        file_path = self.require_param(arguments, "file")
        start_line, end_line, range_error = validate_line_range(
            self.optional_int(arguments, "startLine"),
            self.optional_int(arguments, "endLine")
        )
        if range_error:
            return self.create_error_result(range_error)

        def locate():
            path = context.resolve_file(file_path)
            return path, path is not None and path.is_dir()

        resolved, is_dir = await context.read_action(locate)
        if resolved is None:
            return self.create_error_result(f"File not found: {file_path}")
        if is_dir:
            return self.create_error_result(f"Path is a directory, not a file: {file_path}")

        text = await context.read_file(file_path)
        content = text if start_line is None else slice_lines(text, start_line, end_line)
        extension = extension_of(resolved)

        return self.create_json_result({
            "file": resolved.relative_to(Path(context.base_path)).as_posix(),
            "content": content,
            "language": get_language(extension),
            "lineCount": len(text.split("\n")),
            "startLine": start_line,
            "endLine": end_line,
        })


class FindSymbolInfoTool(McpTool):
    """Describes a symbol looked up by fully qualified name"""

    name = "ide_find_symbol_info"
    description = (
        "Get information about a symbol by fully qualified name: kind, location, "
        "signature, documentation and member counts for classes.\n\n"
        "Parameters: fqn (required). Members may be separated with '#'.\n\n"
        'Example: {"fqn": "mypkg.service.UserService#find_user"}'
    )
    input_schema = {
        "type": "object",
        "properties": {
            "project_path": PROJECT_PATH_PROPERTY,
            "fqn": {
                "type": "string",
                "description": "Fully qualified symbol name, e.g. pkg.module.Class#method."
            }
        },
        "required": ["fqn"]
    }

    async def execute(self, context, arguments: Dict[str, Any]) -> ToolCallResult:
        fqn = self.require_param(arguments, "fqn")
        context.require_ready()

        info = await context.find_symbol(fqn)
        if info is None:
            raise SymbolNotFoundError(f"Symbol not found: {fqn}")

        logger.debug(f"Resolved symbol {fqn} -> {info.kind.value}")
        return self.create_json_result(info)
