# index_mcp/resources/builtin.py

"""Built-in Resources

index://status and project://structure are exact URIs; file content and
symbol info are templates resolved per request.
"""

import json
from typing import Dict, List

from index_mcp.core.exceptions import ProjectFileNotFoundError, SymbolNotFoundError
from index_mcp.models.mcp import ResourceContent
from index_mcp.resources.base import McpResource
from index_mcp.utils.files import extension_of, get_mime_type

FILE_CONTENT_PREFIX = "file://content/"
SYMBOL_INFO_PREFIX = "symbol://info/"


class IndexStatusResource(McpResource):
    uri = "index://status"
    name = "Index Status"
    description = "Indexing status (dumb/smart mode)"

    async def read(self, context, uri: str, params: Dict[str, str]) -> ResourceContent:
        is_dumb = not context.is_ready()
        status = {
            "isDumbMode": is_dumb,
            "isIndexing": is_dumb,
            "isSmartMode": not is_dumb,
            "projectName": context.name,
        }
        return ResourceContent(uri=uri, mimeType=self.mime_type, text=json.dumps(status, indent=2))


class ProjectStructureResource(McpResource):
    uri = "project://structure"
    name = "Project Structure"
    description = "Current project module structure with source roots"

    async def read(self, context, uri: str, params: Dict[str, str]) -> ResourceContent:
        structure = await context.project_structure()
        return ResourceContent(uri=uri, mimeType=self.mime_type, text=json.dumps(structure, indent=2))


class FileContentResource(McpResource):
    """Reads a file by its path relative to the project root"""

    uri = FILE_CONTENT_PREFIX + "{path}"
    name = "File Content"
    description = "Read the content of a file by its path relative to the project root"

    async def read(self, context, uri: str, params: Dict[str, str]) -> ResourceContent:
        relative_path = params["path"]
        def locate():
            path = context.resolve_file(relative_path)
            if path is None or not path.is_file():
                return None, 0
            return path, path.stat().st_size

        resolved, size = await context.read_action(locate)
        if resolved is None:
            raise ProjectFileNotFoundError(relative_path)

        content = await context.read_file(relative_path)
        extension = extension_of(resolved)
        file_info = {
            "path": relative_path,
            "content": content,
            "size": size,
            "extension": extension,
            "encoding": "UTF-8",
        }
        return ResourceContent(
            uri=FILE_CONTENT_PREFIX + relative_path,
            mimeType=get_mime_type(extension),
            text=json.dumps(file_info)
        )


class SymbolInfoResource(McpResource):
    uri = SYMBOL_INFO_PREFIX + "{fqn}"
    name = "Symbol Info"
    description = "Get detailed information about a symbol by its fully qualified name"

    async def read(self, context, uri: str, params: Dict[str, str]) -> ResourceContent:
        fqn = params["fqn"]
        context.require_ready()

        info = await context.find_symbol(fqn)
        if info is None:
            raise SymbolNotFoundError(f"Symbol not found: {fqn}")

        return ResourceContent(
            uri=SYMBOL_INFO_PREFIX + fqn,
            mimeType=self.mime_type,
            text=info.model_dump_json(exclude_none=True)
        )


def builtin_resources() -> List[McpResource]:
    return [
        IndexStatusResource(),
        ProjectStructureResource(),
        FileContentResource(),
        SymbolInfoResource(),
    ]
