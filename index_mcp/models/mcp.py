# index_mcp/models/mcp.py

"""MCP Protocol Models

Wire shapes for the tools/* and resources/* methods and the initialize
handshake. Field names follow the protocol's camelCase. Unknown fields are
ignored on decode; defaults are always emitted on encode, None values are not.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field


class ToolDefinition(BaseModel):
    """Tool descriptor as returned by tools/list"""
    name: str
    description: str
    inputSchema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    type: Literal["image"] = "image"
    data: str  # base64
    mimeType: str


ContentBlock = Annotated[Union[TextContent, ImageContent], Field(discriminator="type")]


class ToolCallResult(BaseModel):
    """Result of tools/call; tool failures are carried with isError=True"""
    content: List[ContentBlock]
    isError: bool = False

    # Files touched by the call; recorded in history, never sent to clients
    affected_files: Optional[List[str]] = Field(default=None, exclude=True)

    def summary(self) -> Optional[str]:
        """Text of the first content block, used for history entries"""
        if not self.content:
            return None
        first = self.content[0]
        if isinstance(first, TextContent):
            return first.text
        return "[Image]"


class ToolCallParams(BaseModel):
    name: str
    arguments: Optional[Dict[str, Any]] = None


class ToolsListResult(BaseModel):
    tools: List[ToolDefinition]


class ResourceDefinition(BaseModel):
    """Resource descriptor; uri may contain {param} segments"""
    uri: str
    name: str
    description: str
    mimeType: str = "application/json"


class ResourceContent(BaseModel):
    uri: str
    mimeType: str
    text: Optional[str] = None
    blob: Optional[str] = None


class ResourceReadParams(BaseModel):
    uri: str


class ResourcesListResult(BaseModel):
    resources: List[ResourceDefinition]


class ResourceReadResult(BaseModel):
    contents: List[ResourceContent]


class ServerInfo(BaseModel):
    name: str
    version: str


class ToolCapability(BaseModel):
    listChanged: bool = False


class ResourceCapability(BaseModel):
    subscribe: bool = False
    listChanged: bool = False


class ServerCapabilities(BaseModel):
    tools: ToolCapability = Field(default_factory=ToolCapability)
    resources: ResourceCapability = Field(default_factory=ResourceCapability)


class InitializeResult(BaseModel):
    protocolVersion: str
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    serverInfo: ServerInfo
