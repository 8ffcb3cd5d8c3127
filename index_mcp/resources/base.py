# index_mcp/resources/base.py

from abc import ABC, abstractmethod
from typing import Dict

from index_mcp.models.mcp import ResourceContent, ResourceDefinition


class McpResource(ABC):
    """Base class for URI-addressed readable resources"""

    uri: str
    name: str
    description: str
    mime_type: str = "application/json"

    @property
    def is_template(self) -> bool:
        return "{" in self.uri

    @abstractmethod
    async def read(self, context, uri: str, params: Dict[str, str]) -> ResourceContent:
        """
        Read the resource

        Args:
            context: ProjectContext to read from
            uri: The concrete URI requested by the client
            params: Values captured for each {param} segment of the template
        """

    def definition(self) -> ResourceDefinition:
        return ResourceDefinition(
            uri=self.uri,
            name=self.name,
            description=self.description,
            mimeType=self.mime_type
        )
