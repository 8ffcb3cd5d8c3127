# index_mcp/services/resource_registry.py

"""Resource Registry

Thread-safe URI -> resource map with exact and templated lookup.

Template matching splits pattern and candidate on "/". The pattern may not
have more segments than the candidate; literal segments must match exactly
and {param} segments match any non-empty segment. A trailing {param}
captures the rest of the candidate, so "file://content/{path}" resolves
"file://content/src/app.py" with path="src/app.py".
"""

from typing import Dict, List, NamedTuple, Optional
import logging
import threading

from index_mcp.models.mcp import ResourceDefinition
from index_mcp.resources.base import McpResource

logger = logging.getLogger(__name__)


class ResolvedResource(NamedTuple):
    resource: McpResource
    params: Dict[str, str]


def _is_param(segment: str) -> bool:
    return len(segment) > 2 and segment.startswith("{") and segment.endswith("}")


def match_uri_template(pattern: str, uri: str) -> Optional[Dict[str, str]]:
    """
    Match a candidate URI against a {param} template

    Args:
        pattern: Template such as "symbol://info/{fqn}"
        uri: Candidate URI

    Returns:
        Captured parameters keyed by name in pattern order, or None
    """
    pattern_parts = pattern.split("/")
    uri_parts = uri.split("/")

    if len(pattern_parts) > len(uri_parts):
        return None

    params: Dict[str, str] = {}
    last = len(pattern_parts) - 1

    for i, segment in enumerate(pattern_parts):
        if _is_param(segment):
            value = "/".join(uri_parts[i:]) if i == last else uri_parts[i]
            if not value:
                return None
            params[segment[1:-1]] = value
        elif segment != uri_parts[i]:
            return None

    return params


class ResourceRegistry:
    """Registry of MCP resources"""

    def __init__(self):
        self._resources: Dict[str, McpResource] = {}
        self._lock = threading.Lock()

    def register(self, resource: McpResource) -> None:
        with self._lock:
            replaced = resource.uri in self._resources
            self._resources[resource.uri] = resource

        if replaced:
            logger.warning(f"Overwriting existing resource: {resource.uri}")
        logger.info(f"Registered MCP resource: {resource.uri}")

    def unregister(self, uri: str) -> None:
        with self._lock:
            removed = self._resources.pop(uri, None)
        if removed is not None:
            logger.info(f"Unregistered MCP resource: {uri}")

    def get(self, uri: str) -> Optional[McpResource]:
        """Exact lookup by registered URI (template URIs included verbatim)"""
        return self._resources.get(uri)

    def resolve(self, uri: str) -> Optional[ResolvedResource]:
        """
        Resolve a concrete URI

        Exact (non-templated) registrations win over templates. Templates
        are tried in registration order and the first structural match is
        returned.

        Returns:
            ResolvedResource or None when nothing matches
        """
        with self._lock:
            candidates = list(self._resources.values())

        for resource in candidates:
            if not resource.is_template and resource.uri == uri:
                return ResolvedResource(resource, {})

        for resource in candidates:
            if not resource.is_template:
                continue
            params = match_uri_template(resource.uri, uri)
            if params is not None:
                return ResolvedResource(resource, params)

        return None

    def list_resources(self) -> List[McpResource]:
        with self._lock:
            return sorted(self._resources.values(), key=lambda r: r.uri)

    def list_definitions(self) -> List[ResourceDefinition]:
        """Definitions for resources/list, sorted by URI"""
        return [resource.definition() for resource in self.list_resources()]

    def __len__(self) -> int:
        return len(self._resources)
