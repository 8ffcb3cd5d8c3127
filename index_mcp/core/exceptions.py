# index_mcp/core/exceptions.py

"""Custom exceptions for the Index MCP server"""

from typing import Any, List, Optional

from index_mcp.models.jsonrpc import JSONRPCError, JSONRPCErrorCode


class IndexMcpException(Exception):
    """Base exception for all server errors"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class McpError(IndexMcpException):
    """Exception carrying a JSON-RPC error code"""

    code: int = JSONRPCErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Any] = None):
        self.data = data
        super().__init__(message, details={"code": self.code, "data": data})

    def to_error(self) -> JSONRPCError:
        return JSONRPCError(code=self.code, message=self.message, data=self.data)


class ParseError(McpError):
    code = JSONRPCErrorCode.PARSE_ERROR


class InvalidRequestError(McpError):
    code = JSONRPCErrorCode.INVALID_REQUEST


class MethodNotFoundError(McpError):
    code = JSONRPCErrorCode.METHOD_NOT_FOUND


class InvalidParamsError(McpError):
    """Raised when a request or tool call is missing a required argument"""
    code = JSONRPCErrorCode.INVALID_PARAMS


class InternalError(McpError):
    code = JSONRPCErrorCode.INTERNAL_ERROR


class IndexNotReadyError(McpError):
    """Raised when the host index is still building"""
    code = JSONRPCErrorCode.INDEX_NOT_READY


class ProjectFileNotFoundError(McpError):
    code = JSONRPCErrorCode.FILE_NOT_FOUND

    def __init__(self, path: str, data: Optional[Any] = None):
        self.path = path
        super().__init__(f"File not found: {path}", data=data)


class ResourceNotFoundError(McpError):
    """No registered resource matches the requested URI"""
    code = JSONRPCErrorCode.FILE_NOT_FOUND

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Resource not found: {uri}")


class SymbolNotFoundError(McpError):
    code = JSONRPCErrorCode.SYMBOL_NOT_FOUND


class RefactoringConflictError(McpError):
    code = JSONRPCErrorCode.REFACTORING_CONFLICT


class ProjectResolutionError(IndexMcpException):
    """Raised when a tool call cannot be bound to exactly one open project"""

    NO_PROJECT_OPEN = "no_project_open"
    PROJECT_NOT_FOUND = "project_not_found"
    MULTIPLE_PROJECTS = "multiple_projects_open"

    def __init__(
        self,
        error: str,
        message: str,
        available_projects: Optional[List[dict]] = None
    ):
        self.error = error
        self.available_projects = available_projects
        super().__init__(message, details={"error": error})

    def to_payload(self) -> dict:
        payload = {"error": self.error, "message": self.message}
        if self.available_projects is not None:
            payload["available_projects"] = self.available_projects
        return payload


class ConfigurationError(IndexMcpException):
    """Exception raised when configuration is invalid or missing"""
    pass
