# index_mcp/models/jsonrpc.py

from typing import Any, Optional, Union, Literal
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

RequestId = Union[str, int, float]


class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 Request"""
    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: Optional[dict[str, Any]] = None
    id: Optional[RequestId] = None

    @property
    def is_notification(self) -> bool:
        """A request without an "id" member expects no response"""
        return "id" not in self.model_fields_set


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 Error Object"""
    code: int
    message: str
    data: Optional[Any] = None


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 Response"""
    jsonrpc: Literal["2.0"] = "2.0"
    result: Optional[Any] = None
    error: Optional[JSONRPCError] = None
    id: Optional[RequestId] = None

    def to_wire(self) -> dict[str, Any]:
        """
        Serialize for the transport

        Exactly one of result/error is emitted and the id is always echoed,
        as null when it could not be determined.
        """
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(mode="json", exclude_none=True)
        else:
            data["result"] = {} if self.result is None else to_jsonable_python(self.result)
        return data


# Standard JSON-RPC Error Codes
class JSONRPCErrorCode:
    """JSON-RPC 2.0 Standard Error Codes"""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Custom application errors
    INDEX_NOT_READY = -32001
    FILE_NOT_FOUND = -32002
    SYMBOL_NOT_FOUND = -32003
    REFACTORING_CONFLICT = -32004


class McpMethod:
    """Method names understood by the dispatcher"""
    INITIALIZE = "initialize"
    INITIALIZED = "initialized"
    NOTIFICATIONS_INITIALIZED = "notifications/initialized"
    PING = "ping"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    RESOURCES_LIST = "resources/list"
    RESOURCES_READ = "resources/read"
