# index_mcp/services/jsonrpc_handler.py

"""JSON-RPC 2.0 Request Handler

Parses JSON-RPC bodies and routes MCP methods to the tool and resource
registries. Every failure is turned into a well-formed response:

- protocol faults (bad JSON, bad envelope, unknown method) are JSON-RPC errors
- tool failures are successful responses whose result has isError=true,
  except missing/invalid arguments which are INVALID_PARAMS
- resource failures are JSON-RPC errors carrying the application code

Lifecycle order is not enforced: tools/call before initialize is served.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import asyncio
import json
import logging
import time

from pydantic import BaseModel, ValidationError

from index_mcp.core.config import Settings
from index_mcp.core.exceptions import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
    ParseError,
    ProjectResolutionError,
    ResourceNotFoundError,
)
from index_mcp.models.history import CommandStatus
from index_mcp.models.jsonrpc import (
    JSONRPCError,
    JSONRPCErrorCode,
    JSONRPCRequest,
    JSONRPCResponse,
    McpMethod,
)
from index_mcp.models.mcp import (
    InitializeResult,
    ResourceReadParams,
    ResourceReadResult,
    ResourcesListResult,
    ServerInfo,
    TextContent,
    ToolCallParams,
    ToolCallResult,
    ToolsListResult,
)
from index_mcp.services.command_history import CommandHistory
from index_mcp.services.project_resolver import ProjectResolver
from index_mcp.services.resource_registry import ResourceRegistry
from index_mcp.services.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Any]]
WireMessage = Dict[str, Any]


def _request_id(data: Any) -> Optional[Union[str, int, float]]:
    """Best-effort id recovery from an envelope that failed validation"""
    if not isinstance(data, dict):
        return None
    value = data.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return value


class JSONRPCHandler:
    """JSON-RPC 2.0 dispatcher for the MCP method set"""

    def __init__(
        self,
        settings: Settings,
        tools: ToolRegistry,
        resources: ResourceRegistry,
        history: CommandHistory,
        projects: ProjectResolver
    ):
        self.settings = settings
        self.tools = tools
        self.resources = resources
        self.history = history
        self.projects = projects
        self._methods: Dict[str, MethodHandler] = {}

        self.register_method(McpMethod.INITIALIZE, self._initialize)
        self.register_method(McpMethod.INITIALIZED, self._initialized)
        self.register_method(McpMethod.NOTIFICATIONS_INITIALIZED, self._initialized)
        self.register_method(McpMethod.PING, self._ping)
        self.register_method(McpMethod.TOOLS_LIST, self._tools_list)
        self.register_method(McpMethod.TOOLS_CALL, self._tools_call)
        self.register_method(McpMethod.RESOURCES_LIST, self._resources_list)
        self.register_method(McpMethod.RESOURCES_READ, self._resources_read)

    # ------------------------------------------------------------------
    # Method table
    # ------------------------------------------------------------------

    def register_method(self, name: str, handler: MethodHandler) -> None:
        """
        Register a JSON-RPC method

        Args:
            name: Method name (e.g., "tools/list")
            handler: Async function receiving the params object
        """
        if name in self._methods:
            logger.warning(f"Overwriting existing method: {name}")
        self._methods[name] = handler
        logger.debug(f"Registered JSON-RPC method: {name}")

    def unregister_method(self, name: str) -> None:
        if name in self._methods:
            del self._methods[name]
            logger.debug(f"Unregistered JSON-RPC method: {name}")

    def list_methods(self) -> List[str]:
        return list(self._methods.keys())

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_body(
        self, raw: Union[str, bytes]
    ) -> Optional[Union[WireMessage, List[WireMessage]]]:
        """
        Handle a raw HTTP body

        Args:
            raw: Request body as received

        Returns:
            Response message, list of messages for a batch, or None when
            nothing needs to be sent back (notifications only)
        """
        try:
            body = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse JSON-RPC request body: {e}")
            return self._error_from(None, ParseError("Parse error").to_error())

        if isinstance(body, list):
            if not body:
                return self._error_from(
                    None, InvalidRequestError("Invalid Request: empty batch").to_error()
                )
            responses = await self.handle_batch(body)
            return responses or None

        return await self.handle_request(body)

    async def handle_batch(self, batch_data: List[Any]) -> List[WireMessage]:
        """
        Handle a batch of JSON-RPC requests

        Returns:
            Responses in request order; notifications contribute nothing
        """
        logger.info(f"Handling batch of {len(batch_data)} JSON-RPC requests")

        responses = []
        for request_data in batch_data:
            response = await self.handle_request(request_data)
            if response is not None:
                responses.append(response)
        return responses

    async def handle_request(self, request_data: Any) -> Optional[WireMessage]:
        """
        Handle a single decoded JSON-RPC request

        Returns:
            Response dictionary, or None for a notification
        """
        try:
            request = JSONRPCRequest.model_validate(request_data)
        except ValidationError as e:
            logger.warning(f"Invalid JSON-RPC request: {e.error_count()} validation error(s)")
            return self._error_from(
                _request_id(request_data),
                InvalidRequestError("Invalid Request").to_error()
            )

        handler = self._methods.get(request.method)

        if request.is_notification:
            if handler is None:
                logger.debug(f"Ignoring unknown notification: {request.method}")
                return None
            try:
                await handler(request.params or {})
            except Exception:
                logger.exception(f"Notification handler failed: {request.method}")
            return None

        if handler is None:
            logger.warning(f"Method not found: {request.method}")
            return self._error_response(
                request.id,
                JSONRPCErrorCode.METHOD_NOT_FOUND,
                f"Method not found: {request.method}"
            )

        logger.debug(f"Handling JSON-RPC request: {request.method} (id={request.id})")

        try:
            result = await handler(request.params or {})
        except McpError as e:
            logger.info(f"{request.method} failed with {e.code}: {e.message}")
            return self._error_from(request.id, e.to_error())
        except Exception as e:
            logger.exception(f"Error executing {request.method}")
            return self._error_response(
                request.id,
                JSONRPCErrorCode.INTERNAL_ERROR,
                f"Internal error: {e}"
            )

        return self._success_response(request.id, result)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _initialize(self, params: Dict[str, Any]) -> InitializeResult:
        client = params.get("clientInfo") or {}
        logger.info(
            f"Initialize from client {client.get('name', 'unknown')} "
            f"(protocol {params.get('protocolVersion', 'unspecified')})"
        )
        return InitializeResult(
            protocolVersion=self.settings.PROTOCOL_VERSION,
            serverInfo=ServerInfo(
                name=self.settings.SERVER_NAME,
                version=self.settings.SERVER_VERSION
            )
        )

    async def _initialized(self, params: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Client initialization complete")
        return {}

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _tools_list(self, params: Dict[str, Any]) -> ToolsListResult:
        return ToolsListResult(tools=self.tools.list_definitions(self.settings.is_tool_enabled))

    async def _tools_call(self, params: Dict[str, Any]) -> ToolCallResult:
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError:
            raise InvalidParamsError("Missing or invalid tool name")

        tool = self.tools.get(call.name)
        if tool is None or not self.settings.is_tool_enabled(call.name):
            raise MethodNotFoundError(f"Tool not found: {call.name}")

        arguments = call.arguments or {}
        missing = [name for name in tool.required_params() if arguments.get(name) is None]
        if missing:
            raise InvalidParamsError(
                f"Missing required parameter(s): {', '.join(missing)}",
                data={"missing": missing}
            )

        project_path = arguments.get("project_path")
        if project_path is not None and not isinstance(project_path, str):
            raise InvalidParamsError("Parameter 'project_path' must be of type str")

        try:
            context = self.projects.resolve(project_path)
        except ProjectResolutionError as e:
            logger.info(f"Cannot bind {call.name} to a project: {e.error}")
            return ToolCallResult(
                content=[TextContent(text=json.dumps(e.to_payload()))],
                isError=True
            )

        entry_id = self.history.begin(call.name, arguments)
        started = time.monotonic()

        try:
            if self.settings.SYNC_EXTERNAL_CHANGES and tool.requires_sync:
                await context.sync_external_changes()
            result = await tool.execute(context, arguments)
        except InvalidParamsError as e:
            self._complete(entry_id, started, CommandStatus.ERROR, error=e.message)
            raise
        except asyncio.CancelledError:
            logger.info(f"Tool call cancelled: {call.name}")
            self._complete(entry_id, started, CommandStatus.ERROR, error="Cancelled")
            raise
        except McpError as e:
            result = ToolCallResult(content=[TextContent(text=e.message)], isError=True)
        except Exception as e:
            logger.exception(f"Tool execution failed: {call.name}")
            message = str(e) or type(e).__name__
            result = ToolCallResult(content=[TextContent(text=message)], isError=True)

        summary = result.summary()
        if result.isError:
            self._complete(entry_id, started, CommandStatus.ERROR, error=summary)
        else:
            self._complete(
                entry_id, started, CommandStatus.SUCCESS,
                result=summary, affected_files=result.affected_files
            )
        return result

    def _complete(
        self,
        entry_id: str,
        started: float,
        status: CommandStatus,
        result: Optional[str] = None,
        error: Optional[str] = None,
        affected_files: Optional[List[str]] = None
    ) -> None:
        self.history.complete(
            entry_id,
            status,
            result=result,
            error=error,
            duration_ms=int((time.monotonic() - started) * 1000),
            affected_files=affected_files
        )

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def _resources_list(self, params: Dict[str, Any]) -> ResourcesListResult:
        return ResourcesListResult(resources=self.resources.list_definitions())

    async def _resources_read(self, params: Dict[str, Any]) -> ResourceReadResult:
        try:
            read = ResourceReadParams.model_validate(params)
        except ValidationError:
            raise InvalidParamsError("Missing or invalid resource uri")

        resolved = self.resources.resolve(read.uri)
        if resolved is None:
            raise ResourceNotFoundError(read.uri)

        try:
            context = self.projects.resolve()
        except ProjectResolutionError as e:
            raise InternalError(e.message, data=e.to_payload())

        try:
            content = await resolved.resource.read(context, read.uri, resolved.params)
        except McpError:
            raise
        except Exception as e:
            logger.exception(f"Resource read failed: {read.uri}")
            raise InternalError(f"Failed to read resource: {e}")

        return ResourceReadResult(contents=[content])

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _success_response(self, request_id: Optional[Any], result: Any) -> WireMessage:
        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json", exclude_none=True)
        return JSONRPCResponse(id=request_id, result=result).to_wire()

    def _error_from(self, request_id: Optional[Any], error: JSONRPCError) -> WireMessage:
        return JSONRPCResponse(id=request_id, error=error).to_wire()

    def _error_response(
        self,
        request_id: Optional[Any],
        code: int,
        message: str,
        data: Optional[Any] = None
    ) -> WireMessage:
        """
        Build an error response

        Args:
            request_id: Request ID (None for parse errors)
            code: Error code
            message: Error message
            data: Optional additional error data
        """
        return self._error_from(request_id, JSONRPCError(code=code, message=message, data=data))
