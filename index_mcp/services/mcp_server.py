# index_mcp/services/mcp_server.py

"""MCP Server

Composition root: owns the settings, registries, history, project
resolver, dispatcher, session manager and the FastAPI app, and runs the app
on uvicorn in a background thread.

start() binds and listens on the socket itself before handing it to
uvicorn, so an occupied port is reported as PORT_IN_USE rather than as a
generic failure. restart() keeps every registry and the history.
"""

from typing import Optional, Union
import asyncio
import errno
import logging
import os
import socket
import threading
import time

import uvicorn

from index_mcp.app import create_app
from index_mcp.core.config import Settings, load_settings
from index_mcp.models.server import ServerConfig, ServerStartResult, ServerState, StartStatus
from index_mcp.resources.builtin import builtin_resources
from index_mcp.services.command_history import CommandHistory
from index_mcp.services.jsonrpc_handler import JSONRPCHandler
from index_mcp.services.project_resolver import ProjectResolver
from index_mcp.services.resource_registry import ResourceRegistry
from index_mcp.services.session_manager import SessionManager
from index_mcp.services.tool_registry import ToolRegistry
from index_mcp.tools.navigation import FindSymbolInfoTool, ReadFileTool
from index_mcp.tools.project import IndexStatusTool

logger = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 2


class McpServer:
    """Index MCP server"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        projects: Optional[ProjectResolver] = None
    ):
        self.settings = settings or load_settings()
        self.tools = ToolRegistry()
        self.resources = ResourceRegistry()
        self.history = CommandHistory(self.settings.MAX_HISTORY_SIZE)
        self.projects = projects or ProjectResolver()
        self.sessions = SessionManager()
        self.handler = JSONRPCHandler(
            self.settings,
            self.tools,
            self.resources,
            self.history,
            self.projects
        )
        self.app = create_app(self)

        self._lifecycle_lock = threading.RLock()
        self._state = ServerState.STOPPED
        self._port: Optional[int] = None
        self._uvicorn: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self._tasks: set = set()

    def register_builtins(self) -> None:
        for tool in (IndexStatusTool(), ReadFileTool(), FindSymbolInfoTool()):
            self.tools.register(tool)
        for resource in builtin_resources():
            self.resources.register(resource)
        logger.info(f"Registered {len(self.tools)} tools and {len(self.resources)} resources")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def port(self) -> int:
        return self._port if self._port is not None else self.settings.effective_port()

    @property
    def config(self) -> ServerConfig:
        return ServerConfig(
            host=self.settings.HOST,
            port=self.port,
            endpointPath=self.settings.ENDPOINT_PATH
        )

    def is_running(self) -> bool:
        return self._state == ServerState.RUNNING

    def get_server_url(self) -> str:
        """SSE URL clients connect to"""
        return f"http://{self.settings.HOST}:{self.port}{self.settings.sse_path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _bind(self, host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            if os.name != "nt":
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(128)
        except OSError:
            sock.close()
            raise
        return sock

    def start(self, port: Optional[int] = None) -> ServerStartResult:
        """
        Start listening

        Args:
            port: Port to bind; defaults to the configured port. 0 picks a
                free port.

        Returns:
            ServerStartResult with STARTED, ALREADY_RUNNING, PORT_IN_USE or FAILED
        """
        with self._lifecycle_lock:
            if self._state == ServerState.RUNNING:
                return ServerStartResult(
                    status=StartStatus.ALREADY_RUNNING,
                    port=self.port,
                    url=self.get_server_url()
                )

            host = self.settings.HOST
            requested = port if port is not None else self.settings.effective_port()
            self._state = ServerState.STARTING

            try:
                sock = self._bind(host, requested)
            except OSError as e:
                self._state = ServerState.STOPPED
                if e.errno == errno.EADDRINUSE:
                    logger.warning(f"Port {requested} is already in use")
                    return ServerStartResult(
                        status=StartStatus.PORT_IN_USE,
                        port=requested,
                        message=f"Port {requested} is already in use"
                    )
                logger.error(f"Failed to bind {host}:{requested}: {e}")
                return ServerStartResult(
                    status=StartStatus.FAILED,
                    port=requested,
                    message=str(e)
                )

            actual_port = sock.getsockname()[1]
            config = uvicorn.Config(
                self.app,
                host=host,
                port=actual_port,
                log_config=None,
                log_level=self.settings.LOG_LEVEL.lower(),
                timeout_graceful_shutdown=SHUTDOWN_GRACE_SECONDS
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=server.run,
                kwargs={"sockets": [sock]},
                name=f"index-mcp-{actual_port}",
                daemon=True
            )
            thread.start()

            deadline = time.monotonic() + self.settings.STARTUP_TIMEOUT_SECONDS
            while not server.started and thread.is_alive() and time.monotonic() < deadline:
                time.sleep(0.01)

            if not server.started:
                server.should_exit = True
                thread.join(timeout=SHUTDOWN_GRACE_SECONDS)
                sock.close()
                self._state = ServerState.STOPPED
                logger.error(f"Server failed to start on {host}:{actual_port}")
                return ServerStartResult(
                    status=StartStatus.FAILED,
                    port=actual_port,
                    message="Server did not start within the startup timeout"
                )

            self._uvicorn = server
            self._thread = thread
            self._socket = sock
            self._port = actual_port
            self._state = ServerState.RUNNING

            url = self.get_server_url()
            logger.info(f"MCP server listening on {url}")
            return ServerStartResult(status=StartStatus.STARTED, port=actual_port, url=url)

    def stop(self) -> None:
        """Close all sessions and the listener; a stopped server is left as is"""
        with self._lifecycle_lock:
            if self._uvicorn is None:
                self._state = ServerState.STOPPED
                return

            if threading.current_thread() is self._thread:
                raise RuntimeError("stop() cannot be called from the server thread")

            self._state = ServerState.STOPPING
            self.sessions.close_all()

            self._uvicorn.should_exit = True
            self._thread.join(timeout=SHUTDOWN_GRACE_SECONDS + 3)
            if self._thread.is_alive():
                logger.warning("Server did not shut down gracefully, forcing exit")
                self._uvicorn.force_exit = True
                self._thread.join(timeout=SHUTDOWN_GRACE_SECONDS)

            self._socket.close()
            self._uvicorn = None
            self._thread = None
            self._socket = None
            self._state = ServerState.STOPPED
            logger.info("MCP server stopped")

    def restart(self, port: Optional[int] = None) -> ServerStartResult:
        """
        Stop and start again, keeping registries and history

        If the new port is unavailable the server stays stopped.
        """
        with self._lifecycle_lock:
            target = port if port is not None else self.port
            logger.info(f"Restarting MCP server on port {target}")
            self.stop()
            return self.start(target)

    # ------------------------------------------------------------------
    # Session dispatch
    # ------------------------------------------------------------------

    def submit(self, session_id: str, raw: Union[str, bytes]) -> None:
        """Dispatch a body in the background and deliver the response to a session"""
        task = asyncio.create_task(self._dispatch_to_session(session_id, raw))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch_to_session(self, session_id: str, raw: Union[str, bytes]) -> None:
        response = await self.handler.handle_body(raw)
        if response is not None:
            self.sessions.send(session_id, response)

    # ------------------------------------------------------------------
    # Runtime settings
    # ------------------------------------------------------------------

    def set_tool_enabled(self, name: str, enabled: bool) -> bool:
        """
        Enable or disable a registered tool

        Returns:
            False if no tool with that name is registered
        """
        if name not in self.tools:
            return False
        self.settings.set_tool_enabled(name, enabled)
        logger.info(f"Tool {name} {'enabled' if enabled else 'disabled'}")
        return True

    def set_max_history_size(self, size: int) -> int:
        """
        Change history capacity

        Returns:
            Number of entries evicted by the resize
        """
        self.settings.MAX_HISTORY_SIZE = size
        return self.history.resize(size)

    def update_port(self, port: int) -> bool:
        """
        Persist a new port and, if running, restart on it from a separate thread

        Returns:
            True if a restart was scheduled
        """
        self.settings.PORT = port
        if not self.is_running():
            return False
        threading.Thread(
            target=self.restart,
            args=(port,),
            name="index-mcp-restart",
            daemon=True
        ).start()
        return True
