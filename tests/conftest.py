# tests/conftest.py

"""Shared fixtures: a sample project on disk, settings and a composed server"""

import asyncio
import socket
import textwrap

import pytest

from index_mcp.core.config import Settings
from index_mcp.core.exceptions import IndexNotReadyError
from index_mcp.services.mcp_server import McpServer
from index_mcp.services.project_context import LocalProjectContext
from index_mcp.tools.base import McpTool


SERVICE_SOURCE = textwrap.dedent('''\
    """User service module"""
    from abc import ABC, abstractmethod
    from enum import Enum

    MAX_USERS = 10


    class Role(Enum):
        ADMIN = "admin"
        USER = "user"


    class Repository(ABC):
        @abstractmethod
        def load(self, key):
            ...


    class UserService:
        """Manages users"""

        default_role = Role.USER

        def __init__(self, repo):
            self.repo = repo

        def find_user(self, user_id: int) -> dict:
            """Find a user by id"""
            return self.repo.load(user_id)

        @staticmethod
        async def ping() -> bool:
            return True

        class Config:
            strict = True


    def helper(x, y=1):
        return x + y
''')

README = "# Sample\n\nline three\nline four\nline five\n"


class EchoTool(McpTool):
    """Returns its arguments"""

    name = "echo"
    description = "Echo the arguments back"
    requires_sync = False

    async def execute(self, context, arguments):
        return self.create_json_result(arguments)


class GreetTool(McpTool):
    name = "greet"
    description = "Greets someone"
    input_schema = {
        "type": "object",
        "properties": {"who": {"type": "string"}},
        "required": ["who"]
    }

    async def execute(self, context, arguments):
        who = self.require_param(arguments, "who")
        return self.create_success_result(f"Hello, {who}!", affected_files=["greeting.txt"])


class StrictTool(McpTool):
    """Validates its argument type inside execute"""

    name = "strict"
    description = "Requires an integer count"

    async def execute(self, context, arguments):
        count = self.require_param(arguments, "count", int)
        return self.create_success_result(str(count))


class FailingTool(McpTool):
    name = "failing"
    description = "Always raises"

    async def execute(self, context, arguments):
        raise RuntimeError("boom")


class NotReadyTool(McpTool):
    name = "not_ready"
    description = "Raises an application error"

    async def execute(self, context, arguments):
        raise IndexNotReadyError("Project index is not ready")


class SlowTool(McpTool):
    """Blocks until its release event is set"""

    name = "slow"
    description = "Waits for the test to release it"
    requires_sync = False

    def __init__(self):
        self.release = asyncio.Event()

    async def execute(self, context, arguments):
        await self.release.wait()
        return self.create_success_result("done")


def find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def free_port():
    return find_free_port()


@pytest.fixture
def sample_project(tmp_path):
    """Small Python project on disk"""
    root = tmp_path / "sample"
    pkg = root / "pkg"
    pkg.mkdir(parents=True)
    (pkg / "__init__.py").write_text('"""Sample package"""\n', encoding="utf-8")
    (pkg / "service.py").write_text(SERVICE_SOURCE, encoding="utf-8")
    (root / "README.md").write_text(README, encoding="utf-8")
    (root / "tests").mkdir()
    (root / ".git").mkdir()
    return root


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        MAX_HISTORY_SIZE=10,
        SSE_KEEPALIVE_SECONDS=0.5,
        STARTUP_TIMEOUT_SECONDS=10.0
    )


@pytest.fixture
def context(sample_project):
    return LocalProjectContext(str(sample_project))


@pytest.fixture
def server(settings, context):
    """Composed server with built-ins, test tools and one open project; not listening"""
    mcp_server = McpServer(settings)
    mcp_server.register_builtins()
    for tool in (EchoTool(), GreetTool(), StrictTool(), FailingTool(), NotReadyTool(), SlowTool()):
        mcp_server.tools.register(tool)
    mcp_server.projects.add(context)
    yield mcp_server
    mcp_server.stop()
