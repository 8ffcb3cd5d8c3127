# tests/test_tool_registry.py

"""Unit tests for ToolRegistry"""

import threading

import pytest

from index_mcp.core.exceptions import InvalidParamsError
from index_mcp.services.tool_registry import ToolRegistry
from index_mcp.tools.base import McpTool


def make_tool(tool_name: str, text: str = "v1") -> McpTool:
    class _Tool(McpTool):
        name = tool_name
        description = text

        async def execute(self, context, arguments):
            return self.create_success_result(text)

    return _Tool()


@pytest.fixture
def registry():
    return ToolRegistry()


class TestToolRegistry:
    """Test suite for ToolRegistry"""

    def test_register_and_get(self, registry):
        tool = make_tool("alpha")
        registry.register(tool)
        assert registry.get("alpha") is tool
        assert "alpha" in registry
        assert len(registry) == 1

    def test_get_missing_returns_none(self, registry):
        assert registry.get("nope") is None

    def test_reregistration_replaces(self, registry):
        registry.register(make_tool("alpha", "first"))
        registry.register(make_tool("alpha", "second"))
        assert len(registry) == 1
        assert registry.get("alpha").description == "second"

    def test_unregister_is_noop_when_absent(self, registry):
        registry.register(make_tool("alpha"))
        registry.unregister("beta")
        registry.unregister("alpha")
        assert len(registry) == 0

    def test_definitions_sorted_by_name(self, registry):
        for name in ("zeta", "alpha", "mid"):
            registry.register(make_tool(name))
        names = [d.name for d in registry.list_definitions()]
        assert names == ["alpha", "mid", "zeta"]

    def test_definitions_filtered_by_predicate(self, registry):
        for name in ("a", "b", "c"):
            registry.register(make_tool(name))
        names = [d.name for d in registry.list_definitions(lambda n: n != "b")]
        assert names == ["a", "c"]

    def test_concurrent_registration(self, registry):
        def worker(offset):
            for i in range(50):
                registry.register(make_tool(f"tool-{offset}-{i}"))
                registry.list_definitions()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 200


class TestToolHelpers:
    """McpTool argument helpers"""

    def test_require_param_missing(self):
        with pytest.raises(InvalidParamsError):
            McpTool.require_param({}, "file")

    def test_require_param_wrong_type(self):
        with pytest.raises(InvalidParamsError):
            McpTool.require_param({"count": "3"}, "count", int)

    def test_require_param_rejects_bool_for_int(self):
        with pytest.raises(InvalidParamsError):
            McpTool.require_param({"count": True}, "count", int)

    def test_optional_int(self):
        assert McpTool.optional_int({}, "startLine") is None
        assert McpTool.optional_int({"startLine": 4}, "startLine") == 4
        with pytest.raises(InvalidParamsError):
            McpTool.optional_int({"startLine": "4"}, "startLine")

    def test_required_params_from_schema(self):
        tool = make_tool("alpha")
        assert tool.required_params() == []
        assert tool.definition().inputSchema["type"] == "object"
