# tests/test_jsonrpc_handler.py

"""Tests for the JSON-RPC dispatcher

Runs requests through the handler of a composed (not listening) server.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from index_mcp.models.history import CommandStatus
from index_mcp.services.project_context import LocalProjectContext


def call(method, params=None, request_id=1):
    body = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return body


def tool_call(name, arguments=None, request_id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return call("tools/call", params, request_id)


def result_text(response):
    return response["result"]["content"][0]["text"]


async def wait_for_entries(history, count):
    while len(history) < count:
        await asyncio.sleep(0.01)


@pytest.fixture
def handler(server):
    return server.handler


class TestEnvelope:
    """Parsing and routing failures"""

    @pytest.mark.asyncio
    async def test_parse_error(self, handler):
        response = await handler.handle_body("{not json")
        assert response["error"]["code"] == -32700
        assert response["id"] is None

    @pytest.mark.asyncio
    async def test_missing_method_is_invalid_request(self, handler):
        response = await handler.handle_body(json.dumps({"jsonrpc": "2.0", "id": 4}))
        assert response["error"]["code"] == -32600
        assert response["id"] == 4

    @pytest.mark.asyncio
    async def test_non_object_is_invalid_request(self, handler):
        response = await handler.handle_body("42")
        assert response["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_unknown_method(self, handler):
        response = await handler.handle_request(call("tools/unknown"))
        assert response["error"]["code"] == -32601
        assert "tools/unknown" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_notification_gets_no_response(self, handler):
        response = await handler.handle_body(
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"})
        )
        assert response is None

    @pytest.mark.asyncio
    async def test_batch(self, handler):
        body = json.dumps([
            call("ping", request_id=1),
            {"jsonrpc": "2.0", "method": "initialized"},
            call("nope", request_id=2),
        ])
        responses = await handler.handle_body(body)
        assert [r["id"] for r in responses] == [1, 2]
        assert responses[0]["result"] == {}
        assert responses[1]["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_empty_batch_is_invalid(self, handler):
        response = await handler.handle_body("[]")
        assert response["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_notification_only_batch(self, handler):
        body = json.dumps([{"jsonrpc": "2.0", "method": "initialized"}])
        assert await handler.handle_body(body) is None

    @pytest.mark.asyncio
    async def test_custom_method(self, handler):
        handler.register_method("custom/echo", AsyncMock(return_value={"ok": True}))
        assert "custom/echo" in handler.list_methods()

        response = await handler.handle_request(call("custom/echo"))
        assert response["result"] == {"ok": True}

        handler.unregister_method("custom/echo")
        response = await handler.handle_request(call("custom/echo"))
        assert response["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_string_id_echoed(self, handler):
        response = await handler.handle_request(call("ping", request_id="req-9"))
        assert response["id"] == "req-9"


class TestLifecycle:
    """initialize / ping"""

    @pytest.mark.asyncio
    async def test_initialize(self, handler, settings):
        response = await handler.handle_request(call("initialize", {
            "protocolVersion": "2024-11-05",
            "clientInfo": {"name": "test-client", "version": "0"}
        }))
        result = response["result"]
        assert result["protocolVersion"] == settings.PROTOCOL_VERSION
        assert result["serverInfo"] == {"name": "index-mcp", "version": "1.0.0"}
        assert result["capabilities"]["tools"] == {"listChanged": False}
        assert result["capabilities"]["resources"] == {"subscribe": False, "listChanged": False}

    @pytest.mark.asyncio
    async def test_tools_call_before_initialize_is_served(self, handler):
        response = await handler.handle_request(tool_call("echo", {"x": 1}))
        assert response["result"]["isError"] is False

    @pytest.mark.asyncio
    async def test_ping(self, handler):
        response = await handler.handle_request(call("ping"))
        assert response == {"jsonrpc": "2.0", "id": 1, "result": {}}


class TestTools:
    """tools/list and tools/call"""

    @pytest.mark.asyncio
    async def test_list_sorted(self, handler):
        response = await handler.handle_request(call("tools/list"))
        names = [t["name"] for t in response["result"]["tools"]]
        assert names == sorted(names)
        assert "ide_read_file" in names
        assert "echo" in names

    @pytest.mark.asyncio
    async def test_echo_round_trip(self, handler, server):
        response = await handler.handle_request(tool_call("echo", {"x": 1}))
        assert response["result"]["isError"] is False
        assert json.loads(result_text(response)) == {"x": 1}

        entry = server.history.entries[0]
        assert entry.toolName == "echo"
        assert entry.parameters == {"x": 1}
        assert entry.status == CommandStatus.SUCCESS
        assert entry.durationMs is not None

    @pytest.mark.asyncio
    async def test_unknown_tool_is_not_found(self, handler, server):
        response = await handler.handle_request(tool_call("does_not_exist"))
        assert response["error"]["code"] == -32601
        assert len(server.history) == 0

    @pytest.mark.asyncio
    async def test_disabled_tool_hidden_and_not_found(self, handler, server):
        server.set_tool_enabled("echo", False)

        listing = await handler.handle_request(call("tools/list"))
        assert "echo" not in [t["name"] for t in listing["result"]["tools"]]

        response = await handler.handle_request(tool_call("echo", {"x": 1}))
        assert response["error"]["code"] == -32601

        server.set_tool_enabled("echo", True)
        response = await handler.handle_request(tool_call("echo", {"x": 1}))
        assert "result" in response

    @pytest.mark.asyncio
    async def test_missing_name_is_invalid_params(self, handler):
        response = await handler.handle_request(call("tools/call", {"arguments": {}}))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, handler, server):
        response = await handler.handle_request(tool_call("greet", {}))
        assert response["error"]["code"] == -32602
        assert response["error"]["data"] == {"missing": ["who"]}
        assert len(server.history) == 0

    @pytest.mark.asyncio
    async def test_invalid_argument_inside_tool(self, handler, server):
        response = await handler.handle_request(tool_call("strict", {"count": "three"}))
        assert response["error"]["code"] == -32602
        assert server.history.entries[0].status == CommandStatus.ERROR

    @pytest.mark.asyncio
    async def test_success_records_affected_files(self, handler, server):
        response = await handler.handle_request(tool_call("greet", {"who": "Ada"}))
        assert result_text(response) == "Hello, Ada!"
        assert "affected_files" not in response["result"]
        assert server.history.entries[0].affectedFiles == ["greeting.txt"]

    @pytest.mark.asyncio
    async def test_unexpected_fault_becomes_error_result(self, handler, server):
        response = await handler.handle_request(tool_call("failing"))
        assert "error" not in response
        assert response["result"]["isError"] is True
        assert result_text(response) == "boom"

        entry = server.history.entries[0]
        assert entry.status == CommandStatus.ERROR
        assert entry.error == "boom"

    @pytest.mark.asyncio
    async def test_application_error_becomes_error_result(self, handler, server):
        response = await handler.handle_request(tool_call("not_ready"))
        assert response["result"]["isError"] is True
        assert "not ready" in result_text(response)
        assert server.history.entries[0].status == CommandStatus.ERROR

    @pytest.mark.asyncio
    async def test_sync_external_changes_gated_by_setting(self, handler, server, context):
        context.sync_external_changes = AsyncMock()

        await handler.handle_request(tool_call("greet", {"who": "x"}))
        context.sync_external_changes.assert_not_called()

        server.settings.SYNC_EXTERNAL_CHANGES = True
        await handler.handle_request(tool_call("greet", {"who": "x"}))
        context.sync_external_changes.assert_awaited_once()

        # echo opts out of syncing
        await handler.handle_request(tool_call("echo", {}))
        context.sync_external_changes.assert_awaited_once()


class TestProjectResolution:
    """Binding tool calls to open projects"""

    @pytest.mark.asyncio
    async def test_no_project_open(self, handler, server, context):
        server.projects.remove(context.base_path)
        response = await handler.handle_request(tool_call("echo", {}))
        assert response["result"]["isError"] is True
        assert json.loads(result_text(response))["error"] == "no_project_open"

    @pytest.mark.asyncio
    async def test_multiple_projects_require_path(self, handler, server, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        server.projects.add(LocalProjectContext(str(other)))

        response = await handler.handle_request(tool_call("echo", {}))
        payload = json.loads(result_text(response))
        assert payload["error"] == "multiple_projects_open"
        assert len(payload["available_projects"]) == 2

        response = await handler.handle_request(tool_call("echo", {"project_path": str(other.resolve())}))
        assert response["result"]["isError"] is False

    @pytest.mark.asyncio
    async def test_unknown_project_path(self, handler):
        response = await handler.handle_request(tool_call("echo", {"project_path": "/nowhere"}))
        payload = json.loads(result_text(response))
        assert payload["error"] == "project_not_found"
        assert payload["available_projects"][0]["name"] == "sample"


class TestResources:
    """resources/list and resources/read"""

    @pytest.mark.asyncio
    async def test_list(self, handler):
        response = await handler.handle_request(call("resources/list"))
        uris = [r["uri"] for r in response["result"]["resources"]]
        assert uris == sorted(uris)
        assert {"index://status", "project://structure", "file://content/{path}",
                "symbol://info/{fqn}"} <= set(uris)

    @pytest.mark.asyncio
    async def test_read_exact(self, handler):
        response = await handler.handle_request(call("resources/read", {"uri": "index://status"}))
        content = response["result"]["contents"][0]
        assert content["uri"] == "index://status"
        assert json.loads(content["text"])["isSmartMode"] is True

    @pytest.mark.asyncio
    async def test_read_unresolved_is_file_not_found(self, handler):
        response = await handler.handle_request(call("resources/read", {"uri": "nothing://here"}))
        assert response["error"]["code"] == -32002

    @pytest.mark.asyncio
    async def test_read_missing_uri(self, handler):
        response = await handler.handle_request(call("resources/read", {}))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_resource_application_error_keeps_code(self, handler, context):
        context.ready = False
        response = await handler.handle_request(
            call("resources/read", {"uri": "symbol://info/pkg.service.UserService"})
        )
        assert response["error"]["code"] == -32001

    @pytest.mark.asyncio
    async def test_resource_fault_is_internal_error(self, handler, context):
        context.project_structure = AsyncMock(side_effect=OSError("disk gone"))
        response = await handler.handle_request(call("resources/read", {"uri": "project://structure"}))
        assert response["error"]["code"] == -32603
        assert "Traceback" not in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_read_without_project(self, handler, server, context):
        server.projects.remove(context.base_path)
        response = await handler.handle_request(call("resources/read", {"uri": "index://status"}))
        assert response["error"]["code"] == -32603
        assert response["error"]["data"]["error"] == "no_project_open"


class TestCallsInFlight:
    """Concurrent and cancelled tools/call requests"""

    @pytest.mark.asyncio
    async def test_cancelled_call_is_recorded_as_error(self, handler, server):
        task = asyncio.create_task(handler.handle_request(tool_call("slow")))
        await asyncio.wait_for(wait_for_entries(server.history, 1), 5)
        assert server.history.entries[0].status == CommandStatus.PENDING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        entry = server.history.entries[0]
        assert entry.toolName == "slow"
        assert entry.status == CommandStatus.ERROR
        assert entry.error == "Cancelled"
        assert entry.durationMs is not None

    @pytest.mark.asyncio
    async def test_fast_call_completes_while_slow_call_pending(self, handler, server):
        slow_tool = server.tools.get("slow")
        slow = asyncio.create_task(handler.handle_request(tool_call("slow", request_id=1)))
        await asyncio.wait_for(wait_for_entries(server.history, 1), 5)

        fast = await handler.handle_request(tool_call("echo", {"n": 2}, request_id=2))
        assert fast["id"] == 2
        assert json.loads(result_text(fast)) == {"n": 2}

        statuses = {e.toolName: e.status for e in server.history.entries}
        assert statuses == {"echo": CommandStatus.SUCCESS, "slow": CommandStatus.PENDING}

        slow_tool.release.set()
        response = await asyncio.wait_for(slow, 5)
        assert response["id"] == 1
        assert result_text(response) == "done"
        assert all(e.status == CommandStatus.SUCCESS for e in server.history.entries)

    @pytest.mark.asyncio
    async def test_parallel_calls_keep_their_own_results(self, handler, server):
        responses = await asyncio.gather(*[
            handler.handle_request(tool_call("echo", {"n": n}, request_id=n))
            for n in range(8)
        ])

        for n, response in enumerate(responses):
            assert response["id"] == n
            assert json.loads(result_text(response)) == {"n": n}
        assert len(server.history) == 8
        assert sorted(e.parameters["n"] for e in server.history.entries) == list(range(8))
