"""Dispatcherのユニットテスト。"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from pydantic import BaseModel

from archguard.models.errors import ProtocolError, UnknownToolError
from archguard.models.validation import ValidationResult
from archguard.protocol.dispatch import Dispatcher, decode_request_line, parse_request_line
from archguard.protocol.registry import ToolDefinition, ToolKind, ToolRegistry

WriteTree = Callable[[Path, dict[str, str]], Path]


def _request(request_id: object, name: str, params: dict | None = None) -> str:  # type: ignore[type-arg]
    return json.dumps({"id": request_id, "type": "request", "name": name, "params": params or {}})


class TestParseRequestLine:
    def test_valid_request(self) -> None:
        request = parse_request_line(_request("1", "architecture_check"))
        assert request.id == "1"
        assert request.name == "architecture_check"

    def test_malformed_json_has_no_id(self) -> None:
        with pytest.raises(ProtocolError, match="Malformed JSON") as exc_info:
            parse_request_line("{not json")
        assert exc_info.value.request_id is None

    def test_missing_name_keeps_id(self) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            parse_request_line(json.dumps({"id": "abc", "type": "request"}))
        assert exc_info.value.request_id == "abc"

    def test_wrong_type_is_rejected(self) -> None:
        with pytest.raises(ProtocolError):
            parse_request_line(json.dumps({"id": "1", "type": "response", "name": "x"}))

    def test_non_object_is_rejected(self) -> None:
        with pytest.raises(ProtocolError, match="JSON object"):
            parse_request_line("[1, 2]")


class TestHandleLine:
    async def test_well_formed_request_echoes_id(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(_request("req-1", "architecture_check"))
        assert response["id"] == "req-1"
        assert response["request_id"] == "req-1"
        assert response["type"] == "response"
        assert response["name"] == "architecture_check"
        assert response["content"]["success"] is True
        assert response["content"]["results"]["success"] is True

    @pytest.mark.parametrize("tool", [str(kind) for kind in ToolKind])
    async def test_every_tool_echoes_id(self, dispatcher: Dispatcher, tool: str) -> None:
        params = {
            "architecture_check": {},
            "check_component_architecture": {"filePath": "components/header.tsx"},
            "dependency_check": {},
            "check_import_allowed": {"source": "app/page.tsx", "target": "react"},
        }[tool]
        response = await dispatcher.handle_line(_request(f"id-{tool}", tool, params))
        assert response["id"] == f"id-{tool}"
        assert response["request_id"] == f"id-{tool}"
        assert response["content"]["success"] is True

    async def test_numeric_id_is_echoed_as_string(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(_request(7, "check_import_allowed", {"source": "a", "target": "b"}))
        assert response["id"] == "7"

    async def test_malformed_json(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line("{oops")
        assert "id" not in response
        assert "request_id" not in response
        assert response["type"] == "response"
        assert response["content"]["type"] == "error"
        assert response["content"]["error"] == "ProtocolError"

    async def test_missing_fields_echo_id(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(json.dumps({"id": "x1", "type": "request"}))
        assert response["id"] == "x1"
        assert response["content"]["type"] == "error"

    async def test_unknown_tool(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(_request("u1", "nope"))
        assert response["id"] == "u1"
        assert response["content"] == {
            "type": "error",
            "error": "UnknownToolError",
            "message": "Unknown tool: nope",
        }

    async def test_invalid_arguments_are_a_failed_result(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(_request("a1", "check_import_allowed", {"source": "app/page"}))
        assert response["content"]["success"] is False
        assert response["content"]["results"]["errors"][0].startswith("Invalid arguments for check_import_allowed")

    async def test_validation_failures_are_reported_in_content(
        self, dispatcher: Dispatcher, project_root: Path, write_tree: WriteTree
    ) -> None:
        write_tree(project_root, {"components/gallery.tsx": '<img src="/a.png" />\n'})
        response = await dispatcher.handle_line(_request("v1", "architecture_check", {"validators": ["media"]}))
        assert response["content"]["success"] is False
        assert response["content"]["results"]["errors"][0].startswith("components/gallery.tsx: Found 1 raw <img>")


class TestHandlerFailures:
    async def test_handler_exception_becomes_failed_result(self) -> None:
        class Params(BaseModel):
            pass

        async def explode(params: Params) -> ValidationResult:
            raise RuntimeError("kaboom")

        registry = ToolRegistry()
        registry.register(
            ToolDefinition(kind=ToolKind.ARCHITECTURE_CHECK, description="", param_model=Params, handler=explode)
        )
        registry.freeze()
        dispatcher = Dispatcher(registry)

        response = await dispatcher.handle_line(_request("e1", "architecture_check"))
        assert response["id"] == "e1"
        assert response["content"]["success"] is False
        assert response["content"]["results"]["errors"] == [
            "Tool architecture_check failed: RuntimeError: kaboom"
        ]


class TestHandleToolCall:
    async def test_known_tool(self, dispatcher: Dispatcher) -> None:
        status, body = await dispatcher.handle_tool_call(
            {"name": "check_import_allowed", "tool_call_id": "call-1", "arguments": {"source": "a", "target": "b"}}
        )
        assert status == 200
        assert body["name"] == "check_import_allowed"
        assert body["tool_call_id"] == "call-1"
        assert body["content"]["success"] is True
        assert body["content"]["results"]["isAllowed"] is True

    async def test_unknown_tool(self, dispatcher: Dispatcher) -> None:
        status, body = await dispatcher.handle_tool_call({"name": "nope", "arguments": {}})
        assert status == 400
        assert body == {"error": "Unknown tool: nope"}

    async def test_missing_name(self, dispatcher: Dispatcher) -> None:
        status, body = await dispatcher.handle_tool_call({"arguments": {}})
        assert status == 400
        assert "error" in body

    async def test_invalid_arguments_field(self, dispatcher: Dispatcher) -> None:
        status, body = await dispatcher.handle_tool_call({"name": "architecture_check", "arguments": "x"})
        assert status == 400
        assert body["error"].startswith("Invalid tool call")


class TestInvoke:
    async def test_invoke_returns_content(self, dispatcher: Dispatcher) -> None:
        content = await dispatcher.invoke("dependency_check")
        assert content["success"] is True
        assert content["results"]["extra"]["kind"] == "dependency"

    async def test_invoke_unknown_raises(self, dispatcher: Dispatcher) -> None:
        with pytest.raises(UnknownToolError):
            await dispatcher.invoke("nope")


class TestDecodeRequestLine:
    def test_utf8_bytes(self) -> None:
        assert decode_request_line('{"name": "ü"}'.encode()) == '{"name": "ü"}'

    def test_invalid_bytes_raise_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="not valid UTF-8") as exc_info:
            decode_request_line(b"\xff\xfe")
        assert exc_info.value.request_id is None

    async def test_handle_line_accepts_bytes(self, dispatcher: Dispatcher) -> None:
        response = await dispatcher.handle_line(_request("raw", "dependency_check").encode("utf-8"))
        assert response["id"] == "raw"
        assert response["content"]["success"] is True
