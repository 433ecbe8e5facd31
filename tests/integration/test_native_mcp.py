"""ネイティブMCPツール・リソースのMCPプロトコル経由統合テスト。"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from fastmcp import Client

from archguard.config import ServerConfig
from archguard.server import create_server

WriteTree = Callable[[Path, dict[str, str]], Path]


@pytest.fixture
def mcp_server(server_config: ServerConfig) -> object:
    """テスト用MCPサーバー。"""
    return create_server(server_config)


def parse_tool_result(result: object) -> dict:  # type: ignore[type-arg]
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


class TestValidationToolsViaMCP:
    async def test_architecture_check(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("architecture_check", {})
            data = parse_tool_result(result)
            assert data["success"] is True
            assert data["results"]["extra"]["filesChecked"] == 4

    async def test_check_component_architecture(
        self, mcp_server: object, project_root: Path, write_tree: WriteTree
    ) -> None:
        write_tree(project_root, {"components/gallery.tsx": '<img src="/a.png" />\n'})
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool(
                "check_component_architecture", {"file_path": "components/gallery.tsx", "validators": ["media"]}
            )
            data = parse_tool_result(result)
            assert data["success"] is False
            assert data["results"]["errors"][0].startswith("components/gallery.tsx:")

    async def test_dependency_check(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("dependency_check", {})
            data = parse_tool_result(result)
            assert data["success"] is True
            assert data["results"]["extra"]["kind"] == "dependency"

    async def test_check_import_allowed(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("check_import_allowed", {"source": "app/page.tsx", "target": "moment"})
            data = parse_tool_result(result)
            assert data["results"]["isAllowed"] is False

    async def test_disabled_tool_returns_error(self, project_root: Path, config_dir: Path) -> None:
        config = ServerConfig(project_root=project_root, config_dir=config_dir, disabled_tools=["dependency_check"])
        async with Client(create_server(config)) as client:
            result = await client.call_tool("dependency_check", {})
            data = parse_tool_result(result)
            assert data["error"] == "ToolDisabledError"
            assert data["message"] == "Tool disabled: dependency_check"


class TestRuleResourcesViaMCP:
    async def test_rules_resource(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            contents = await client.read_resource("archguard://rules")
            text = contents[0].text  # type: ignore[union-attr]
            assert "boundary" in text
            assert "data-fetching" in text

    async def test_dependency_policy_resource(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            contents = await client.read_resource("archguard://dependency-policy")
            text = contents[0].text  # type: ignore[union-attr]
            assert "default: allow" in text
            assert "disallowed-packages" in text
