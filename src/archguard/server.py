"""サーバーの構成ルート。設定からサービス・ツールレジストリ・各トランスポートを組み立てる。"""

import logging
from dataclasses import dataclass

from fastmcp import FastMCP
from starlette.applications import Starlette

from archguard.config import ServerConfig
from archguard.protocol.dispatch import Dispatcher
from archguard.protocol.registry import ToolRegistry
from archguard.protocol.tools import build_registry
from archguard.resources.rules import register_rule_resources
from archguard.services.orchestrator import Orchestrator
from archguard.tools.validation import register_validation_tools
from archguard.transports.http import create_http_app
from archguard.validators.dependency import DependencyPolicyValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerComponents:
    """起動時に一度だけ構築され、両トランスポートで共有される部品。"""

    config: ServerConfig
    dependency_validator: DependencyPolicyValidator
    orchestrator: Orchestrator
    registry: ToolRegistry
    dispatcher: Dispatcher


def build_components(config: ServerConfig | None = None) -> ServerComponents:
    """サービス層とツールレジストリを構築する。

    既定の依存ポリシーはここで読み込むため、ポリシーが不正な場合は起動時に失敗する。

    Raises:
        PolicyLoadError: 依存ポリシーを読み込めない場合。
        UnknownToolError: disabled_toolsに未知のツール名が含まれる場合。
    """
    if config is None:
        config = ServerConfig()

    # サービス層
    dependency_validator = DependencyPolicyValidator(
        default_policy_path=config.policy_path,
        project_root=config.project_root,
    )
    dependency_validator.load_policy()
    orchestrator = Orchestrator(
        project_root=config.project_root,
        dependency_validator=dependency_validator,
        default_options=config.rule_defaults(),
    )

    # プロトコル層
    registry = build_registry(orchestrator, dependency_validator, disabled_tools=config.disabled_tools)
    dispatcher = Dispatcher(registry)
    logger.info("Registered tools: %s", ", ".join(registry.names()))

    return ServerComponents(
        config=config,
        dependency_validator=dependency_validator,
        orchestrator=orchestrator,
        registry=registry,
        dispatcher=dispatcher,
    )


def create_server(config: ServerConfig | None = None, components: ServerComponents | None = None) -> FastMCP:
    """ネイティブMCPサーバーを作成し、ツール・リソースを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。
        components: 構築済みの部品。指定した場合はconfigより優先する。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if components is None:
        components = build_components(config)

    mcp = FastMCP("archguard")
    register_validation_tools(mcp, components.dispatcher)
    register_rule_resources(mcp, components.dependency_validator)
    return mcp


def create_app(config: ServerConfig | None = None) -> Starlette:
    """HTTPバインディングのアプリを作成する。ネイティブMCPは /native/mcp にマウントされる。"""
    components = build_components(config)
    mcp = create_server(components=components)
    return create_http_app(
        dispatcher=components.dispatcher,
        orchestrator=components.orchestrator,
        dependency_validator=components.dependency_validator,
        mcp=mcp,
    )
