"""ツールのパラメータスキーマとハンドラ表の構築。"""

import asyncio
from collections.abc import Iterable
from typing import Any

from pydantic import Field

from archguard.models.errors import ConfigurationError
from archguard.models.validation import CamelModel, DependencyCheckResult, ValidationResult
from archguard.protocol.registry import ToolDefinition, ToolKind, ToolRegistry
from archguard.services.orchestrator import Orchestrator
from archguard.validators.dependency import DependencyPolicyValidator


class ArchitectureCheckParams(CamelModel):
    path: str | None = None
    validators: list[str] | None = None
    options: dict[str, Any] = Field(default_factory=dict)


class ComponentCheckParams(CamelModel):
    file_path: str = Field(min_length=1)
    validators: list[str] | None = None
    options: dict[str, Any] = Field(default_factory=dict)


class DependencyCheckParams(CamelModel):
    path: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)


class ImportCheckParams(CamelModel):
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    options: dict[str, Any] = Field(default_factory=dict)


def build_registry(
    orchestrator: Orchestrator,
    dependency_validator: DependencyPolicyValidator,
    disabled_tools: Iterable[str] = (),
) -> ToolRegistry:
    """全ツールを登録し、freeze済みのレジストリを返す。

    ハンドラは同期的なファイル走査をワーカースレッドで実行し、イベントループを塞がない。

    Raises:
        UnknownToolError: disabled_toolsに未知のツール名が含まれる場合。
    """

    async def architecture_check(params: ArchitectureCheckParams) -> ValidationResult:
        return await asyncio.to_thread(orchestrator.validate, params.path, params.validators, params.options)

    async def check_component_architecture(params: ComponentCheckParams) -> ValidationResult:
        return await asyncio.to_thread(orchestrator.validate, params.file_path, params.validators, params.options)

    async def dependency_check(params: DependencyCheckParams) -> ValidationResult:
        try:
            root = orchestrator.resolve_path(params.path)
        except ConfigurationError as e:
            return ValidationResult.failure(str(e), summary=f"Configuration error: {e}")
        return await asyncio.to_thread(dependency_validator.validate_project, root, params.options)

    async def check_import_allowed(params: ImportCheckParams) -> DependencyCheckResult:
        return dependency_validator.check_dependency(params.source, params.target, params.options)

    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            kind=ToolKind.ARCHITECTURE_CHECK,
            description="Run the architecture rules over a directory tree",
            param_model=ArchitectureCheckParams,
            handler=architecture_check,
        )
    )
    registry.register(
        ToolDefinition(
            kind=ToolKind.CHECK_COMPONENT_ARCHITECTURE,
            description="Run the architecture rules over a single file",
            param_model=ComponentCheckParams,
            handler=check_component_architecture,
        )
    )
    registry.register(
        ToolDefinition(
            kind=ToolKind.DEPENDENCY_CHECK,
            description="Check every import in a project against the dependency policy",
            param_model=DependencyCheckParams,
            handler=dependency_check,
        )
    )
    registry.register(
        ToolDefinition(
            kind=ToolKind.CHECK_IMPORT_ALLOWED,
            description="Check whether one import is allowed by the dependency policy",
            param_model=ImportCheckParams,
            handler=check_import_allowed,
        )
    )

    for name in disabled_tools:
        registry.set_enabled(name, False)
    registry.freeze()
    return registry
