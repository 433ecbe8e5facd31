"""ツール定義と起動時に構築されるツールレジストリ。"""

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from archguard.models.errors import DuplicateToolError, RegistryFrozenError, ToolDisabledError, UnknownToolError

logger = logging.getLogger(__name__)


class ToolKind(StrEnum):
    """サポートするツールの閉じた集合。"""

    ARCHITECTURE_CHECK = "architecture_check"
    CHECK_COMPONENT_ARCHITECTURE = "check_component_architecture"
    DEPENDENCY_CHECK = "dependency_check"
    CHECK_IMPORT_ALLOWED = "check_import_allowed"


ToolHandler = Callable[[Any], Awaitable[BaseModel]]


@dataclass
class ToolDefinition:
    """名前・パラメータスキーマ・ハンドラの組。enabled以外は登録後に変更しない。"""

    kind: ToolKind
    description: str
    param_model: type[BaseModel]
    handler: ToolHandler
    enabled: bool = True

    @property
    def name(self) -> str:
        return str(self.kind)


class ToolRegistry:
    """ツール定義の表。起動時に登録を終えたらfreezeし、以降は読み取り専用として共有する。"""

    def __init__(self) -> None:
        self._tools: dict[ToolKind, ToolDefinition] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, definition: ToolDefinition) -> None:
        """ツールを登録する。

        Raises:
            RegistryFrozenError: freeze後に登録しようとした場合。
            DuplicateToolError: 同名のツールが既に登録されている場合。
        """
        if self._frozen:
            raise RegistryFrozenError(definition.name)
        if definition.kind in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.kind] = definition
        logger.debug("Registered tool %s (enabled=%s)", definition.name, definition.enabled)

    def freeze(self) -> None:
        self._frozen = True

    def set_enabled(self, name: str, enabled: bool) -> None:
        """ツールの有効・無効を切り替える。freeze後も許可される唯一の変更。

        Raises:
            UnknownToolError: 未登録のツール名の場合。
        """
        self._lookup(name).enabled = enabled

    def _lookup(self, name: str) -> ToolDefinition:
        try:
            return self._tools[ToolKind(name)]
        except (ValueError, KeyError):
            raise UnknownToolError(name) from None

    def resolve(self, name: str) -> ToolDefinition:
        """ツール名から呼び出し可能なツール定義を取得する。

        Raises:
            UnknownToolError: 未登録のツール名の場合。
            ToolDisabledError: ツールが無効化されている場合。
        """
        definition = self._lookup(name)
        if not definition.enabled:
            raise ToolDisabledError(name)
        return definition

    def names(self) -> list[str]:
        return [definition.name for definition in self._tools.values()]

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))

    def __contains__(self, name: object) -> bool:
        try:
            return ToolKind(name) in self._tools
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._tools)
