"""検証ツールのMCPツール定義。

各ツールは共有のディスパッチャを通して呼び出され、HTTP /mcp とstdioと同じ結果を返す。
"""

from typing import Any

from fastmcp import FastMCP

from archguard.models.errors import ArchGuardError
from archguard.protocol.dispatch import Dispatcher
from archguard.protocol.registry import ToolKind


def register_validation_tools(mcp: FastMCP, dispatcher: Dispatcher) -> None:
    """検証関連のMCPツールを登録する。"""

    @mcp.tool()
    async def architecture_check(
        path: str | None = None,
        validators: list[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """ディレクトリ配下のソースファイルをアーキテクチャルールで検証する。

        ルール名を1つだけ指定すると、そのルール単体の検証になります。

        Args:
            path: 検証対象のパス。省略時はプロジェクトルート。
            validators: 実行するルール名（boundary, size, data-fetching, media, structure,
                suspense, security, dependency）。省略時は依存ポリシー以外の全ルール。
            options: maxLines, warnLines, ignorePatterns, includeTests, includeDependencies。
        """
        try:
            return await dispatcher.invoke(
                ToolKind.ARCHITECTURE_CHECK,
                {"path": path, "validators": validators, "options": options or {}},
            )
        except ArchGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def check_component_architecture(
        file_path: str,
        validators: list[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """単一のファイルをアーキテクチャルールで検証する。

        Args:
            file_path: 検証するファイルのパス（プロジェクトルートからの相対パス可）。
            validators: 実行するルール名。省略時は全ルール。
            options: ルールのオプション。
        """
        try:
            return await dispatcher.invoke(
                ToolKind.CHECK_COMPONENT_ARCHITECTURE,
                {"filePath": file_path, "validators": validators, "options": options or {}},
            )
        except ArchGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def dependency_check(
        path: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """プロジェクトの全インポートを依存ポリシーで検証する。

        Args:
            path: 走査の起点。省略時はプロジェクトルート。
            options: ignorePatterns, includeTests。
        """
        try:
            return await dispatcher.invoke(ToolKind.DEPENDENCY_CHECK, {"path": path, "options": options or {}})
        except ArchGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def check_import_allowed(
        source: str,
        target: str,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """1つのインポートが依存ポリシー上許可されるかを判定する。

        ツリー全体を走査しないため、編集中のファイルの逐次チェックに向いています。

        Args:
            source: インポート元のモジュールパス（例: "components/header"）。
            target: インポート指定子（例: "@/app/page", "../lib/utils", "moment"）。
            options: projectPath でポリシーの探索起点を変更できる。
        """
        try:
            return await dispatcher.invoke(
                ToolKind.CHECK_IMPORT_ALLOWED,
                {"source": source, "target": target, "options": options or {}},
            )
        except ArchGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}
