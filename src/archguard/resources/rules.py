"""ルールと依存ポリシーのMCPリソース定義。"""

import yaml
from fastmcp import FastMCP

from archguard.rules.catalog import describe_rules
from archguard.validators.dependency import DependencyPolicyValidator


def register_rule_resources(mcp: FastMCP, dependency_validator: DependencyPolicyValidator) -> None:
    """ルール関連のMCPリソースを登録する。"""

    @mcp.resource("archguard://rules")
    async def rules() -> str:
        """登録済みルールの一覧を取得する。

        各ルールには名前、説明、対象の拡張子、誤検知・見逃しのリスクが含まれます。
        """
        return yaml.dump({"rules": describe_rules()}, allow_unicode=True, default_flow_style=False, sort_keys=False)

    @mcp.resource("archguard://dependency-policy")
    async def dependency_policy() -> str:
        """プロジェクトルートに適用される依存ポリシーを取得する。"""
        policy = dependency_validator.load_policy()
        data = policy.model_dump(mode="json", exclude={"source_path"})
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)
