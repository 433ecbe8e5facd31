"""テスト共通フィクスチャ。"""

from collections.abc import Callable
from pathlib import Path

import pytest

from archguard.config import ServerConfig
from archguard.models.validation import RuleOptions
from archguard.protocol.dispatch import Dispatcher
from archguard.server import ServerComponents, build_components
from archguard.services.orchestrator import Orchestrator
from archguard.validators.dependency import DependencyPolicyValidator

# 全ルールに違反しない最小のNext.jsプロジェクト
SAMPLE_PROJECT: dict[str, str] = {
    "app/page.tsx": (
        'import Header from "@/components/header";\n'
        "\n"
        "export default function HomePage() {\n"
        '  return <Header title="Home" />;\n'
        "}\n"
    ),
    "components/header.tsx": (
        'import { formatTitle } from "@/lib/utils";\n'
        "\n"
        "export default function Header({ title }: { title: string }) {\n"
        "  return <h1>{formatTitle(title)}</h1>;\n"
        "}\n"
    ),
    "components/counter-client.tsx": (
        '"use client";\n'
        "\n"
        'import { useState } from "react";\n'
        "\n"
        "export default function Counter() {\n"
        "  const [count, setCount] = useState(0);\n"
        "  return <button onClick={() => setCount(count + 1)}>{count}</button>;\n"
        "}\n"
    ),
    "lib/utils.ts": (
        "export function formatTitle(title: string): string {\n"
        "  return title.trim();\n"
        "}\n"
    ),
}


def write_files(root: Path, files: dict[str, str]) -> Path:
    """相対パス→内容のdictをroot配下に書き出す。"""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_tree() -> Callable[[Path, dict[str, str]], Path]:
    """ファイルツリーを書き出す関数。"""
    return write_files


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """違反のないサンプルプロジェクト。"""
    return write_files(tmp_path / "project", SAMPLE_PROJECT)


@pytest.fixture
def options() -> RuleOptions:
    """既定値のルールオプション。"""
    return RuleOptions()


@pytest.fixture
def dependency_validator(config_dir: Path, project_root: Path) -> DependencyPolicyValidator:
    """既定ポリシーを使うDependencyPolicyValidator。"""
    return DependencyPolicyValidator(
        default_policy_path=config_dir / "dependency-policy.yaml",
        project_root=project_root,
    )


@pytest.fixture
def orchestrator(project_root: Path, dependency_validator: DependencyPolicyValidator) -> Orchestrator:
    """テスト用Orchestrator。"""
    return Orchestrator(project_root=project_root, dependency_validator=dependency_validator)


@pytest.fixture
def server_config(project_root: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(project_root=project_root, config_dir=config_dir)


@pytest.fixture
def components(server_config: ServerConfig) -> ServerComponents:
    """構築済みのサーバー部品。"""
    return build_components(server_config)


@pytest.fixture
def dispatcher(components: ServerComponents) -> Dispatcher:
    """テスト用Dispatcher。"""
    return components.dispatcher
