"""ServerConfigのユニットテスト。"""

from pathlib import Path

import pytest

from archguard.config import ServerConfig


class TestServerConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PROJECT_ROOT", "PORT", "TRANSPORT_MODE"):
            monkeypatch.delenv(name, raising=False)
        config = ServerConfig()
        assert config.port == 8001
        assert config.transport == "http"
        assert config.max_lines == 500
        assert config.policy_path == config.config_dir / "dependency-policy.yaml"
        assert config.rule_defaults() == {"maxLines": 500}

    def test_bare_environment_variables(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("PORT", "8002")
        monkeypatch.setenv("TRANSPORT_MODE", "stdio")
        config = ServerConfig()
        assert config.project_root == tmp_path
        assert config.port == 8002
        assert config.transport == "stdio"

    def test_prefixed_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARCHGUARD_MAX_LINES", "300")
        monkeypatch.setenv("ARCHGUARD_WARN_LINES", "250")
        monkeypatch.setenv("ARCHGUARD_DISABLED_TOOLS", '["dependency_check"]')
        config = ServerConfig()
        assert config.rule_defaults() == {"maxLines": 300, "warnLines": 250}
        assert config.disabled_tools == ["dependency_check"]

    def test_policy_file_override(self, tmp_path: Path) -> None:
        config = ServerConfig(policy_file=tmp_path / "custom.yaml")
        assert config.policy_path == tmp_path / "custom.yaml"
