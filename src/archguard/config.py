"""archguardサーバーの設定管理。"""

from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent

POLICY_FILE_NAME = "dependency-policy.yaml"


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。

    PROJECT_ROOT, PORT, TRANSPORT_MODE はプレフィックスなしでも受け付ける。
    """

    model_config = {"env_prefix": "ARCHGUARD_", "populate_by_name": True}

    project_root: Path = Field(
        default_factory=Path.cwd,
        validation_alias=AliasChoices("project_root", "ARCHGUARD_PROJECT_ROOT", "PROJECT_ROOT"),
    )
    config_dir: Path = _REPO_ROOT / "config"
    policy_file: Path | None = None
    host: str = "0.0.0.0"
    port: int = Field(default=8001, validation_alias=AliasChoices("port", "ARCHGUARD_PORT", "PORT"))
    transport: Literal["http", "stdio"] = Field(
        default="http",
        validation_alias=AliasChoices("transport", "ARCHGUARD_TRANSPORT", "TRANSPORT_MODE"),
    )

    # ルールの既定オプション
    max_lines: int = Field(default=500, gt=0)
    warn_lines: int | None = Field(default=None, gt=0)

    disabled_tools: list[str] = Field(default_factory=list)
    log_level: str = "INFO"

    @property
    def policy_path(self) -> Path:
        """既定の依存ポリシーファイル。"""
        return self.policy_file or self.config_dir / POLICY_FILE_NAME

    def rule_defaults(self) -> dict[str, Any]:
        """リクエストのoptionsに合成されるルールの既定値。"""
        defaults: dict[str, Any] = {"maxLines": self.max_lines}
        if self.warn_lines is not None:
            defaults["warnLines"] = self.warn_lines
        return defaults
