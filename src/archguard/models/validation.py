"""バリデーション関連のデータモデル。"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field
from pydantic.alias_generators import to_camel

from archguard.models.errors import ConfigurationError


class CamelModel(BaseModel):
    """JSON上はcamelCase、Python上はsnake_caseで扱うモデルの基底クラス。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """プロトコル応答用のdictに変換する。"""
        return self.model_dump(mode="json", by_alias=True)


class RuleOptions(CamelModel):
    """ルールに渡すオプション。リクエストのoptionsから構築される。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    max_lines: int = Field(default=500, gt=0)
    warn_lines: int | None = Field(default=None, gt=0)
    image_module: str = "next/image"
    ignore_patterns: list[str] = Field(default_factory=list)
    # 未指定時の既定値は呼び出し側で異なる（ルール検証はFalse、依存検証はTrue）
    include_tests: bool | None = None
    include_dependencies: bool = False
    project_path: str | None = None

    @classmethod
    def parse(cls, options: "dict[str, Any] | RuleOptions | None") -> "RuleOptions":
        """リクエストのoptionsを検証して構築する。

        Raises:
            ConfigurationError: optionsの値が不正な場合。
        """
        if isinstance(options, RuleOptions):
            return options
        try:
            return cls.model_validate(options or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid options: {e}") from e

    @property
    def warn_threshold(self) -> int:
        """警告を出し始める行数。未指定の場合はmax_linesの80%。"""
        if self.warn_lines is not None:
            return self.warn_lines
        return int(self.max_lines * 0.8)


class RuleResult(BaseModel):
    """単一ルールを単一ファイルに適用した結果。"""

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.errors and not self.warnings


class FileIssues(CamelModel):
    """ファイル単位の検出結果。"""

    file_path: str
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class EdgeDecision(CamelModel):
    """依存エッジ（source → target）の評価結果。"""

    source: str
    target: str
    is_allowed: bool
    clause: str
    reason: str = ""


class DependencyReport(CamelModel):
    """依存ポリシー検証の詳細。"""

    kind: Literal["dependency"] = "dependency"
    allowed: list[EdgeDecision] = Field(default_factory=list)
    denied: list[EdgeDecision] = Field(default_factory=list)
    edges_checked: int = 0
    default_policy: Literal["allow", "deny"] = "allow"


class ProjectReport(CamelModel):
    """プロジェクト全体のルール検証の詳細。"""

    kind: Literal["project"] = "project"
    component_issues: list[FileIssues] = Field(default_factory=list)
    files_checked: int = 0
    files_passed: int = 0
    files_failed: int = 0
    validators: list[str] = Field(default_factory=list)
    dependencies: DependencyReport | None = None


ReportExtra = Annotated[ProjectReport | DependencyReport, Field(discriminator="kind")]


class ValidationResult(CamelModel):
    """全バリデーション共通の結果形式。

    successはerrorsから導出されるため、errorsが空であることと常に一致する。
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    summary: str = ""
    extra: ReportExtra | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors

    @classmethod
    def failure(cls, message: str, summary: str | None = None) -> "ValidationResult":
        """単一のエラーからなる失敗結果を作成する。"""
        return cls(errors=[message], summary=summary or f"Validation failed: {message}")


class DependencyCheckResult(CamelModel):
    """単一エッジのチェック結果。"""

    success: bool = True
    is_allowed: bool
    message: str
    clause: str | None = None
