"""ルールバリデータを束ねてプロジェクト全体を検証するサービス。"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from archguard.models.errors import ConfigurationError, ValidationExecutionError
from archguard.models.validation import DependencyReport, FileIssues, ProjectReport, RuleOptions, ValidationResult
from archguard.rules.base import Rule
from archguard.rules.catalog import resolve_rules
from archguard.services.scanner import iter_source_files, relative_posix
from archguard.validators.dependency import DependencyPolicyValidator

logger = logging.getLogger(__name__)

# validatorsに指定すると依存ポリシー検証も実行する
DEPENDENCY_VALIDATOR = "dependency"


class Orchestrator:
    """ファイルを列挙し、適用可能なルールを実行して結果を集約する。"""

    def __init__(
        self,
        project_root: Path,
        dependency_validator: DependencyPolicyValidator,
        default_options: dict[str, Any] | None = None,
    ) -> None:
        self._project_root = project_root
        self._dependency_validator = dependency_validator
        self._default_options = default_options or {}

    @property
    def project_root(self) -> Path:
        return self._project_root

    def resolve_path(self, path: str | Path | None) -> Path:
        """リクエストのパスを解決する。省略時はプロジェクトルート、相対パスはルート基準。

        Raises:
            ConfigurationError: パスが存在しない場合。
        """
        if path is None or str(path) == "":
            resolved = self._project_root
        else:
            resolved = Path(path)
            if not resolved.is_absolute():
                resolved = self._project_root / resolved
        if not resolved.exists():
            raise ConfigurationError(f"Path not found: {resolved}")
        return resolved

    def build_options(self, options: dict[str, Any] | None) -> RuleOptions:
        """サーバー既定値とリクエストのoptionsを合成する。

        Raises:
            ConfigurationError: optionsの値が不正な場合。
        """
        if options is not None and not isinstance(options, dict):
            raise ConfigurationError("Invalid options: options must be a JSON object")
        return RuleOptions.parse({**self._default_options, **(options or {})})

    def _base_for(self, target: Path) -> Path:
        # 相対パス表示の基準。ルート外の単一ファイルはその親ディレクトリ
        if target.is_dir():
            return target
        if target.resolve().is_relative_to(self._project_root.resolve()):
            return self._project_root
        return target.parent

    def validate(
        self,
        path: str | Path | None = None,
        validators: Iterable[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """指定パス配下のソースファイルをルールで検証する。

        1ファイル・1ルールの失敗は、そのファイルとルールに帰属するエラーとして記録し、
        残りのファイルの処理を続ける。入力不備はConfigurationErrorとして結果に含める。

        Args:
            path: 検証対象のディレクトリまたはファイル。省略時はプロジェクトルート。
            validators: 実行するルール名。省略時は全ルール。"dependency" を含めると
                依存ポリシー検証も実行する。
            options: ルールに渡すオプション（maxLines, warnLines, ignorePatterns,
                includeTests, includeDependencies）。
        """
        try:
            rule_options = self.build_options(options)
            target = self.resolve_path(path)
            names = list(validators) if validators is not None else None
            run_dependencies = rule_options.include_dependencies
            if names is not None and DEPENDENCY_VALIDATOR in names:
                run_dependencies = True
                names = [n for n in names if n != DEPENDENCY_VALIDATOR]
                rules = resolve_rules(names) if names else []
            else:
                rules = resolve_rules(names)
        except ConfigurationError as e:
            logger.info("Rejected validation request: %s", e)
            return ValidationResult.failure(str(e), summary=f"Configuration error: {e}")

        base = self._base_for(target)
        files = iter_source_files(
            target,
            ignore_patterns=rule_options.ignore_patterns,
            include_tests=bool(rule_options.include_tests),
        )
        logger.debug("Validating %d files under %s with %s", len(files), target, [str(r.name) for r in rules])

        errors: list[str] = []
        warnings: list[str] = []
        component_issues: list[FileIssues] = []
        files_failed = 0

        for file in files:
            issues = self._validate_file(file, relative_posix(file, base), rules, rule_options)
            errors.extend(f"{issues.file_path}: {message}" for message in issues.errors)
            warnings.extend(f"{issues.file_path}: {message}" for message in issues.warnings)
            if issues.errors:
                files_failed += 1
            if issues.errors or issues.warnings:
                component_issues.append(issues)

        if not files:
            warnings.append(f"No source files found under {target}")

        report = ProjectReport(
            component_issues=component_issues,
            files_checked=len(files),
            files_passed=len(files) - files_failed,
            files_failed=files_failed,
            validators=[str(rule.name) for rule in rules],
        )

        if run_dependencies:
            dependency_result = self._dependency_validator.validate_project(target, rule_options, project_root=base)
            errors.extend(dependency_result.errors)
            warnings.extend(dependency_result.warnings)
            report.validators.append(DEPENDENCY_VALIDATOR)
            if isinstance(dependency_result.extra, DependencyReport):
                report.dependencies = dependency_result.extra

        if errors:
            summary = (
                f"Validation failed: {files_failed} of {len(files)} files failed "
                f"with {len(errors)} errors and {len(warnings)} warnings"
            )
            dependencies = report.dependencies
            if dependencies is not None and dependencies.denied:
                summary += f"; {len(dependencies.denied)} of {dependencies.edges_checked} dependency edges denied"
        else:
            summary = (
                f"Validation passed: {len(files)} files checked, {report.files_passed} passed, "
                f"{len(warnings)} warnings"
            )
        return ValidationResult(errors=errors, warnings=warnings, summary=summary, extra=report)

    def _validate_file(self, file: Path, rel: str, rules: list[Rule], options: RuleOptions) -> FileIssues:
        issues = FileIssues(file_path=rel)
        try:
            content = file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            issues.errors.append(f"unreadable file: {e}")
            return issues

        for rule in rules:
            if not rule.applies_to(rel):
                continue
            try:
                result = rule(rel, content, options)
            except Exception as e:
                error = ValidationExecutionError(rel, str(rule.name), e)
                logger.exception("%s", error)
                issues.errors.append(error.detail)
                continue
            issues.errors.extend(result.errors)
            issues.warnings.extend(result.warnings)
        return issues
