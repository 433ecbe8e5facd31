"""依存ポリシーに基づくインポートグラフの検証ロジック。"""

import fnmatch
import json
import logging
import posixpath
import re
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from pydantic import ValidationError

from archguard.models.errors import ConfigurationError, PolicyLoadError
from archguard.models.policy import DependencyPolicy, pattern_specificity
from archguard.models.validation import (
    DependencyCheckResult,
    DependencyReport,
    EdgeDecision,
    RuleOptions,
    ValidationResult,
)
from archguard.rules.base import SOURCE_EXTENSIONS, strip_comments
from archguard.services.scanner import iter_source_files, relative_posix

logger = logging.getLogger(__name__)

PROJECT_POLICY_FILE = ".dependency-policy.yaml"
PACKAGE_MANIFEST = "package.json"

_IMPORT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""\bimport\s+(?:type\s+)?(?:[\w*{}\s,$]+?\s+from\s+)?['"]([^'"\n]+)['"]"""),
    re.compile(r"""\bexport\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+[\w$]+)?\s+from\s+['"]([^'"\n]+)['"]"""),
    re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""),
    re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""),
)


def extract_imports(content: str) -> list[str]:
    """静的にインポートされているモジュール指定子を出現順（重複なし）で返す。"""
    code = strip_comments(content)
    found: list[tuple[int, str]] = []
    for pattern in _IMPORT_PATTERNS:
        found.extend((m.start(), m.group(1)) for m in pattern.finditer(code))

    specifiers: list[str] = []
    for _, spec in sorted(found):
        if spec not in specifiers:
            specifiers.append(spec)
    return specifiers


def strip_source_extension(path: str) -> str:
    suffix = PurePosixPath(path).suffix
    if suffix.lower() in SOURCE_EXTENSIONS:
        return path[: -len(suffix)]
    return path


def normalize_module_path(path: str) -> str:
    """プロジェクト相対のモジュールパスを拡張子なしのPOSIX形式に正規化する。"""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return strip_source_extension(normalized.lstrip("/"))


def package_name(specifier: str) -> str:
    """ベア指定子からパッケージ名を取り出す（スコープ付きパッケージ対応）。"""
    specifier = specifier.removeprefix("node:")
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


def resolve_import(source: str, specifier: str) -> str:
    """インポート指定子をポリシー照合用のターゲットに解決する。

    相対指定子はsourceのディレクトリ基準、"@/" はプロジェクトルート基準で解決し、
    ベア指定子はパッケージ名に縮約する。
    """
    if specifier.startswith("."):
        joined = posixpath.normpath(posixpath.join(posixpath.dirname(source), specifier))
        return strip_source_extension(joined)
    if specifier.startswith("@/") or specifier.startswith("~/"):
        return normalize_module_path(specifier[2:])
    if specifier.startswith("/"):
        return normalize_module_path(specifier)
    return package_name(specifier)


def evaluate_edge(policy: DependencyPolicy, source: str, target: str) -> EdgeDecision:
    """1本のエッジをポリシーで評価する。

    最も具体的に一致するdeny句があれば拒否、なければ最も具体的に一致するallow句で許可、
    どちらもなければポリシーの既定値に従う。同じ具体性の句は宣言順で先のものを優先する。
    """
    best_deny: tuple[tuple[int, int, int], str, str] | None = None
    best_allow: tuple[tuple[int, int, int], str] | None = None
    order = 0

    for rule in policy.rules:
        if not fnmatch.fnmatchcase(source, rule.source):
            order += len(rule.deny) + len(rule.allow)
            continue
        source_spec = pattern_specificity(rule.source)

        for deny in rule.deny:
            order += 1
            if fnmatch.fnmatchcase(target, deny.target):
                key = (pattern_specificity(deny.target), source_spec, -order)
                if best_deny is None or key > best_deny[0]:
                    best_deny = (key, f"{rule.name}: deny {deny.target}", deny.reason)

        for allow in rule.allow:
            order += 1
            if fnmatch.fnmatchcase(target, allow):
                key = (pattern_specificity(allow), source_spec, -order)
                if best_allow is None or key > best_allow[0]:
                    best_allow = (key, f"{rule.name}: allow {allow}")

    if best_deny is not None:
        return EdgeDecision(source=source, target=target, is_allowed=False, clause=best_deny[1], reason=best_deny[2])
    if best_allow is not None:
        return EdgeDecision(source=source, target=target, is_allowed=True, clause=best_allow[1])
    return EdgeDecision(
        source=source,
        target=target,
        is_allowed=policy.allow_by_default,
        clause=f"default: {policy.default}",
        reason="" if policy.allow_by_default else "No policy rule allows this import",
    )


def describe_edge(decision: EdgeDecision) -> str:
    """エッジ評価結果を人間向けのメッセージにする。"""
    verdict = "allowed" if decision.is_allowed else "not allowed"
    message = f"Import from '{decision.source}' to '{decision.target}' is {verdict} ({decision.clause})"
    if decision.reason:
        message += f": {decision.reason}"
    return message


def load_policy_file(policy_path: Path) -> DependencyPolicy:
    """依存ポリシーをYAMLファイルから読み込む。

    Raises:
        PolicyLoadError: ファイルが存在しない、またはスキーマに合わない場合。
    """
    try:
        with open(policy_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise PolicyLoadError(str(policy_path), "file not found") from None
    except (OSError, yaml.YAMLError) as e:
        raise PolicyLoadError(str(policy_path), str(e)) from e

    if not isinstance(data, dict) or "default" not in data:
        raise PolicyLoadError(str(policy_path), "policy must declare an explicit 'default: allow|deny'")
    try:
        return DependencyPolicy.model_validate({**data, "source_path": str(policy_path)})
    except ValidationError as e:
        raise PolicyLoadError(str(policy_path), str(e)) from e


class DependencyPolicyValidator:
    """依存ポリシーに基づくインポートグラフ検証を行う。"""

    def __init__(self, default_policy_path: Path, project_root: Path) -> None:
        self._default_policy_path = default_policy_path
        self._project_root = project_root
        self._policies: dict[Path, DependencyPolicy] = {}

    def _policy_path_for(self, project_root: Path) -> Path:
        local = project_root / PROJECT_POLICY_FILE
        return local if local.is_file() else self._default_policy_path

    def load_policy(self, project_root: Path | None = None) -> DependencyPolicy:
        """プロジェクトに適用されるポリシーを読み込む。一度読み込んだポリシーは再利用する。"""
        policy_path = self._policy_path_for(project_root or self._project_root).resolve()
        policy = self._policies.get(policy_path)
        if policy is None:
            policy = load_policy_file(policy_path)
            self._policies[policy_path] = policy
            logger.info("Loaded dependency policy %s (default: %s)", policy_path, policy.default)
        return policy

    def _root_from_options(self, options: RuleOptions) -> Path:
        return Path(options.project_path) if options.project_path else self._project_root

    def check_dependency(
        self,
        source: str,
        target: str,
        options: dict[str, Any] | RuleOptions | None = None,
    ) -> DependencyCheckResult:
        """単一のインポートがポリシー上許可されるかを判定する。

        ツリーを走査せず、読み込み済みのポリシーだけを使う。同じ入力には常に同じ結果を返す。

        Args:
            source: インポート元モジュールのパス（プロジェクト相対）。
            target: インポート指定子（相対パス、"@/" パス、またはパッケージ名）。
            options: projectPath でポリシーの探索起点を変更できる。
        """
        try:
            root = self._root_from_options(RuleOptions.parse(options))
            policy = self.load_policy(root)
        except ConfigurationError as e:
            return DependencyCheckResult(success=False, is_allowed=False, message=f"Error checking dependency: {e}")

        source_path = Path(source)
        if source_path.is_absolute():
            source = relative_posix(source_path, root)
        normalized_source = normalize_module_path(source)
        decision = evaluate_edge(policy, normalized_source, resolve_import(normalized_source, target))
        return DependencyCheckResult(
            is_allowed=decision.is_allowed,
            message=describe_edge(decision),
            clause=decision.clause,
        )

    def validate_project(
        self,
        path: Path,
        options: dict[str, Any] | RuleOptions | None = None,
        project_root: Path | None = None,
    ) -> ValidationResult:
        """プロジェクト全体のインポートグラフをポリシーで検証する。

        Args:
            path: 走査の起点ディレクトリ。
            options: ignorePatterns（除外globのリスト）、includeTests（テストファイルを含めるか）。
            project_root: 相対パスとポリシー探索の基準。省略時はpath（ファイルの場合はその親）。

        Returns:
            extraにDependencyReportを持つ検証結果。
        """
        try:
            rule_options = RuleOptions.parse(options)
            if not path.exists():
                raise ConfigurationError(f"Path not found: {path}")
            root = project_root or (path if path.is_dir() else path.parent)
            policy = self.load_policy(root)
        except ConfigurationError as e:
            return ValidationResult.failure(str(e), summary=f"Configuration error: {e}")

        errors: list[str] = []
        warnings: list[str] = []
        decisions: list[EdgeDecision] = []

        edges: list[tuple[str, str]] = []
        files = iter_source_files(
            path,
            ignore_patterns=rule_options.ignore_patterns,
            include_tests=rule_options.include_tests is not False,
        )
        for file in files:
            rel = relative_posix(file, root)
            try:
                content = file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                errors.append(f"{rel}: unreadable file: {e}")
                continue
            source = normalize_module_path(rel)
            for specifier in extract_imports(content):
                target = resolve_import(source, specifier)
                if target.startswith("../") or target == "..":
                    warnings.append(f"{rel}: import '{specifier}' resolves outside the project root")
                edges.append((source, target))

        manifest = root / PACKAGE_MANIFEST
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
                declared = {**data.get("dependencies", {}), **data.get("devDependencies", {})}
                edges.extend((PACKAGE_MANIFEST, name) for name in sorted(declared))
            except (OSError, ValueError, AttributeError) as e:
                errors.append(f"{PACKAGE_MANIFEST}: could not be parsed: {e}")

        for source, target in dict.fromkeys(edges):
            decision = evaluate_edge(policy, source, target)
            decisions.append(decision)
            if not decision.is_allowed:
                reason = f": {decision.reason}" if decision.reason else ""
                errors.append(f"{source} -> {target}: denied by '{decision.clause}'{reason}")

        report = DependencyReport(
            allowed=[d for d in decisions if d.is_allowed],
            denied=[d for d in decisions if not d.is_allowed],
            edges_checked=len(decisions),
            default_policy=policy.default,
        )
        if errors:
            summary = (
                f"Dependency validation failed with {len(errors)} errors and {len(warnings)} warnings "
                f"({len(report.denied)} of {report.edges_checked} edges denied)"
            )
        else:
            summary = f"Dependency validation passed: {report.edges_checked} edges checked, {len(warnings)} warnings"
        return ValidationResult(errors=errors, warnings=warnings, summary=summary, extra=report)
