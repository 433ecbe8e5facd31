"""構造・命名規約のルール。

コンポーネント識別子の命名、default exportの形、
ファイルの配置ディレクトリと宣言された役割（client/server/shared）の整合性を検証する。

誤検知リスク: 関数の中身がJSXを返すかどうかは見ないため、
default exportされたユーティリティ関数もコンポーネントとして扱う。
"""

import re
from pathlib import PurePosixPath
from typing import Literal

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import (
    COMPONENT_EXTENSIONS,
    file_stem,
    has_client_marker,
    is_page_or_layout,
    is_route_file,
    strip_comments,
    tagged,
)

ModuleRole = Literal["client", "server", "shared"]

_DEFAULT_EXPORT_RE = re.compile(r"\bexport\s+default\b")
_NAMED_DEFAULT_FUNCTION_RE = re.compile(r"\bexport\s+default\s+(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)?\s*\(")
_ANONYMOUS_ARROW_DEFAULT_RE = re.compile(r"\bexport\s+default\s+(?:async\s+)?(?:\([^)]*\)|[A-Za-z_$][\w$]*)\s*=>")
_ANY_EXPORT_RE = re.compile(r"\bexport\s+(?:default|const|function|async|class|let|\{|\*|type|interface)")
_SERVER_ONLY_IMPORT_RE = re.compile(r"""import\s+(['"])server-only\1""")
_PASCAL_CASE_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_KEBAB_CASE_RE = re.compile(r"^_?[a-z0-9]+(?:[.-][a-z0-9]+)*$")


def module_role(file_path: str, content: str) -> ModuleRole:
    """パスと内容から宣言された役割を判定する。"""
    parts = PurePosixPath(file_path).parts[:-1]
    stem = file_stem(file_path)
    if stem.endswith("-client") or "client" in parts:
        return "client"
    if stem.endswith("-server") or "server" in parts or _SERVER_ONLY_IMPORT_RE.search(content):
        return "server"
    return "shared"


def _check_naming(file_path: str, code: str, result: RuleResult) -> None:
    match = _NAMED_DEFAULT_FUNCTION_RE.search(code)
    if match and match.group(1) and not _PASCAL_CASE_RE.match(match.group(1)):
        result.errors.append(
            tagged(
                f"Component '{match.group(1)}' must be named in PascalCase",
                "component-naming",
            )
        )

    stem = file_stem(file_path)
    if not stem.startswith("[") and not _KEBAB_CASE_RE.match(stem):
        result.warnings.append(
            tagged(f"File name '{PurePosixPath(file_path).name}' should be kebab-case", "file-naming")
        )


def _check_exports(file_path: str, code: str, result: RuleResult) -> None:
    default_exports = len(_DEFAULT_EXPORT_RE.findall(code))
    if default_exports > 1:
        result.errors.append(tagged("Module declares more than one default export", "multiple-default-exports"))

    anonymous_function = _NAMED_DEFAULT_FUNCTION_RE.search(code)
    if (anonymous_function and not anonymous_function.group(1)) or _ANONYMOUS_ARROW_DEFAULT_RE.search(code):
        result.warnings.append(
            tagged("Default export should be a named function for readable stack traces", "anonymous-default-export")
        )

    if is_route_file(file_path) and "/app/" in f"/{file_path}" and default_exports == 0:
        result.errors.append(
            tagged(f"Route file '{PurePosixPath(file_path).name}' must have a default export", "missing-default-export")
        )
    elif not _ANY_EXPORT_RE.search(code):
        result.warnings.append(tagged("Component module does not export anything", "missing-export"))


def _check_placement(file_path: str, content: str, result: RuleResult) -> None:
    role = module_role(file_path, content)
    has_marker = has_client_marker(content)

    if has_marker and role == "server":
        result.errors.append(
            tagged(
                'Module declares "use client" but is placed in a server location',
                "role-mismatch",
            )
        )
    elif not has_marker and role == "client" and file_path.endswith(tuple(COMPONENT_EXTENSIONS)):
        result.warnings.append(
            tagged(
                'Module is placed in a client location but lacks a "use client" directive',
                "role-mismatch",
            )
        )
    elif has_marker and role == "shared" and not is_page_or_layout(file_path):
        result.warnings.append(
            tagged(
                'Client modules should use the "-client" suffix or live in a /client/ directory',
                "client-naming-convention",
            )
        )


def check_structure(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """命名・export・配置の構造規約を検証する。"""
    result = RuleResult()
    code = strip_comments(content)

    if file_path.endswith(tuple(COMPONENT_EXTENSIONS)):
        _check_naming(file_path, code, result)
        _check_exports(file_path, code, result)

    _check_placement(file_path, content, result)
    return result
