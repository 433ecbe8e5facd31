"""検証対象ファイルの列挙。"""

import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from archguard.rules.base import SOURCE_EXTENSIONS

# ビルド出力と依存パッケージのディレクトリ
EXCLUDED_DIRS: frozenset[str] = frozenset(
    {"node_modules", ".next", "out", "dist", "build", "coverage", ".turbo", ".vercel", "__mocks__"}
)
_TEST_DIRS: frozenset[str] = frozenset({"__tests__", "tests", "test"})
_TEST_MARKERS: tuple[str, ...] = (".test.", ".spec.")


def is_test_file(relative_path: str) -> bool:
    parts = relative_path.split("/")
    return any(marker in parts[-1] for marker in _TEST_MARKERS) or any(p in _TEST_DIRS for p in parts[:-1])


def relative_posix(path: Path, root: Path) -> str:
    """ルートからの相対パスをPOSIX形式で返す。ルート外の場合は絶対パス。"""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.resolve().as_posix()


def iter_source_files(
    root: Path,
    *,
    extensions: Iterable[str] = SOURCE_EXTENSIONS,
    ignore_patterns: Iterable[str] = (),
    include_tests: bool = False,
) -> list[Path]:
    """ルート配下のソースファイルをパス順に列挙する。

    隠しディレクトリ、ビルド出力、依存パッケージのディレクトリは辿らない。
    rootがファイルの場合はそのファイルのみを返す。

    Args:
        root: 走査の起点。
        extensions: 対象とする拡張子。
        ignore_patterns: 相対パスに対するglobパターン。一致したファイルは除外する。
        include_tests: テストファイルを含めるかどうか。
    """
    allowed = {ext.lower() for ext in extensions}
    patterns = list(ignore_patterns)

    if root.is_file():
        return [root]

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.suffix.lower() not in allowed:
                continue
            rel = relative_posix(path, root)
            if not include_tests and is_test_file(rel):
                continue
            if any(fnmatch.fnmatchcase(rel, p) for p in patterns):
                continue
            files.append(path)
    return files
