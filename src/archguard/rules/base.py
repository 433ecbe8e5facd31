"""ルールバリデータ共通の型とテキストヒューリスティクス。

各ルールはファイルパスと内容のみを受け取る純粋関数で、I/Oを行わない。
検出は正規表現とキーワード検索によるもので、構文解析ではない。
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import PurePosixPath

from archguard.models.validation import RuleOptions, RuleResult

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"})
COMPONENT_EXTENSIONS: frozenset[str] = frozenset({".tsx", ".jsx"})

# Next.jsのルーティング規約ファイル
ROUTE_FILE_STEMS: frozenset[str] = frozenset({"page", "layout", "loading", "error", "not-found", "template", "default"})

_DIRECTIVE_RE = re.compile(r"""^[ \t]*(['"])use client\1[ \t]*;?[ \t]*$""", re.MULTILINE)
_LEADING_DIRECTIVE_RE = re.compile(r"""^(['"])use client\1""")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT_RE = re.compile(r"^[ \t]*//[^\n]*$", re.MULTILINE)


class RuleName(StrEnum):
    """登録済みルールの閉じた集合。"""

    BOUNDARY = "boundary"
    SIZE = "size"
    DATA_FETCHING = "data-fetching"
    MEDIA = "media"
    STRUCTURE = "structure"
    SUSPENSE = "suspense"
    SECURITY = "security"
    STYLE = "style"


RuleCheck = Callable[[str, str, RuleOptions], RuleResult]


@dataclass(frozen=True)
class Rule:
    """名前付きのルール関数と、その適用範囲・誤検知リスクの記述。"""

    name: RuleName
    description: str
    check: RuleCheck
    extensions: frozenset[str]
    risk: str

    def applies_to(self, file_path: str) -> bool:
        return PurePosixPath(file_path).suffix.lower() in self.extensions

    def __call__(self, file_path: str, content: str, options: RuleOptions) -> RuleResult:
        return self.check(file_path, content, options)


def strip_comments(content: str) -> str:
    """ブロックコメントと行頭から始まる行コメントを除去する。

    文字列リテラル内の "/*" は考慮しないため、まれに過剰に除去される。
    """
    without_blocks = _BLOCK_COMMENT_RE.sub("", content)
    return _LINE_COMMENT_RE.sub("", without_blocks)


def has_client_marker(content: str) -> bool:
    """use clientディレクティブ行が存在するか。"""
    return _DIRECTIVE_RE.search(content) is not None


def has_leading_client_marker(content: str) -> bool:
    """use clientディレクティブがコメントを除く先頭の文か。"""
    head = content.lstrip("\ufeff")
    while True:
        head = head.lstrip()
        if head.startswith("//"):
            _, _, head = head.partition("\n")
        elif head.startswith("/*"):
            end = head.find("*/")
            if end == -1:
                return False
            head = head[end + 2 :]
        else:
            break
    return _LEADING_DIRECTIVE_RE.match(head) is not None


def file_stem(file_path: str) -> str:
    """拡張子（.d.tsのような二重拡張子を含む）を除いたファイル名。"""
    name = PurePosixPath(file_path).name
    return name.split(".", 1)[0]


def is_route_file(file_path: str) -> bool:
    """app/配下のルーティング規約ファイル（page, layout等）か。"""
    return file_stem(file_path) in ROUTE_FILE_STEMS


def is_page_or_layout(file_path: str) -> bool:
    return file_stem(file_path) in {"page", "layout"}


def tagged(message: str, rule_id: str) -> str:
    """メッセージ末尾にルールIDを付与する。"""
    return f"{message} ({rule_id})"
