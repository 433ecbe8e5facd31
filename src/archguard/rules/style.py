"""コードスタイルのルール。

Prettier/ESLintを実行せずに、長すぎる行、インデントの混在、セミコロンの不統一、
any型の使用、内部リンクの生の<a>タグ、useEffectの依存配列を検出する。結果はすべて警告。

誤検知リスク: 文の区切りは行単位で推定するため、複数行にまたがる式の途中の行を
セミコロン抜けとみなすことがある。useEffectの引数は括弧の対応だけで分割し、
正規表現リテラル中の括弧は考慮しない。
"""

import re
from pathlib import PurePosixPath

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import strip_comments, tagged

MAX_LINE_LENGTH = 100
# この本数を超えたら警告する
LONG_LINE_TOLERANCE = 5

_TS_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx"})

_TAB_INDENT_RE = re.compile(r"^\t+\S")
_SPACE_INDENT_RE = re.compile(r"^ {2,}\S")
_STATEMENT_START_RE = re.compile(r"^\s*(?:import|export|return|const|let|var|throw)\b")
_OPEN_ENDINGS: tuple[str, ...] = ("{", "(", "[", ",", "=", "+", "-", "*", "/", "&", "|", "?", ":", "`", ">", "<")
_CONTINUATION_STARTS: tuple[str, ...] = (".", "?", ":", ")", "]", "+", "-", "*", "&", "|")
_TRAILING_COMMENT_RE = re.compile(r"\s+//[^'\"`]*$")
_ANY_RE = re.compile(r"(?::\s*any\b|\bas\s+any\b|<any>|\bany\[\])")
_INTERNAL_ANCHOR_RE = re.compile(r"""<a\s[^>]*\bhref=["']/""")
_LINK_IMPORT_RE = re.compile(r"""\bfrom\s+['"]next/link['"]""")
_USE_EFFECT_RE = re.compile(r"\buseEffect\s*\(")
_CLEANUP_RE = re.compile(
    r"\breturn(?:\s*\(\s*\)\s*=>|\s*\(?\s*function\b|\s+[A-Za-z_$][\w$.]*\s*;?\s*$)", re.MULTILINE
)

_OPENERS = "([{"
_CLOSERS = ")]}"
_QUOTES = "'\"`"


def _count_long_lines(lines: list[str]) -> int:
    return sum(1 for line in lines if len(line) > MAX_LINE_LENGTH and "http" not in line)


def _has_mixed_indentation(lines: list[str]) -> bool:
    tabs = any(_TAB_INDENT_RE.match(line) for line in lines)
    spaces = any(_SPACE_INDENT_RE.match(line) for line in lines)
    return tabs and spaces


def _semicolon_counts(code: str) -> tuple[int, int]:
    """文頭キーワードで始まり、その行で完結している文の (セミコロンあり, なし) の数。"""
    lines = [_TRAILING_COMMENT_RE.sub("", line).rstrip() for line in code.splitlines()]
    terminated = 0
    unterminated = 0
    for index, line in enumerate(lines):
        if not _STATEMENT_START_RE.match(line):
            continue
        if line.endswith(";"):
            terminated += 1
            continue
        if line.endswith(_OPEN_ENDINGS):
            continue
        following = next((n.lstrip() for n in lines[index + 1 :] if n.strip()), "")
        if following.startswith(_CONTINUATION_STARTS):
            continue
        unterminated += 1
    return terminated, unterminated


def split_call_arguments(code: str, start: int) -> list[str] | None:
    """開き括弧の直後startから対応する閉じ括弧までの引数を、トップレベルのカンマで分割する。

    閉じ括弧が見つからない場合はNone。
    """
    depth = 0
    quote: str | None = None
    args: list[str] = []
    current = start
    index = start
    while index < len(code):
        char = code[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            if depth == 0:
                args.append(code[current:index])
                return [arg.strip() for arg in args if arg.strip()]
            depth -= 1
        elif char == "," and depth == 0:
            args.append(code[current:index])
            current = index + 1
        index += 1
    return None


def _check_effects(code: str, result: RuleResult) -> None:
    for match in _USE_EFFECT_RE.finditer(code):
        args = split_call_arguments(code, match.end())
        if not args:
            continue
        if len(args) < 2:
            result.warnings.append(tagged("useEffect is missing a dependency array", "effect-missing-deps"))
        elif re.sub(r"\s+", "", args[1]) == "[]" and not _CLEANUP_RE.search(args[0]):
            result.warnings.append(
                tagged("useEffect with an empty dependency array should return a cleanup function", "effect-no-cleanup")
            )


def check_style(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """スタイル上の問題を警告として返す。"""
    result = RuleResult()
    lines = content.splitlines()

    long_lines = _count_long_lines(lines)
    if long_lines > LONG_LINE_TOLERANCE:
        result.warnings.append(
            tagged(f"{long_lines} lines exceed {MAX_LINE_LENGTH} characters", "line-length")
        )

    if _has_mixed_indentation(lines):
        result.warnings.append(tagged("Mixed use of tabs and spaces for indentation", "mixed-indentation"))

    code = strip_comments(content)
    terminated, unterminated = _semicolon_counts(code)
    if terminated and unterminated:
        result.warnings.append(
            tagged(
                f"Inconsistent semicolons: {terminated} statements end with ';' and {unterminated} do not",
                "semicolons",
            )
        )

    if PurePosixPath(file_path).suffix.lower() in _TS_EXTENSIONS:
        any_uses = len(_ANY_RE.findall(code))
        if any_uses:
            result.warnings.append(
                tagged(f"Found {any_uses} use(s) of the 'any' type; use a specific type instead", "explicit-any")
            )

    if _INTERNAL_ANCHOR_RE.search(code) and not _LINK_IMPORT_RE.search(code):
        result.warnings.append(
            tagged("Internal navigation uses <a href>; use the Link component from 'next/link'", "internal-anchor")
        )

    _check_effects(code, result)
    return result
