"""Suspense境界のルール。

見逃しリスク: 同じディレクトリのerror.tsx/loading.tsxはファイル内容から見えないため、
それらによるエラー境界・ストリーミング境界は考慮しない。
"""

import re

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import has_client_marker, is_page_or_layout, strip_comments, tagged

_SUSPENSE_OPEN_RE = re.compile(r"<Suspense\b((?:[^>{]|\{[^}]*\})*)>")
_EMPTY_FALLBACK_RE = re.compile(r"""fallback=\{\s*(?:null|undefined|<>\s*</>|""|'')\s*\}""")
_ERROR_BOUNDARY_RE = re.compile(r"ErrorBoundary\b")
_FETCH_RE = re.compile(r"(?<![\w.])fetch\s*\(")
_ASYNC_DEFAULT_RE = re.compile(r"\bexport\s+default\s+async\s+function\b")


def check_suspense(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """Suspense境界のfallbackとエラー境界、ストリーミングの有無を検証する。"""
    result = RuleResult()
    code = strip_comments(content)
    boundaries = [m.group(1) for m in _SUSPENSE_OPEN_RE.finditer(code)]

    for attributes in boundaries:
        if "fallback=" not in attributes:
            result.errors.append(tagged("<Suspense> boundary is missing a fallback prop", "suspense-missing-fallback"))

    if _EMPTY_FALLBACK_RE.search(code):
        result.warnings.append(
            tagged("<Suspense> boundary has an empty fallback; provide a loading UI", "inadequate-fallback")
        )

    if boundaries and not _ERROR_BOUNDARY_RE.search(code):
        result.warnings.append(
            tagged("<Suspense> boundary should be wrapped by an error boundary", "error-boundary-missing")
        )

    if (
        is_page_or_layout(file_path)
        and not has_client_marker(content)
        and not boundaries
        and _ASYNC_DEFAULT_RE.search(code)
        and _FETCH_RE.search(code)
    ):
        result.warnings.append(
            tagged(
                "Page or layout fetches data without a <Suspense> boundary, which blocks streaming",
                "streaming-without-suspense",
            )
        )

    return result
