"""データ取得パターンのルール。

サーバーレンダリングされるモジュールでのキャッシュなしの直接fetchと、
async/ストリーミング境界の外で同期的に呼ばれるfetchを検出する。

誤検知リスク: キャッシュ済みのラッパー関数を別モジュールからimportしている場合も、
そのモジュール内にfetchがあればキャッシュなしと判定する。
見逃しリスク: fetch以外のHTTPクライアント（axios以外）は検出しない。
"""

import re

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import COMPONENT_EXTENSIONS, file_stem, has_client_marker, strip_comments, tagged

_FETCH_RE = re.compile(r"(?<![\w.])fetch\s*\(")
_AXIOS_RE = re.compile(r"\baxios\s*\.\s*(?:get|post|put|patch|delete|request)\s*\(")
_AWAITED_RE = re.compile(r"\bawait\s+(?:fetch|axios)\b")
_CACHE_WRAPPER_RE = re.compile(r"\b(?:cache|unstable_cache)\s*\(")
_CACHE_OPTION_RE = re.compile(r"""\bnext\s*:\s*\{|\brevalidate\s*:|\bcache\s*:\s*['"]force-cache['"]|(['"])use cache\1""")
_ASYNC_BOUNDARY_RE = re.compile(r"\basync\b|\.then\s*\(|\buse\s*\(|<Suspense\b")
_CLIENT_FETCH_CONTEXT_RE = re.compile(
    r"\b(?:useEffect|useSWR|useQuery|useMutation|startTransition)\b|\bon[A-Z]\w*\s*="
)
_CLIENT_FETCH_LIBRARY_RE = re.compile(r"\b(?:useSWR|useQuery|useMutation)\b")

# ルートハンドラとServer Actionsは直接fetchしてよい
_EXEMPT_STEMS: frozenset[str] = frozenset({"route", "middleware"})


def _is_exempt(file_path: str) -> bool:
    return file_stem(file_path) in _EXEMPT_STEMS or "/actions/" in f"/{file_path}"


def check_data_fetching(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """データ取得の呼び出し位置とキャッシュ戦略を検証する。"""
    result = RuleResult()
    if _is_exempt(file_path):
        return result

    code = strip_comments(content)
    fetch_calls = len(_FETCH_RE.findall(code)) + len(_AXIOS_RE.findall(code))
    if fetch_calls == 0:
        return result

    if has_client_marker(content):
        if not _CLIENT_FETCH_CONTEXT_RE.search(code):
            result.errors.append(
                tagged(
                    "Client module fetches data during render; move the request to a Server Component "
                    "or wrap it in an effect or data-fetching hook",
                    "client-render-fetch",
                )
            )
        elif not _CLIENT_FETCH_LIBRARY_RE.search(code):
            result.warnings.append(
                tagged(
                    "Consider SWR or React Query for client-side data fetching instead of raw fetch",
                    "client-fetch-without-library",
                )
            )
        return result

    if not _ASYNC_BOUNDARY_RE.search(code):
        result.errors.append(
            tagged(
                "fetch() is invoked outside any async function or streaming boundary",
                "sync-fetch",
            )
        )

    is_cached = _CACHE_WRAPPER_RE.search(code) is not None or _CACHE_OPTION_RE.search(code) is not None
    if not is_cached:
        message = tagged(
            "Server module performs uncached data fetching; wrap it with cache() or pass "
            "caching options such as { next: { revalidate: 60 } }",
            "uncached-fetch",
        )
        # レンダリングされるコンポーネントのみエラー、データ層モジュールは警告
        if file_path.endswith(tuple(COMPONENT_EXTENSIONS)):
            result.errors.append(message)
        else:
            result.warnings.append(message)

    if len(_AWAITED_RE.findall(code)) > 1 and "Promise.all" not in code:
        result.warnings.append(
            tagged(
                "Sequential awaited fetches create request waterfalls; use Promise.all() to fetch in parallel",
                "sequential-fetches",
            )
        )

    return result
