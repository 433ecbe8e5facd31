"""Server/Clientモジュール境界のルール。

クライアント専用機能（状態フック、エフェクト、ブラウザAPI、DOMイベントハンドラ）を
"use client" ディレクティブなしで使用しているモジュールを検出する。

誤検知リスク: 同名のローカル関数（例: 独自の useState）もフック呼び出しとして扱う。
見逃しリスク: 再エクスポートされたフックや動的に参照されるAPIは検出できない。
"""

import re

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import has_client_marker, has_leading_client_marker, strip_comments, tagged

CLIENT_HOOKS: tuple[str, ...] = (
    "useState",
    "useEffect",
    "useRef",
    "useCallback",
    "useReducer",
    "useMemo",
    "useImperativeHandle",
    "useLayoutEffect",
    "useInsertionEffect",
    "useTransition",
    "useDeferredValue",
    "useId",
    "useContext",
    "useSyncExternalStore",
    "useOptimistic",
    "useActionState",
    "useFormStatus",
    "useRouter",
    "usePathname",
    "useSearchParams",
)

BROWSER_APIS: tuple[str, ...] = (
    "window.",
    "document.",
    "navigator.",
    "localStorage",
    "sessionStorage",
    "indexedDB",
    "addEventListener",
    "removeEventListener",
    "requestAnimationFrame(",
    "cancelAnimationFrame(",
)

EVENT_HANDLERS: tuple[str, ...] = (
    "onClick",
    "onChange",
    "onSubmit",
    "onInput",
    "onBlur",
    "onFocus",
    "onKeyDown",
    "onKeyUp",
    "onMouseOver",
    "onMouseOut",
    "onMouseEnter",
    "onMouseLeave",
    "onScroll",
    "onWheel",
    "onTouchStart",
    "onTouchMove",
    "onTouchEnd",
    "onDrag",
    "onDrop",
)

# クライアントモジュールから読み込むと実行時エラーになるモジュール
SERVER_ONLY_MODULES: tuple[str, ...] = (
    "fs",
    "path",
    "crypto",
    "querystring",
    "child_process",
    "worker_threads",
    "server-only",
)

_HOOK_RE = re.compile(r"\b(" + "|".join(CLIENT_HOOKS) + r")\s*(?:<[^>()]*>)?\s*\(")
_HANDLER_RE = re.compile(r"\b(" + "|".join(EVENT_HANDLERS) + r")\s*=")
_SERVER_IMPORT_RE = re.compile(
    r"""(?:from\s+|import\s+|require\s*\(\s*)(['"])(?:node:)?(""" + "|".join(map(re.escape, SERVER_ONLY_MODULES)) + r")\1"
)


def detect_client_features(content: str) -> list[str]:
    """コメントを除いた内容からクライアント専用機能を検出順に返す。"""
    code = strip_comments(content)
    features: list[str] = []

    for match in _HOOK_RE.finditer(code):
        if match.group(1) not in features:
            features.append(match.group(1))

    for api in BROWSER_APIS:
        if api in code:
            name = api.rstrip(".(")
            if name not in features:
                features.append(name)

    for match in _HANDLER_RE.finditer(code):
        if match.group(1) not in features:
            features.append(match.group(1))

    return features


def check_boundary(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """クライアント境界ディレクティブの有無と実際の使用状況の整合性を検証する。"""
    result = RuleResult()
    features = detect_client_features(content)
    has_marker = has_client_marker(content)

    if features and not has_marker:
        result.errors.append(
            tagged(
                f"Module uses client-only features ({', '.join(features[:3])}) "
                'without a leading "use client" directive',
                "missing-use-client",
            )
        )

    if has_marker and not has_leading_client_marker(content):
        result.errors.append(
            tagged('"use client" directive must be the first statement of the module', "misplaced-use-client")
        )

    if has_marker and not features:
        result.warnings.append(
            tagged(
                'Module has a "use client" directive but no client-only features were detected',
                "unnecessary-use-client",
            )
        )

    if has_marker:
        for match in _SERVER_IMPORT_RE.finditer(strip_comments(content)):
            result.errors.append(
                tagged(
                    f"Client module imports server-only module '{match.group(2)}'",
                    "server-import-in-client",
                )
            )

    return result
