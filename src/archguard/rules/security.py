"""セキュリティ慣行のルール。

誤検知リスク: テスト用のダミー値やサンプル文字列も秘密情報と判定しうる。
"""

import re

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import has_client_marker, strip_comments, tagged

_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""\b(?:const|let|var)\s+\w*(?:key|secret|password|token)\w*\s*=\s*["'`][^"'`\s]{8,}["'`]""", re.I),
    re.compile(r"""process\.env\.\w+\s*(?:\|\||\?\?)\s*["'`][^"'`\s]{8,}["'`]"""),
    re.compile(r"""Authorization["'`]?\s*:\s*["'`]Bearer\s+[A-Za-z0-9._+/=-]{8,}["'`]"""),
)
_SERVER_ENV_RE = re.compile(r"process\.env\.(?!NEXT_PUBLIC_|NODE_ENV\b)([A-Z_][A-Z0-9_]*)")


def check_security(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """ハードコードされた秘密情報とクライアントからのサーバー環境変数参照を検出する。"""
    result = RuleResult()
    code = strip_comments(content)

    if any(pattern.search(code) for pattern in _SECRET_PATTERNS):
        result.errors.append(
            tagged("Potential hardcoded secret detected; read it from an environment variable", "hardcoded-secret")
        )

    if has_client_marker(content):
        exposed = sorted({m.group(1) for m in _SERVER_ENV_RE.finditer(code)})
        if exposed:
            result.errors.append(
                tagged(
                    f"Client module reads server-only environment variables ({', '.join(exposed)}); "
                    "only NEXT_PUBLIC_ variables are available in the browser",
                    "server-env-in-client",
                )
            )

    return result
