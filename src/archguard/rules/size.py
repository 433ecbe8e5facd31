"""ファイルサイズのルール。

誤検知リスク: 生成コードや長いデータ定義も通常のコードと同様に数える。
"""

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import tagged


def count_lines(content: str) -> int:
    return len(content.splitlines())


def check_size(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """行数が上限を超えるファイルをエラー、上限に近いファイルを警告とする。

    型宣言のみのファイル（.d.ts）は対象外。
    """
    result = RuleResult()
    if file_path.endswith(".d.ts"):
        return result

    lines = count_lines(content)
    if lines > options.max_lines:
        result.errors.append(
            tagged(
                f"File size of {lines} lines exceeds the maximum of {options.max_lines} lines; "
                "split it into smaller modules",
                "file-size",
            )
        )
    elif lines > options.warn_threshold:
        result.warnings.append(
            tagged(
                f"File size of {lines} lines is approaching the maximum of {options.max_lines} lines",
                "file-size",
            )
        )
    return result
