"""画像・メディアリソースのルール。

最適化されていない生の<img>タグを検出し、プロジェクトの最適化画像コンポーネントの使用を促す。

誤検知リスク: 文字列やMarkdown中の "<img" も検出する。
"""

import re

from archguard.models.validation import RuleOptions, RuleResult
from archguard.rules.base import strip_comments, tagged

_RAW_IMG_RE = re.compile(r"<img\b")
_IFRAME_RE = re.compile(r"<iframe\b([^>]*)>")
_IMAGE_TAG_RE = re.compile(r"<Image\b([^>]*)/?>")


def check_media(file_path: str, content: str, options: RuleOptions) -> RuleResult:
    """生のメディア埋め込みタグを検出する。

    options.image_module で最適化画像コンポーネントの提供元を変更できる（既定: next/image）。
    """
    result = RuleResult()
    code = strip_comments(content)
    image_module = options.image_module

    raw_images = len(_RAW_IMG_RE.findall(code))
    if raw_images:
        result.errors.append(
            tagged(
                f"Found {raw_images} raw <img> tag(s); use the optimized Image component from '{image_module}'",
                "raw-img",
            )
        )

    for match in _IFRAME_RE.finditer(code):
        if "loading=" not in match.group(1):
            result.warnings.append(
                tagged('Embedded <iframe> should set loading="lazy"', "iframe-eager-loading")
            )

    if image_module in code:
        for match in _IMAGE_TAG_RE.finditer(code):
            if "alt=" not in match.group(1):
                result.warnings.append(tagged("<Image> is missing an alt attribute", "image-missing-alt"))

    return result
