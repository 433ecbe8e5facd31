"""起動時に構築されるルールの一覧。"""

from collections.abc import Iterable

from archguard.models.errors import ConfigurationError
from archguard.rules.base import COMPONENT_EXTENSIONS, SOURCE_EXTENSIONS, Rule, RuleName
from archguard.rules.boundary import check_boundary
from archguard.rules.data_fetching import check_data_fetching
from archguard.rules.media import check_media
from archguard.rules.security import check_security
from archguard.rules.size import check_size
from archguard.rules.structure import check_structure
from archguard.rules.style import check_style
from archguard.rules.suspense import check_suspense

RULES: dict[RuleName, Rule] = {
    rule.name: rule
    for rule in (
        Rule(
            name=RuleName.BOUNDARY,
            description="Client-only features require a leading 'use client' directive, and the directive requires them",
            check=check_boundary,
            extensions=COMPONENT_EXTENSIONS,
            risk="Keyword search; local functions named like hooks are treated as hooks",
        ),
        Rule(
            name=RuleName.SIZE,
            description="Files must stay under the configured line limit",
            check=check_size,
            extensions=SOURCE_EXTENSIONS,
            risk="Generated code and large data tables count like hand-written code",
        ),
        Rule(
            name=RuleName.DATA_FETCHING,
            description="Server modules cache their fetches; fetches run inside async or streaming boundaries",
            check=check_data_fetching,
            extensions=SOURCE_EXTENSIONS,
            risk="Cached wrappers imported from other modules are not seen",
        ),
        Rule(
            name=RuleName.MEDIA,
            description="Raw <img> tags are replaced by the optimized Image component",
            check=check_media,
            extensions=COMPONENT_EXTENSIONS,
            risk="Matches '<img' inside string literals",
        ),
        Rule(
            name=RuleName.STRUCTURE,
            description="Component naming, default export shape and client/server placement",
            check=check_structure,
            extensions=SOURCE_EXTENSIONS,
            risk="Default-exported utilities are treated as components",
        ),
        Rule(
            name=RuleName.SUSPENSE,
            description="Suspense boundaries have fallbacks and error boundaries",
            check=check_suspense,
            extensions=COMPONENT_EXTENSIONS,
            risk="Sibling error.tsx and loading.tsx files are not considered",
        ),
        Rule(
            name=RuleName.SECURITY,
            description="No hardcoded secrets; no server-only environment variables in client modules",
            check=check_security,
            extensions=SOURCE_EXTENSIONS,
            risk="Dummy values in fixtures may look like secrets",
        ),
        Rule(
            name=RuleName.STYLE,
            description="Line length, indentation, semicolons, explicit any, internal links and effect dependencies",
            check=check_style,
            extensions=SOURCE_EXTENSIONS,
            risk="Statements are delimited per line, so multi-line expressions can look unterminated",
        ),
    )
}


def resolve_rules(names: Iterable[str] | None = None) -> list[Rule]:
    """ルール名のリストをRuleに解決する。Noneの場合は全ルール。

    Raises:
        ConfigurationError: 未知のルール名が含まれる場合。
    """
    if names is None:
        return list(RULES.values())

    rules: list[Rule] = []
    unknown: list[str] = []
    for name in names:
        try:
            rule = RULES[RuleName(name)]
        except ValueError:
            unknown.append(name)
            continue
        if rule not in rules:
            rules.append(rule)

    if unknown:
        available = ", ".join(RULES)
        raise ConfigurationError(f"Unknown validator(s): {', '.join(unknown)}. Available: {available}")
    return rules


def describe_rules() -> list[dict[str, object]]:
    """ルールの一覧を説明用のdictで返す。"""
    return [
        {
            "name": str(rule.name),
            "description": rule.description,
            "extensions": sorted(rule.extensions),
            "risk": rule.risk,
        }
        for rule in RULES.values()
    ]
