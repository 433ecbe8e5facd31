"""ルールカタログのユニットテスト。"""

import pytest

from archguard.models.errors import ConfigurationError
from archguard.rules.base import RuleName, has_leading_client_marker, strip_comments
from archguard.rules.catalog import RULES, describe_rules, resolve_rules


class TestResolveRules:
    def test_none_resolves_all_rules_in_order(self) -> None:
        rules = resolve_rules()
        assert [r.name for r in rules] == list(RuleName)

    def test_duplicates_are_collapsed(self) -> None:
        rules = resolve_rules(["size", "size", "boundary"])
        assert [r.name for r in rules] == [RuleName.SIZE, RuleName.BOUNDARY]

    def test_unknown_rule_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown validator\\(s\\): nope"):
            resolve_rules(["size", "nope"])


class TestRule:
    def test_applies_to_by_extension(self) -> None:
        assert RULES[RuleName.BOUNDARY].applies_to("components/a.tsx")
        assert not RULES[RuleName.BOUNDARY].applies_to("lib/a.ts")
        assert RULES[RuleName.SIZE].applies_to("lib/a.ts")

    def test_describe_rules_lists_risks(self) -> None:
        described = describe_rules()
        assert [d["name"] for d in described] == [str(n) for n in RuleName]
        assert all(d["risk"] for d in described)


class TestTextHelpers:
    def test_strip_comments_keeps_code(self) -> None:
        content = "/* header */\nconst a = 1;\n  // note\nconst b = 2;"
        stripped = strip_comments(content)
        assert "header" not in stripped
        assert "note" not in stripped
        assert "const a = 1;" in stripped
        assert "const b = 2;" in stripped

    def test_leading_marker_with_bom(self) -> None:
        assert has_leading_client_marker('\ufeff"use client";\n')

    def test_unterminated_block_comment(self) -> None:
        assert not has_leading_client_marker('/* never closed\n"use client";')
