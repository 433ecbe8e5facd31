"""依存ポリシー関連のデータモデル。"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

_WILDCARDS = set("*?[]")


def pattern_specificity(pattern: str) -> int:
    """globパターンの具体性（ワイルドカード以外の文字数）。"""
    return sum(1 for ch in pattern if ch not in _WILDCARDS)


class DenyTarget(BaseModel):
    """禁止対象パターンと理由。"""

    target: str
    reason: str = ""


class PolicyRule(BaseModel):
    """sourceパターンに対する許可・禁止ターゲットの定義（YAMLから読み込み）。"""

    name: str
    source: str = "**"
    allow: list[str] = Field(default_factory=list)
    deny: list[DenyTarget] = Field(default_factory=list)

    @field_validator("deny", mode="before")
    @classmethod
    def _coerce_deny(cls, value: object) -> object:
        # 文字列だけの簡易記法も受け付ける
        if isinstance(value, list):
            return [{"target": v} if isinstance(v, str) else v for v in value]
        return value


class DependencyPolicy(BaseModel):
    """依存ポリシー。defaultはどのルールにも一致しないエッジの扱いを明示する。"""

    model_config = {"frozen": True}

    default: Literal["allow", "deny"]
    rules: tuple[PolicyRule, ...] = ()
    source_path: str | None = None

    @property
    def allow_by_default(self) -> bool:
        return self.default == "allow"
