"""プロトコルメッセージ関連のデータモデル。"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class ProtocolRequest(BaseModel):
    """stdioで受け取るリクエスト（1行1JSON）。"""

    id: str
    type: Literal["request"]
    name: str
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # 数値IDもそのまま文字列としてエコーする
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id", "name")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


class ToolCallRequest(BaseModel):
    """HTTP /mcp で受け取るツール呼び出し。"""

    name: str
    tool_call_id: str | int | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


def response_envelope(request_id: str | None, tool_name: str | None, content: dict[str, Any]) -> dict[str, Any]:
    """stdio応答のエンベロープを作成する。

    IDが解析できなかった場合はid/request_idを含めない。
    """
    envelope: dict[str, Any] = {"type": "response"}
    if request_id is not None:
        envelope["id"] = request_id
        envelope["request_id"] = request_id
    envelope["name"] = tool_name
    envelope["content"] = content
    return envelope


def error_content(message: str, error: str = "ProtocolError") -> dict[str, Any]:
    """エラー応答のcontent部分を作成する。"""
    return {"type": "error", "error": error, "message": message}
