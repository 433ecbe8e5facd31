"""ツール呼び出しのディスパッチ。HTTPとstdioの両方から共有される。

各リクエストは RECEIVED → PARSED → DISPATCHED → EXECUTING → RESPONDED と遷移する。
エンベロープの不正（PARSED時点）と未知のツール名（DISPATCHED時点）だけがERRORで終わり、
ハンドラ内の失敗は失敗したValidationResultとして通常どおり応答する。
"""

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from archguard.models.errors import ProtocolError, UnknownToolError
from archguard.models.protocol import ProtocolRequest, ToolCallRequest, error_content, response_envelope
from archguard.models.validation import ValidationResult
from archguard.protocol.registry import ToolDefinition, ToolRegistry

logger = logging.getLogger(__name__)


class RequestState(StrEnum):
    RECEIVED = "RECEIVED"
    PARSED = "PARSED"
    DISPATCHED = "DISPATCHED"
    EXECUTING = "EXECUTING"
    RESPONDED = "RESPONDED"
    ERROR = "ERROR"


@dataclass
class RequestTrace:
    """1リクエストの状態遷移を記録する。"""

    channel: str
    request_id: str | None = None
    state: RequestState = RequestState.RECEIVED

    def advance(self, state: RequestState) -> None:
        logger.debug("[%s %s] %s -> %s", self.channel, self.request_id or "-", self.state, state)
        self.state = state


def format_validation_errors(error: ValidationError) -> str:
    """pydanticの検証エラーを1行のメッセージにまとめる。"""
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "body"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def decode_request_line(raw: bytes) -> str:
    """stdioの1行をUTF-8として復号する。

    Raises:
        ProtocolError: UTF-8として不正なバイト列の場合。
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Request line is not valid UTF-8: {e}") from None


def parse_request_line(line: str) -> ProtocolRequest:
    """stdioの1行をリクエストとして解析する。

    Raises:
        ProtocolError: JSONが不正、または必須フィールドが欠けている場合。
            idが読み取れた場合はrequest_idに保持する。
    """
    try:
        data = json.loads(line)
    except ValueError as e:
        raise ProtocolError(f"Malformed JSON: {e}") from None
    if not isinstance(data, dict):
        raise ProtocolError("Request must be a JSON object")

    raw_id = data.get("id")
    request_id = None
    if isinstance(raw_id, (str, int)) and not isinstance(raw_id, bool) and raw_id != "":
        request_id = str(raw_id)
    raw_name = data.get("name")
    tool_name = raw_name if isinstance(raw_name, str) else None

    try:
        return ProtocolRequest.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(
            f"Invalid request: {format_validation_errors(e)}", request_id=request_id, tool_name=tool_name
        ) from None


class Dispatcher:
    """ツールレジストリを使ってリクエストを解決・実行する。"""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def _execute(
        self, definition: ToolDefinition, arguments: dict[str, Any], trace: RequestTrace
    ) -> dict[str, Any]:
        trace.advance(RequestState.EXECUTING)
        try:
            params = definition.param_model.model_validate(arguments)
        except ValidationError as e:
            message = f"Invalid arguments for {definition.name}: {format_validation_errors(e)}"
            result = ValidationResult.failure(message, summary=f"Configuration error: {message}")
        else:
            try:
                result = await definition.handler(params)
            except Exception as e:
                logger.exception("Tool %s failed", definition.name)
                result = ValidationResult.failure(f"Tool {definition.name} failed: {type(e).__name__}: {e}")

        payload = result.to_payload()
        return {"success": bool(payload.get("success")), "results": payload}

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """ツールを名前で呼び出し、{success, results} 形式のcontentを返す。

        Raises:
            UnknownToolError: ツールが未登録または無効な場合。
        """
        trace = RequestTrace("native", request_id=name)
        trace.advance(RequestState.PARSED)
        definition = self._registry.resolve(name)
        trace.advance(RequestState.DISPATCHED)
        content = await self._execute(definition, arguments or {}, trace)
        trace.advance(RequestState.RESPONDED)
        return content

    async def handle_line(self, line: str | bytes) -> dict[str, Any]:
        """stdioの1行を処理し、応答エンベロープを返す。例外は送出しない。

        bytesの場合はUTF-8として解釈し、不正なバイト列はProtocolErrorとして応答する。
        """
        trace = RequestTrace("stdio")
        try:
            if isinstance(line, bytes):
                line = decode_request_line(line)
            request = parse_request_line(line)
        except ProtocolError as e:
            trace.request_id = e.request_id
            trace.advance(RequestState.ERROR)
            logger.warning("Rejected stdio request: %s", e)
            return response_envelope(e.request_id, e.tool_name, error_content(str(e)))

        trace.request_id = request.id
        trace.advance(RequestState.PARSED)
        try:
            definition = self._registry.resolve(request.name)
        except UnknownToolError as e:
            trace.advance(RequestState.ERROR)
            return response_envelope(request.id, request.name, error_content(str(e), type(e).__name__))

        trace.advance(RequestState.DISPATCHED)
        content = await self._execute(definition, request.params, trace)
        trace.advance(RequestState.RESPONDED)
        return response_envelope(request.id, request.name, content)

    async def handle_tool_call(self, body: Any) -> tuple[int, dict[str, Any]]:
        """HTTP /mcp のボディを処理し、(ステータスコード, 応答ボディ) を返す。"""
        trace = RequestTrace("http")
        if not isinstance(body, dict) or not body.get("name"):
            trace.advance(RequestState.ERROR)
            return 400, {"error": "Missing tool name"}
        try:
            call = ToolCallRequest.model_validate(body)
        except ValidationError as e:
            trace.advance(RequestState.ERROR)
            return 400, {"error": f"Invalid tool call: {format_validation_errors(e)}"}

        trace.request_id = None if call.tool_call_id is None else str(call.tool_call_id)
        trace.advance(RequestState.PARSED)
        try:
            definition = self._registry.resolve(call.name)
        except UnknownToolError as e:
            trace.advance(RequestState.ERROR)
            return 400, {"error": str(e)}

        trace.advance(RequestState.DISPATCHED)
        content = await self._execute(definition, call.arguments, trace)
        trace.advance(RequestState.RESPONDED)
        return 200, {"name": call.name, "tool_call_id": call.tool_call_id, "content": content}
