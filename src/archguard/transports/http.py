"""HTTPバインディング。

固定ルート（/health, /validate, /check-dependency）はOrchestratorと依存ポリシー検証を直接呼び、
/mcp は共有のディスパッチャを通してツールを呼び出す。FastMCPのネイティブMCPエンドポイントは
/native/mcp にマウントする。
"""

import asyncio
import logging
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from archguard.middleware import CorsMiddleware
from archguard.models.validation import ValidationResult
from archguard.protocol.dispatch import Dispatcher, format_validation_errors
from archguard.protocol.tools import ArchitectureCheckParams
from archguard.services.orchestrator import Orchestrator
from archguard.validators.dependency import DependencyPolicyValidator

logger = logging.getLogger(__name__)


async def read_json_object(request: Request) -> dict[str, Any]:
    """リクエストボディをJSONオブジェクトとして読み込む。

    Raises:
        HTTPException: ボディがJSONオブジェクトでない場合（400）。
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}") from None
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _options_from(body: dict[str, Any]) -> dict[str, Any]:
    options = body.get("options") or {}
    if not isinstance(options, dict):
        raise HTTPException(status_code=400, detail="options must be a JSON object")
    return options


async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
    message = "Not found" if exc.status_code == 404 else exc.detail
    return JSONResponse({"error": message}, status_code=exc.status_code)


def create_http_app(
    dispatcher: Dispatcher,
    orchestrator: Orchestrator,
    dependency_validator: DependencyPolicyValidator,
    mcp: FastMCP | None = None,
) -> Starlette:
    """HTTPバインディングのStarletteアプリを作成する。

    Args:
        dispatcher: /mcp が使うディスパッチャ。
        orchestrator: /validate が使うOrchestrator。
        dependency_validator: /check-dependency が使う依存ポリシー検証。
        mcp: 指定した場合は /native/mcp にFastMCPのエンドポイントをマウントする。
    """

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def validate(request: Request) -> JSONResponse:
        body = await read_json_object(request)
        try:
            params = ArchitectureCheckParams.model_validate(body)
        except ValidationError as e:
            message = f"Invalid request body: {format_validation_errors(e)}"
            result = ValidationResult.failure(message, summary=f"Configuration error: {message}")
        else:
            result = await asyncio.to_thread(orchestrator.validate, params.path, params.validators, params.options)
        logger.info("POST /validate: %s", result.summary)
        return JSONResponse(result.to_payload(), status_code=200 if result.success else 400)

    async def check_dependency(request: Request) -> JSONResponse:
        body = await read_json_object(request)
        source = body.get("source")
        target = body.get("target")
        if not source or not target or not isinstance(source, str) or not isinstance(target, str):
            return JSONResponse({"error": "Missing source or target dependency"}, status_code=400)
        result = dependency_validator.check_dependency(source, target, _options_from(body))
        return JSONResponse(result.to_payload())

    async def tool_call(request: Request) -> JSONResponse:
        body = await read_json_object(request)
        status_code, payload = await dispatcher.handle_tool_call(body)
        return JSONResponse(payload, status_code=status_code)

    routes: list[Route | Mount] = [
        Route("/health", health, methods=["GET"]),
        Route("/validate", validate, methods=["POST"]),
        Route("/check-dependency", check_dependency, methods=["POST"]),
        Route("/mcp", tool_call, methods=["POST"]),
    ]

    lifespan = None
    if mcp is not None:
        mcp_app = mcp.http_app(path="/mcp")
        routes.append(Mount("/native", app=mcp_app))
        lifespan = mcp_app.lifespan

    return Starlette(
        routes=routes,
        middleware=[Middleware(CorsMiddleware)],
        exception_handlers={HTTPException: http_error},
        lifespan=lifespan,
    )
