"""archguardサーバーのコマンドラインエントリポイント。

TRANSPORT_MODE=stdio の場合は標準入出力で1行1リクエストを処理し、それ以外はHTTPで待ち受ける。
ログは常に標準エラー出力に書き出す（標準出力はstdioプロトコル専用）。
"""

import asyncio
import logging
import sys

import uvicorn

from archguard.config import ServerConfig
from archguard.server import build_components, create_app
from archguard.transports.stdio import run_stdio


def main() -> None:
    config = ServerConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if config.transport == "stdio":
        components = build_components(config)
        asyncio.run(run_stdio(components.dispatcher))
        return

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
