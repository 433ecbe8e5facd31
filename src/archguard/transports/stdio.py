"""stdioバインディング。1行1リクエスト、1行1レスポンスで、同時に処理するのは常に1件のみ。"""

import asyncio
import json
import logging
import sys
from typing import BinaryIO, TextIO

from archguard.protocol.dispatch import Dispatcher

logger = logging.getLogger(__name__)


async def run_stdio(
    dispatcher: Dispatcher, stdin: TextIO | BinaryIO | None = None, stdout: TextIO | None = None
) -> int:
    """入力がEOFになるまでリクエスト行を順に処理する。

    下層のバイトストリームがあればそこから読み、復号は1行ずつ行う。UTF-8として不正な行にも
    エラー応答を返して次の行へ進む。空行は読み飛ばす。出力先が閉じられた場合はそこで終了する。

    Returns:
        応答した行数。
    """
    source = stdin or sys.stdin
    reader = getattr(source, "buffer", source)
    stdout = stdout or sys.stdout
    handled = 0

    while True:
        line = await asyncio.to_thread(reader.readline)
        if not line:
            break
        if not line.strip():
            continue

        response = await dispatcher.handle_line(line)
        try:
            stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
            stdout.flush()
        except BrokenPipeError:
            logger.info("Output closed by caller, stopping stdio loop")
            break
        handled += 1

    logger.info("stdio input closed after %d requests", handled)
    return handled
