"""Stdio transport.

Reads one JSON request per line from stdin and writes one JSON response
per line to stdout:

    -> {"id": 1, "method": "tools/call", "params": {"name": "ai_list"}}
    <- {"id": 1, "result": {"content": [...], "isError": false}}

Requests are handled concurrently; responses carry the request id and
may arrive out of order.
"""

import asyncio
import json
import sys
from typing import Any, Optional, TextIO

from shared.logging import get_logger
from orchestrator.gateway import AIGateway

logger = get_logger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603


class StdioServer:
    """Newline-delimited JSON request loop over a pair of text streams."""

    def __init__(
        self,
        gateway: AIGateway,
        reader: Optional[TextIO] = None,
        writer: Optional[TextIO] = None
    ) -> None:
        self.gateway = gateway
        self.reader = reader or sys.stdin
        self.writer = writer or sys.stdout
        self._write_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    async def _write(self, message: dict[str, Any]) -> None:
        async with self._write_lock:
            self.writer.write(json.dumps(message) + "\n")
            self.writer.flush()

    async def handle_line(self, line: str) -> Optional[dict[str, Any]]:
        """Handle one raw request line and return the response message."""
        line = line.strip()
        if not line:
            return None

        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            return {"id": None, "error": {"code": PARSE_ERROR, "message": f"Parse error: {e}"}}

        if not isinstance(request, dict) or not isinstance(request.get("method"), str):
            return {
                "id": request.get("id") if isinstance(request, dict) else None,
                "error": {"code": INVALID_REQUEST, "message": "Invalid request"},
            }

        request_id = request.get("id")
        try:
            result = await self.gateway.handle(request)
        except Exception as e:
            logger.error("Request failed", method=request["method"], error=str(e), exc_info=True)
            return {"id": request_id, "error": {"code": INTERNAL_ERROR, "message": str(e)}}

        return {"id": request_id, "result": result}

    async def _respond(self, line: str) -> None:
        response = await self.handle_line(line)
        if response is not None:
            await self._write(response)

    async def serve(self) -> None:
        """Serve until stdin closes, then wait for in-flight requests."""
        logger.info("Stdio transport started")

        while True:
            line = await asyncio.to_thread(self.reader.readline)
            if not line:
                break

            task = asyncio.create_task(self._respond(line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if self._tasks:
            await asyncio.gather(*self._tasks)

        logger.info("Stdio transport stopped")
