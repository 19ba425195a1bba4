from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

from loguru import logger


class LineTransport:
    """Newline-delimited JSON-RPC framing shared by all client transports.

    Subclasses open the channel in ``connect``, feed every received line to
    ``_dispatch`` from their read loop and implement ``_send``. Responses are
    matched to pending requests by ``id``.
    """

    name = "line"

    def __init__(self) -> None:
        self._futures: Dict[int, asyncio.Future] = {}
        self._next_id = 1

    async def connect(self, timeout: float = 1.0) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def _send(self, data: bytes) -> None:
        raise NotImplementedError

    def _dispatch(self, line: bytes) -> None:
        line = line.strip()
        if not line:
            return
        try:
            msg = json.loads(line.decode())
        except (UnicodeDecodeError, ValueError):
            logger.warning(f"[{self.name}] dropping malformed line: {line[:80]!r}")
            return
        if not isinstance(msg, dict):
            return
        req_id = msg.get("id")
        if not isinstance(req_id, int) or isinstance(req_id, bool):
            return
        fut = self._futures.pop(req_id, None)
        if fut and not fut.done():
            fut.set_result(msg)

    def _fail_pending(self, reason: str) -> None:
        for fut in list(self._futures.values()):
            if not fut.done():
                fut.set_exception(ConnectionError(reason))
        self._futures.clear()

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None, timeout: float = 5.0) -> Dict[str, Any]:
        req_id = self._next_id
        self._next_id += 1
        req = {"jsonrpc": "2.0", "id": req_id, "method": method, "params": params or {}}
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        # Register before sending so a fast reply is never lost
        self._futures[req_id] = fut
        try:
            await self._send((json.dumps(req) + "\n").encode())
            logger.debug(f"[{self.name}] -> {method} (id={req_id})")
            return await asyncio.wait_for(fut, timeout=timeout)
        finally:
            self._futures.pop(req_id, None)
