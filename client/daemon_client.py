from __future__ import annotations

import asyncio
import sys
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from config import settings

from .errors import DaemonRequestError
from .transport import LineTransport, NamedPipeTransport, UnixSocketTransport


class _StdioTransport(LineTransport):
    """Minimal STDIO transport spawning daemon.stdio_core as a subprocess."""

    name = "stdio"

    def __init__(self) -> None:
        super().__init__()
        self.process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None

    async def connect(self, timeout: float = 1.0) -> None:
        if self.process:
            return
        try:
            self.process = await asyncio.wait_for(
                asyncio.create_subprocess_exec(
                    sys.executable,
                    "-m",
                    "daemon.stdio_core",
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.DEVNULL,
                    cwd=str(settings.base_dir),
                ),
                timeout=timeout,
            )
        except OSError as e:
            raise ConnectionError(f"Failed to spawn daemon core: {e}") from e
        self._reader_task = asyncio.get_running_loop().create_task(self._read_loop())

    async def _read_loop(self) -> None:
        assert self.process and self.process.stdout
        while True:
            line = await self.process.stdout.readline()
            if not line:
                # Process ended
                break
            self._dispatch(line)
        self._fail_pending("Daemon closed")

    async def _send(self, data: bytes) -> None:
        if not self.process or not self.process.stdin:
            raise ConnectionError("Not connected")
        self.process.stdin.write(data)
        await self.process.stdin.drain()

    async def close(self) -> None:
        if self.process:
            if self.process.stdin:
                self.process.stdin.close()
            try:
                await asyncio.wait_for(self.process.wait(), timeout=1.0)
            except asyncio.TimeoutError:
                self.process.kill()
            self.process = None
        if self._reader_task:
            self._reader_task.cancel()
            self._reader_task = None


TRANSPORT_MODES = ("auto", "namedpipe", "socket", "stdio")


class DaemonClient:
    """JSON-RPC client for the local daemon.

    Transport selection follows ``settings.transport``: in ``auto`` mode the
    Windows named pipe is tried first, then the Unix socket when it exists,
    and finally a STDIO daemon core is spawned. The first transport that
    connects and answers ``ping`` wins.
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        transports: Optional[Sequence[Any]] = None,
        connect_timeout: Optional[float] = None,
        rpc_timeout: Optional[float] = None,
    ) -> None:
        self.mode = (mode or settings.transport).lower()
        if self.mode not in TRANSPORT_MODES:
            raise ValueError(f"Unknown transport mode: {self.mode}")
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.connect_timeout
        self.rpc_timeout = rpc_timeout if rpc_timeout is not None else settings.rpc_timeout
        self._candidates = list(transports) if transports is not None else None
        self.connected: bool = False
        self.transport = None

    def _build_candidates(self) -> List[Any]:
        if self._candidates is not None:
            return self._candidates
        if self.mode == "namedpipe":
            return [NamedPipeTransport(settings.pipe_name)]
        if self.mode == "socket":
            return [UnixSocketTransport(settings.socket_path)]
        if self.mode == "stdio":
            return [_StdioTransport()]
        candidates: List[Any] = []
        if sys.platform == "win32":
            candidates.append(NamedPipeTransport(settings.pipe_name))
        elif settings.socket_path.exists():
            candidates.append(UnixSocketTransport(settings.socket_path))
        candidates.append(_StdioTransport())
        return candidates

    async def connect(self) -> None:
        last_error: Optional[BaseException] = None
        for transport in self._build_candidates():
            try:
                await asyncio.wait_for(transport.connect(timeout=self.connect_timeout), timeout=self.connect_timeout)
                # Simple ping to validate
                resp = await transport.request("ping", {}, timeout=self.connect_timeout)
                result = resp.get("result") or {}
                if result.get("status") != "success":
                    raise ConnectionError("Daemon did not respond to ping")
            except (ConnectionError, OSError, asyncio.TimeoutError) as e:
                logger.debug(f"Transport {getattr(transport, 'name', transport)} unavailable: {e!r}")
                last_error = e
                await transport.close()
                continue
            self.transport = transport
            self.connected = True
            logger.info(f"Connected to daemon via {getattr(transport, 'name', 'transport')}")
            return
        raise ConnectionError("No daemon transport available") from last_error

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.connected:
            raise ConnectionError("Daemon not connected")
        return await self.transport.request(method, params or {}, timeout=self.rpc_timeout)

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a request and return the ``data`` member of a successful result."""
        resp = await self.request(method, params)
        if "error" in resp:
            error = resp.get("error") or {}
            raise DaemonRequestError(str(error.get("code", "E_UNKNOWN")), str(error.get("message", "")))
        result = resp.get("result")
        if not isinstance(result, dict) or result.get("status") != "success":
            raise DaemonRequestError("E_BAD_RESPONSE", f"Unexpected response to {method}")
        data = result.get("data")
        if not isinstance(data, dict):
            raise DaemonRequestError("E_BAD_RESPONSE", f"Missing data in response to {method}")
        return data

    async def close(self) -> None:
        if self.transport is not None:
            await self.transport.close()
            self.transport = None
        self.connected = False

    async def __aenter__(self) -> "DaemonClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
