from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .base import LineTransport


class UnixSocketTransport(LineTransport):
    """Unix domain socket transport (client-side) for Linux and macOS daemons."""

    name = "socket"

    def __init__(self, socket_path: Union[str, Path] = "/tmp/vpnctl.sock") -> None:
        super().__init__()
        self.socket_path = Path(socket_path)
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None

    async def connect(self, timeout: float = 1.0) -> None:
        if not hasattr(asyncio, "open_unix_connection"):
            raise ConnectionError("Unix sockets not supported on this platform")
        if not self.socket_path.exists():
            raise ConnectionError(f"Socket not found: {self.socket_path}")
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_unix_connection(str(self.socket_path)), timeout=timeout
            )
        except OSError as e:
            raise ConnectionError(f"Failed to open socket: {e}") from e
        logger.debug(f"Connected to socket {self.socket_path}")
        self._reader_task = asyncio.get_running_loop().create_task(self._read_loop())

    async def _read_loop(self) -> None:
        assert self._reader is not None
        try:
            while True:
                line = await self._reader.readline()
                if not line:
                    break
                self._dispatch(line)
        except OSError as e:
            logger.debug(f"Socket read failed: {e}")
        self._fail_pending("Daemon closed")

    async def _send(self, data: bytes) -> None:
        if self._writer is None:
            raise ConnectionError("Not connected")
        self._writer.write(data)
        await self._writer.drain()

    async def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except OSError:
                pass
            self._writer = None
        if self._reader_task:
            self._reader_task.cancel()
            self._reader_task = None
