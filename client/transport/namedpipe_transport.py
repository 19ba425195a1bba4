from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

try:
    import win32pipe
    import win32file
    import pywintypes
except ImportError:  # pragma: no cover
    win32pipe = None  # type: ignore
    win32file = None  # type: ignore
    pywintypes = None  # type: ignore

from .base import LineTransport


class NamedPipeTransport(LineTransport):
    """Named Pipes transport for Windows (client-side).

    Connects to an existing pipe server and exchanges newline-delimited
    JSON-RPC messages. If pywin32 is unavailable, connection fails quickly
    so callers can fall back to another transport.
    """

    name = "namedpipe"

    def __init__(self, pipe_name: str = r"\\.\pipe\vpnctl") -> None:
        super().__init__()
        self.pipe_name = pipe_name
        self.handle = None
        self._reader_task: Optional[asyncio.Task] = None

    async def connect(self, timeout: float = 1.0) -> None:
        if win32pipe is None:
            raise ConnectionError("pywin32 not available")
        # Quick wait for pipe
        try:
            win32pipe.WaitNamedPipe(self.pipe_name, int(timeout * 1000))
        except pywintypes.error as e:  # type: ignore
            raise ConnectionError(f"Pipe not available: {e}")
        try:
            self.handle = win32file.CreateFile(
                self.pipe_name,
                win32file.GENERIC_READ | win32file.GENERIC_WRITE,  # type: ignore
                0,
                None,
                win32file.OPEN_EXISTING,  # type: ignore
                0,
                None,
            )
        except pywintypes.error as e:  # type: ignore
            raise ConnectionError(f"Failed to open pipe: {e}")

        logger.debug(f"Connected to pipe {self.pipe_name}")
        self._reader_task = asyncio.get_running_loop().create_task(self._read_loop())

    def _read_once(self) -> bytes:
        hr, data = win32file.ReadFile(self.handle, 4096)  # type: ignore
        return data

    async def _read_loop(self) -> None:
        # Blocking reads off-thread
        loop = asyncio.get_running_loop()
        while self.handle:
            try:
                data: bytes = await loop.run_in_executor(None, self._read_once)
            except pywintypes.error as e:  # type: ignore
                logger.debug(f"Pipe read failed: {e}")
                break
            if not data:
                break
            for line in data.splitlines():
                self._dispatch(line)
        self._fail_pending("Pipe closed")

    async def _send(self, data: bytes) -> None:
        if not self.handle:
            raise ConnectionError("Not connected")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, win32file.WriteFile, self.handle, data)  # type: ignore

    async def close(self) -> None:
        if self.handle:
            try:
                self.handle.Close()  # type: ignore
            except pywintypes.error:  # type: ignore
                pass
            self.handle = None
        if self._reader_task:
            self._reader_task.cancel()
            self._reader_task = None
