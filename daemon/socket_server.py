from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from config import settings

from . import stdio_core


class SocketServer:
    """Unix domain socket server reusing the stdio_core handler."""

    def __init__(self, socket_path: Union[str, Path, None] = None, state_file: Optional[Path] = None) -> None:
        self.socket_path = Path(socket_path) if socket_path is not None else settings.socket_path
        self.state_file = state_file
        self._server: Optional[asyncio.AbstractServer] = None

    async def _remove_stale_socket(self) -> None:
        try:
            _, writer = await asyncio.open_unix_connection(str(self.socket_path))
        except OSError:
            # Nobody is listening, left over from a previous run
            logger.debug(f"Removing stale socket {self.socket_path}")
            self.socket_path.unlink()
            return
        writer.close()
        raise RuntimeError(f"Another daemon is already listening on {self.socket_path}")

    async def start(self) -> None:
        if self.socket_path.exists():
            await self._remove_stale_socket()
        self._server = await asyncio.start_unix_server(self._handle_client, path=str(self.socket_path))
        logger.info(f"Daemon listening on {self.socket_path}")

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            if self.socket_path.exists():
                self.socket_path.unlink()

    async def serve_forever(self) -> None:
        await self.start()
        assert self._server is not None
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                resp = stdio_core.handle_line(line.decode("utf-8", errors="replace"), self.state_file)
                if resp is None:
                    continue
                writer.write((resp + "\n").encode())
                await writer.drain()
        except ConnectionError as e:
            logger.debug(f"Client disconnected: {e}")
        finally:
            writer.close()

