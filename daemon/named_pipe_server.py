from __future__ import annotations

import threading
from pathlib import Path
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

from config import settings

from . import stdio_core


class NamedPipeServer:
    """Minimal single-client named pipe server reusing the stdio_core handler."""

    def __init__(self, pipe_name: Optional[str] = None, state_file: Optional[Path] = None) -> None:
        self.pipe_name = pipe_name or settings.pipe_name
        self.state_file = state_file
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> bool:
        if win32pipe is None:
            logger.warning("pywin32 not available, named pipe server disabled")
            return False
        self._thread = threading.Thread(target=self._serve_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)

    def _serve_loop(self) -> None:
        while not self._stop.is_set():
            try:
                handle = win32pipe.CreateNamedPipe(
                    self.pipe_name,
                    win32pipe.PIPE_ACCESS_DUPLEX,
                    win32pipe.PIPE_TYPE_MESSAGE | win32pipe.PIPE_READMODE_MESSAGE | win32pipe.PIPE_WAIT,
                    1,
                    4096,
                    4096,
                    0,
                    None,
                )
            except pywintypes.error as e:
                logger.error(f"Failed to create pipe {self.pipe_name}: {e}")
                return
            try:
                win32pipe.ConnectNamedPipe(handle, None)
                # Serve one client until disconnect
                while not self._stop.is_set():
                    hr, data = win32file.ReadFile(handle, 4096)
                    if not data:
                        break
                    for line in data.splitlines():
                        resp = stdio_core.handle_line(line.decode("utf-8", errors="replace"), self.state_file)
                        if resp is not None:
                            win32file.WriteFile(handle, (resp + "\n").encode())
            except pywintypes.error as e:
                logger.debug(f"Pipe client disconnected: {e}")
            finally:
                win32file.CloseHandle(handle)
