"""
Daemon Main Process

Standalone reference daemon for vpnctl. Serves the version and settings
snapshot from ``settings.state_file`` over a named pipe on Windows and a
Unix domain socket everywhere else.
"""

import asyncio
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from config import setup_directories, setup_logging
from daemon.named_pipe_server import NamedPipeServer
from daemon.socket_server import SocketServer


class DaemonMain:
    """
    Main vpnctl daemon process.

    Keeps a single listener alive until a stop is requested through
    ``stop_gracefully`` or SIGINT/SIGTERM.
    """

    def __init__(self, state_file: Optional[Path] = None):
        self.state_file = state_file
        self.running = False
        self.stop_event = threading.Event()

    def run(self):
        logger.info("vpnctl daemon starting...")
        self._setup_signal_handlers()
        self.running = True
        try:
            if sys.platform == "win32":
                self._serve_pipe()
            else:
                asyncio.run(self._serve_socket())
        finally:
            self.running = False
            logger.info("vpnctl daemon stopped")

    def stop_gracefully(self):
        logger.info("vpnctl daemon stopping...")
        self.stop_event.set()

    def _serve_pipe(self):
        server = NamedPipeServer(state_file=self.state_file)
        if not server.start():
            raise RuntimeError("Named pipe server unavailable")
        try:
            # Short waits keep signal delivery responsive on Windows
            while not self.stop_event.wait(0.5):
                pass
        finally:
            server.stop()

    async def _serve_socket(self):
        server = SocketServer(state_file=self.state_file)
        await server.start()
        try:
            while not self.stop_event.is_set():
                await asyncio.sleep(0.5)
        finally:
            await server.stop()

    def _setup_signal_handlers(self):
        """Configura signal handlers para shutdown gracioso."""
        if threading.current_thread() is not threading.main_thread():
            return

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating shutdown...")
            self.stop_gracefully()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Entry point para execução standalone (não-service)."""
    setup_directories()
    setup_logging()
    daemon = DaemonMain()

    try:
        daemon.run()
    except RuntimeError as e:
        logger.error(f"Daemon failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
