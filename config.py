from pathlib import Path
import sys
from pydantic_settings import BaseSettings
from loguru import logger
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """vpnctl Configuration - daemon connection and logging"""

    app_name: str = "vpnctl"
    app_version: str = "2024.2"
    debug: bool = False
    log_level: str = "INFO"

    # Directory structure
    base_dir: Path = Path(__file__).parent
    storage_dir: Path = base_dir / "storage"
    logs_dir: Path = base_dir / "logs"

    # Daemon connection
    transport: str = "auto"             # auto | namedpipe | socket | stdio
    pipe_name: str = r"\\.\pipe\vpnctl"
    socket_path: Path = Path("/tmp/vpnctl.sock")
    connect_timeout: float = 0.8        # seconds
    rpc_timeout: float = 5.0            # seconds per request

    # Reference daemon snapshot
    state_file: Path = storage_dir / "daemon_state.json"

    model_config = {"env_file": ".env", "env_prefix": "VPNCTL_", "case_sensitive": False}

def setup_directories():
    """Create required directories for vpnctl"""
    settings = Settings()

    directories = [
        settings.logs_dir,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ready: {directory}")

def setup_logging():
    settings = Settings()

    # stdout carries the report, so no sink ever writes there
    logger.remove()
    logger.add(
        settings.logs_dir / "vpnctl.log",
        rotation="10 MB",
        retention="1 month",
        level=settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )

    if settings.debug:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format="{time:HH:mm:ss} | {level} | {message}"
        )

settings = Settings()
