"""RPC proxy for the version related daemon queries.

``VersionProxy`` is the capability the reporter depends on. ``DaemonProxy``
implements it on top of :class:`client.daemon_client.DaemonClient`; tests
supply in-process stubs instead.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from .daemon_client import DaemonClient
from .errors import DaemonRequestError
from .models import DaemonSettings, VersionInfo


class VersionProxy(Protocol):
    async def get_current_version(self) -> str: ...

    async def get_version_info(self) -> VersionInfo: ...

    async def get_settings(self) -> DaemonSettings: ...


class DaemonProxy:
    """Read-only version queries issued through a connected ``DaemonClient``."""

    def __init__(self, client: DaemonClient) -> None:
        self.client = client

    async def get_current_version(self) -> str:
        data = await self.client.call("version.current")
        version = data.get("version")
        if not isinstance(version, str):
            raise DaemonRequestError("E_BAD_RESPONSE", "Current version missing from response")
        logger.debug(f"Daemon reports current version {version}")
        return version

    async def get_version_info(self) -> VersionInfo:
        return VersionInfo.model_validate(await self.client.call("version.info"))

    async def get_settings(self) -> DaemonSettings:
        return DaemonSettings.model_validate(await self.client.call("settings.get"))
