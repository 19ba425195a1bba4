"""
Version status report

Fetches the current version, the version info and the user settings from
the daemon and renders them as a fixed-format report::

    Current version      : 2024.1
    Is supported         : true
    Suggested upgrade    : none
    Latest stable version: 2024.2

The report is all-or-nothing: every fetch completes before a single line is
written, and any failing fetch raises a typed ``VersionReportError``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TextIO, Tuple, Type, TypeVar

from loguru import logger

from .errors import (
    CurrentVersionUnavailable,
    SettingsUnavailable,
    VersionInfoUnavailable,
    VersionReportError,
)
from .models import DaemonSettings, VersionInfo
from .proxy import VersionProxy

LABEL_WIDTH = 21

T = TypeVar("T")


@dataclass(frozen=True)
class VersionSnapshot:
    current_version: str
    version_info: VersionInfo
    settings: DaemonSettings


def format_line(label: str, value: str) -> str:
    return f"{label:<{LABEL_WIDTH}}: {value}"


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


LineProducer = Callable[[VersionSnapshot], Optional[Tuple[str, str]]]


def _current_version(snapshot: VersionSnapshot) -> Optional[Tuple[str, str]]:
    return "Current version", snapshot.current_version


def _is_supported(snapshot: VersionSnapshot) -> Optional[Tuple[str, str]]:
    return "Is supported", _bool_text(snapshot.version_info.supported)


def _suggested_upgrade(snapshot: VersionSnapshot) -> Optional[Tuple[str, str]]:
    upgrade = snapshot.version_info.suggested_upgrade
    return "Suggested upgrade", upgrade if upgrade is not None else "none"


def _latest_stable(snapshot: VersionSnapshot) -> Optional[Tuple[str, str]]:
    # Empty means the daemon does not know the latest stable version
    if not snapshot.version_info.latest_stable:
        return None
    return "Latest stable version", snapshot.version_info.latest_stable


def _latest_beta(snapshot: VersionSnapshot) -> Optional[Tuple[str, str]]:
    if not snapshot.settings.show_beta_releases:
        return None
    return "Latest beta version", snapshot.version_info.latest_beta


# Report order
LINE_PRODUCERS: Tuple[LineProducer, ...] = (
    _current_version,
    _is_supported,
    _suggested_upgrade,
    _latest_stable,
    _latest_beta,
)


def render_report(snapshot: VersionSnapshot) -> List[str]:
    """Render ``snapshot`` into report lines, skipping producers that return None."""
    lines = []
    for producer in LINE_PRODUCERS:
        field = producer(snapshot)
        if field is not None:
            lines.append(format_line(*field))
    return lines


async def _fetch(query: Callable[[], Awaitable[T]], error: Type[VersionReportError]) -> T:
    try:
        return await query()
    except Exception as e:
        logger.warning(f"{error.description}: {e!r}")
        raise error() from e


async def fetch_snapshot(proxy: VersionProxy) -> VersionSnapshot:
    current_version = await _fetch(proxy.get_current_version, CurrentVersionUnavailable)
    version_info = await _fetch(proxy.get_version_info, VersionInfoUnavailable)
    settings = await _fetch(proxy.get_settings, SettingsUnavailable)
    return VersionSnapshot(current_version, version_info, settings)


async def produce_report(proxy: VersionProxy, stream: Optional[TextIO] = None) -> None:
    """Fetch everything from ``proxy`` and write the report to ``stream`` (stdout by default)."""
    snapshot = await fetch_snapshot(proxy)
    lines = render_report(snapshot)
    out = stream if stream is not None else sys.stdout
    out.write("".join(line + "\n" for line in lines))
    out.flush()
