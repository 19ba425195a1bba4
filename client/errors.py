from __future__ import annotations

from typing import Iterator


class VersionReportError(Exception):
    """Base class for failures while collecting the version report."""

    description = "Failed to produce version report"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.description)


class DaemonUnavailable(VersionReportError):
    description = "Failed to connect to daemon"


class CurrentVersionUnavailable(VersionReportError):
    description = "Failed to get current version"


class VersionInfoUnavailable(VersionReportError):
    description = "Failed to get version info"


class SettingsUnavailable(VersionReportError):
    description = "Failed to obtain settings"


class DaemonRequestError(Exception):
    """The daemon answered a request with a JSON-RPC error object."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if message else code)


def error_chain(exc: BaseException) -> Iterator[str]:
    """Yield the message of ``exc`` followed by each chained cause."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield str(current) or type(current).__name__
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
