"""Snapshot models for data returned by the daemon.

All models are read-only snapshots fetched fresh for every report and
discarded afterwards.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class VersionInfo(BaseModel):
    """Version compatibility metadata known to the daemon."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    supported: bool
    suggested_upgrade: Optional[str] = None
    latest_stable: str = ""  # empty means unknown
    latest_beta: str = ""


class DaemonSettings(BaseModel):
    """User settings held by the daemon (only the fields the client reads)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    show_beta_releases: bool = False
