from __future__ import annotations

import sys
import json
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config import settings, setup_directories, setup_logging


def default_state() -> Dict[str, Any]:
    return {
        "current_version": settings.app_version,
        "version_info": {
            "supported": True,
            "suggested_upgrade": None,
            "latest_stable": "",
            "latest_beta": "",
        },
        "settings": {"show_beta_releases": False},
    }


def load_state(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the daemon snapshot file, falling back to the default snapshot.

    Sections missing from the file keep their default values.
    """
    path = Path(path) if path is not None else settings.state_file
    state = default_state()
    if not path.exists():
        logger.debug(f"No state file at {path}, serving defaults")
        return state
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"State file {path} must contain a JSON object")
    for key in ("current_version", "version_info", "settings"):
        if key in data:
            state[key] = data[key]
    return state


def _error(code: str, message: str) -> Dict[str, Any]:
    return {"status": "error", "error": {"code": code, "message": message}}


def handle(method: str, params: Dict[str, Any], state_file: Optional[Path] = None) -> Dict[str, Any]:
    if method == "ping":
        return {"status": "success", "data": {"pong": True, "version": settings.app_version}}
    if method not in ("version.current", "version.info", "settings.get"):
        return _error("E_NOT_IMPLEMENTED", str(method))
    # Fresh snapshot per request
    try:
        state = load_state(state_file)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load daemon state: {e}")
        return _error("E_STATE", str(e))
    if method == "version.current":
        return {"status": "success", "data": {"version": state["current_version"]}}
    if method == "version.info":
        return {"status": "success", "data": state["version_info"]}
    return {"status": "success", "data": state["settings"]}


def handle_line(line: str, state_file: Optional[Path] = None) -> Optional[str]:
    """Turn one JSON-RPC request line into a response line (None for blank input)."""
    line = line.strip()
    if not line:
        return None
    try:
        req = json.loads(line)
        if not isinstance(req, dict):
            raise ValueError("request must be a JSON object")
    except ValueError as e:
        resp = {"jsonrpc": "2.0", "id": None, "error": {"code": "E_BAD_REQUEST", "message": str(e)}}
        return json.dumps(resp)
    req_id = req.get("id")
    method = req.get("method")
    params = req.get("params") or {}
    result = handle(method, params, state_file)
    resp = {"jsonrpc": "2.0", "id": req_id}
    if result.get("status") == "success":
        resp["result"] = result
    else:
        resp["error"] = result.get("error", {"code": "E_UNKNOWN"})
    return json.dumps(resp)


def run_stdio() -> None:
    """Simple JSON-RPC over STDIO loop.

    Reads newline-delimited JSON. Each object must have fields: jsonrpc, id, method, params.
    """
    stdin = sys.stdin
    stdout = sys.stdout
    for line in stdin:
        resp = handle_line(line)
        if resp is None:
            continue
        stdout.write(resp + "\n")
        stdout.flush()


if __name__ == "__main__":
    setup_directories()
    setup_logging()
    run_stdio()
