from __future__ import annotations

import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

import btcrpc.version as client_version

router = APIRouter(tags=["health"])

_PROCESS_START = time.time()


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _version_blob() -> Dict[str, Any]:
    return {
        "service": "btcrpc-proxy",
        "version": client_version.__version__,
        "git": client_version.git_describe(),
        "python": {
            "version": "{}.{}.{}".format(*sys.version_info[:3]),
            "impl": sys.implementation.name,
        },
        "pid": os.getpid(),
        "started_at": datetime.fromtimestamp(_PROCESS_START, tz=timezone.utc).isoformat(),
        "now": _utcnow_iso(),
        "uptime_seconds": round(max(0.0, time.time() - _PROCESS_START), 3),
    }


@router.get("/healthz", summary="Liveness probe", response_model=None)
def healthz() -> Dict[str, Any]:
    """
    Simple liveness probe: always returns 200 if the process is serving requests.
    Does not contact the node.
    """
    return {"status": "ok", **_version_blob()}


@router.get("/version", summary="Service version", response_model=None)
def version(request: Request) -> Dict[str, Any]:
    """Version metadata plus the configured network."""
    meta = _version_blob()
    settings = getattr(request.app.state, "settings", None)
    meta["network"] = getattr(settings, "network", None)
    return meta
