from __future__ import annotations

import re

import pytest

from btcrpc.version import __version__

# /healthz and /version never contact the node.


@pytest.mark.asyncio
async def test_healthz_ok(aclient, upstream):
    resp = await aclient.get("/healthz")
    assert resp.status_code == 200
    assert "application/json" in resp.headers.get("content-type", "").lower()

    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "btcrpc-proxy"
    assert data["uptime_seconds"] >= 0
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_version_endpoint(aclient):
    resp = await aclient.get("/version")
    assert resp.status_code == 200

    data = resp.json()
    assert data["version"] == __version__
    assert re.match(r"^\d+\.\d+\.\d+", data["version"])
    assert data["network"] == "regtest"
    if data.get("git") is not None:
        assert isinstance(data["git"], str)
