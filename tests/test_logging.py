from __future__ import annotations

from btcrpc.version import __version__, version, version_info
from btcrpc_proxy.logging import redact_secrets


def test_redact_secrets_masks_known_keys():
    event = {"event": "x", "Authorization": "Basic YWxpY2U6czNjcmV0", "password": "s3cret", "url": "http://n/"}
    out = redact_secrets(None, "info", dict(event))
    assert out["Authorization"] == "***"
    assert out["password"] == "***"
    assert out["url"] == "http://n/"


def test_redact_secrets_leaves_none_alone():
    assert redact_secrets(None, "info", {"event": "x", "token": None})["token"] is None


def test_version_string_starts_with_release(monkeypatch):
    monkeypatch.setenv("GIT_DESCRIBE", "v0.1.0-3-gabc1234")
    info = version_info()
    assert info.base == __version__
    assert version().startswith(__version__)
