"""
Client configuration: network, RPC endpoint, credentials and timeout.

- Defaults target a local mainnet node.
- Overrides come from environment variables (BTCRPC_*).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from .params import MAINNET, NetworkParams


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_http(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError(f"RPC URL must be an absolute http(s) URL, got: {url!r}")
    return url


def default_uri(params: NetworkParams) -> str:
    return f"http://127.0.0.1:{params.default_rpc_port}"


@dataclass(frozen=True, slots=True)
class RPCConfig:
    params: NetworkParams = MAINNET
    uri: str = field(default_factory=lambda: default_uri(MAINNET))
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 30.0

    def __post_init__(self) -> None:
        _ensure_http(self.uri)
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_env(cls, prefix: str = "BTCRPC_") -> "RPCConfig":
        """
        Create config from environment variables:

        BTCRPC_NETWORK     main | test | regtest (default main)
        BTCRPC_URL         http/https endpoint (default: local node, network port)
        BTCRPC_USER        RPC username (optional)
        BTCRPC_PASSWORD    RPC password (optional)
        BTCRPC_TIMEOUT     float seconds (default 30)
        """
        params = NetworkParams.from_name(_env(f"{prefix}NETWORK", "main") or "main")
        return cls(
            params=params,
            uri=_env(f"{prefix}URL") or default_uri(params),
            username=_env(f"{prefix}USER"),
            password=_env(f"{prefix}PASSWORD"),
            timeout=float(_env(f"{prefix}TIMEOUT", "30") or "30"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.params.name,
            "uri": self.uri,
            "username": self.username,
            "password": "***" if self.password else None,
            "timeout": float(self.timeout),
        }


__all__ = ["RPCConfig", "default_uri"]
