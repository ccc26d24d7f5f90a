from __future__ import annotations

"""
Configuration loader for the chain-status proxy.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `get_settings()` accessor.
- `Settings.to_rpc_config()` bridges to the client-side `btcrpc.RPCConfig`.

Environment variables:
    RPC_URL         (str, default: local node on the network's RPC port)
    RPC_USER        (str, optional)       — Basic-auth username for the node
    RPC_PASSWORD    (str, optional)       — Basic-auth password for the node
    NETWORK         (str, default "main") — main | test | regtest
    RPC_TIMEOUT     (float, default 30)   — Upstream timeout in seconds
    LOG_LEVEL       (str, default "INFO")
    LOG_FORMAT      (str, default "json") — json | console
    HOST / PORT     (bind address for `python -m btcrpc_proxy.main`)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from btcrpc.config import RPCConfig, default_uri
from btcrpc.params import NetworkParams


class Settings(BaseSettings):
    # Upstream node
    rpc_url: Optional[str] = Field(default=None, description="Node JSON-RPC endpoint")
    rpc_user: Optional[str] = Field(default=None, description="RPC username")
    rpc_password: Optional[SecretStr] = Field(default=None, description="RPC password")
    network: str = Field("main", description="Network name (main, test, regtest)")
    rpc_timeout: float = Field(30.0, gt=0, description="Upstream request timeout (seconds)")

    # Logging
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field("json", description="json or console")

    # Server
    host: str = Field("0.0.0.0", description="Bind host")
    port: int = Field(8080, ge=1, le=65535, description="Bind port")

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("network")
    @classmethod
    def _known_network(cls, v: str) -> str:
        return NetworkParams.from_name(v).name

    @field_validator("rpc_url")
    @classmethod
    def _http_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"RPC_URL must start with http:// or https://, got: {v!r}")
        return v

    @field_validator("log_format")
    @classmethod
    def _log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @property
    def params(self) -> NetworkParams:
        return NetworkParams.from_name(self.network)

    @property
    def upstream_url(self) -> str:
        return self.rpc_url or default_uri(self.params)

    def upstream_auth(self) -> Optional[tuple[str, str]]:
        if self.rpc_user is None:
            return None
        password = self.rpc_password.get_secret_value() if self.rpc_password else ""
        return (self.rpc_user, password)

    def to_rpc_config(self) -> RPCConfig:
        return RPCConfig(
            params=self.params,
            uri=self.upstream_url,
            username=self.rpc_user,
            password=self.rpc_password.get_secret_value() if self.rpc_password else None,
            timeout=self.rpc_timeout,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # pydantic-settings will read .env automatically


__all__ = ["Settings", "get_settings"]
