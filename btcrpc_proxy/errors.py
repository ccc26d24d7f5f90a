from __future__ import annotations

"""
Error hierarchy for the proxy, serialized as RFC 7807 "problem+json".

Usage
-----
    from btcrpc_proxy.errors import UpstreamUnavailable

    raise UpstreamUnavailable("connection refused", details={"url": url})

Every error has ``status_code``, a stable machine ``code``, a human
``message`` and optional structured ``details``. ``to_problem()`` returns the
RFC 7807 body; the handlers in ``middleware.errors`` render it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

DEFAULT_ERROR_DOCS_BASE = "about:blank"

_TITLES = {
    "upstream_unavailable": "Upstream Node Unavailable",
    "upstream_timeout": "Upstream Node Timeout",
}


@dataclass
class ApiError(Exception):
    message: str
    status_code: int = 400
    code: str = "bad_request"
    details: Optional[Mapping[str, Any]] = None
    type_uri_base: str = DEFAULT_ERROR_DOCS_BASE

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def type_uri(self) -> str:
        if self.type_uri_base == "about:blank":
            return self.type_uri_base
        return f"{self.type_uri_base}#{self.code}"

    def title(self) -> str:
        return _TITLES.get(self.code, self.message or "Error")

    def to_problem(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.type_uri(),
            "title": self.title(),
            "status": self.status_code,
            "code": self.code,
            "detail": self.message,
        }
        if self.details:
            body["details"] = dict(self.details)
        return body


class UpstreamUnavailable(ApiError):
    def __init__(self, message: str = "Upstream node unavailable", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=502, code="upstream_unavailable", details=details)


class UpstreamTimeout(ApiError):
    def __init__(self, message: str = "Upstream node timed out", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=504, code="upstream_timeout", details=details)


__all__ = [
    "ApiError",
    "UpstreamUnavailable",
    "UpstreamTimeout",
]
