from __future__ import annotations

"""
Request ID middleware.

- Propagates an inbound **X-Request-Id** or generates one (uuid4 hex).
- Exposes it as `request.state.request_id` for handlers and error mappers.
- Binds it into structlog contextvars for the duration of the request.
- Echoes it back on the response.

Usage
-----
    from btcrpc_proxy.middleware.request_id import RequestIdMiddleware

    app.add_middleware(RequestIdMiddleware)
"""

import re
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from structlog.contextvars import bind_contextvars, unbind_contextvars

REQUEST_ID_HEADER = "X-Request-Id"

# Inbound ids are echoed into headers and logs; keep them tame
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9._\-]{1,128}$")


def _inbound_id(value: Optional[str]) -> Optional[str]:
    if value and _SAFE_ID_RE.match(value):
        return value
    return None


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header: str = REQUEST_ID_HEADER):  # noqa: ANN001
        super().__init__(app)
        self.header = header

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        req_id = _inbound_id(request.headers.get(self.header)) or uuid.uuid4().hex
        request.state.request_id = req_id
        bind_contextvars(request_id=req_id)
        try:
            response: Response = await call_next(request)
        finally:
            unbind_contextvars("request_id")
        response.headers[self.header] = req_id
        return response


__all__ = ["RequestIdMiddleware", "REQUEST_ID_HEADER"]
