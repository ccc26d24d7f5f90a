from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import structlog
from fastapi import FastAPI

from btcrpc.version import __version__

from .config import Settings, get_settings
from .middleware.errors import install_error_handlers
from .middleware.request_id import RequestIdMiddleware
from .routers.chain import build_upstream
from .routers.chain import router as chain_router
from .routers.health import router as health_router

log = structlog.get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan: the upstream pool is created eagerly in create_app so it also
    exists under transports that skip lifespan; here we only close it.
    """
    settings: Settings = app.state.settings
    log.info("proxy_started", upstream=app.state.upstream.url, network=settings.network)
    try:
        yield
    finally:
        await app.state.upstream.aclose()
        log.info("proxy_stopped")


def create_app(
    settings: Optional[Settings] = None,
    *,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    FastAPI factory. `upstream_transport` replaces the network transport of the
    outbound client (tests pass an httpx.MockTransport).
    """
    cfg = settings or get_settings()

    app = FastAPI(
        title="btcrpc chain-status proxy",
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.settings = cfg
    app.state.upstream = build_upstream(
        cfg.upstream_url,
        auth=cfg.upstream_auth(),
        timeout=cfg.rpc_timeout,
        transport=upstream_transport,
    )

    app.add_middleware(RequestIdMiddleware)
    install_error_handlers(app)

    app.include_router(health_router, prefix="")
    app.include_router(chain_router, prefix="")
    return app
