from .chain import router as chain_router  # noqa: F401
from .health import router as health_router  # noqa: F401
