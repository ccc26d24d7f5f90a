"""
btcrpc_proxy: HTTP gateway relaying the node's chain status.

    uvicorn btcrpc_proxy.app:create_app --factory
"""

from btcrpc.version import __version__  # noqa: F401
