"""
JSON-RPC 1.0 request envelope as spoken by the node.

    {"jsonrpc": "1.0", "id": 7, "method": "getblockhash", "params": [100]}

Optional trailing parameters are passed as None and dropped, so the node
applies its own defaults. A None in the middle of the list must still be sent
(as null) to keep later parameters in position. Use `NULL` to force an
explicit null even in trailing position.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..params import NetworkParams
from .marshal import NULL, to_wire

__all__ = ["NULL", "JsonRpcRequest", "trim_params"]

_ids = count(1)


def trim_params(params: Sequence[Any]) -> List[Any]:
    out = list(params)
    while out and out[-1] is None:
        out.pop()
    return out


@dataclass(frozen=True)
class JsonRpcRequest:
    method: str
    params: Tuple[Any, ...] = ()
    id: Union[int, str] = field(default_factory=lambda: next(_ids))
    jsonrpc: str = "1.0"

    def __post_init__(self) -> None:
        if not self.method:
            raise ValueError("method must be a non-empty string")
        object.__setattr__(self, "params", tuple(self.params))

    def wire_params(self, params: Optional[NetworkParams] = None) -> List[Any]:
        return [to_wire(p, params) for p in trim_params(self.params)]

    def to_dict(self, params: Optional[NetworkParams] = None) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": self.wire_params(params),
        }

    def to_json(self, params: Optional[NetworkParams] = None) -> bytes:
        return json.dumps(self.to_dict(params), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
