from __future__ import annotations

import hashlib

from .bytes import BytesLike, ensure_bytes


def sha256(data: BytesLike) -> bytes:
    """Return SHA-256 digest of *data*."""
    return hashlib.sha256(ensure_bytes(data)).digest()


def double_sha256(data: BytesLike) -> bytes:
    """SHA-256 applied twice; the node's block and transaction id function."""
    return hashlib.sha256(hashlib.sha256(ensure_bytes(data)).digest()).digest()


def checksum4(data: BytesLike) -> bytes:
    """First four bytes of double SHA-256, as used by base58check."""
    return double_sha256(data)[:4]


__all__ = ["sha256", "double_sha256", "checksum4"]
