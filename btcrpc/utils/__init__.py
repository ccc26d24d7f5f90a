from .bytes import ByteReader, compact_size_encode, ensure_bytes, from_hex, to_hex  # noqa: F401
from .hash import double_sha256, sha256  # noqa: F401
