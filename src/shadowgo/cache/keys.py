from __future__ import annotations

import hashlib
import logging
from typing import Sequence

import msgpack

logger = logging.getLogger(__name__)


class CacheFileKey:
    """Key of one cache entry: who made it, by which operation, from what.

    `files` are content fingerprints in the order the caller supplied the
    inputs; the order is part of the key. Two keys are equal when their
    hashes are.
    """

    def __init__(self, self_id: str, op: str, files: Sequence[str]):
        self.self_id = self_id
        self.op = op
        self.files = list(files)
        self._hash: str | None = None

    def _encode(self) -> bytes:
        payload = {"self": self.self_id, "op": self.op, "files": self.files}
        return msgpack.packb(payload, use_bin_type=True)

    def hash(self) -> str:
        if self._hash is None:
            self._hash = hashlib.sha256(self._encode()).hexdigest()
            logger.debug("cache key %s: op=%s files=%s", self._hash, self.op, self.files)
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheFileKey):
            return NotImplemented
        return self.hash() == other.hash()

    def __hash__(self) -> int:
        return hash(self.hash())

    def __repr__(self) -> str:
        return f"CacheFileKey(op={self.op!r}, hash={self.hash()[:12]})"
