from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from ..errors import ShadowGoError


@contextmanager
def entry_lock(lock_path: Path, *, timeout_s: float = 600.0, poll_s: float = 0.1) -> Iterator[None]:
    """Hold an exclusive lock on `lock_path` while storing a cache entry.

    Writers storing the same key serialize on this lock; readers never take
    it, they only look for a complete entry.
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with lock_path.open("a+b") as f:
        deadline = time.time() + timeout_s
        while not _try_lock(f):
            if time.time() >= deadline:
                raise ShadowGoError(f"timed out waiting for cache lock {lock_path}")
            time.sleep(poll_s)
        try:
            yield
        finally:
            _unlock(f)


def _try_lock(f: BinaryIO) -> bool:
    try:
        if os.name == "nt":
            import msvcrt

            msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            import fcntl

            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return False
    return True


def _unlock(f: BinaryIO) -> None:
    if os.name == "nt":
        import msvcrt

        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
