from __future__ import annotations

import hashlib
from pathlib import Path


def _skipped(rel: Path) -> bool:
    return any(part.startswith(".") or part == "__pycache__" for part in rel.parts)


def fingerprint_path(path: Path) -> str:
    """Content fingerprint of a file or a directory tree.

    For a file this is the sha256 of its bytes. For a directory it covers the
    relative path and bytes of every file below it, in sorted order, skipping
    hidden entries and `__pycache__`. Paths outside the tree do not matter, so
    moving a directory keeps its fingerprint.
    """
    path = Path(path)
    h = hashlib.sha256()

    def add_bytes(p: Path) -> None:
        with p.open("rb") as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b""):
                h.update(chunk)

    if path.is_file():
        add_bytes(path)
        return h.hexdigest()

    if not path.is_dir():
        raise FileNotFoundError(f"no such file or directory: {path}")

    files = sorted(
        (p for p in path.rglob("*") if p.is_file() and not _skipped(p.relative_to(path))),
        key=lambda p: p.relative_to(path).as_posix(),
    )
    for p in files:
        h.update(p.relative_to(path).as_posix().encode("utf-8"))
        h.update(b"\x00")
        add_bytes(p)
        h.update(b"\x00")

    return h.hexdigest()
