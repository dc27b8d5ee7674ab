from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ContextError, ResolutionError, ShadowGoError
from ..paths import default_cache_root
from .fingerprint import fingerprint_path
from .keys import CacheFileKey
from .lock import entry_lock

if TYPE_CHECKING:
    from ..builder.resolve import PackageResolver

logger = logging.getLogger(__name__)


def package_fingerprint() -> str:
    """Fingerprint of the installed shadowgo sources, the default cache scope."""
    return fingerprint_path(Path(__file__).resolve().parent.parent)


class Cache:
    """Content-addressed store of generated output.

    Entries live in `<root>/<hh>/<hash>`, where `hash` is a CacheFileKey
    hash. An entry directory only appears once it is complete.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        self_id: str | None = None,
        resolver: PackageResolver | None = None,
    ):
        self.root = Path(root) if root is not None else default_cache_root()
        self.self_id = self_id if self_id is not None else package_fingerprint()
        self.resolver = resolver
        self._details: dict[tuple[str, int, int], str] = {}

    def lookup_details(self, src: str) -> str:
        """Content fingerprint of `src`, a filesystem path or an import path."""
        path = Path(src)
        if not path.exists():
            if self.resolver is None:
                raise ResolutionError(f"no such file or directory: {src}")
            path = self.resolver.lookup_import_path(src)

        st = path.stat()
        if not path.is_file():
            # Directory mtimes don't follow edits to the files inside.
            return fingerprint_path(path)

        memo = (str(path.resolve()), st.st_size, st.st_mtime_ns)
        fp = self._details.get(memo)
        if fp is None:
            fp = fingerprint_path(path)
            self._details[memo] = fp
        return fp

    def new_cache_file_key(self, op: str, *srcs: str) -> CacheFileKey:
        files: list[str] = []
        for src in srcs:
            try:
                files.append(self.lookup_details(src))
            except (OSError, ShadowGoError) as e:
                raise ContextError(f"lookup_details({src})", e) from e
        return CacheFileKey(self.self_id, op, files)

    def path_for(self, key: CacheFileKey) -> Path:
        h = key.hash()
        return self.root / h[:2] / h

    def lookup(self, key: CacheFileKey) -> Path | None:
        entry = self.path_for(key)
        if entry.is_dir():
            logger.debug("cache hit: %s", entry)
            return entry
        logger.debug("cache miss: %s", entry)
        return None

    def store(self, key: CacheFileKey, src_dir: Path) -> Path:
        """Copy `src_dir` into the cache as the entry for `key`.

        Raises FileExistsError if the entry already exists.
        """
        entry = self.path_for(key)
        with entry_lock(entry.with_name(entry.name + ".lock")):
            if entry.exists():
                raise FileExistsError(f"cache entry already exists: {entry}")
            tmp = entry.with_name(entry.name + ".tmp")
            if tmp.exists():
                # Left over by a writer that died while holding the lock.
                shutil.rmtree(tmp)
            shutil.copytree(src_dir, tmp, symlinks=True)
            tmp.rename(entry)
        logger.debug("cache store: %s", entry)
        return entry

    def restore(self, key: CacheFileKey, dst_dir: Path) -> bool:
        entry = self.lookup(key)
        if entry is None:
            return False
        shutil.copytree(entry, dst_dir, symlinks=True, dirs_exist_ok=True)
        return True
