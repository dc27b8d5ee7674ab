from __future__ import annotations

import logging
import posixpath
import subprocess
from pathlib import Path
from typing import Protocol

from ..errors import BuildError, ResolutionError

logger = logging.getLogger(__name__)


class PackageResolver(Protocol):
    """Locates Go packages on disk and tells their short names."""

    def lookup_import_path(self, imp_path: str) -> Path: ...

    def package_name(self, imp_path: str, src_path: Path, pkg_name: str = "") -> str: ...


def _run(cmd: list[str], *, cwd: Path | None = None, env: dict[str, str] | None = None) -> str:
    prog = cmd[0] if cmd else "<unknown>"
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        if prog == "go":
            raise BuildError(
                "Go toolchain not found (`go` is missing from PATH). "
                "Install Go and ensure `go` is available on PATH."
            ) from e
        raise BuildError(f"command not found: {prog}") from e

    if proc.returncode != 0:
        raise BuildError(
            f"External program '{prog}' failed (exit {proc.returncode}), with output:\n{proc.stderr}"
        )
    return proc.stdout.strip()


def _tool_missing(e: BuildError) -> bool:
    return isinstance(e.__cause__, FileNotFoundError)


def vendor_paths(pkg_name: str) -> list[str]:
    """Vendor directories that may hold imports of `pkg_name`, innermost first."""
    vendors: list[str] = []
    while pkg_name:
        vendors.append(posixpath.join(pkg_name, "vendor"))
        pkg_name = posixpath.dirname(pkg_name.rstrip("/"))
    vendors.append("vendor")
    return vendors


class GoListResolver:
    """PackageResolver backed by `go list`.

    Package names are cached per resolver instance, except for relative
    imports whose meaning depends on the importing directory.
    """

    def __init__(self, *, env: dict[str, str] | None = None):
        self.env = env
        self._names: dict[str, str] = {}

    def lookup_import_path(self, imp_path: str) -> Path:
        if imp_path.startswith("_/"):
            # Outside of GOPATH: the import path is the directory.
            return Path(imp_path[1:])

        path = _run(["go", "list", "-e", "-f", "{{.Dir}}", imp_path], env=self.env)
        if not path:
            raise ResolutionError(f"Unable to find package: {imp_path}")
        return Path(path).resolve()

    def _lookup_name(self, main: str, alternates: list[str], cwd: Path | None) -> str:
        try:
            return _run(["go", "list", "-f", "{{.Name}}", main], cwd=cwd, env=self.env)
        except BuildError as first:
            if _tool_missing(first):
                raise
            for alternate in alternates:
                try:
                    return _run(["go", "list", "-f", "{{.Name}}", alternate], cwd=cwd, env=self.env)
                except BuildError:
                    continue
            raise first

    def package_name(self, imp_path: str, src_path: Path, pkg_name: str = "") -> str:
        logger.debug("package_name: imp: %s, src: %s, pkg: %s", imp_path, src_path, pkg_name)

        # The magic "C" package has no name.
        if imp_path == "C":
            return ""

        name = self._names.get(imp_path)
        if name is not None:
            return name

        cwd: Path | None = None
        cache = True
        lookup = imp_path

        if imp_path.startswith("./"):
            cwd = Path(src_path)
            cache = False
        if imp_path.startswith("_/"):
            cwd = Path(imp_path[1:])
            lookup = "."

        alternates: list[str] = []
        if cwd is None and pkg_name:
            alternates = [f"{v}/{lookup}" for v in vendor_paths(pkg_name)]

        try:
            name = self._lookup_name(lookup, alternates, cwd)
        except BuildError as e:
            # No toolchain is not a resolution problem.
            if _tool_missing(e):
                raise
            raise ResolutionError(f"Failed to get name for '{imp_path}': {e}") from e

        if cache:
            self._names[imp_path] = name
        return name
