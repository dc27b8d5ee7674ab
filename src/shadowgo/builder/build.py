from __future__ import annotations

import io
import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from ..config import MockConfig
from ..errors import ContextError, ShadowGoError
from .interfaces import InterfaceRegistry, Interfaces, load_interface_info
from .marks import Mark, mark_import
from .mockfile import MockFileWriter
from .resolve import GoListResolver, PackageResolver
from .scan import scan_file, scan_package
from .symbols import ImportSet

if TYPE_CHECKING:
    from ..cache.store import Cache

logger = logging.getLogger(__name__)

Fixup = Callable[[Path], None]


@dataclass
class PackageResult:
    imports: ImportSet = field(default_factory=ImportSet)
    ext_functions: list[str] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)


def _write(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ContextError(f"create {path.name}", e) from e


def _fix(fixup: Fixup | None, path: Path) -> None:
    if fixup is None:
        return
    try:
        fixup(path)
    except ShadowGoError as e:
        raise ContextError("fixup", e) from e


def make_pkg(
    *,
    src_path: Path,
    dst_path: Path,
    pkg_name: str,
    mock: bool = False,
    cfg: MockConfig | None = None,
    resolver: PackageResolver | None = None,
    fixup: Fixup | None = None,
    env: dict[str, str] | None = None,
) -> PackageResult:
    """Write the shadow version of the package at `src_path` into `dst_path`.

    `pkg_name` is the import path of the package; `mock` selects whether its
    functions dispatch to the controller until told otherwise.
    """
    cfg = cfg or MockConfig()
    resolver = resolver or GoListResolver(env=env)
    src_path = Path(src_path).resolve()
    dst_path = Path(dst_path)
    dst_path.mkdir(parents=True, exist_ok=True)

    scan = scan_package(src_dir=src_path, env=env)
    result = PackageResult()
    interfaces = Interfaces()

    for name, files in scan.packages().items():
        writer = MockFileWriter(
            pkg_name=pkg_name,
            src_path=src_path,
            mock_by_default=mock,
            cfg=cfg,
            resolver=resolver,
            if_info=InterfaceRegistry(dst_path / f"{name}_ifmocks.go", cfg=cfg),
        )

        processed = 0
        for f in files:
            # Files excluded by name or build constraint for this GOOS/GOARCH.
            if cfg.match_os_arch and not f.matches:
                continue

            try:
                source = (src_path / f.name).read_bytes()
            except OSError as e:
                raise ContextError(f"read {f.name}", e) from e

            buf = io.StringIO()
            try:
                needed = writer.file(buf, f, source)
            except ShadowGoError as e:
                raise ContextError(f"mock {f.name}", e) from e
            if needed is None:
                continue

            processed += 1
            filename = dst_path / f.name
            _write(filename, buf.getvalue())
            result.files.append(filename)
            result.imports.update(needed)

        # Nothing left of this package for the current configuration.
        if processed == 0:
            continue

        scaffold = dst_path / f"{name}_mock.go"
        buf = io.StringIO()
        writer.pkg(buf, name)
        _write(scaffold, buf.getvalue())
        _fix(fixup, scaffold)
        result.files.append(scaffold)

        result.ext_functions.extend(writer.ext_functions)
        interfaces[name] = writer.if_info

    try:
        written = interfaces.gen_interfaces()
    except (OSError, ShadowGoError) as e:
        raise ContextError("gen_interfaces", e) from e
    for path in written:
        _fix(fixup, path)
        result.files.append(path)

    return result


def mock_interfaces(
    *,
    tmp_path: Path,
    pkg_name: str,
    cfg: MockConfig | None = None,
    resolver: PackageResolver | None = None,
    fixup: Fixup | None = None,
    env: dict[str, str] | None = None,
) -> Path:
    """Write mocks for the interfaces of the external package `pkg_name`.

    The output is `<tmp_path>/src/<pkg_name>/_mocks_/ifmocks.go`, in package
    `<name>_mocks`, which imports the test variant of the origin package.
    """
    cfg = cfg or MockConfig()
    resolver = resolver or GoListResolver(env=env)

    dst = Path(tmp_path) / "src" / pkg_name / "_mocks_"
    dst.mkdir(parents=True, exist_ok=True)

    path = resolver.lookup_import_path(pkg_name)
    name = resolver.package_name(pkg_name, path)

    info = load_interface_info(pkg_name, resolver=resolver, cfg=cfg, env=env)
    info.filename = dst / "ifmocks.go"

    target = f"{name}_mocks"
    interfaces = Interfaces({target: info})
    out = interfaces.gen_ext_interface(target, mark_import(pkg_name, Mark.TEST), name)
    _fix(fixup, out)
    return out


def get_mocked_packages(
    path: Path,
    *,
    resolver: PackageResolver | None = None,
    env: dict[str, str] | None = None,
) -> dict[str, str]:
    """Local name to import path for every import of `path` marked mock."""
    resolver = resolver or GoListResolver(env=env)
    path = Path(path)
    f = scan_file(path, env=env)

    out: dict[str, str] = {}
    for spec in f.imports:
        if spec.mark != Mark.MOCK:
            continue
        if spec.name:
            out[spec.name] = spec.path
        else:
            out[resolver.package_name(spec.clean_path, path.parent)] = spec.path
    return out


def make_pkg_cached(
    *,
    cache: Cache,
    src_path: Path,
    dst_path: Path,
    pkg_name: str,
    mock: bool = False,
    cfg: MockConfig | None = None,
    resolver: PackageResolver | None = None,
    fixup: Fixup | None = None,
    env: dict[str, str] | None = None,
) -> bool:
    """make_pkg, reusing a cached shadow package when the sources are unchanged.

    Returns True on a cache hit. Cached entries hold the generated files
    only, so a hit does not report the package's imports.
    """
    cfg = cfg or MockConfig()
    op = "make_pkg:" + ",".join(
        f"{k}={v}"
        for k, v in [
            ("pkg", pkg_name),
            ("mock", mock),
            ("prototypes", cfg.mock_prototypes),
            ("ignore_inits", cfg.ignore_inits),
            ("match_os_arch", cfg.match_os_arch),
            ("names", f"{cfg.mock_name}/{cfg.expect_name}/{cfg.obj_expect_name}"),
            ("gomock", cfg.gomock_import),
            ("fixup", fixup is not None),
        ]
    )
    key = cache.new_cache_file_key(op, str(src_path))

    if cache.restore(key, Path(dst_path)):
        logger.info("reusing cached shadow package for %s", pkg_name)
        return True

    with tempfile.TemporaryDirectory(prefix="shadowgo-gen-") as td:
        out = Path(td) / "pkg"
        make_pkg(
            src_path=src_path,
            dst_path=out,
            pkg_name=pkg_name,
            mock=mock,
            cfg=cfg,
            resolver=resolver,
            fixup=fixup,
            env=env,
        )
        try:
            cache.store(key, out)
        except FileExistsError:
            logger.info("cache entry for %s was stored concurrently", pkg_name)
        Path(dst_path).mkdir(parents=True, exist_ok=True)
        for p in out.iterdir():
            shutil.copy2(p, Path(dst_path) / p.name)
    return False
