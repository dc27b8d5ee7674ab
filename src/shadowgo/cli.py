from __future__ import annotations

import argparse
import importlib.metadata
import logging
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="shadowgo")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log generation steps to stderr.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print shadowgo version.")

    p_gen = sub.add_parser("gen", help="Generate the shadow version of a Go package.")
    p_gen.add_argument("--src", required=True, help="Directory of the Go package to shadow.")
    p_gen.add_argument("--dst", required=True, help="Output directory for the shadow package.")
    p_gen.add_argument("--pkg", required=True, help="Import path of the package.")
    p_gen.add_argument(
        "--mock",
        action="store_true",
        help="Dispatch every function to the controller until told otherwise.",
    )
    p_gen.add_argument(
        "--mock-prototypes",
        action="store_true",
        help="Give bodyless functions a panicking stub and mock `.../internal` imports.",
    )
    p_gen.add_argument("--ignore-inits", action="store_true", help="Do not call the package's init functions.")
    p_gen.add_argument(
        "--match-os-arch",
        action="store_true",
        help="Skip files excluded for the current GOOS/GOARCH.",
    )
    p_gen.add_argument(
        "--no-goimports",
        action="store_true",
        help="Do not run goimports over the generated scaffold and interface files.",
    )
    p_gen.add_argument(
        "--cache-dir",
        default=None,
        help="Reuse shadow packages from this cache root (default: no caching).",
    )

    p_if = sub.add_parser("ifmocks", help="Generate mocks for the interfaces of an external Go package.")
    p_if.add_argument("--pkg", required=True, help="Import path of the package declaring the interfaces.")
    p_if.add_argument("--out", required=True, help="Root under which src/<pkg>/_mocks_/ifmocks.go is written.")
    p_if.add_argument(
        "--no-goimports",
        action="store_true",
        help="Do not run goimports over the generated file.",
    )

    p_key = sub.add_parser("key", help="Print the cache key hash for an operation over some inputs.")
    p_key.add_argument("--op", required=True, help="Operation name.")
    p_key.add_argument("--self-id", default=None, help="Cache scope (default: fingerprint of shadowgo itself).")
    p_key.add_argument("inputs", nargs="+", help="Files, directories or import paths, in a stable order.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("shadowgo"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return

    if args.cmd == "gen":
        from .builder.build import make_pkg, make_pkg_cached
        from .builder.fixup import run_goimports
        from .config import MockConfig

        cfg = MockConfig(
            mock_prototypes=bool(args.mock_prototypes),
            ignore_inits=bool(args.ignore_inits),
            match_os_arch=bool(args.match_os_arch),
        )
        fixup = None if args.no_goimports else run_goimports

        if args.cache_dir:
            from .builder.resolve import GoListResolver
            from .cache.store import Cache

            resolver = GoListResolver()
            cache = Cache(Path(args.cache_dir), resolver=resolver)
            hit = make_pkg_cached(
                cache=cache,
                src_path=Path(args.src),
                dst_path=Path(args.dst),
                pkg_name=args.pkg,
                mock=bool(args.mock),
                cfg=cfg,
                resolver=resolver,
                fixup=fixup,
            )
            print("cached" if hit else "generated")
            return

        result = make_pkg(
            src_path=Path(args.src),
            dst_path=Path(args.dst),
            pkg_name=args.pkg,
            mock=bool(args.mock),
            cfg=cfg,
            fixup=fixup,
        )
        for f in result.files:
            print(str(f))
        return

    if args.cmd == "ifmocks":
        from .builder.build import mock_interfaces
        from .builder.fixup import run_goimports

        out = mock_interfaces(
            tmp_path=Path(args.out),
            pkg_name=args.pkg,
            fixup=None if args.no_goimports else run_goimports,
        )
        print(str(out))
        return

    if args.cmd == "key":
        from .builder.resolve import GoListResolver
        from .cache.store import Cache

        cache = Cache(self_id=args.self_id, resolver=GoListResolver())
        print(cache.new_cache_file_key(args.op, *args.inputs).hash())
        return
