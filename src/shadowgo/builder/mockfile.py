from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from ..config import MockConfig
from ..errors import ContextError, ResolutionError
from ..goast import nodes as n
from ..goast.render import ExprRenderer
from .funcs import func_info, is_exported
from .interfaces import InterfaceRegistry
from .marks import Mark, mark_import
from .resolve import PackageResolver
from .scaffold import ReceiverRegistry, write_package_scaffold
from .symbols import (
    ConstDecl,
    FuncDecl,
    ImportDecl,
    ImportSet,
    ImportSpec,
    SourceFile,
    TypeDecl,
    TypeSpec,
    ValueSpec,
    VarDecl,
)

logger = logging.getLogger(__name__)


def _write_doc(out: TextIO, doc: str, indent: str = "") -> None:
    if not doc:
        return
    for line in doc.rstrip("\n").split("\n"):
        out.write(f"{indent}// {line}".rstrip() + "\n")


def _write_directives(out: TextIO, directives: list[str]) -> None:
    for line in directives:
        out.write(line + "\n")


class MockFileWriter:
    """Writes the shadow version of each file of one package.

    One writer is used for all files of a package: it accumulates the
    declared types, the receivers that got mocked methods, the bodyless
    exported functions and the numbering of renamed `init` functions, which
    the package scaffold (`pkg()`) needs afterwards.
    """

    def __init__(
        self,
        *,
        pkg_name: str,
        src_path: Path,
        mock_by_default: bool,
        cfg: MockConfig,
        resolver: PackageResolver,
        if_info: InterfaceRegistry,
    ):
        self.pkg_name = pkg_name
        self.src_path = Path(src_path)
        self.mock_by_default = mock_by_default
        self.cfg = cfg
        self.resolver = resolver
        self.if_info = if_info
        self.types: dict[str, n.Expr] = {}
        self.receivers = ReceiverRegistry()
        self.ext_functions: list[str] = []
        self.init_count = 0

    def _import_names(self, f: SourceFile) -> dict[ImportSpec, str] | None:
        """Local name of every import of `f`, or None if `f` should be skipped."""
        names: dict[ImportSpec, str] = {}
        for spec in f.imports:
            if spec.clean_path == self.cfg.gomock_import:
                continue
            if spec.name:
                names[spec] = spec.name
                continue
            try:
                names[spec] = self.resolver.package_name(spec.clean_path, self.src_path, self.pkg_name)
            except ResolutionError as e:
                if f.build_tags:
                    # The file may never be compiled in this configuration.
                    logger.info("skipping %s: %s", f.name, e)
                    return None
                raise ContextError("getPackageName", e) from e
        return names

    def file(self, out: TextIO, f: SourceFile, source: bytes) -> ImportSet | None:
        """Write the shadow version of `f` and return the imports it needs.

        Returns None, writing nothing, when the file has build constraints
        and one of its imports cannot be resolved.
        """
        logger.debug("mocking %s", self.src_path / f.name)

        names = self._import_names(f)
        if names is None:
            return None

        renderer = ExprRenderer(source)
        needed = ImportSet()
        needed.set(self.cfg.gomock_import)
        imports: dict[str, str] = {}
        inits: list[str] = []

        for line in f.build_tags:
            out.write(line + "\n")
        if f.build_tags:
            # Build constraints must not touch the package clause.
            out.write("\n")
        for line in f.doc:
            out.write(line + "\n")

        out.write(f"package {f.package}\n\n")
        out.write(f'import "{self.cfg.gomock_import}"\n\n')

        for decl in f.decls:
            if isinstance(decl, ImportDecl):
                self._imports(out, decl, names, imports, needed)
            elif isinstance(decl, TypeDecl):
                _write_doc(out, decl.doc)
                _write_directives(out, decl.directives)
                self._types(out, decl.specs, imports, renderer)
            elif isinstance(decl, VarDecl):
                _write_doc(out, decl.doc)
                _write_directives(out, decl.directives)
                self._values(out, "var", decl.specs, renderer, single=bool(decl.directives))
            elif isinstance(decl, ConstDecl):
                _write_doc(out, decl.doc)
                _write_directives(out, decl.directives)
                self._values(out, "const", decl.specs, renderer, single=bool(decl.directives))
            else:
                self._func(out, decl, renderer, inits)

        out.write("\n// Make sure gomock is used\n")
        out.write("var _ = gomock.Any()\n")
        out.write("\n// Make sure inits are called\n")
        out.write("func init() {\n")
        out.write(f"\tcallInits({', '.join(inits)})\n")
        out.write("}\n")

        for path in imports.values():
            needed.set(path)
        return needed

    def _import_line(self, spec: ImportSpec, names: dict[ImportSpec, str], needed: ImportSet) -> str:
        mark, path = spec.mark, spec.clean_path
        if mark not in (Mark.MOCK, Mark.TEST, Mark.REPLACE) and path.endswith("/internal") and self.cfg.mock_prototypes:
            mark = Mark.MOCK
        if path != "C":
            needed.set(path, mark)
        name = names.get(spec, "")
        quoted = f'"{mark_import(path, mark)}"'
        return f"{name} {quoted}" if name else quoted

    def _imports(
        self,
        out: TextIO,
        decl: ImportDecl,
        names: dict[ImportSpec, str],
        imports: dict[str, str],
        needed: ImportSet,
    ) -> None:
        specs = [s for s in decl.specs if s.clean_path != self.cfg.gomock_import]
        if not specs:
            return
        for spec in specs:
            name = names.get(spec, "")
            if spec.clean_path == "C":
                imports["C"] = "C"
            elif name not in ("", "_", "."):
                imports[name] = spec.clean_path

        _write_doc(out, decl.doc)
        if len(decl.specs) == 1:
            _write_doc(out, specs[0].doc)
            out.write(f"import {self._import_line(specs[0], names, needed)}\n\n")
            return

        out.write("import (\n")
        for spec in specs:
            _write_doc(out, spec.doc, "\t")
            out.write(f"\t{self._import_line(spec, names, needed)}\n")
        out.write(")\n\n")

    def _type_spec(self, spec: TypeSpec, renderer: ExprRenderer) -> str:
        tparams = f"[{renderer.render_params(spec.type_params)}]" if spec.type_params else ""
        assign = " = " if spec.alias else " "
        return f"{spec.name}{tparams}{assign}{renderer.render(spec.type)}"

    def _types(
        self, out: TextIO, specs: list[TypeSpec], imports: dict[str, str], renderer: ExprRenderer
    ) -> None:
        # Private types stay: exported declarations may use them.
        if len(specs) == 1:
            out.write(f"type {self._type_spec(specs[0], renderer)}\n\n")
        else:
            out.write("type (\n")
            for spec in specs:
                out.write(f"\t{self._type_spec(spec, renderer)}\n")
            out.write(")\n\n")
        for spec in specs:
            self.types[spec.name] = spec.type
            self.if_info.add_type(spec, imports, renderer)

    def _value_spec(self, spec: ValueSpec, renderer: ExprRenderer) -> str:
        line = ", ".join(spec.names)
        if spec.type is not None:
            line += " " + renderer.render(spec.type)
        if spec.values:
            line += " = " + ", ".join(renderer.render(v) for v in spec.values)
        return line

    def _values(
        self,
        out: TextIO,
        keyword: str,
        specs: list[ValueSpec],
        renderer: ExprRenderer,
        *,
        single: bool = False,
    ) -> None:
        if single and len(specs) == 1:
            # Directives such as go:embed must sit right above the spec.
            out.write(f"{keyword} {self._value_spec(specs[0], renderer)}\n\n")
            return
        out.write(f"{keyword} (\n")
        for spec in specs:
            out.write(f"\t{self._value_spec(spec, renderer)}\n")
        out.write(")\n\n")

    def _func(self, out: TextIO, decl: FuncDecl, renderer: ExprRenderer, inits: list[str]) -> None:
        fi = func_info(decl, renderer)

        if fi.name == "init" and not fi.is_method:
            fi.name = f"_real_init_{self.init_count}"
            self.init_count += 1
            fi.write_real(out)
            if not self.cfg.ignore_inits:
                inits.append(fi.name)
        elif fi.body is None and self.cfg.mock_prototypes:
            fi.write_stub(out)
        else:
            fi.write_real(out)

        if is_exported(decl.name):
            if fi.is_generic:
                logger.info("not mocking %s: generic functions are not supported", fi.scoped_name)
            else:
                if fi.body is None:
                    self.ext_functions.append(decl.name)
                recorder = "_package_Rec"
                if fi.is_method:
                    recorder = self.receivers.add(fi.recv_expr)
                fi.write_mock(out)
                fi.write_recorder(out, recorder)
        out.write("\n")

    def pkg(self, out: TextIO, name: str) -> None:
        """Write the package scaffold, once every file has been through `file()`."""
        write_package_scaffold(
            out,
            name=name,
            cfg=self.cfg,
            mock_by_default=self.mock_by_default,
            receivers=self.receivers,
            types=self.types,
        )
