"""Interface types collected while scanning a package, emitted as mocks.

Two artifacts can be produced from a registry:

- `<pkg>_ifmocks.go`, inside the shadow package itself, giving tests a
  `MOCK().New<Name>Mock()` constructor for every interface the package
  declares;
- `ifmocks.go` in a separate `<name>_mocks` package, giving code outside the
  origin package a `NewMock<Name>(ctrl)` for every exported interface.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, TextIO

from ..config import MockConfig
from ..errors import ResolutionError, ShadowGoError
from ..goast import nodes as n
from ..goast.render import ExprRenderer
from ..goast.scope import scope_name
from .funcs import FuncInfo, is_exported, method_info
from .resolve import PackageResolver
from .scan import scan_package
from .symbols import TypeDecl, TypeSpec

logger = logging.getLogger(__name__)


def _refers_unexported(fi: FuncInfo, scope: str) -> bool:
    pattern = re.compile(rf"\b{re.escape(scope)}\.[a-z_]")
    return any(pattern.search(f.expr) for f in fi.params + fi.results)


@dataclass
class InterfaceInfo:
    name: str
    methods: list[FuncInfo] = field(default_factory=list)
    embeds: list[str] = field(default_factory=list)
    imports: dict[str, str] = field(default_factory=dict)  # scope -> import path


class InterfaceRegistry:
    """Interfaces of one package, in declaration order.

    Method signatures are kept unqualified as declared; they are scope
    qualified only when written outside of the origin package.
    """

    def __init__(self, filename: Path | None = None, *, cfg: MockConfig | None = None):
        self.filename = filename
        self.cfg = cfg or MockConfig()
        self.types: dict[str, InterfaceInfo] = {}
        self._emitted = False

    def __len__(self) -> int:
        return len(self.types)

    def __contains__(self, name: str) -> bool:
        return name in self.types

    @property
    def imports(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for info in self.types.values():
            out.update(info.imports)
        return out

    def add_type(self, spec: TypeSpec, imports: Mapping[str, str], renderer: ExprRenderer) -> None:
        if not isinstance(spec.type, n.InterfaceType):
            return
        if spec.alias or spec.type_params:
            logger.debug("not mocking interface %s: aliases and generic interfaces are not supported", spec.name)
            return

        info = InterfaceInfo(name=spec.name)
        renderer.collect_scopes()
        try:
            for f in spec.type.methods:
                if isinstance(f.type, n.FuncType):
                    fi = method_info(f.names[0], f.type, renderer)
                    fi.real_disabled = True
                    info.methods.append(fi)
                else:
                    info.embeds.append(renderer.render(f.type))
        finally:
            scopes = renderer.get_scopes()

        for scope in scopes:
            path = imports.get(scope)
            if path is None:
                raise ResolutionError(f"interface {spec.name} uses {scope!r}, which is not an import")
            info.imports[scope] = path

        self.types[spec.name] = info

    def method_set(self, name: str) -> tuple[list[FuncInfo], list[str]]:
        """Methods of `name` with registered embedded interfaces flattened in.

        Returns the methods and the embedded interfaces that could not be
        flattened.
        """
        methods: dict[str, FuncInfo] = {}
        embeds: list[str] = []
        seen: set[str] = set()

        def visit(iface: str) -> None:
            if iface in seen:
                return
            seen.add(iface)
            info = self.types[iface]
            for fi in info.methods:
                methods.setdefault(fi.name, fi)
            for embed in info.embeds:
                if embed in self.types:
                    visit(embed)
                elif embed not in embeds:
                    embeds.append(embed)

        visit(name)
        return list(methods.values()), embeds

    def _mark_emitted(self) -> None:
        if self._emitted:
            raise ShadowGoError(f"interface mocks for {self.filename} have already been generated")
        self._emitted = True

    def _write_imports(self, out: TextIO, extra: dict[str, str] | None = None) -> None:
        imports = dict(self.imports)
        imports.update(extra or {})
        out.write("import (\n")
        out.write(f'\t"{self.cfg.gomock_import}"\n')
        for alias, path in sorted(imports.items()):
            if path == self.cfg.gomock_import:
                continue
            out.write(f'\t{alias} "{path}"\n')
        out.write(")\n\n")

    def _write_mock(
        self, out: TextIO, mock: str, rec: str, methods: list[FuncInfo], embeds: list[str]
    ) -> None:
        out.write(f"type {mock} struct {{\n")
        for embed in embeds:
            out.write(f"\t{embed}\n")
        out.write("\tctrl *gomock.Controller\n")
        out.write("}\n\n")
        out.write(f"type {rec} struct {{\n")
        out.write(f"\tmock *{mock}\n")
        out.write("}\n\n")
        # A zero-value mock falls back to the package controller.
        out.write(f"func (_m *{mock}) _controller() *gomock.Controller {{\n")
        out.write("\tif _m.ctrl != nil {\n\t\treturn _m.ctrl\n\t}\n")
        out.write("\treturn _ctrl\n")
        out.write("}\n\n")
        out.write(f"func (_m *{mock}) {self.cfg.obj_expect_name}() *{rec} {{\n")
        out.write(f"\treturn &{rec}{{_m}}\n")
        out.write("}\n\n")
        for fi in methods:
            fi = replace(fi, recv_expr=f"*{mock}")
            fi.write_mock(out, ctrl="_m._controller()")
            fi.write_recorder(out, rec, ctrl="_mr.mock._controller()")
            out.write("\n")

    def write_in_package(self, out: TextIO, pkg: str) -> None:
        self._mark_emitted()
        out.write(f"package {pkg}\n\n")
        self._write_imports(out)
        for name in self.types:
            methods, embeds = self.method_set(name)
            mock = f"_{name}_Mock"
            out.write(f"func (_ *_meta) New{name}() *{mock} {{\n")
            out.write(f"\treturn &{mock}{{ctrl: _ctrl}}\n")
            out.write("}\n\n")
            self._write_mock(out, mock, f"_{name}_MockRec", methods, embeds)
        out.write("var _ = gomock.Any()\n")

    def write_external(self, out: TextIO, pkg: str, ext_pkg: str, alias: str) -> None:
        self._mark_emitted()
        out.write(f"package {pkg}\n\n")
        self._write_imports(out, {alias: ext_pkg})
        out.write("var _ctrl *gomock.Controller\n\n")
        out.write("func SetController(controller *gomock.Controller) {\n")
        out.write("\t_ctrl = controller\n")
        out.write("}\n\n")
        for name in self.types:
            methods, embeds = self.method_set(name)
            if not is_exported(name) or not all(is_exported(fi.name) for fi in methods):
                logger.debug("not mocking interface %s outside of %s: not exported", name, alias)
                continue
            methods = [fi.add_scope(alias) for fi in methods]
            embeds = [scope_name(e, alias) for e in embeds]
            if any(_refers_unexported(fi, alias) for fi in methods):
                logger.debug("not mocking interface %s outside of %s: uses unexported types", name, alias)
                continue
            mock = f"Mock{name}"
            out.write(f"func New{mock}(ctrl *gomock.Controller) *{mock} {{\n")
            out.write(f"\treturn &{mock}{{ctrl: ctrl}}\n")
            out.write("}\n\n")
            self._write_mock(out, mock, f"_{mock}_Rec", methods, embeds)
        out.write("var _ = gomock.Any()\n")


class Interfaces(dict[str, InterfaceRegistry]):
    """Interface registries keyed by the package they are written into."""

    def gen_interfaces(self) -> list[Path]:
        written: list[Path] = []
        for pkg, registry in sorted(self.items()):
            if not registry.types:
                continue
            if registry.filename is None:
                raise ShadowGoError(f"no output file for the interfaces of {pkg}")
            buf = io.StringIO()
            registry.write_in_package(buf, pkg)
            registry.filename.write_text(buf.getvalue(), encoding="utf-8")
            written.append(registry.filename)
        return written

    def gen_ext_interface(self, name: str, ext_pkg: str, alias: str) -> Path:
        registry = self.get(name)
        if registry is None:
            raise ShadowGoError(f"no interfaces registered for {name}")
        if registry.filename is None:
            raise ShadowGoError(f"no output file for the interfaces of {name}")
        buf = io.StringIO()
        registry.write_external(buf, name, ext_pkg, alias)
        registry.filename.write_text(buf.getvalue(), encoding="utf-8")
        return registry.filename


def load_interface_info(
    import_path: str,
    *,
    resolver: PackageResolver,
    cfg: MockConfig | None = None,
    env: dict[str, str] | None = None,
) -> InterfaceRegistry:
    """Build a registry from the interfaces an external package declares."""
    path = resolver.lookup_import_path(import_path)
    registry = InterfaceRegistry(cfg=cfg)

    scan = scan_package(src_dir=path, env=env)
    for f in scan.files:
        if not f.matches:
            continue
        imports: dict[str, str] = {}
        for spec in f.imports:
            if spec.name:
                imports[spec.name] = spec.clean_path
            else:
                imports[resolver.package_name(spec.clean_path, path)] = spec.clean_path

        renderer = ExprRenderer((path / f.name).read_bytes())
        for decl in f.decls:
            if isinstance(decl, TypeDecl):
                for spec in decl.specs:
                    registry.add_type(spec, imports, renderer)

    return registry
