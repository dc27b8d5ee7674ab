"""Writers for the generated forms of one function or method.

For an exported function `Name` the shadow package carries:

- the real form `_real_Name` with the original body,
- optionally a stub form in place of the real one for bodyless functions,
- a dispatcher `Name` that forwards to the real form unless mocking is
  enabled for it, in which case the call goes to the gomock controller,
- a recorder method used to register expected calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TextIO

from ..errors import ShadowGoError
from ..goast import nodes as n
from ..goast.render import ExprRenderer
from ..goast.scope import scope_fields, scope_name
from .symbols import FuncDecl

REAL_PREFIX = "_real_"
EXPORT_DIRECTIVE = "//export "
LINKNAME_DIRECTIVE = "//go:linkname "


def is_exported(name: str) -> bool:
    return name[:1].isupper()


@dataclass(frozen=True)
class Field:
    names: list[str]
    expr: str

    @property
    def count(self) -> int:
        return len(self.names) or 1


def _join_fields(fields: list[Field]) -> str:
    parts: list[str] = []
    for f in fields:
        parts.append(f"{', '.join(f.names)} {f.expr}" if f.names else f.expr)
    return ", ".join(parts)


@dataclass
class FuncInfo:
    name: str
    params: list[Field] = field(default_factory=list)
    results: list[Field] = field(default_factory=list)
    recv_name: str = ""
    recv_expr: str = ""
    export: str = ""
    variadic: bool = False
    real_disabled: bool = False
    type_params: str = ""
    body: bytes | None = None
    directives: list[str] = field(default_factory=list)

    def add_scope(self, scope: str) -> "FuncInfo":
        return replace(
            self,
            recv_expr=scope_name(self.recv_expr, scope) if self.recv_expr else "",
            params=scope_fields(self.params, scope),
            results=scope_fields(self.results, scope),
        )

    @property
    def is_method(self) -> bool:
        return self.recv_expr != ""

    @property
    def is_generic(self) -> bool:
        return bool(self.type_params) or "[" in self.recv_expr

    @property
    def recv_base(self) -> str:
        return self.recv_expr[1:] if self.recv_expr.startswith("*") else self.recv_expr

    @property
    def scoped_name(self) -> str:
        """Name used in the enabled/disabled toggle sets."""
        if self.is_method:
            return f"{self.recv_base}.{self.name}"
        return self.name

    @property
    def real_name(self) -> str:
        if is_exported(self.name) and not self.is_generic:
            return REAL_PREFIX + self.name
        return self.name

    def count_params(self) -> int:
        return sum(p.count for p in self.params)

    def ret_types(self) -> list[str]:
        out: list[str] = []
        for r in self.results:
            out.extend([r.expr] * r.count)
        return out

    def _results_sig(self) -> str:
        if not self.results:
            return ""
        inner = _join_fields(self.results)
        if len(self.results) > 1 or any(r.names for r in self.results):
            return f" ({inner})"
        return f" {inner}"

    def _header(self) -> str:
        s = "func "
        if self.is_method and self.recv_name:
            s += f"({self.recv_name} {self.recv_expr}) "
        elif self.is_method:
            s += f"({self.recv_expr}) "
        s += f"{self.real_name}{self.type_params}({_join_fields(self.params)}){self._results_sig()}"
        return s

    def _directive(self, line: str) -> str:
        # A linkname naming this function must follow it to its new name.
        if line.startswith(LINKNAME_DIRECTIVE):
            parts = line.split()
            if len(parts) >= 2 and parts[1] == self.name:
                parts[1] = self.real_name
                return " ".join(parts)
        return line

    def write_real(self, out: TextIO) -> None:
        for line in self.directives:
            out.write(self._directive(line) + "\n")
        if self.export:
            out.write(f"//export {self.export}\n")
        out.write(self._header())
        if self.body is not None:
            out.write(" ")
            out.write(self.body.decode("utf-8"))
        out.write("\n")

    def write_stub(self, out: TextIO) -> None:
        out.write(self._header() + " {\n")
        out.write('\tpanic("This is only a stub!")\n')
        out.write("}\n\n")

    def _mock_params(self) -> tuple[str, int]:
        parts: list[str] = []
        p = 0
        for param in self.params:
            names = []
            for _ in range(param.count):
                names.append(f"p{p}")
                p += 1
            parts.append(f"{', '.join(names)} {param.expr}")
        return ", ".join(parts), p

    def _call_args(self, args: int) -> str:
        s = ", ".join(f"p{i}" for i in range(args))
        if self.variadic and args > 0:
            s += "..."
        return s

    def write_mock(self, out: TextIO, *, ctrl: str = "_ctrl", pkg_mock: str = "_pkgMock") -> None:
        params, args = self._mock_params()
        returns = self.ret_types()
        ret_sig = ""
        if len(returns) == 1:
            ret_sig = f" {returns[0]}"
        elif returns:
            ret_sig = f" ({', '.join(returns)})"

        if self.is_method:
            out.write(f"func (_m {self.recv_expr}) {self.name}({params}){ret_sig} {{\n")
        else:
            # Package-level forwarder onto the package mock singleton.
            out.write(f"func {self.name}({params}){ret_sig} {{\n")
            out.write("\t" + ("return " if returns else ""))
            out.write(f"{pkg_mock}.{self.name}({self._call_args(args)})\n")
            out.write("}\n")
            out.write(f"func (_m *_packageMock) {self.name}({params}){ret_sig} {{\n")

        if not self.real_disabled:
            out.write(f'\tif _toggles.useReal("{self.scoped_name}") {{\n')
            out.write("\t\t" + ("return " if returns else ""))
            if self.is_method:
                out.write("_m.")
            out.write(f"{self.real_name}({self._call_args(args)})\n")
            if not returns:
                out.write("\t\treturn\n")
            out.write("\t}\n")

        assign = "ret := " if returns else ""
        if self.variadic:
            fixed = ", ".join(f"p{i}" for i in range(args - 1))
            out.write(f"\targs := []interface{{}}{{{fixed}}}\n")
            out.write(f"\tfor _, v := range p{args - 1} {{\n")
            out.write("\t\targs = append(args, v)\n")
            out.write("\t}\n")
            out.write(f'\t{assign}{ctrl}.Call(_m, "{self.name}", args...)\n')
        else:
            call_args = "".join(f", p{i}" for i in range(args))
            out.write(f'\t{assign}{ctrl}.Call(_m, "{self.name}"{call_args})\n')

        for i, ret in enumerate(returns):
            out.write(f"\tret{i}, _ := ret[{i}].({ret})\n")
        if returns:
            out.write("\treturn " + ", ".join(f"ret{i}" for i in range(len(returns))) + "\n")
        out.write("}\n")

    def write_recorder(self, out: TextIO, recorder: str, *, ctrl: str = "_ctrl") -> None:
        args = self.count_params()
        params = ""
        if args > 0:
            if self.variadic:
                fixed = ", ".join(f"p{i}" for i in range(args - 1))
                if fixed:
                    params = f"{fixed} interface{{}}, "
                params += f"p{args - 1} ...interface{{}}"
            else:
                params = ", ".join(f"p{i}" for i in range(args)) + " interface{}"
        out.write(f"func (_mr *{recorder}) {self.name}({params}) *gomock.Call {{\n")
        if self.variadic and args > 0:
            fixed = ", ".join(f"p{i}" for i in range(args - 1))
            out.write(f"\targs := append([]interface{{}}{{{fixed}}}, p{args - 1}...)\n")
            out.write(f'\treturn {ctrl}.RecordCall(_mr.mock, "{self.name}", args...)\n')
        else:
            call_args = "".join(f", p{i}" for i in range(args))
            out.write(f'\treturn {ctrl}.RecordCall(_mr.mock, "{self.name}"{call_args})\n')
        out.write("}\n")


def render_fields(fields: list[n.Field] | None, renderer: ExprRenderer) -> list[Field]:
    return [Field(names=list(f.names), expr=renderer.render(f.type)) for f in fields or []]


def method_info(name: str, ft: n.FuncType, renderer: ExprRenderer) -> FuncInfo:
    """FuncInfo for a bare signature, e.g. an interface method."""
    return FuncInfo(
        name=name,
        params=render_fields(ft.params, renderer),
        results=render_fields(ft.results, renderer),
        variadic=bool(ft.params) and isinstance(ft.params[-1].type, n.Ellipsis),
    )


def func_info(decl: FuncDecl, renderer: ExprRenderer) -> FuncInfo:
    fi = method_info(decl.name, decl.type, renderer)
    for line in decl.directives:
        if line.startswith(EXPORT_DIRECTIVE):
            fi.export = line[len(EXPORT_DIRECTIVE) :].strip()
        else:
            fi.directives.append(line)
    if decl.type.type_params:
        fi.type_params = f"[{renderer.render_params(decl.type.type_params)}]"
    if decl.recv is not None:
        if decl.recv.names:
            fi.recv_name = decl.recv.names[0]
        fi.recv_expr = renderer.render(decl.recv.type)
    if decl.body is not None:
        lbrace, rbrace = decl.body
        if rbrace >= len(renderer.source) or rbrace < lbrace:
            raise ShadowGoError(f"body of {decl.name} [{lbrace}:{rbrace}] is outside the source")
        fi.body = renderer.source[lbrace : rbrace + 1]
    return fi
