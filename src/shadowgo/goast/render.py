from __future__ import annotations

from typing import Callable

from ..errors import ShadowGoError, UnsupportedConstructError
from . import nodes as n


class ExprRenderer:
    """Render Go expression nodes back into canonical source text.

    `source` is the raw bytes of the file the nodes were scanned from; it is
    needed to copy function literal bodies verbatim.

    While scope collection is active (`collect_scopes()` .. `get_scopes()`),
    the left-hand side of every selector expression is recorded so callers can
    work out which imports a rendered expression depends on.
    """

    def __init__(self, source: bytes = b""):
        self.source = source
        self._scopes: set[str] | None = None
        self._dispatch: dict[type, Callable[..., str]] = {
            n.BasicLit: self._basic_lit,
            n.Ident: self._ident,
            n.CompositeLit: self._composite_lit,
            n.CallExpr: self._call,
            n.Ellipsis: self._ellipsis,
            n.ChanType: self._chan,
            n.KeyValueExpr: self._key_value,
            n.ParenExpr: self._paren,
            n.FuncLit: self._func_lit,
            n.StarExpr: self._star,
            n.SelectorExpr: self._selector,
            n.StructType: self._struct,
            n.ArrayType: self._array,
            n.MapType: self._map,
            n.UnaryExpr: self._unary,
            n.BinaryExpr: self._binary,
            n.TypeAssertExpr: self._type_assert,
            n.IndexExpr: self._index,
            n.IndexListExpr: self._index_list,
            n.SliceExpr: self._slice,
            n.InterfaceType: self._interface,
            n.FuncType: self._func_type,
        }

    def render(self, expr: n.Expr) -> str:
        fn = self._dispatch.get(type(expr))
        if fn is None:
            if isinstance(expr, n.Unsupported):
                raise UnsupportedConstructError(f"can't convert {expr.go_type} to string")
            raise UnsupportedConstructError(f"can't convert {type(expr).__name__} to string")
        return fn(expr)

    # Scope tracking.

    def collect_scopes(self) -> None:
        self._scopes = set()

    def register_scope(self, scope: str) -> None:
        if self._scopes is not None:
            self._scopes.add(scope)

    def get_scopes(self) -> list[str]:
        scopes = sorted(self._scopes or ())
        self._scopes = None
        return scopes

    # Field lists.

    def render_params(self, fields: list[n.Field]) -> str:
        parts: list[str] = []
        for f in fields:
            t = self.render(f.type)
            parts.append(f"{', '.join(f.names)} {t}" if f.names else t)
        return ", ".join(parts)

    def render_results(self, fields: list[n.Field] | None) -> str:
        """Render a result list, including the leading space when non-empty."""
        if not fields:
            return ""
        inner = self.render_params(fields)
        if len(fields) > 1 or any(f.names for f in fields):
            return f" ({inner})"
        return f" {inner}"

    # Node kinds.

    def _basic_lit(self, v: n.BasicLit) -> str:
        return v.value

    def _ident(self, v: n.Ident) -> str:
        return v.name

    def _composite_lit(self, v: n.CompositeLit) -> str:
        s = self.render(v.type) if v.type is not None else ""
        return s + "{" + ", ".join(self.render(e) for e in v.elts) + "}"

    def _call(self, v: n.CallExpr) -> str:
        args = ", ".join(self.render(a) for a in v.args)
        if v.ellipsis:
            args += "..."
        return f"{self.render(v.fun)}({args})"

    def _ellipsis(self, v: n.Ellipsis) -> str:
        if v.elt is None:
            return "..."
        return "..." + self.render(v.elt)

    def _chan(self, v: n.ChanType) -> str:
        s = "<-chan" if v.dir == "recv" else "chan"
        if v.dir == "send":
            s += "<-"
        return f"{s} {self.render(v.value)}"

    def _key_value(self, v: n.KeyValueExpr) -> str:
        return f"{self.render(v.key)}: {self.render(v.value)}"

    def _paren(self, v: n.ParenExpr) -> str:
        return f"({self.render(v.x)})"

    def _func_lit(self, v: n.FuncLit) -> str:
        if v.lbrace < 0 or v.rbrace >= len(self.source) or v.rbrace < v.lbrace:
            raise ShadowGoError(
                f"function literal body [{v.lbrace}:{v.rbrace}] is outside the source ({len(self.source)} bytes)"
            )
        body = self.source[v.lbrace : v.rbrace + 1].decode("utf-8")
        return f"{self.render(v.type)} {body}"

    def _star(self, v: n.StarExpr) -> str:
        return "*" + self.render(v.x)

    def _selector(self, v: n.SelectorExpr) -> str:
        scope = self.render(v.x)
        self.register_scope(scope)
        return f"{scope}.{v.sel}"

    def _struct(self, v: n.StructType) -> str:
        if not v.fields:
            return "struct{}"
        lines = ["struct {"]
        for f in v.fields:
            s = "\t"
            if f.names:
                s += ", ".join(f.names) + " "
            s += self.render(f.type)
            if f.tag is not None:
                s += " " + f.tag
            lines.append(s)
        lines.append("}")
        return "\n".join(lines)

    def _array(self, v: n.ArrayType) -> str:
        if v.len is None:
            return "[]" + self.render(v.elt)
        return f"[{self.render(v.len)}]{self.render(v.elt)}"

    def _map(self, v: n.MapType) -> str:
        return f"map[{self.render(v.key)}]{self.render(v.value)}"

    def _unary(self, v: n.UnaryExpr) -> str:
        return v.op + self.render(v.x)

    def _binary(self, v: n.BinaryExpr) -> str:
        return f"{self.render(v.x)} {v.op} {self.render(v.y)}"

    def _type_assert(self, v: n.TypeAssertExpr) -> str:
        t = "type" if v.type is None else self.render(v.type)
        return f"{self.render(v.x)}.({t})"

    def _index(self, v: n.IndexExpr) -> str:
        return f"{self.render(v.x)}[{self.render(v.index)}]"

    def _index_list(self, v: n.IndexListExpr) -> str:
        return f"{self.render(v.x)}[{', '.join(self.render(i) for i in v.indices)}]"

    def _slice(self, v: n.SliceExpr) -> str:
        s = self.render(v.x) + "["
        if v.low is not None:
            s += self.render(v.low)
        s += ":"
        if v.high is not None:
            s += self.render(v.high)
        if v.slice3:
            s += ":"
            if v.max is not None:
                s += self.render(v.max)
        return s + "]"

    def _interface(self, v: n.InterfaceType) -> str:
        if not v.methods:
            return "interface{}"
        lines = ["interface {"]
        for f in v.methods:
            if isinstance(f.type, n.FuncType):
                if not f.names:
                    raise UnsupportedConstructError("interface method without a name")
                sig = self.render_params(f.type.params)
                lines.append(f"\t{f.names[0]}({sig}){self.render_results(f.type.results)}")
            elif isinstance(f.type, (n.Ident, n.SelectorExpr)):
                # Embedded interface.
                lines.append("\t" + self.render(f.type))
            else:
                raise UnsupportedConstructError(
                    f"don't expect {type(f.type).__name__} in interface"
                )
        lines.append("}")
        return "\n".join(lines)

    def _func_type(self, v: n.FuncType) -> str:
        if v.type_params:
            raise UnsupportedConstructError("generic function types are not supported")
        return f"func({self.render_params(v.params)}){self.render_results(v.results)}"
