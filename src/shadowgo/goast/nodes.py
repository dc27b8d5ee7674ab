"""Go expression nodes as decoded from the scanner's JSON output.

Each Go AST expression shape the renderer understands has one frozen
dataclass here. Shapes the scanner does not know how to encode arrive as
`Unsupported`, which the renderer refuses to render.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..errors import UnsupportedConstructError


@dataclass(frozen=True)
class Field:
    names: list[str]
    type: "Expr"
    tag: str | None = None


@dataclass(frozen=True)
class BasicLit:
    value: str


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class CompositeLit:
    type: Optional["Expr"]
    elts: list["Expr"]


@dataclass(frozen=True)
class CallExpr:
    fun: "Expr"
    args: list["Expr"]
    ellipsis: bool = False


@dataclass(frozen=True)
class Ellipsis:
    elt: Optional["Expr"]


@dataclass(frozen=True)
class ChanType:
    dir: str  # "both", "send" or "recv"
    value: "Expr"


@dataclass(frozen=True)
class KeyValueExpr:
    key: "Expr"
    value: "Expr"


@dataclass(frozen=True)
class ParenExpr:
    x: "Expr"


@dataclass(frozen=True)
class FuncType:
    params: list[Field] = field(default_factory=list)
    results: list[Field] | None = None
    type_params: list[Field] | None = None


@dataclass(frozen=True)
class FuncLit:
    type: FuncType
    lbrace: int
    rbrace: int


@dataclass(frozen=True)
class StarExpr:
    x: "Expr"


@dataclass(frozen=True)
class SelectorExpr:
    x: "Expr"
    sel: str


@dataclass(frozen=True)
class StructType:
    fields: list[Field]


@dataclass(frozen=True)
class ArrayType:
    len: Optional["Expr"]
    elt: "Expr"


@dataclass(frozen=True)
class MapType:
    key: "Expr"
    value: "Expr"


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    x: "Expr"


@dataclass(frozen=True)
class BinaryExpr:
    x: "Expr"
    op: str
    y: "Expr"


@dataclass(frozen=True)
class TypeAssertExpr:
    x: "Expr"
    type: Optional["Expr"]


@dataclass(frozen=True)
class IndexExpr:
    x: "Expr"
    index: "Expr"


@dataclass(frozen=True)
class IndexListExpr:
    x: "Expr"
    indices: list["Expr"]


@dataclass(frozen=True)
class SliceExpr:
    x: "Expr"
    low: Optional["Expr"] = None
    high: Optional["Expr"] = None
    max: Optional["Expr"] = None
    slice3: bool = False


@dataclass(frozen=True)
class InterfaceType:
    methods: list[Field]


@dataclass(frozen=True)
class Unsupported:
    go_type: str


Expr = Union[
    BasicLit,
    Ident,
    CompositeLit,
    CallExpr,
    Ellipsis,
    ChanType,
    KeyValueExpr,
    ParenExpr,
    FuncLit,
    StarExpr,
    SelectorExpr,
    StructType,
    ArrayType,
    MapType,
    UnaryExpr,
    BinaryExpr,
    TypeAssertExpr,
    IndexExpr,
    IndexListExpr,
    SliceExpr,
    InterfaceType,
    FuncType,
    Unsupported,
]


def fields_from_json(items: Any) -> list[Field] | None:
    if items is None:
        return None
    if not isinstance(items, list):
        raise UnsupportedConstructError(f"invalid field list: {items!r}")
    out: list[Field] = []
    for item in items:
        if not isinstance(item, dict):
            raise UnsupportedConstructError(f"invalid field: {item!r}")
        names = item.get("names") or []
        tag = item.get("tag")
        out.append(
            Field(
                names=[str(n) for n in names],
                type=node_from_json(item.get("type")),
                tag=tag if isinstance(tag, str) else None,
            )
        )
    return out


def _opt(obj: dict[str, Any], key: str) -> Expr | None:
    v = obj.get(key)
    if v is None:
        return None
    return node_from_json(v)


def _list(obj: dict[str, Any], key: str) -> list[Expr]:
    return [node_from_json(v) for v in obj.get(key) or []]


def node_from_json(obj: Any) -> Expr:
    """Decode one tagged JSON node (`{"kind": ..., ...}`) into an Expr."""
    if not isinstance(obj, dict) or not isinstance(obj.get("kind"), str):
        raise UnsupportedConstructError(f"invalid expression node: {obj!r}")

    kind = obj["kind"]
    if kind == "BasicLit":
        return BasicLit(value=str(obj["value"]))
    if kind == "Ident":
        return Ident(name=str(obj["name"]))
    if kind == "CompositeLit":
        return CompositeLit(type=_opt(obj, "type"), elts=_list(obj, "elts"))
    if kind == "CallExpr":
        return CallExpr(
            fun=node_from_json(obj["fun"]),
            args=_list(obj, "args"),
            ellipsis=bool(obj.get("ellipsis", False)),
        )
    if kind == "Ellipsis":
        return Ellipsis(elt=_opt(obj, "elt"))
    if kind == "ChanType":
        direction = obj.get("dir", "both")
        if direction not in ("both", "send", "recv"):
            raise UnsupportedConstructError(f"invalid channel direction: {direction!r}")
        return ChanType(dir=direction, value=node_from_json(obj["value"]))
    if kind == "KeyValueExpr":
        return KeyValueExpr(key=node_from_json(obj["key"]), value=node_from_json(obj["value"]))
    if kind == "ParenExpr":
        return ParenExpr(x=node_from_json(obj["x"]))
    if kind == "FuncType":
        return FuncType(
            params=fields_from_json(obj.get("params")) or [],
            results=fields_from_json(obj.get("results")),
            type_params=fields_from_json(obj.get("type_params")),
        )
    if kind == "FuncLit":
        ft = node_from_json(obj["type"])
        if not isinstance(ft, FuncType):
            raise UnsupportedConstructError("function literal without a function type")
        lbrace, rbrace = obj["body"]
        return FuncLit(type=ft, lbrace=int(lbrace), rbrace=int(rbrace))
    if kind == "StarExpr":
        return StarExpr(x=node_from_json(obj["x"]))
    if kind == "SelectorExpr":
        return SelectorExpr(x=node_from_json(obj["x"]), sel=str(obj["sel"]))
    if kind == "StructType":
        return StructType(fields=fields_from_json(obj.get("fields")) or [])
    if kind == "ArrayType":
        return ArrayType(len=_opt(obj, "len"), elt=node_from_json(obj["elt"]))
    if kind == "MapType":
        return MapType(key=node_from_json(obj["key"]), value=node_from_json(obj["value"]))
    if kind == "UnaryExpr":
        return UnaryExpr(op=str(obj["op"]), x=node_from_json(obj["x"]))
    if kind == "BinaryExpr":
        return BinaryExpr(x=node_from_json(obj["x"]), op=str(obj["op"]), y=node_from_json(obj["y"]))
    if kind == "TypeAssertExpr":
        return TypeAssertExpr(x=node_from_json(obj["x"]), type=_opt(obj, "type"))
    if kind == "IndexExpr":
        return IndexExpr(x=node_from_json(obj["x"]), index=node_from_json(obj["index"]))
    if kind == "IndexListExpr":
        return IndexListExpr(x=node_from_json(obj["x"]), indices=_list(obj, "indices"))
    if kind == "SliceExpr":
        return SliceExpr(
            x=node_from_json(obj["x"]),
            low=_opt(obj, "low"),
            high=_opt(obj, "high"),
            max=_opt(obj, "max"),
            slice3=bool(obj.get("slice3", False)),
        )
    if kind == "InterfaceType":
        return InterfaceType(methods=fields_from_json(obj.get("methods")) or [])
    if kind == "Unsupported":
        return Unsupported(go_type=str(obj.get("go_type", "?")))

    return Unsupported(go_type=kind)
