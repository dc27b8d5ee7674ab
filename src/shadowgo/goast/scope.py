"""Scope qualification of rendered type expressions.

When an interface or method signature is moved out of its package into a
generated one, bare references to sibling types (`Foo`) must become
`pkg.Foo` while predeclared and already-qualified names stay as they are.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..builder.funcs import Field

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ARRAY_RE = re.compile(r"^\[([^\[\]]+)\](.+)$")

PREDECLARED_TYPES = frozenset(
    {
        "int", "int8", "int16", "int32", "int64",
        "uint", "uint8", "uint16", "uint32", "uint64",
        "rune", "byte", "uintptr", "float32", "float64",
        "string", "bool", "error", "complex64", "complex128",
        "any",
    }
)

CHANNEL_PREFIXES = ("chan", "<-chan", "chan<-")


def is_local_expr(expr: str) -> bool:
    if expr in PREDECLARED_TYPES:
        return False
    if expr.startswith("struct{") or expr.startswith("interface{"):
        return False
    return _IDENT_RE.match(expr) is not None


def split_channel(expr: str) -> tuple[str, str]:
    """Split `chan T` / `<-chan T` / `chan<- T` into (prefix, T); ("", "") otherwise."""
    if " " not in expr:
        return "", ""
    prefix, sub = expr.split(" ", 1)
    if prefix in CHANNEL_PREFIXES:
        return prefix, sub
    return "", ""


def _split_map(expr: str) -> tuple[str, str] | None:
    # map[K]V with balanced brackets in K.
    if not expr.startswith("map["):
        return None
    depth = 0
    for i in range(3, len(expr)):
        ch = expr[i]
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return expr[4:i], expr[i + 1 :]
    return None


def scope_name(name: str, scope: str) -> str:
    if name.startswith("[]"):
        return "[]" + scope_name(name[2:], scope)
    channel, sub = split_channel(name)
    if channel:
        return f"{channel} {scope_name(sub, scope)}"
    if name.startswith("*"):
        return "*" + scope_name(name[1:], scope)
    if name.startswith("..."):
        return "..." + scope_name(name[3:], scope)
    m = _ARRAY_RE.match(name)
    if m is not None:
        return f"[{m.group(1)}]{scope_name(m.group(2), scope)}"
    kv = _split_map(name)
    if kv is not None:
        return f"map[{scope_name(kv[0], scope)}]{scope_name(kv[1], scope)}"
    if is_local_expr(name):
        return f"{scope}.{name}"
    return name


def scope_fields(fields: list["Field"], scope: str) -> list["Field"]:
    return [replace(f, expr=scope_name(f.expr, scope)) for f in fields]
