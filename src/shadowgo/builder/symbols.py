from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from ..goast.nodes import Expr, Field, FuncType
from .marks import Mark, mark_for


@dataclass(frozen=True)
class ImportSpec:
    path: str
    name: str | None = None
    doc: str = ""
    comment: str = ""

    @property
    def mark(self) -> Mark:
        return mark_for(self.path, self.comment)[0]

    @property
    def clean_path(self) -> str:
        return mark_for(self.path, self.comment)[1]


@dataclass(frozen=True)
class ImportDecl:
    specs: list[ImportSpec]
    doc: str = ""


@dataclass(frozen=True)
class TypeSpec:
    name: str
    type: Expr
    alias: bool = False
    type_params: list[Field] | None = None


@dataclass(frozen=True)
class TypeDecl:
    specs: list[TypeSpec]
    doc: str = ""
    directives: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValueSpec:
    names: list[str]
    type: Expr | None
    values: list[Expr]


@dataclass(frozen=True)
class VarDecl:
    specs: list[ValueSpec]
    doc: str = ""
    directives: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConstDecl:
    specs: list[ValueSpec]
    doc: str = ""
    directives: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Receiver:
    names: list[str]
    type: Expr


@dataclass(frozen=True)
class FuncDecl:
    name: str
    type: FuncType
    recv: Receiver | None = None
    doc: str = ""
    body: tuple[int, int] | None = None  # offsets of the body's braces
    directives: list[str] = field(default_factory=list)  # e.g. "//go:noinline", "//export F"

    @property
    def params(self) -> list[Field]:
        return self.type.params

    @property
    def results(self) -> list[Field] | None:
        return self.type.results


Decl = Union[ImportDecl, TypeDecl, VarDecl, ConstDecl, FuncDecl]


@dataclass(frozen=True)
class SourceFile:
    name: str  # base name, e.g. "add.go"
    package: str
    decls: list[Decl]
    build_tags: list[str] = field(default_factory=list)
    doc: list[str] = field(default_factory=list)
    matches: bool = True  # included for the current GOOS/GOARCH

    @property
    def imports(self) -> list[ImportSpec]:
        out: list[ImportSpec] = []
        for d in self.decls:
            if isinstance(d, ImportDecl):
                out.extend(d.specs)
        return out


@dataclass(frozen=True)
class PackageScan:
    dir: Path
    files: list[SourceFile]

    def packages(self) -> dict[str, list[SourceFile]]:
        """Group files by package clause, keeping file order."""
        out: dict[str, list[SourceFile]] = {}
        for f in self.files:
            out.setdefault(f.package, []).append(f)
        return out


@dataclass
class ImportSet:
    """Import paths a generated package needs, with the mark each is used under."""

    paths: dict[str, Mark] = field(default_factory=dict)

    def set(self, path: str, mark: Mark = Mark.NORMAL) -> None:
        # A mocked use of a package wins over a plain one.
        if self.paths.get(path) in (None, Mark.NORMAL, Mark.NONE):
            self.paths[path] = mark

    def update(self, other: "ImportSet") -> None:
        for path, mark in other.paths.items():
            self.set(path, mark)

    def __contains__(self, path: str) -> bool:
        return path in self.paths

    def __len__(self) -> int:
        return len(self.paths)
