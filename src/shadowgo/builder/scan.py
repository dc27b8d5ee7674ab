from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from ..errors import BuildError, UnsupportedConstructError
from ..goast.nodes import FuncType, fields_from_json, node_from_json
from .symbols import (
    ConstDecl,
    Decl,
    FuncDecl,
    ImportDecl,
    ImportSpec,
    PackageScan,
    Receiver,
    SourceFile,
    TypeDecl,
    TypeSpec,
    ValueSpec,
    VarDecl,
)

logger = logging.getLogger(__name__)


def _run_scanner(args: list[str], *, env: dict[str, str] | None) -> Any:
    with tempfile.TemporaryDirectory(prefix="shadowgo-goscan-") as td:
        scan_dir = Path(td)
        (scan_dir / "go.mod").write_text(
            "\n".join(
                [
                    "module shadowgo.goscan",
                    "",
                    "go 1.22",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        (scan_dir / "main.go").write_text(_scanner_go_source(), encoding="utf-8")

        try:
            proc = subprocess.run(
                ["go", "run", ".", *args],
                cwd=str(scan_dir),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise BuildError(
                "Go toolchain not found (`go` is missing from PATH). "
                "Install Go and ensure `go` is available on PATH."
            ) from e
        if proc.returncode != 0:
            raise BuildError(f"go scan failed for {args[-1]}\n{proc.stderr}{proc.stdout}")

        try:
            return json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            raise BuildError(f"failed to parse go scan output: {e}\n{proc.stdout}") from e


def scan_package(*, src_dir: Path, env: dict[str, str] | None = None) -> PackageScan:
    """Parse every non-test Go file of one package directory with go/parser.

    The Go side only encodes the syntax tree as tagged JSON (plus body
    offsets and build matching); all rendering happens in Python.
    """
    src_dir = Path(src_dir).resolve()
    logger.debug("scanning %s", src_dir)
    return parse_scan_output(_run_scanner(["--dir", str(src_dir)], env=env), src_dir=src_dir)


def scan_file(path: Path, *, env: dict[str, str] | None = None) -> SourceFile:
    """Parse a single Go file, test files included."""
    path = Path(path).resolve()
    logger.debug("scanning %s", path)
    scan = parse_scan_output(_run_scanner(["--file", str(path)], env=env), src_dir=path.parent)
    if len(scan.files) != 1:
        raise BuildError(f"go scan returned {len(scan.files)} files for {path}")
    return scan.files[0]


def parse_scan_output(obj: Any, *, src_dir: Path) -> PackageScan:
    if not isinstance(obj, dict) or not isinstance(obj.get("files"), list):
        raise BuildError("invalid go scan output: missing 'files'")

    files: list[SourceFile] = []
    for item in obj["files"]:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        package = item.get("package")
        if not isinstance(name, str) or not isinstance(package, str):
            continue
        files.append(
            SourceFile(
                name=name,
                package=package,
                decls=[_decl_from_json(d) for d in item.get("decls") or []],
                build_tags=[str(t) for t in item.get("build_tags") or []],
                doc=[str(t) for t in item.get("doc") or []],
                matches=bool(item.get("matches", True)),
            )
        )
    files.sort(key=lambda f: f.name)
    return PackageScan(dir=Path(src_dir), files=files)


def _value_specs(d: dict[str, Any]) -> list[ValueSpec]:
    out: list[ValueSpec] = []
    for s in d.get("specs") or []:
        t = s.get("type")
        out.append(
            ValueSpec(
                names=[str(x) for x in s.get("names") or []],
                type=node_from_json(t) if t is not None else None,
                values=[node_from_json(v) for v in s.get("values") or []],
            )
        )
    return out


DIRECTIVE_PREFIXES = ("//go:", "//export ")


def _directives(d: dict[str, Any]) -> list[str]:
    # go/ast drops these from the doc text, so they come from the raw lines.
    lines = [str(line) for line in d.get("doc_lines") or []]
    return [line for line in lines if line.startswith(DIRECTIVE_PREFIXES)]


def _decl_from_json(d: Any) -> Decl:
    if not isinstance(d, dict):
        raise UnsupportedConstructError(f"invalid declaration: {d!r}")
    kind = d.get("kind")
    doc = str(d.get("doc") or "")
    directives = _directives(d)

    if kind == "import":
        specs = []
        for s in d.get("specs") or []:
            name = s.get("name")
            specs.append(
                ImportSpec(
                    path=str(s["path"]),
                    name=name if isinstance(name, str) else None,
                    doc=str(s.get("doc") or ""),
                    comment=str(s.get("comment") or ""),
                )
            )
        return ImportDecl(specs=specs, doc=doc)

    if kind == "type":
        return TypeDecl(
            specs=[
                TypeSpec(
                    name=str(s["name"]),
                    type=node_from_json(s["type"]),
                    alias=bool(s.get("alias", False)),
                    type_params=fields_from_json(s.get("type_params")),
                )
                for s in d.get("specs") or []
            ],
            doc=doc,
            directives=directives,
        )

    if kind == "var":
        return VarDecl(specs=_value_specs(d), doc=doc, directives=directives)

    if kind == "const":
        return ConstDecl(specs=_value_specs(d), doc=doc, directives=directives)

    if kind == "func":
        ft = node_from_json(d["type"])
        if not isinstance(ft, FuncType):
            raise UnsupportedConstructError(f"function {d.get('name')!r} without a function type")
        recv = None
        r = d.get("recv")
        if isinstance(r, dict):
            recv = Receiver(names=[str(x) for x in r.get("names") or []], type=node_from_json(r["type"]))
        body = d.get("body")
        return FuncDecl(
            name=str(d["name"]),
            type=ft,
            recv=recv,
            doc=doc,
            body=(int(body[0]), int(body[1])) if isinstance(body, list) else None,
            directives=directives,
        )

    raise UnsupportedConstructError(f"unknown declaration kind: {kind!r}")


def _scanner_go_source() -> str:
    # Keep this file stdlib-only so `go run` doesn't need network access.
    return r'''
package main

import (
	"encoding/json"
	"flag"
	"fmt"
	"go/ast"
	"go/build"
	"go/parser"
	"go/token"
	"os"
	"path/filepath"
	"sort"
	"strings"
)

type outField struct {
	Names []string `json:"names"`
	Type  any      `json:"type"`
	Tag   *string  `json:"tag"`
}

type outFile struct {
	Name      string   `json:"name"`
	Package   string   `json:"package"`
	BuildTags []string `json:"build_tags"`
	Doc       []string `json:"doc"`
	Matches   bool     `json:"matches"`
	Decls     []any    `json:"decls"`
}

type outObj struct {
	Files []outFile `json:"files"`
}

var fset = token.NewFileSet()

func main() {
	var dir, file string
	flag.StringVar(&dir, "dir", "", "Go package directory to scan")
	flag.StringVar(&file, "file", "", "single Go file to scan")
	flag.Parse()

	names := []string{}
	switch {
	case file != "":
		dir = filepath.Dir(file)
		names = append(names, filepath.Base(file))
	case dir != "":
		entries, err := os.ReadDir(dir)
		if err != nil {
			fmt.Fprintf(os.Stderr, "readdir: %v\n", err)
			os.Exit(1)
		}
		for _, e := range entries {
			n := e.Name()
			if e.IsDir() || strings.HasPrefix(n, ".") || strings.HasPrefix(n, "_") {
				continue
			}
			if !strings.HasSuffix(n, ".go") || strings.HasSuffix(n, "_test.go") {
				continue
			}
			names = append(names, n)
		}
		sort.Strings(names)
	default:
		fmt.Fprintln(os.Stderr, "missing --dir or --file")
		os.Exit(2)
	}

	out := outObj{Files: []outFile{}}
	for _, n := range names {
		path := filepath.Join(dir, n)
		af, err := parser.ParseFile(fset, path, nil, parser.ParseComments)
		if err != nil {
			fmt.Fprintf(os.Stderr, "parse %s: %v\n", path, err)
			os.Exit(1)
		}
		matches, err := build.Default.MatchFile(dir, n)
		if err != nil {
			matches = false
		}
		f := outFile{
			Name:      n,
			Package:   af.Name.Name,
			BuildTags: []string{},
			Doc:       []string{},
			Matches:   matches,
			Decls:     []any{},
		}
		for _, cg := range af.Comments {
			if cg.Pos() >= af.Package {
				break
			}
			for _, c := range cg.List {
				if strings.HasPrefix(c.Text, "// +build") || strings.HasPrefix(c.Text, "//go:build") {
					f.BuildTags = append(f.BuildTags, c.Text)
				}
			}
		}
		if af.Doc != nil {
			for _, c := range af.Doc.List {
				f.Doc = append(f.Doc, c.Text)
			}
		}
		for _, d := range af.Decls {
			f.Decls = append(f.Decls, encDecl(d))
		}
		out.Files = append(out.Files, f)
	}

	enc := json.NewEncoder(os.Stdout)
	enc.SetEscapeHTML(false)
	if err := enc.Encode(out); err != nil {
		fmt.Fprintf(os.Stderr, "encode: %v\n", err)
		os.Exit(1)
	}
}

func offset(p token.Pos) int {
	return fset.Position(p).Offset
}

func node(kind string, kv ...any) map[string]any {
	m := map[string]any{"kind": kind}
	for i := 0; i+1 < len(kv); i += 2 {
		m[kv[i].(string)] = kv[i+1]
	}
	return m
}

func encList(list []ast.Expr) []any {
	out := make([]any, 0, len(list))
	for _, e := range list {
		out = append(out, enc(e))
	}
	return out
}

func encFields(fl *ast.FieldList) any {
	if fl == nil {
		return nil
	}
	out := make([]outField, 0, len(fl.List))
	for _, f := range fl.List {
		names := make([]string, 0, len(f.Names))
		for _, n := range f.Names {
			names = append(names, n.Name)
		}
		var tag *string
		if f.Tag != nil {
			v := f.Tag.Value
			tag = &v
		}
		out = append(out, outField{Names: names, Type: enc(f.Type), Tag: tag})
	}
	return out
}

func encFuncType(v *ast.FuncType) any {
	return node("FuncType",
		"params", encFields(v.Params),
		"results", encFields(v.Results),
		"type_params", encFields(v.TypeParams))
}

func enc(e ast.Expr) any {
	if e == nil {
		return nil
	}
	switch v := e.(type) {
	case *ast.BasicLit:
		return node("BasicLit", "value", v.Value)
	case *ast.Ident:
		return node("Ident", "name", v.Name)
	case *ast.CompositeLit:
		return node("CompositeLit", "type", enc(v.Type), "elts", encList(v.Elts))
	case *ast.CallExpr:
		return node("CallExpr", "fun", enc(v.Fun), "args", encList(v.Args), "ellipsis", v.Ellipsis.IsValid())
	case *ast.Ellipsis:
		return node("Ellipsis", "elt", enc(v.Elt))
	case *ast.ChanType:
		dir := "both"
		if v.Dir == ast.RECV {
			dir = "recv"
		} else if v.Dir == ast.SEND {
			dir = "send"
		}
		return node("ChanType", "dir", dir, "value", enc(v.Value))
	case *ast.KeyValueExpr:
		return node("KeyValueExpr", "key", enc(v.Key), "value", enc(v.Value))
	case *ast.ParenExpr:
		return node("ParenExpr", "x", enc(v.X))
	case *ast.FuncLit:
		return node("FuncLit", "type", encFuncType(v.Type),
			"body", []int{offset(v.Body.Lbrace), offset(v.Body.Rbrace)})
	case *ast.FuncType:
		return encFuncType(v)
	case *ast.StarExpr:
		return node("StarExpr", "x", enc(v.X))
	case *ast.SelectorExpr:
		return node("SelectorExpr", "x", enc(v.X), "sel", v.Sel.Name)
	case *ast.StructType:
		return node("StructType", "fields", encFields(v.Fields))
	case *ast.ArrayType:
		return node("ArrayType", "len", enc(v.Len), "elt", enc(v.Elt))
	case *ast.MapType:
		return node("MapType", "key", enc(v.Key), "value", enc(v.Value))
	case *ast.UnaryExpr:
		return node("UnaryExpr", "op", v.Op.String(), "x", enc(v.X))
	case *ast.BinaryExpr:
		return node("BinaryExpr", "x", enc(v.X), "op", v.Op.String(), "y", enc(v.Y))
	case *ast.TypeAssertExpr:
		return node("TypeAssertExpr", "x", enc(v.X), "type", enc(v.Type))
	case *ast.IndexExpr:
		return node("IndexExpr", "x", enc(v.X), "index", enc(v.Index))
	case *ast.IndexListExpr:
		return node("IndexListExpr", "x", enc(v.X), "indices", encList(v.Indices))
	case *ast.SliceExpr:
		return node("SliceExpr", "x", enc(v.X), "low", enc(v.Low), "high", enc(v.High),
			"max", enc(v.Max), "slice3", v.Slice3)
	case *ast.InterfaceType:
		return node("InterfaceType", "methods", encFields(v.Methods))
	default:
		return node("Unsupported", "go_type", fmt.Sprintf("%T", e))
	}
}

func rawLines(cg *ast.CommentGroup) []string {
	lines := []string{}
	if cg == nil {
		return lines
	}
	for _, c := range cg.List {
		lines = append(lines, c.Text)
	}
	return lines
}

func encDecl(d ast.Decl) any {
	switch d := d.(type) {
	case *ast.GenDecl:
		doc := d.Doc.Text()
		docLines := rawLines(d.Doc)
		switch d.Tok {
		case token.IMPORT:
			specs := []any{}
			for _, s := range d.Specs {
				is := s.(*ast.ImportSpec)
				var name any
				if is.Name != nil {
					name = is.Name.Name
				}
				specs = append(specs, map[string]any{
					"path":    strings.Trim(is.Path.Value, "\"`"),
					"name":    name,
					"doc":     is.Doc.Text(),
					"comment": is.Comment.Text(),
				})
			}
			return map[string]any{"kind": "import", "doc": doc, "doc_lines": docLines, "specs": specs}
		case token.TYPE:
			specs := []any{}
			for _, s := range d.Specs {
				ts := s.(*ast.TypeSpec)
				specs = append(specs, map[string]any{
					"name":        ts.Name.Name,
					"type":        enc(ts.Type),
					"alias":       ts.Assign.IsValid(),
					"type_params": encFields(ts.TypeParams),
				})
			}
			return map[string]any{"kind": "type", "doc": doc, "doc_lines": docLines, "specs": specs}
		case token.VAR, token.CONST:
			specs := []any{}
			for _, s := range d.Specs {
				vs := s.(*ast.ValueSpec)
				names := []string{}
				for _, n := range vs.Names {
					names = append(names, n.Name)
				}
				specs = append(specs, map[string]any{
					"names":  names,
					"type":   enc(vs.Type),
					"values": encList(vs.Values),
				})
			}
			kind := "var"
			if d.Tok == token.CONST {
				kind = "const"
			}
			return map[string]any{"kind": kind, "doc": doc, "doc_lines": docLines, "specs": specs}
		default:
			return map[string]any{"kind": "gen:" + d.Tok.String()}
		}
	case *ast.FuncDecl:
		out := map[string]any{
			"kind": "func",
			"name": d.Name.Name,
			"doc":       d.Doc.Text(),
			"doc_lines": rawLines(d.Doc),
			"type":      encFuncType(d.Type),
			"recv":      nil,
			"body":      nil,
		}
		if d.Recv != nil && len(d.Recv.List) > 0 {
			r := d.Recv.List[0]
			names := []string{}
			for _, n := range r.Names {
				names = append(names, n.Name)
			}
			out["recv"] = map[string]any{"names": names, "type": enc(r.Type)}
		}
		if d.Body != nil {
			out["body"] = []int{offset(d.Body.Lbrace), offset(d.Body.Rbrace)}
		}
		return out
	default:
		return map[string]any{"kind": fmt.Sprintf("%T", d)}
	}
}
'''
