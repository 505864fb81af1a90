"""Go source reader backed by go/ast.

Reads just enough of a Go file to index struct declarations and find
documented handlers: the package clause, imports, struct type declarations
(field names, type tokens, tags and trailing comments) and function
declarations with their doc comment group.

Parsing is done by a small Go program built from ``SCANNER_SOURCE`` with the
local Go toolchain, once per process. Sources are sent to it as JSON on
stdin and every file comes back as one JSON object.
"""

from __future__ import annotations

import atexit
import json
import os
import re
import shutil
import subprocess
import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel

from runapi.errors import GoSyntaxError, ScanError
from runapi.logging import get_logger

logger = get_logger(__name__)

TAG_PAIR_RE = re.compile(r'([^\s:"]+):"((?:\\.|[^"\\])*)"')
ESCAPE_RE = re.compile(r"\\(.)")


class CommentLine(BaseModel):
    """One line of a comment with its comment markers removed."""

    line: int
    text: str


class GoImport(BaseModel):
    alias: str
    path: str


class GoField(BaseModel):
    """A struct field. ``name`` is None for embedded fields."""

    name: str | None
    type: str
    tag: str = ""
    comment: str = ""


class GoStruct(BaseModel):
    name: str
    fields: list[GoField]
    line: int


class GoFunc(BaseModel):
    name: str
    doc: list[CommentLine] = []
    line: int


class GoFile(BaseModel):
    path: str
    package: str
    imports: list[GoImport] = []
    structs: list[GoStruct] = []
    funcs: list[GoFunc] = []


def parse_go_file(path: Path) -> GoFile:
    """Read and parse one Go file."""
    return parse_go_files([path])[0]


def parse_go_files(paths: list[Path]) -> list[GoFile]:
    """Read and parse Go files in one scanner run, in the given order.

    I/O and decoding failures raise ScanError; the first file that does not
    parse raises GoSyntaxError.
    """
    sources = []
    for path in paths:
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise ScanError(str(path), f"cannot read file: {e}") from e
        sources.append({"path": str(path), "source": text})
    return _scan(sources)


def parse_go_source(text: str, path: str = "<source>") -> GoFile:
    """Parse Go source text into a GoFile."""
    return _scan([{"path": path, "source": text}])[0]


def lookup_tag(tag: str, key: str) -> str | None:
    """Return the value stored under ``key`` in a struct tag, like reflect.StructTag.Lookup."""
    for match in TAG_PAIR_RE.finditer(tag):
        if match.group(1) == key:
            return ESCAPE_RE.sub(r"\1", match.group(2))
    return None


def _scan(sources: list[dict[str, str]]) -> list[GoFile]:
    if not sources:
        return []
    output = _run([str(_scanner_binary())], input=json.dumps(sources))
    try:
        results = json.loads(output)
    except json.JSONDecodeError as e:
        raise ScanError("go scanner", f"failed to parse scanner output: {e}") from e

    files = []
    for item in results:
        error = item.get("error")
        if error:
            raise GoSyntaxError(item["path"], error["line"], error["message"])
        files.append(GoFile.model_validate(item))
    return files


@lru_cache(maxsize=1)
def _scanner_binary() -> Path:
    build_dir = Path(tempfile.mkdtemp(prefix="runapi-goscan-"))
    atexit.register(shutil.rmtree, build_dir, ignore_errors=True)
    (build_dir / "go.mod").write_text("module runapi.goscan\n\ngo 1.18\n", encoding="utf-8")
    (build_dir / "main.go").write_text(SCANNER_SOURCE, encoding="utf-8")

    binary = build_dir / ("goscan.exe" if os.name == "nt" else "goscan")
    _run(["go", "build", "-o", str(binary), "."], cwd=build_dir)
    logger.debug("built go scanner at {}", binary)
    return binary


def _run(cmd: list[str], cwd: Path | None = None, input: str | None = None) -> str:
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            input=input,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except FileNotFoundError as e:
        if cmd[0] == "go":
            raise ScanError(
                "go",
                "Go toolchain not found (`go` is missing from PATH); it is needed to parse Go sources",
            ) from e
        raise ScanError(cmd[0], f"command not found: {e}") from e

    if proc.returncode != 0:
        out = "\n".join(s for s in (proc.stdout.strip(), proc.stderr.strip()) if s)
        raise ScanError(cmd[0], f"go scanner failed\n{out}")
    return proc.stdout


# Stdlib only, so building it never needs network access.
SCANNER_SOURCE = r'''
package main

import (
	"encoding/json"
	"fmt"
	"go/ast"
	"go/parser"
	"go/scanner"
	"go/token"
	"os"
	"strconv"
	"strings"
)

type inFile struct {
	Path   string `json:"path"`
	Source string `json:"source"`
}

type outComment struct {
	Line int    `json:"line"`
	Text string `json:"text"`
}

type outImport struct {
	Alias string `json:"alias"`
	Path  string `json:"path"`
}

type outField struct {
	Name    *string `json:"name"`
	Type    string  `json:"type"`
	Tag     string  `json:"tag"`
	Comment string  `json:"comment"`
}

type outStruct struct {
	Name   string     `json:"name"`
	Line   int        `json:"line"`
	Fields []outField `json:"fields"`
}

type outFunc struct {
	Name string       `json:"name"`
	Line int          `json:"line"`
	Doc  []outComment `json:"doc"`
}

type outError struct {
	Line    int    `json:"line"`
	Message string `json:"message"`
}

type outFile struct {
	Path    string      `json:"path"`
	Package string      `json:"package"`
	Imports []outImport `json:"imports"`
	Structs []outStruct `json:"structs"`
	Funcs   []outFunc   `json:"funcs"`
	Error   *outError   `json:"error,omitempty"`
}

func main() {
	var files []inFile
	if err := json.NewDecoder(os.Stdin).Decode(&files); err != nil {
		fmt.Fprintf(os.Stderr, "decode request: %v\n", err)
		os.Exit(2)
	}
	out := make([]outFile, 0, len(files))
	for _, f := range files {
		out = append(out, scanFile(f))
	}
	if err := json.NewEncoder(os.Stdout).Encode(out); err != nil {
		fmt.Fprintf(os.Stderr, "encode result: %v\n", err)
		os.Exit(1)
	}
}

func scanFile(in inFile) outFile {
	res := outFile{Path: in.Path, Imports: []outImport{}, Structs: []outStruct{}, Funcs: []outFunc{}}
	fset := token.NewFileSet()
	af, err := parser.ParseFile(fset, in.Path, in.Source, parser.ParseComments)
	if err != nil {
		res.Error = parseError(err)
		return res
	}
	res.Package = af.Name.Name

	for _, imp := range af.Imports {
		path, err := strconv.Unquote(imp.Path.Value)
		if err != nil {
			continue
		}
		alias := path[strings.LastIndex(path, "/")+1:]
		if imp.Name != nil {
			alias = imp.Name.Name
		}
		if alias == "_" || alias == "." {
			continue
		}
		res.Imports = append(res.Imports, outImport{Alias: alias, Path: path})
	}

	for _, decl := range af.Decls {
		switch d := decl.(type) {
		case *ast.GenDecl:
			if d.Tok != token.TYPE {
				continue
			}
			for _, s := range d.Specs {
				ts, ok := s.(*ast.TypeSpec)
				if !ok {
					continue
				}
				st, ok := ts.Type.(*ast.StructType)
				if !ok {
					continue
				}
				res.Structs = append(res.Structs, outStruct{
					Name:   ts.Name.Name,
					Line:   fset.Position(ts.Name.Pos()).Line,
					Fields: structFields(st),
				})
			}
		case *ast.FuncDecl:
			res.Funcs = append(res.Funcs, outFunc{
				Name: d.Name.Name,
				Line: fset.Position(d.Type.Func).Line,
				Doc:  docLines(fset, d.Doc),
			})
		}
	}
	return res
}

func parseError(err error) *outError {
	if list, ok := err.(scanner.ErrorList); ok && len(list) > 0 {
		return &outError{Line: list[0].Pos.Line, Message: list[0].Msg}
	}
	return &outError{Line: 1, Message: err.Error()}
}

func structFields(st *ast.StructType) []outField {
	fields := []outField{}
	for _, f := range st.Fields.List {
		typ := renderType(f.Type)
		tag := ""
		if f.Tag != nil {
			if v, err := strconv.Unquote(f.Tag.Value); err == nil {
				tag = v
			}
		}
		comment := commentText(f.Comment)
		if len(f.Names) == 0 {
			fields = append(fields, outField{Type: typ, Tag: tag, Comment: comment})
			continue
		}
		for _, name := range f.Names {
			n := name.Name
			fields = append(fields, outField{Name: &n, Type: typ, Tag: tag, Comment: comment})
		}
	}
	return fields
}

func commentText(cg *ast.CommentGroup) string {
	if cg == nil {
		return ""
	}
	return strings.Join(strings.Fields(cg.Text()), " ")
}

func docLines(fset *token.FileSet, cg *ast.CommentGroup) []outComment {
	lines := []outComment{}
	if cg == nil {
		return lines
	}
	for _, c := range cg.List {
		line := fset.Position(c.Slash).Line
		if strings.HasPrefix(c.Text, "//") {
			lines = append(lines, outComment{Line: line, Text: strings.TrimSpace(c.Text[2:])})
			continue
		}
		body := strings.TrimSuffix(strings.TrimPrefix(c.Text, "/*"), "*/")
		for i, text := range strings.Split(body, "\n") {
			lines = append(lines, outComment{Line: line + i, Text: strings.TrimSpace(text)})
		}
	}
	return lines
}

func renderType(e ast.Expr) string {
	switch t := e.(type) {
	case *ast.Ident:
		return t.Name
	case *ast.SelectorExpr:
		return renderType(t.X) + "." + t.Sel.Name
	case *ast.StarExpr:
		return "*" + renderType(t.X)
	case *ast.ParenExpr:
		return renderType(t.X)
	case *ast.ArrayType:
		return "[]" + renderType(t.Elt)
	case *ast.Ellipsis:
		return "[]" + renderType(t.Elt)
	case *ast.MapType:
		return "map[" + renderType(t.Key) + "]" + renderType(t.Value)
	case *ast.ChanType:
		switch t.Dir {
		case ast.SEND:
			return "chan<- " + renderType(t.Value)
		case ast.RECV:
			return "<-chan " + renderType(t.Value)
		}
		return "chan " + renderType(t.Value)
	case *ast.FuncType:
		return "func(...)"
	case *ast.StructType:
		return "struct{...}"
	case *ast.InterfaceType:
		return "interface{}"
	case *ast.IndexExpr:
		return renderType(t.X) + "[" + renderType(t.Index) + "]"
	case *ast.IndexListExpr:
		args := make([]string, 0, len(t.Indices))
		for _, ix := range t.Indices {
			args = append(args, renderType(ix))
		}
		return renderType(t.X) + "[" + strings.Join(args, ",") + "]"
	}
	return ""
}
'''
