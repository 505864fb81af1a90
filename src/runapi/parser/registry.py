"""Type registry and import table built from Go source trees.

The registry is filled by a single scanning pass over every root, then
frozen. Resolution and flattening only ever read it.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel

from runapi.errors import RegistryFrozenError, ScanError
from runapi.golang.source import GoFile, GoField, lookup_tag, parse_go_files
from runapi.logging import get_logger
from runapi.parser.base import Field, TypeDeclaration

logger = get_logger(__name__)

OPTIONAL_TAG_OPTIONS = {"omitempty", "omitzero"}
MODULE_RE = re.compile(r"^module\s+(\S+)", re.MULTILINE)


class FileScope(BaseModel):
    """Package identity and import aliases of one scanned file."""

    package: str
    package_path: str
    import_path: str | None = None
    imports: dict[str, str] = {}  # alias -> import path


def file_key(path: Path | str) -> str:
    """Identity used for a source file in the import table."""
    return Path(path).resolve().as_posix()


class ImportTable:
    """Per-file alias -> import path map, filled alongside the registry."""

    def __init__(self):
        self._scopes: dict[str, FileScope] = {}

    def add(self, path: Path | str, scope: FileScope) -> None:
        self._scopes[file_key(path)] = scope

    def scope(self, path: Path | str) -> FileScope | None:
        return self._scopes.get(file_key(path))

    def aliases(self, path: Path | str) -> dict[str, str]:
        scope = self.scope(path)
        return dict(scope.imports) if scope else {}


class TypeRegistry:
    """Index of every struct declaration found while scanning.

    Short keys (``package.Name``) can collide across packages; every
    declaration is kept and lookups by short key return the first one
    registered. Canonical lookups by package path or import path are exact.
    """

    def __init__(self):
        self.imports = ImportTable()
        self._by_key: dict[str, list[TypeDeclaration]] = {}
        self._by_name: dict[str, list[TypeDeclaration]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def register(self, decl: TypeDeclaration) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"cannot register {decl.key}: registry is frozen")
        existing = self._by_key.setdefault(decl.key, [])
        if existing and all(d.qualified_name != decl.qualified_name for d in existing):
            logger.warning(
                "type {} is declared in both {} and {}; lookups by {} use the first",
                decl.key,
                existing[0].source_file,
                decl.source_file,
                decl.key,
            )
        existing.append(decl)
        self._by_name.setdefault(decl.name, []).append(decl)

    def register_scope(self, path: Path | str, scope: FileScope) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"cannot record imports of {path}: registry is frozen")
        self.imports.add(path, scope)

    def get(self, key: str) -> TypeDeclaration | None:
        found = self._by_key.get(key)
        return found[0] if found else None

    def get_all(self, key: str) -> list[TypeDeclaration]:
        return list(self._by_key.get(key, []))

    def named(self, name: str) -> list[TypeDeclaration]:
        return list(self._by_name.get(name, []))

    def find(
        self,
        name: str,
        *,
        directory: str | None = None,
        import_path: str | None = None,
    ) -> TypeDeclaration | None:
        """Exact lookup of ``name`` inside one package, by directory or import path."""
        for decl in self._by_name.get(name, []):
            if import_path is not None and decl.import_path == import_path:
                return decl
            if directory is not None and decl.directory == directory:
                return decl
        return None

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return sum(len(decls) for decls in self._by_key.values())


def iter_source_files(root: Path, include_vendor: bool = False) -> Iterator[Path]:
    """Yield non-test Go files under ``root`` in a stable order."""
    if not root.is_dir():
        raise ScanError(str(root), "scan directory does not exist")
    for dirpath, dirnames, filenames in os.walk(root):
        if not include_vendor:
            dirnames[:] = [d for d in dirnames if d != "vendor"]
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.endswith(".go") and not filename.endswith("_test.go"):
                yield Path(dirpath) / filename


def build_registry(roots: list[Path], include_vendor: bool = False) -> TypeRegistry:
    """Scan every root and return a frozen registry.

    Roots are deduplicated and a file reachable from two roots is scanned
    once, through the first root. Any unreadable or unparsable file aborts
    the build with ScanError.
    """
    registry = TypeRegistry()
    modules = _ModuleFinder()
    seen_roots: set[Path] = set()
    seen_files: set[str] = set()
    pending: list[tuple[Path, Path]] = []

    for root in roots:
        root = Path(root).resolve()
        if root in seen_roots:
            continue
        seen_roots.add(root)
        for path in iter_source_files(root, include_vendor):
            key = file_key(path)
            if key in seen_files:
                continue
            seen_files.add(key)
            pending.append((root, path))

    go_files = parse_go_files([path for _, path in pending])
    for (root, path), go_file in zip(pending, go_files):
        _register_file(registry, root, path, go_file, modules)

    registry.freeze()
    logger.info("registered {} struct types from {} files", len(registry), len(seen_files))
    return registry


def _register_file(
    registry: TypeRegistry,
    root: Path,
    path: Path,
    go_file: GoFile,
    modules: _ModuleFinder,
) -> None:
    directory = path.parent
    package_path = directory.relative_to(root).as_posix()
    import_path = modules.import_path(directory)
    registry.register_scope(
        path,
        FileScope(
            package=go_file.package,
            package_path=package_path,
            import_path=import_path,
            imports={imp.alias: imp.path for imp in go_file.imports},
        ),
    )
    for struct in go_file.structs:
        fields = [f for f in (_convert_field(gf) for gf in struct.fields) if f is not None]
        registry.register(
            TypeDeclaration(
                name=struct.name,
                package=go_file.package,
                package_path=package_path,
                import_path=import_path,
                source_file=file_key(path),
                fields=tuple(fields),
            )
        )


def _convert_field(go_field: GoField) -> Field | None:
    """Apply the json tag to a struct field; None when the tag excludes it."""
    if go_field.name is None:
        return Field(
            name=go_field.type,
            type=go_field.type,
            required=True,
            remark=go_field.comment,
            embedded=True,
        )

    name = go_field.name
    required = True
    tag = lookup_tag(go_field.tag, "json")
    if tag is not None:
        if tag == "-":
            return None
        tag_name, _, options = tag.partition(",")
        name = tag_name or go_field.name
        required = not (OPTIONAL_TAG_OPTIONS & set(options.split(",")))
    return Field(name=name, type=go_field.type, required=required, remark=go_field.comment)


class _ModuleFinder:
    """Maps directories to canonical import paths using the nearest go.mod."""

    def __init__(self):
        self._modules: dict[Path, tuple[Path, str] | None] = {}

    def import_path(self, directory: Path) -> str | None:
        found = self._module_of(directory)
        if found is None:
            return None
        module_dir, module = found
        rel = directory.relative_to(module_dir).as_posix()
        return module if rel == "." else f"{module}/{rel}"

    def _module_of(self, directory: Path) -> tuple[Path, str] | None:
        if directory in self._modules:
            return self._modules[directory]
        found: tuple[Path, str] | None = None
        go_mod = directory / "go.mod"
        if go_mod.is_file():
            try:
                match = MODULE_RE.search(go_mod.read_text(encoding="utf-8"))
            except OSError as e:
                raise ScanError(str(go_mod), f"cannot read file: {e}") from e
            if match:
                found = (directory, match.group(1).strip('"'))
        elif directory.parent != directory:
            found = self._module_of(directory.parent)
        self._modules[directory] = found
        return found
