"""Resolve type tokens used in doc directives and struct fields.

A directive names a type the way Go code does: ``LoginRequest`` for the
current package or ``user.LoginRequest`` through an import alias. The
registry knows declarations by directory, by canonical import path (when a
go.mod was found) and by ``package.Name``. Resolution tries the canonical
identity first and only then falls back to matching import paths against
scan-relative package paths.
"""

import re
from pathlib import Path

from runapi.errors import UnresolvedReferenceError
from runapi.parser.base import TypeDeclaration
from runapi.parser.registry import TypeRegistry, file_key

NAMED_TYPE_RE = re.compile(r"^[^\W\d]\w*(\.[^\W\d]\w*)?$")


class Resolver:
    """Maps type tokens to registered declarations. Reads the registry only."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def resolve(self, token: str, file: Path | str) -> TypeDeclaration:
        """Resolve a type token written in ``file``.

        Raises UnresolvedReferenceError when no declaration matches.
        """
        token = token.strip().removeprefix("*")
        if not NAMED_TYPE_RE.match(token):
            raise UnresolvedReferenceError(token, "not a struct type name")

        scope = self.registry.imports.scope(file)
        if scope is None:
            raise UnresolvedReferenceError(token, f"no import information for file {file}")

        if "." not in token:
            directory = file_key(file).rsplit("/", 1)[0]
            decl = self.registry.find(token, directory=directory)
            decl = decl or self.registry.get(f"{scope.package}.{token}")
            if decl is None:
                raise UnresolvedReferenceError(token, f"no struct {token} in package {scope.package}")
            return decl

        alias, name = token.split(".", 1)
        import_path = scope.imports.get(alias)
        if import_path is None:
            # Go rejects unused imports, so a package named only in doc comments is never imported
            decl = self.registry.get(token)
            if decl is None:
                raise UnresolvedReferenceError(
                    token, f"package alias {alias!r} is not imported and no {token} is registered"
                )
            return decl
        return self._resolve_imported(alias, name, import_path, token)

    def resolve_field_type(self, owner: TypeDeclaration, token: str) -> TypeDeclaration | None:
        """Resolve the (pointer-stripped) type of a field declared in ``owner``.

        Returns None for anything that is not a registered struct: builtins,
        slices, maps, channels, funcs and unknown names.
        """
        if not NAMED_TYPE_RE.match(token):
            return None

        if "." not in token:
            decl = self.registry.find(token, directory=owner.directory)
            return decl or self.registry.get(f"{owner.package}.{token}")

        alias, name = token.split(".", 1)
        imports = self.registry.imports.aliases(owner.source_file)
        if alias in imports:
            try:
                return self._resolve_imported(alias, name, imports[alias], token)
            except UnresolvedReferenceError:
                pass

        decl = self.registry.get(token)
        if decl is not None:
            return decl
        for candidate in self.registry.named(name):
            if candidate.qualified_name == token or candidate.qualified_name.endswith("/" + token):
                return candidate
        return None

    def _resolve_imported(self, alias: str, name: str, import_path: str, token: str) -> TypeDeclaration:
        decl = self.registry.find(name, import_path=import_path)
        if decl is not None:
            return decl

        candidates = [d for d in self.registry.named(name) if _path_matches(d.package_path, import_path)]
        for candidate in candidates:
            # the alias naming the package wins over path length
            if candidate.package == alias:
                return candidate
        if candidates:
            return max(candidates, key=lambda d: len(d.package_path))
        raise UnresolvedReferenceError(
            token, f"no struct {name} in a package matching import path {import_path!r}"
        )


def _path_matches(package_path: str, import_path: str) -> bool:
    """Compare a scan-relative package path with an import path, segment-wise."""
    if package_path == ".":
        return False
    return (
        package_path == import_path
        or import_path.endswith("/" + package_path)
        or package_path.endswith("/" + import_path)
        or strip_module(import_path) == package_path
    )


def strip_module(import_path: str) -> str:
    """Drop the first path segment (the module name) of an import path."""
    head, sep, rest = import_path.partition("/")
    return rest if sep else import_path
