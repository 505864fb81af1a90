"""Struct flattening: expand a declaration into an ordered list of leaf rows."""

from collections.abc import Callable

from runapi.logging import get_logger
from runapi.parser.base import ResponseParam, TypeDeclaration
from runapi.parser.resolver import Resolver
from runapi.parser.typemap import map_response_type

logger = get_logger(__name__)

TypeMapper = Callable[[str], str]


class Flattener:
    """Depth-first expansion of struct declarations.

    Embedded structs are spliced in without a name segment; named struct
    fields add ``name.`` to the prefix. A type already being expanded on
    the current path is not entered again: a named field referring to it
    becomes a single ``object`` leaf and an embedded one is dropped.
    """

    def __init__(self, resolver: Resolver):
        self.resolver = resolver

    def flatten(
        self,
        decl: TypeDeclaration,
        prefix: str = "",
        mapper: TypeMapper = map_response_type,
    ) -> list[ResponseParam]:
        return self._expand(decl, prefix, mapper, {decl.qualified_name})

    def _expand(
        self,
        decl: TypeDeclaration,
        prefix: str,
        mapper: TypeMapper,
        path: set[str],
    ) -> list[ResponseParam]:
        leaves: list[ResponseParam] = []
        for field in decl.fields:
            token = field.type.removeprefix("*")
            nested = self.resolver.resolve_field_type(decl, token)

            if nested is None:
                if not field.embedded:
                    leaves.append(
                        ResponseParam(
                            name=prefix + field.name,
                            type=mapper(field.type),
                            required=field.required,
                            remark=field.remark,
                        )
                    )
                continue

            if nested.qualified_name in path:
                logger.debug(
                    "{} refers back to {}, not expanding it again",
                    decl.qualified_name,
                    nested.qualified_name,
                )
                if not field.embedded:
                    leaves.append(
                        ResponseParam(
                            name=prefix + field.name,
                            type="object",
                            required=field.required,
                            remark=field.remark,
                        )
                    )
                continue

            nested_prefix = prefix if field.embedded else f"{prefix}{field.name}."
            path.add(nested.qualified_name)
            try:
                leaves.extend(self._expand(nested, nested_prefix, mapper, path))
            finally:
                path.discard(nested.qualified_name)
        return leaves
