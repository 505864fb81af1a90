"""Envelope shorthand for response bodies: ``Base{field=Type, other=pkg.Type}``.

The base type is flattened first. Each ``field=Type`` pair then either
overrides a leaf of the base (the leaf turns into an ``object`` row) or adds
a new ``object`` row, and is followed by the flattening of ``Type`` under
``field.``.
"""

from pathlib import Path

from pydantic import BaseModel

from runapi.errors import UnresolvedReferenceError
from runapi.logging import get_logger
from runapi.parser.base import ResponseParam
from runapi.parser.flatten import Flattener
from runapi.parser.resolver import Resolver

logger = get_logger(__name__)


class CompositeRef(BaseModel):
    """A parsed ``Base{...}`` token. Pairs keep their written order."""

    base: str
    pairs: list[tuple[str, str]] = []
    malformed: list[str] = []


def parse_composite(token: str) -> CompositeRef | None:
    """Split a composite token; None when ``token`` is a plain type reference."""
    token = token.strip()
    open_at = token.find("{")
    if open_at <= 0 or not token.endswith("}"):
        return None

    ref = CompositeRef(base=token[:open_at].strip())
    for part in token[open_at + 1 : -1].split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, type_token = part.partition("=")
        name, type_token = name.strip(), type_token.strip()
        if not sep or not name or not type_token:
            ref.malformed.append(part)
            continue
        ref.pairs.append((name, type_token))
    return ref


class CompositeExpander:
    def __init__(self, resolver: Resolver, flattener: Flattener):
        self.resolver = resolver
        self.flattener = flattener

    def expand(self, token: str, file: Path | str, function: str = "") -> list[ResponseParam]:
        """Expand a response body token written in ``file``.

        Plain references are resolved and flattened as they are. Unresolved
        pieces of a composite are logged and skipped; unresolved plain
        references raise UnresolvedReferenceError.
        """
        ref = parse_composite(token)
        if ref is None:
            return self.flattener.flatten(self.resolver.resolve(token, file))

        where = f"{file} ({function})" if function else str(file)

        try:
            leaves = self.flattener.flatten(self.resolver.resolve(ref.base, file))
        except UnresolvedReferenceError as e:
            logger.warning("{}: {}; the envelope contributes no fields", where, e)
            leaves = []

        for part in ref.malformed:
            logger.warning("{}: ignoring malformed pair {!r} in {}", where, part, token)

        for name, type_token in ref.pairs:
            try:
                decl = self.resolver.resolve(type_token, file)
            except UnresolvedReferenceError as e:
                logger.warning("{}: {}; field {} skipped", where, e, name)
                continue

            nested = self.flattener.flatten(decl, prefix=f"{name}.")
            index = next((i for i, leaf in enumerate(leaves) if leaf.name == name), None)
            if index is None:
                leaves.append(ResponseParam(name=name, type="object", required=False, remark=f"{name} info"))
            else:
                leaves[index] = leaves[index].model_copy(update={"type": "object"})
            leaves.extend(nested)
        return leaves
