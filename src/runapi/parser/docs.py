"""Assemble ApiDoc records from documented Go handlers."""

from pathlib import Path

from runapi.errors import UnresolvedReferenceError
from runapi.golang.source import GoFile, GoFunc, parse_go_files
from runapi.logging import get_logger
from runapi.parser.base import ApiDoc, RequestParam, ResponseParam
from runapi.parser.composite import CompositeExpander
from runapi.parser.directive import (
    AnyDirective,
    BodyDirective,
    ParamDirective,
    ResponseBodyDirective,
    ResponseDirective,
    TextDirective,
    is_documented,
    parse_directives,
)
from runapi.parser.flatten import Flattener
from runapi.parser.registry import TypeRegistry, build_registry, iter_source_files
from runapi.parser.resolver import Resolver
from runapi.parser.typemap import map_request_type, map_response_type

logger = get_logger(__name__)

PARAM_LISTS = {"header": "header", "query": "query", "formData": "form_data"}
RESPONSE_LISTS = {"header": "response_header", "body": "response_body"}


class DocParser:
    """Scans struct roots, then parses every documented handler under ``scan_dir``.

    Struct declarations are read from ``scan_dir`` and every directory in
    ``struct_dirs`` before any handler is looked at, so a directive may
    refer to a type declared anywhere in those trees.
    """

    def __init__(self, scan_dir: Path, struct_dirs: list[Path] | None = None, include_vendor: bool = False):
        self.scan_dir = Path(scan_dir)
        self.struct_dirs = [Path(d) for d in struct_dirs or []]
        self.include_vendor = include_vendor
        self.registry: TypeRegistry | None = None

    def parse(self) -> list[ApiDoc]:
        self.registry = build_registry([self.scan_dir, *self.struct_dirs], self.include_vendor)
        resolver = Resolver(self.registry)
        flattener = Flattener(resolver)
        builder = _DocBuilder(resolver, flattener, CompositeExpander(resolver, flattener))

        docs: list[ApiDoc] = []
        for go_file in parse_go_files(list(iter_source_files(self.scan_dir, self.include_vendor))):
            docs.extend(builder.build_file(go_file))
        logger.info("parsed {} documented handlers under {}", len(docs), self.scan_dir)
        return docs


class _DocBuilder:
    def __init__(self, resolver: Resolver, flattener: Flattener, expander: CompositeExpander):
        self.resolver = resolver
        self.flattener = flattener
        self.expander = expander

    def build_file(self, go_file: GoFile) -> list[ApiDoc]:
        return [
            self.build(go_file, func)
            for func in go_file.funcs
            if func.doc and is_documented(func.doc)
        ]

    def build(self, go_file: GoFile, func: GoFunc) -> ApiDoc:
        doc = ApiDoc(file_path=go_file.path, function_name=func.name)
        directives, errors = parse_directives(func.doc)
        for error in errors:
            logger.warning("{} ({}): malformed directive dropped: {}", go_file.path, func.name, error)
        for directive in directives:
            try:
                self._apply(doc, directive, go_file.path, func.name)
            except UnresolvedReferenceError as e:
                logger.warning(
                    "{}:{} ({}): {}; {} skipped",
                    go_file.path,
                    directive.line,
                    func.name,
                    e,
                    directive.key,
                )
        return doc

    def _apply(self, doc: ApiDoc, directive: AnyDirective, path: str, function: str) -> None:
        if isinstance(directive, TextDirective):
            setattr(doc, directive.key.removeprefix("@"), directive.value)
        elif isinstance(directive, ParamDirective):
            getattr(doc, PARAM_LISTS[directive.location]).append(
                RequestParam(
                    name=directive.name,
                    type=map_request_type(directive.type),
                    require="true" if directive.required else "false",
                    remark=directive.remark,
                )
            )
        elif isinstance(directive, ResponseDirective):
            getattr(doc, RESPONSE_LISTS[directive.location]).append(
                ResponseParam(
                    name=directive.name,
                    type=map_response_type(directive.type),
                    remark=directive.remark,
                )
            )
        elif isinstance(directive, ResponseBodyDirective):
            doc.response_body.extend(self.expander.expand(directive.ref, path, function))
        elif isinstance(directive, BodyDirective):
            decl = self.resolver.resolve(directive.ref, path)
            doc.body.extend(
                RequestParam(
                    name=leaf.name,
                    type=leaf.type,
                    require="true" if leaf.required else "false",
                    remark=leaf.remark,
                )
                for leaf in self.flattener.flatten(decl, mapper=map_request_type)
            )

