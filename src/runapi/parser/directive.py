"""Doc-comment directive parser.

A handler is documented when one line of its doc comment is exactly
``runapi``. Every other line starting with ``@`` is a directive::

    @title User login
    @param token header string true auth token
    @response_body response.Response{data=user.LoginResponse}

Each line becomes a typed directive. Malformed ``@param`` lines raise
DirectiveSyntaxError with the line and column of the offending token.
"""

import re
from collections.abc import Iterable
from typing import Union

from pydantic import BaseModel

from runapi.errors import DirectiveSyntaxError
from runapi.golang.source import CommentLine
from runapi.logging import get_logger

logger = get_logger(__name__)

MARKER = "runapi"
TEXT_KEYS = ("@catalog", "@title", "@description", "@method", "@router", "@url", "@remark")
PARAM_LOCATIONS = ("header", "query", "formData")
RESPONSE_LOCATIONS = ("header", "body")
REQUIRED_FLAGS = ("true", "false")

WORD_RE = re.compile(r"\S+")


class Directive(BaseModel):
    key: str
    line: int = 0


class TextDirective(Directive):
    """``@title``, ``@catalog`` and the other single-value keys."""

    value: str


class ParamDirective(Directive):
    name: str
    location: str
    type: str
    required: bool
    remark: str = ""


class ResponseDirective(Directive):
    name: str
    location: str
    type: str
    remark: str = ""


class ResponseBodyDirective(Directive):
    ref: str


class BodyDirective(Directive):
    ref: str


AnyDirective = Union[TextDirective, ParamDirective, ResponseDirective, ResponseBodyDirective, BodyDirective]


def is_documented(doc: Iterable[CommentLine]) -> bool:
    """True when the comment block carries the ``runapi`` marker line."""
    return any(line.text.strip() == MARKER for line in doc)


def parse_directive(text: str, line: int = 0) -> AnyDirective | None:
    """Parse one comment line.

    Returns None for lines that are not directives, keys without a value,
    unknown keys and parameters in a location that is not documented.
    """
    text = text.strip()
    if not text.startswith("@"):
        return None

    key, *rest = text.split(None, 1)
    value = rest[0].strip() if rest else ""

    if key == "@remark":
        return TextDirective(key=key, value=value, line=line)
    if not value:
        return None

    if key in TEXT_KEYS:
        return TextDirective(key=key, value=value, line=line)
    if key == "@param":
        return _parse_param(text, line)
    if key == "@response":
        return _parse_response(value, line)
    if key == "@response_body":
        return ResponseBodyDirective(key=key, ref=value, line=line)
    if key == "@body":
        return BodyDirective(key=key, ref=value, line=line)

    logger.debug("ignoring unknown directive {} on line {}", key, line)
    return None


def _parse_param(text: str, line: int) -> ParamDirective | None:
    words = list(WORD_RE.finditer(text))[1:]
    if len(words) < 4:
        raise DirectiveSyntaxError(
            "@param needs <name> <location> <type> <true|false> [remark]",
            line=line,
            column=len(text) + 1,
        )
    name, location, type_token, flag = (m.group() for m in words[:4])
    if flag not in REQUIRED_FLAGS:
        raise DirectiveSyntaxError(
            f"required flag of @param {name} must be true or false, got {flag!r}",
            line=line,
            column=words[3].start() + 1,
        )
    if location not in PARAM_LOCATIONS:
        return None
    return ParamDirective(
        key="@param",
        name=name,
        location=location,
        type=type_token,
        required=flag == "true",
        remark=" ".join(m.group() for m in words[4:]),
        line=line,
    )


def _parse_response(value: str, line: int) -> ResponseDirective | ResponseBodyDirective | None:
    parts = value.split()
    if len(parts) < 3:
        # a bare struct reference, same as @response_body
        return ResponseBodyDirective(key="@response", ref=value, line=line)
    name, location, type_token = parts[:3]
    if location not in RESPONSE_LOCATIONS:
        return None
    return ResponseDirective(
        key="@response",
        name=name,
        location=location,
        type=type_token,
        remark=" ".join(parts[3:]),
        line=line,
    )


def parse_directives(doc: Iterable[CommentLine]) -> tuple[list[AnyDirective], list[DirectiveSyntaxError]]:
    """Parse every line of a documented comment block.

    A malformed line does not stop the block: its error is collected and
    the remaining lines are still parsed.
    """
    directives: list[AnyDirective] = []
    errors: list[DirectiveSyntaxError] = []
    for comment in doc:
        try:
            directive = parse_directive(comment.text, comment.line)
        except DirectiveSyntaxError as e:
            errors.append(e)
            continue
        if directive is not None:
            directives.append(directive)
    return directives, errors
