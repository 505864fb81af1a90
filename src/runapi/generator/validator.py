"""Validates assembled API documents before they are written."""

import json

from runapi.errors import DocumentValidationError
from runapi.parser.base import ApiDoc


def validate_doc(doc: ApiDoc) -> list[str]:
    """Check one document for its required fields.

    Returns one message per missing field, each naming the source file and
    handler function and telling how to fix it.
    """
    location = f"file: {doc.file_path}, function: {doc.function_name}"
    issues = []
    if not doc.title:
        issues.append(f"{location} - title is required\n   fix: add `@title <summary>` to the doc comment")
    if not doc.method:
        issues.append(f"{location} - method is required\n   fix: add `@method get|post|put|delete` to the doc comment")
    if not doc.router and not doc.url:
        issues.append(f"{location} - router or url is required\n   fix: add `@router /api/path` or `@url /api/path` to the doc comment")
    return issues


def validate_docs(docs: list[ApiDoc]) -> list[str]:
    """Check every document; returns all issues of the batch in document order."""
    issues = []
    for doc in docs:
        issues.extend(validate_doc(doc))
    return issues


def render_docs_json(docs: list[ApiDoc]) -> str:
    """Render documents as a tab-indented JSON array.

    Raises DocumentValidationError listing every issue when any document is
    incomplete; nothing is rendered in that case.
    """
    issues = validate_docs(docs)
    if issues:
        raise DocumentValidationError(issues)
    return json.dumps([doc.to_json_dict() for doc in docs], indent="\t", ensure_ascii=False)
