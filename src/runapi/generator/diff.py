"""Compare two document snapshots by endpoint identity."""

from pydantic import BaseModel

from runapi.parser.base import ApiDoc, RequestParam, ResponseParam


class DocumentChange(BaseModel):
    old: ApiDoc
    new: ApiDoc


class DocumentDiff(BaseModel):
    added: list[ApiDoc] = []
    removed: list[ApiDoc] = []
    changed: list[DocumentChange] = []

    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    def summary(self) -> str:
        return f"added: {len(self.added)}, removed: {len(self.removed)}, changed: {len(self.changed)}"

    def to_json_dict(self) -> dict:
        return {
            "added": [doc.to_json_dict() for doc in self.added],
            "removed": [doc.to_json_dict() for doc in self.removed],
            "changed": [
                {"old": change.old.to_json_dict(), "new": change.new.to_json_dict()}
                for change in self.changed
            ],
        }


def doc_key(doc: ApiDoc) -> str:
    """Endpoint identity: ``method:router``, or ``method:url`` without a router."""
    return f"{doc.method}:{doc.route}"


def _request_rows(params: list[RequestParam]) -> list[tuple]:
    return [(p.name, p.type, p.require, p.remark) for p in params]


def _response_rows(params: list[ResponseParam]) -> list[tuple]:
    return [(p.name, p.type, p.required, p.remark) for p in params]


def docs_equal(a: ApiDoc, b: ApiDoc) -> bool:
    """Order-sensitive comparison: reordered parameters count as a change."""
    return (
        a.title == b.title
        and a.description == b.description
        and a.method == b.method
        and a.route == b.route
        and a.catalog == b.catalog
        and a.remark == b.remark
        and _request_rows(a.header) == _request_rows(b.header)
        and _request_rows(a.query) == _request_rows(b.query)
        and _request_rows(a.form_data) == _request_rows(b.form_data)
        and _request_rows(a.body) == _request_rows(b.body)
        and _response_rows(a.response_header) == _response_rows(b.response_header)
        and _response_rows(a.response_body) == _response_rows(b.response_body)
    )


def _index(docs: list[ApiDoc]) -> dict[str, ApiDoc]:
    # a repeated key keeps the last document but its first position
    indexed: dict[str, ApiDoc] = {}
    for doc in docs:
        indexed[doc_key(doc)] = doc
    return indexed


def compare_docs(old_docs: list[ApiDoc], new_docs: list[ApiDoc]) -> DocumentDiff:
    old = _index(old_docs)
    new = _index(new_docs)

    diff = DocumentDiff()
    for key, doc in new.items():
        if key not in old:
            diff.added.append(doc)
        elif not docs_equal(old[key], doc):
            diff.changed.append(DocumentChange(old=old[key], new=doc))
    diff.removed = [doc for key, doc in old.items() if key not in new]
    return diff
