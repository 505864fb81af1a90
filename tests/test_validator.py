import json

import pytest

from runapi.errors import DocumentValidationError
from runapi.generator.validator import render_docs_json, validate_doc, validate_docs
from runapi.parser.base import ApiDoc, RequestParam


def _doc(**kwargs) -> ApiDoc:
    defaults = {"title": "Login", "method": "post", "router": "/login",
                "file_path": "api/user.go", "function_name": "Login"}
    defaults.update(kwargs)
    return ApiDoc(**defaults)


class TestValidateDoc:
    def test_complete(self):
        assert validate_doc(_doc()) == []

    def test_url_instead_of_router(self):
        assert validate_doc(_doc(router="", url="{{host}}/login")) == []

    def test_missing_title(self):
        issues = validate_doc(_doc(title=""))
        assert len(issues) == 1
        assert "title is required" in issues[0]
        assert "api/user.go" in issues[0]
        assert "Login" in issues[0]
        assert "fix:" in issues[0]

    def test_everything_missing(self):
        issues = validate_doc(_doc(title="", method="", router=""))
        assert len(issues) == 3
        assert "method is required" in issues[1]
        assert "router or url is required" in issues[2]


class TestValidateDocs:
    def test_issues_in_document_order(self):
        docs = [_doc(title="", function_name="A"), _doc(), _doc(method="", function_name="C")]
        issues = validate_docs(docs)
        assert len(issues) == 2
        assert "function: A" in issues[0]
        assert "function: C" in issues[1]


class TestRenderDocsJson:
    def test_tab_indented_array(self):
        doc = _doc(form_data=[RequestParam(name="avatar", type="file", require="true")])
        content = render_docs_json([doc])
        assert content.startswith("[\n\t{")
        data = json.loads(content)
        assert data[0]["formData"][0]["name"] == "avatar"
        assert "file_path" not in data[0]
        assert "function_name" not in data[0]

    def test_empty_fields_left_out(self):
        data = json.loads(render_docs_json([_doc()]))
        assert data == [{"title": "Login", "method": "post", "router": "/login"}]

    def test_non_ascii_kept(self):
        assert "用户登录" in render_docs_json([_doc(title="用户登录")])

    def test_any_invalid_document_fails_the_batch(self):
        with pytest.raises(DocumentValidationError) as exc:
            render_docs_json([_doc(), _doc(router="", function_name="Logout")])
        assert len(exc.value.issues) == 1
        assert "Logout" in str(exc.value)
