import shutil

import pytest

from runapi.errors import UnresolvedReferenceError
from runapi.parser.composite import CompositeExpander, parse_composite
from runapi.parser.flatten import Flattener
from runapi.parser.registry import build_registry
from runapi.parser.resolver import Resolver


class TestParseComposite:
    def test_plain_reference(self):
        assert parse_composite("user.LoginResponse") is None

    def test_missing_closing_brace(self):
        assert parse_composite("Response{data=User") is None

    def test_pairs(self):
        ref = parse_composite("response.Response{data=user.Info, list = Item}")
        assert ref.base == "response.Response"
        assert ref.pairs == [("data", "user.Info"), ("list", "Item")]
        assert ref.malformed == []

    def test_malformed_pairs(self):
        ref = parse_composite("Response{data, =User, ok=User}")
        assert ref.pairs == [("ok", "User")]
        assert ref.malformed == ["data", "=User"]


@pytest.fixture
def setup(go_tree):
    root = go_tree({
        "api/models.go": '''
            package api

            type Response struct {
                Code int    `json:"code"` // status code
                Msg  string `json:"msg"`
                Data any    `json:"data,omitempty"` // payload
            }

            type UserInfo struct {
                Id   int    `json:"id"`
                Name string `json:"name"`
            }
        ''',
    })
    resolver = Resolver(build_registry([root]))
    expander = CompositeExpander(resolver, Flattener(resolver))
    return expander, root / "api/models.go"


def _rows(params):
    return [(p.name, p.type) for p in params]


@pytest.mark.skipif(shutil.which("go") is None, reason="the go toolchain is required to parse Go sources")
class TestExpand:
    def test_override_existing_field(self, setup):
        expander, file = setup
        params = expander.expand("Response{data=UserInfo}", file)
        assert _rows(params) == [
            ("code", "int"),
            ("msg", "string"),
            ("data", "object"),
            ("data.id", "int"),
            ("data.name", "string"),
        ]
        data = params[2]
        assert data.remark == "payload"
        assert data.required is False

    def test_exactly_one_object_leaf_for_overridden_field(self, setup):
        expander, file = setup
        params = expander.expand("Response{data=UserInfo}", file)
        assert [p.name for p in params].count("data") == 1
        assert len([p for p in params if p.name.startswith("data.")]) == 2

    def test_new_field_appended(self, setup):
        expander, file = setup
        params = expander.expand("Response{extra=UserInfo}", file)
        assert _rows(params)[3:] == [("extra", "object"), ("extra.id", "int"), ("extra.name", "string")]
        assert params[3].remark == "extra info"

    def test_unresolved_pair_skipped(self, setup, log_capture):
        expander, file = setup
        params = expander.expand("Response{data=Missing, more=UserInfo}", file, "GetInfo")
        assert [p.name for p in params] == ["code", "msg", "data", "more", "more.id", "more.name"]
        assert params[2].type == "object"
        warnings = [r["message"] for r in log_capture if r["level"] == "WARNING"]
        assert any("Missing" in m and "GetInfo" in m for m in warnings)

    def test_unresolved_base_seeds_nothing(self, setup, log_capture):
        expander, file = setup
        params = expander.expand("Envelope{data=UserInfo}", file)
        assert _rows(params) == [("data", "object"), ("data.id", "int"), ("data.name", "string")]
        assert any("Envelope" in r["message"] for r in log_capture if r["level"] == "WARNING")

    def test_plain_reference(self, setup):
        expander, file = setup
        assert [p.name for p in expander.expand("UserInfo", file)] == ["id", "name"]

    def test_unterminated_composite_is_plain_reference(self, setup):
        expander, file = setup
        with pytest.raises(UnresolvedReferenceError):
            expander.expand("Response{data=UserInfo", file)
