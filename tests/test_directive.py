import pytest

from runapi.errors import DirectiveSyntaxError
from runapi.golang.source import CommentLine
from runapi.parser.directive import (
    BodyDirective,
    ParamDirective,
    ResponseBodyDirective,
    ResponseDirective,
    TextDirective,
    is_documented,
    parse_directive,
    parse_directives,
)


def _lines(*texts: str) -> list[CommentLine]:
    return [CommentLine(line=i, text=t) for i, t in enumerate(texts, start=1)]


class TestMarker:
    def test_marker_line(self):
        assert is_documented(_lines("Login", "runapi", "@title Login"))

    def test_marker_must_be_exact(self):
        assert not is_documented(_lines("Login uses runapi", "runapi:", "@title Login"))


class TestTextDirectives:
    def test_value_is_unsplit(self):
        d = parse_directive("@title  User   login  ")
        assert isinstance(d, TextDirective)
        assert d.key == "@title"
        assert d.value == "User   login"

    def test_tab_separator(self):
        d = parse_directive("@method\tpost")
        assert d.value == "post"

    def test_empty_value_skipped(self):
        assert parse_directive("@title") is None
        assert parse_directive("@catalog   ") is None

    def test_empty_remark_allowed(self):
        d = parse_directive("@remark")
        assert isinstance(d, TextDirective)
        assert d.value == ""

    def test_non_directive_and_unknown(self, log_capture):
        assert parse_directive("Login handles login") is None
        assert parse_directive("@deprecated since v2") is None
        assert any("@deprecated" in r["message"] for r in log_capture if r["level"] == "DEBUG")


class TestParam:
    def test_full_param(self):
        d = parse_directive("@param token header string true auth token", line=7)
        assert d == ParamDirective(
            key="@param", name="token", location="header", type="string",
            required=True, remark="auth token", line=7,
        )

    def test_without_remark(self):
        d = parse_directive("@param page query int false")
        assert d.required is False
        assert d.remark == ""

    def test_unknown_location_dropped(self):
        assert parse_directive("@param id path int true") is None

    def test_too_few_tokens(self):
        with pytest.raises(DirectiveSyntaxError) as exc:
            parse_directive("@param token header string", line=3)
        assert exc.value.line == 3

    def test_bad_required_flag(self):
        with pytest.raises(DirectiveSyntaxError) as exc:
            parse_directive("@param token header string yes", line=5)
        assert exc.value.line == 5
        assert exc.value.column == len("@param token header string ") + 1


class TestResponse:
    def test_response_row(self):
        d = parse_directive("@response X-Total header int total count")
        assert isinstance(d, ResponseDirective)
        assert (d.name, d.location, d.type, d.remark) == ("X-Total", "header", "int", "total count")

    def test_other_location_dropped(self):
        assert parse_directive("@response id cookie int") is None

    def test_short_response_is_reference(self):
        d = parse_directive("@response user.LoginResponse")
        assert isinstance(d, ResponseBodyDirective)
        assert d.ref == "user.LoginResponse"

    def test_response_body_and_body(self):
        assert parse_directive("@response_body Response{data=User}").ref == "Response{data=User}"
        assert isinstance(parse_directive("@body user.LoginRequest"), BodyDirective)


class TestParseDirectives:
    def test_errors_do_not_stop_the_block(self):
        directives, errors = parse_directives(_lines(
            "Login",
            "runapi",
            "@title Login",
            "@param token header string maybe",
            "@method post",
        ))
        assert [d.key for d in directives] == ["@title", "@method"]
        assert len(errors) == 1
        assert errors[0].line == 4
