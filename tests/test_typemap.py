import pytest

from runapi.parser.typemap import map_request_type, map_response_type


class TestRequestMapping:
    @pytest.mark.parametrize("token,expected", [
        ("string", "string"),
        ("int", "int"),
        ("uint16", "int"),
        ("byte", "int"),
        ("int64", "long"),
        ("uint64", "long"),
        ("float32", "float"),
        ("float64", "double"),
        ("bool", "boolean"),
        ("file", "file"),
        ("interface{}", "object"),
        ("any", "object"),
        ("[]string", "array"),
        ("*[]User", "array"),
        ("*string", "string"),
        ("user.Profile", "object"),
    ])
    def test_mapping(self, token, expected):
        assert map_request_type(token) == expected


class TestResponseMapping:
    @pytest.mark.parametrize("token,expected", [
        ("string", "string"),
        ("int32", "int"),
        ("int64", "long"),
        ("float32", "number"),
        ("float64", "number"),
        ("bool", "boolean"),
        ("file", "object"),
        ("[]int", "array"),
        ("map[string]any", "object"),
        ("*Profile", "object"),
    ])
    def test_mapping(self, token, expected):
        assert map_response_type(token) == expected

    def test_pure(self):
        first = [map_response_type(t) for t in ("float64", "int", "User")]
        map_request_type("float64")
        second = [map_response_type(t) for t in ("User", "int", "float64")]
        assert first == list(reversed(second))
