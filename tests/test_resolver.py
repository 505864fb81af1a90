import shutil
from pathlib import Path

import pytest

from runapi.errors import UnresolvedReferenceError
from runapi.parser.registry import build_registry
from runapi.parser.resolver import Resolver, strip_module

pytestmark = pytest.mark.skipif(shutil.which("go") is None, reason="the go toolchain is required to parse Go sources")

FIXTURES = Path(__file__).parent / "fixtures"
EXAMPLE = FIXTURES / "example"
USER_CONTROLLER = EXAMPLE / "internal/server/controller/user/user.go"
LOGIN_MODEL = EXAMPLE / "internal/server/model/user/login.go"


@pytest.fixture(scope="module")
def resolver():
    return Resolver(build_registry([EXAMPLE]))


class TestFixtureModule:
    def test_qualified_through_import(self, resolver):
        decl = resolver.resolve("user.LoginRequest", USER_CONTROLLER)
        assert decl.import_path == "example/internal/server/model/user"

    def test_pointer_prefix_ignored(self, resolver):
        assert resolver.resolve("*user.LoginRequest", USER_CONTROLLER).name == "LoginRequest"

    def test_unqualified_same_package(self, resolver):
        decl = resolver.resolve("LoginResponse", LOGIN_MODEL)
        assert decl.key == "user.LoginResponse"

    def test_own_package_qualifier(self, resolver):
        # login.go does not import itself, but user.User is its own package
        assert resolver.resolve("user.User", LOGIN_MODEL).key == "user.User"

    def test_alias_not_imported_uses_short_key(self, resolver):
        # user.go never imports the info model package
        decl = resolver.resolve("info.InfoResponse", USER_CONTROLLER)
        assert decl.import_path == "example/internal/server/model/info"

    def test_alias_not_imported_and_unknown(self, resolver):
        with pytest.raises(UnresolvedReferenceError) as exc:
            resolver.resolve("dto.Missing", USER_CONTROLLER)
        assert exc.value.token == "dto.Missing"

    def test_unknown_unqualified(self, resolver):
        with pytest.raises(UnresolvedReferenceError):
            resolver.resolve("Missing", USER_CONTROLLER)

    def test_not_a_type_name(self, resolver):
        with pytest.raises(UnresolvedReferenceError):
            resolver.resolve("[]user.User", USER_CONTROLLER)

    def test_file_outside_registry(self, resolver, tmp_path):
        with pytest.raises(UnresolvedReferenceError):
            resolver.resolve("user.User", tmp_path / "other.go")


class TestHeuristicTier:
    """Trees without go.mod: import paths are matched against scan-relative paths."""

    @pytest.fixture
    def tree(self, go_tree):
        return go_tree({
            "v2/models/item.go": "package models\n\ntype Item struct{ A int }\n",
            "app/v2/models/item.go": "package modelsv2\n\ntype Item struct{ B int }\n",
            "api/default.go": '''
                package api

                import "app/v2/models"
            ''',
            "api/aliased.go": '''
                package api

                import m "app/v2/models"
            ''',
            "api/stripped.go": '''
                package api

                import "shop/v2/models"
            ''',
        })

    def test_alias_equal_to_package_wins(self, tree):
        resolver = Resolver(build_registry([tree]))
        decl = resolver.resolve("models.Item", tree / "api/default.go")
        assert decl.package_path == "v2/models"

    def test_longest_path_without_alias_match(self, tree):
        resolver = Resolver(build_registry([tree]))
        decl = resolver.resolve("m.Item", tree / "api/aliased.go")
        assert decl.package_path == "app/v2/models"

    def test_module_prefix_stripped(self, tree):
        resolver = Resolver(build_registry([tree]))
        decl = resolver.resolve("models.Item", tree / "api/stripped.go")
        assert decl.package_path == "v2/models"

    def test_no_partial_segment_match(self, go_tree):
        root = go_tree({
            "xmodels/item.go": "package xmodels\n\ntype Item struct{ A int }\n",
            "api/a.go": 'package api\n\nimport "models"\n',
        })
        resolver = Resolver(build_registry([root]))
        with pytest.raises(UnresolvedReferenceError):
            resolver.resolve("models.Item", root / "api/a.go")


class TestResolveFieldType:
    def test_builtin_and_composite_types(self, resolver):
        owner = resolver.registry.get("user.LoginResponse")
        assert resolver.resolve_field_type(owner, "string") is None
        assert resolver.resolve_field_type(owner, "[]User") is None
        assert resolver.resolve_field_type(owner, "map[string]User") is None

    def test_same_package(self, resolver):
        owner = resolver.registry.get("user.LoginResponse")
        assert resolver.resolve_field_type(owner, "User").key == "user.User"

    def test_through_owner_imports(self, resolver):
        owner = resolver.registry.get("info.User")
        decl = resolver.resolve_field_type(owner, "user.User")
        assert decl.import_path == "example/internal/server/model/user"

    def test_external_type(self, resolver):
        owner = resolver.registry.get("info.User")
        assert resolver.resolve_field_type(owner, "time.Time") is None


def test_strip_module():
    assert strip_module("example/internal/model") == "internal/model"
    assert strip_module("fmt") == "fmt"
