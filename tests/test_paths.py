import pytest

from swaggergen.design.base import Attribute, DesignRoot
from swaggergen.errors import DesignError
from swaggergen.openapi.builder import BuildContext
from swaggergen.openapi.paths import Parameter, join_paths, map_parameter, map_path, strip_base_path
from swaggergen.openapi.registry import DefinitionRegistry
from swaggergen.openapi.schema import ArraySchema, ScalarSchema


def _ctx() -> BuildContext:
    return BuildContext(root=DesignRoot(), registry=DefinitionRegistry(), name_hint="SvcEp")


class TestMapPath:
    def test_plain_path(self):
        assert map_path("/items") == ("/items", [])

    def test_braced_wildcard(self):
        assert map_path("/items/{id}") == ("/items/{id}", ["id"])

    def test_catch_all_wildcard(self):
        assert map_path("/files/{*filepath}") == ("/files/{filepath}", ["filepath"])

    def test_colon_and_star_segments(self):
        assert map_path("/users/:user_id/files/*path") == ("/users/{user_id}/files/{path}", ["user_id", "path"])

    def test_wildcard_inside_segment(self):
        assert map_path("/reports/{id}.json") == ("/reports/{id}.json", ["id"])

    def test_spaces_are_escaped(self):
        assert map_path("/path with spaces/{id}") == ("/path%20with%20spaces/{id}", ["id"])

    def test_reserved_characters(self):
        template, _ = map_path("/a b/c;d=e/f@g/h?i")
        assert template == "/a%20b/c;d=e/f@g/h%3Fi"

    def test_existing_escapes_are_kept(self):
        assert map_path("/a%20b")[0] == "/a%20b"

    def test_normalization(self):
        assert map_path("//items//")[0] == "/items"
        assert map_path("")[0] == "/"


class TestJoinAndStrip:
    def test_join(self):
        assert join_paths("/svc", "/items") == "/svc/items"
        assert join_paths("", "/items") == "/items"
        assert join_paths("/svc/", "/") == "/svc"

    def test_strip_base_path(self):
        assert strip_base_path("/api/items", "/api") == "/items"
        assert strip_base_path("/api", "/api") == "/"
        assert strip_base_path("/apiary", "/api") == "/apiary"
        assert strip_base_path("/items", "") == "/items"


class TestMapParameter:
    def test_path_parameter_always_required(self):
        param = map_parameter("id", Attribute(type="int"), "path", _ctx(), required=False)
        assert param.required is True

    def test_query_parameter_optional(self):
        param = map_parameter("limit", Attribute(type="int32"), "query", _ctx())
        assert param.required is False
        assert param.to_dict() == {
            "name": "limit",
            "in": "query",
            "required": False,
            "type": "integer",
            "format": "int32",
        }

    def test_object_parameter_rejected(self):
        attr = Attribute.model_validate({"type": "object", "fields": {"a": "string"}})
        with pytest.raises(DesignError, match="query parameter 'filter'"):
            map_parameter("filter", attr, "query", _ctx())

    def test_array_of_objects_rejected(self):
        attr = Attribute.model_validate({"type": "array", "elem": {"type": "object", "fields": {"a": "string"}}})
        with pytest.raises(DesignError):
            map_parameter("ids", attr, "header", _ctx())

    def test_query_array_uses_multi(self):
        param = map_parameter("tags", Attribute.model_validate({"type": "array", "elem": "string"}), "query", _ctx())
        data = param.to_dict()
        assert data["type"] == "array"
        assert data["items"] == {"type": "string"}
        assert data["collectionFormat"] == "multi"

    def test_description_moves_to_parameter(self):
        param = map_parameter("q", Attribute(type="string", description="Search text", example="cat"), "query", _ctx())
        data = param.to_dict()
        assert data["description"] == "Search text"
        assert "example" not in data

    def test_untyped_parameter_defaults_to_string(self):
        data = map_parameter("x", Attribute(type="any"), "header", _ctx()).to_dict()
        assert data["type"] == "string"


class TestParameter:
    def test_path_invariant_enforced_on_construction(self):
        assert Parameter("id", "path", False, ScalarSchema(type="string")).required is True

    def test_body_parameter_keeps_schema(self):
        param = Parameter("body", "body", True, ArraySchema(items=ScalarSchema(type="string")))
        assert param.to_dict() == {
            "name": "body",
            "in": "body",
            "required": True,
            "schema": {"type": "array", "items": {"type": "string"}},
        }
