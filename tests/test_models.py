import pytest
from pydantic import ValidationError

from swaggergen.design.base import Attribute, DesignRoot, Endpoint, Response, Route, SecurityScheme, UserType


class TestAttribute:
    def test_string_shorthand(self):
        attr = Attribute.model_validate("int32")
        assert attr.type == "int32"
        assert attr.is_primitive is True
        assert attr.required == []

    def test_nested_shorthand(self):
        attr = Attribute.model_validate({"type": "array", "elem": "string"})
        assert attr.elem.type == "string"

    def test_required_from_validation(self):
        attr = Attribute.model_validate(
            {"type": "object", "fields": {"id": "int"}, "validation": {"required": ["id"]}}
        )
        assert attr.required == ["id"]
        assert attr.is_primitive is False

    def test_frozen(self):
        attr = Attribute(type="string")
        with pytest.raises(ValidationError):
            attr.type = "int"


class TestUserType:
    def _user(self, views=None):
        return UserType(
            name="User",
            attribute=Attribute.model_validate({"type": "object", "fields": {"id": "int", "name": "string"}}),
            views=views or {},
        )

    def test_default_view_exposes_all_fields(self):
        assert self._user().view_fields(None) is None
        assert self._user().view_fields("default") is None

    def test_named_view(self):
        ut = self._user({"tiny": ["id"]})
        assert ut.view_fields("tiny") == ["id"]

    def test_unknown_view(self):
        with pytest.raises(KeyError):
            self._user().view_fields("tiny")


class TestEndpoint:
    def test_route_shorthand(self):
        route = Route.model_validate("GET /items/{id}")
        assert route.method == "GET"
        assert route.path == "/items/{id}"

    def test_query_list_shorthand(self):
        ep = Endpoint.model_validate({"name": "list", "query": ["limit", "offset"]})
        assert ep.query == {"limit": "limit", "offset": "offset"}

    def test_response_headers_list_shorthand(self):
        resp = Response.model_validate({"status": 200, "headers": ["etag"]})
        assert resp.headers == {"etag": "etag"}

    def test_defaults(self):
        ep = Endpoint(name="ping")
        assert ep.body is False
        assert ep.security is None
        assert ep.routes == []

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            Endpoint.model_validate({"name": "x", "verb": "GET"})


class TestDesignRoot:
    def test_types_named_by_key(self):
        root = DesignRoot.model_validate({"types": {"Item": {"attribute": {"type": "object"}}}})
        assert root.user_type("Item").name == "Item"
        assert root.user_type("Missing") is None

    def test_empty_design(self):
        root = DesignRoot()
        assert root.services == []
        assert root.api.version == "0.0.1"

    def test_security_scheme_in_alias(self):
        scheme = SecurityScheme.model_validate({"name": "key", "kind": "apikey", "in": "query", "param_name": "k"})
        assert scheme.in_ == "query"
