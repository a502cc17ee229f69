import pytest

from swaggergen.design.base import Requirement, SecurityScheme
from swaggergen.errors import DesignError, SecurityError
from swaggergen.openapi.security import SecurityMapper, effective_requirements, map_scheme


def _scheme(**data) -> SecurityScheme:
    return SecurityScheme.model_validate(data)


OAUTH = {
    "name": "oauth",
    "kind": "oauth2",
    "scopes": {"read": "Read access", "write": "Write access"},
    "flows": [
        {"kind": "authorization_code", "authorization_url": "https://auth/authorize", "token_url": "https://auth/token"},
        {"kind": "client_credentials", "authorization_url": "https://auth/authorize", "token_url": "https://auth/token"},
    ],
}


class TestMapScheme:
    def test_basic(self):
        [(key, definition)] = map_scheme(_scheme(name="basic", kind="basic", description="Basic auth"))
        assert key == "basic"
        assert definition.to_dict() == {"type": "basic", "description": "Basic auth"}

    def test_api_key(self):
        [(key, definition)] = map_scheme(_scheme(name="key", kind="apikey", **{"in": "query"}, param_name="k"))
        assert definition.to_dict() == {"type": "apiKey", "name": "k", "in": "query"}

    def test_jwt_is_header_api_key(self):
        [(_, definition)] = map_scheme(_scheme(name="jwt", kind="jwt"))
        assert definition.to_dict() == {
            "type": "apiKey",
            "description": "Secures the endpoint by requiring a valid JWT token.",
            "name": "Authorization",
            "in": "header",
        }

    def test_oauth2_one_definition_per_flow(self):
        mapped = dict(map_scheme(_scheme(**OAUTH)))
        assert list(mapped) == ["oauth_accessCode", "oauth_application"]
        assert mapped["oauth_accessCode"].to_dict() == {
            "type": "oauth2",
            "flow": "accessCode",
            "authorizationUrl": "https://auth/authorize",
            "tokenUrl": "https://auth/token",
            "scopes": {"read": "Read access", "write": "Write access"},
        }
        # application flows never carry an authorization URL
        assert "authorizationUrl" not in mapped["oauth_application"].to_dict()

    def test_oauth2_single_flow_keeps_scheme_name(self):
        scheme = _scheme(name="oauth", kind="oauth2", flows=[{"kind": "implicit", "authorization_url": "https://a", "token_url": "https://t"}])
        [(key, definition)] = map_scheme(scheme)
        assert key == "oauth"
        data = definition.to_dict()
        assert data["flow"] == "implicit"
        assert "tokenUrl" not in data
        assert data["scopes"] == {}

    def test_oauth2_without_flows(self):
        with pytest.raises(DesignError, match="no flows"):
            map_scheme(_scheme(name="oauth", kind="oauth2"))

    def test_extensions(self):
        [(_, definition)] = map_scheme(_scheme(name="basic", kind="basic", extensions={"x-realm": "api", "realm": "no"}))
        assert definition.to_dict() == {"type": "basic", "x-realm": "api"}


class TestSecurityMapper:
    def _mapper(self):
        return SecurityMapper([_scheme(name="key", kind="apikey"), _scheme(**OAUTH)])

    def test_definitions_sorted(self):
        assert list(self._mapper().sorted_definitions()) == ["key", "oauth_accessCode", "oauth_application"]

    def test_api_key_requirement(self):
        reqs = self._mapper().map_requirements([Requirement(schemes=["key"], scopes=["ignored"])], "svc#ep")
        assert [r.to_dict() for r in reqs] == [{"key": []}]

    def test_oauth2_requirement_expands_per_flow(self):
        reqs = self._mapper().map_requirements([Requirement(schemes=["oauth"], scopes=["write"])], "svc#ep")
        assert [r.to_dict() for r in reqs] == [
            {"oauth_accessCode": ["write"]},
            {"oauth_application": ["write"]},
        ]

    def test_combined_requirement_is_product(self):
        reqs = self._mapper().map_requirements([Requirement(schemes=["key", "oauth"], scopes=["read"])], "svc#ep")
        assert [r.to_dict() for r in reqs] == [
            {"key": [], "oauth_accessCode": ["read"]},
            {"key": [], "oauth_application": ["read"]},
        ]

    def test_alternatives_are_kept_in_order(self):
        reqs = self._mapper().map_requirements(
            [Requirement(schemes=["key"]), Requirement(schemes=["oauth"])], "svc#ep"
        )
        assert [list(r.schemes) for r in reqs] == [["key"], ["oauth_accessCode"], ["oauth_application"]]

    def test_unknown_scheme(self):
        with pytest.raises(SecurityError, match="svc#ep: security scheme 'ghost' is not declared"):
            self._mapper().map_requirements([Requirement(schemes=["ghost"])], "svc#ep")

    def test_duplicate_definition_key(self):
        with pytest.raises(DesignError, match="declared twice"):
            SecurityMapper([_scheme(name="key", kind="apikey"), _scheme(name="key", kind="basic")])


class TestEffectiveRequirements:
    def test_most_specific_wins(self):
        endpoint = [Requirement(schemes=["a"])]
        service = [Requirement(schemes=["b"])]
        assert effective_requirements(endpoint, service, None) is endpoint
        assert effective_requirements(None, service, None) is service

    def test_empty_list_disables(self):
        assert effective_requirements([], [Requirement(schemes=["b"])]) == []

    def test_nothing_set(self):
        assert effective_requirements(None, None, None) == []
