"""Design graph models.

The design graph is the already-validated description of an HTTP API that
the generator projects onto Swagger 2.0. Loaders build it from YAML or JSON;
the generator only ever reads it.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PRIMITIVES = (
    "boolean",
    "int",
    "int32",
    "int64",
    "uint",
    "uint32",
    "uint64",
    "float32",
    "float64",
    "string",
    "bytes",
    "any",
)
COMPOSITES = ("array", "map", "object")

DEFAULT_VIEW = "default"


class DesignModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


def _names_to_mapping(value: Any) -> Any:
    """Accept ``[a, b]`` as shorthand for ``{a: a, b: b}``."""
    if isinstance(value, list):
        return {name: name for name in value}
    return value


class Validation(DesignModel):
    """Validation rules attached to an attribute."""

    enum: list[Any] | None = None
    format: str | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None
    min_length: int | None = None  # string length, array items or map keys
    max_length: int | None = None
    required: list[str] = []


class Attribute(DesignModel):
    """A typed value: primitive, array, map, inline object or user type reference."""

    type: str
    description: str = ""
    elem: "Attribute | None" = None  # array element or map value
    key: "Attribute | None" = None  # map key
    fields: dict[str, "Attribute"] = {}
    validation: Validation | None = None
    default: Any = None
    example: Any = None
    view: str | None = None
    extensions: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"type": data}
        return data

    @property
    def is_primitive(self) -> bool:
        return self.type in PRIMITIVES

    @property
    def required(self) -> list[str]:
        return list(self.validation.required) if self.validation else []


class UserType(DesignModel):
    """A named type. Object user types become Swagger definitions."""

    name: str
    description: str = ""
    attribute: Attribute
    views: dict[str, list[str]] = {}
    extensions: dict[str, Any] = {}

    @property
    def is_object(self) -> bool:
        return self.attribute.type == "object"

    def view_fields(self, view: str | None) -> list[str] | None:
        """Field names exposed by ``view``, or None when every field is exposed."""
        view = view or DEFAULT_VIEW
        if view in self.views:
            return self.views[view]
        if view == DEFAULT_VIEW:
            return None
        raise KeyError(view)


class Contact(DesignModel):
    name: str | None = None
    email: str | None = None
    url: str | None = None


class License(DesignModel):
    name: str
    url: str | None = None


class Variable(DesignModel):
    default: str
    description: str = ""
    enum: list[str] = []


class Host(DesignModel):
    name: str = "default"
    uris: list[str] = []
    variables: dict[str, Variable] = {}


class Server(DesignModel):
    name: str
    description: str = ""
    hosts: list[Host] = []


class Requirement(DesignModel):
    """Schemes that must all be satisfied, with the OAuth2 scopes they need."""

    schemes: list[str]
    scopes: list[str] = []


class Flow(DesignModel):
    kind: Literal["authorization_code", "implicit", "password", "client_credentials"]
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None


class SecurityScheme(DesignModel):
    name: str
    kind: Literal["basic", "apikey", "jwt", "oauth2"]
    description: str = ""
    in_: Literal["header", "query"] = Field("header", alias="in")
    param_name: str = "Authorization"
    flows: list[Flow] = []
    scopes: dict[str, str] = {}
    extensions: dict[str, Any] = {}


class ApiInfo(DesignModel):
    name: str = "api"
    title: str = ""
    description: str = ""
    version: str = "0.0.1"
    terms_of_service: str | None = None
    contact: Contact | None = None
    license: License | None = None
    servers: list[Server] = []
    security: list[Requirement] | None = None
    extensions: dict[str, Any] = {}


class Route(DesignModel):
    method: str = "GET"
    path: str
    extensions: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _shorthand(cls, data: Any) -> Any:
        # "GET /items/{id}"
        if isinstance(data, str):
            method, _, path = data.strip().partition(" ")
            return {"method": method, "path": path.strip()}
        return data


class Response(DesignModel):
    status: int = 200
    description: str = ""
    view: str | None = None
    headers: dict[str, str] = {}  # result field -> header name
    body: bool = True
    extensions: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _headers_shorthand(cls, data: Any) -> Any:
        if isinstance(data, dict) and "headers" in data:
            data = {**data, "headers": _names_to_mapping(data["headers"])}
        return data


class ErrorDef(DesignModel):
    name: str
    status: int = 400
    description: str = ""
    type: Attribute | None = None
    extensions: dict[str, Any] = {}


class Endpoint(DesignModel):
    name: str
    description: str = ""
    payload: Attribute | None = None
    result: Attribute | None = None
    routes: list[Route] = []
    query: dict[str, str] = {}  # payload field -> query parameter name
    headers: dict[str, str] = {}  # payload field -> header name
    body: bool | str = False
    responses: list[Response] = []
    errors: list[ErrorDef] = []
    security: list[Requirement] | None = None
    consumes: list[str] = []
    produces: list[str] = []
    tags: list[str] = []
    deprecated: bool = False
    extensions: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _mapping_shorthand(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("query", "headers"):
                if key in data:
                    data[key] = _names_to_mapping(data[key])
        return data


class FileServer(DesignModel):
    """Static files served under a route, e.g. ``/static/{*path}``."""

    path: str
    file_path: str
    description: str = ""
    extensions: dict[str, Any] = {}


class Service(DesignModel):
    name: str
    description: str = ""
    version: str | None = None
    path: str = ""
    security: list[Requirement] | None = None
    errors: list[ErrorDef] = []
    endpoints: list[Endpoint] = []
    files: list[FileServer] = []
    extensions: dict[str, Any] = {}


class DesignRoot(DesignModel):
    """The root of the design graph."""

    api: ApiInfo = ApiInfo()
    types: dict[str, UserType] = {}
    services: list[Service] = []
    security_schemes: list[SecurityScheme] = []

    @model_validator(mode="before")
    @classmethod
    def _name_types(cls, data: Any) -> Any:
        # user types may be keyed by name without repeating it
        if isinstance(data, dict) and isinstance(data.get("types"), dict):
            types = {}
            for name, ut in data["types"].items():
                if isinstance(ut, dict) and "name" not in ut:
                    ut = {"name": name, **ut}
                types[name] = ut
            data = {**data, "types": types}
        return data

    def user_type(self, name: str) -> UserType | None:
        return self.types.get(name)


Attribute.model_rebuild()
