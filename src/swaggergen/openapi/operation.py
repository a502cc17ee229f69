"""Operation builder: one Swagger operation per endpoint route."""

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

import structlog

from swaggergen.design.base import (
    DEFAULT_VIEW,
    Attribute,
    DesignRoot,
    Endpoint,
    ErrorDef,
    FileServer,
    Response as ResponseDef,
    Service,
    UserType,
    Validation,
)
from swaggergen.errors import DesignError
from swaggergen.openapi.builder import BuildContext, build, build_object, build_type, camelize
from swaggergen.openapi.extensions import merge
from swaggergen.openapi.paths import Parameter, join_paths, map_parameter, map_path, strip_base_path
from swaggergen.openapi.registry import DefinitionRegistry
from swaggergen.openapi.schema import FileSchema, RefSchema, ScalarSchema, Schema, compact
from swaggergen.openapi.security import SecurityMapper, SecurityRequirement, effective_requirements

log = structlog.get_logger(__name__)

ERROR_TYPE_NAME = "ErrorResult"

# body of error responses whose error declares no type
ERROR_RESULT = UserType(
    name=ERROR_TYPE_NAME,
    description="Error response result type",
    attribute=Attribute(
        type="object",
        fields={
            "name": Attribute(type="string", description="Name is the name of this class of errors."),
            "id": Attribute(type="string", description="ID is a unique identifier for this particular occurrence of the problem."),
            "message": Attribute(type="string", description="Message is a human-readable explanation specific to this occurrence of the problem."),
            "temporary": Attribute(type="boolean", description="Is the error temporary?"),
            "timeout": Attribute(type="boolean", description="Is the error a timeout?"),
            "fault": Attribute(type="boolean", description="Is the error a server-side fault?"),
        },
        validation=Validation(required=["name", "id", "message", "temporary", "timeout", "fault"]),
    ),
)


def reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Response"


@dataclass
class Response:
    description: str
    schema: Schema | None = None
    headers: dict[str, Schema] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        headers = {}
        for name, schema in self.headers.items():
            header = schema.to_dict()
            header.pop("example", None)
            header.setdefault("type", "string")
            headers[name] = header
        data = compact(
            {
                "description": self.description,
                "schema": self.schema.to_dict() if self.schema is not None else None,
                "headers": headers,
            },
            keep=("description",),
        )
        data.update(self.extensions)
        return data


@dataclass
class Operation:
    operation_id: str
    tags: list[str] = field(default_factory=list)
    summary: str = ""
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    responses: dict[str, Response] = field(default_factory=dict)
    consumes: list[str] = field(default_factory=list)
    produces: list[str] = field(default_factory=list)
    security: list[SecurityRequirement] = field(default_factory=list)
    deprecated: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def request_body(self) -> Schema | None:
        for param in self.parameters:
            if param.location == "body":
                return param.schema
        return None

    def to_dict(self) -> dict[str, Any]:
        data = compact(
            {
                "tags": self.tags,
                "summary": self.summary or None,
                "description": self.description or None,
                "operationId": self.operation_id,
                "consumes": self.consumes,
                "produces": self.produces,
                "parameters": [p.to_dict() for p in self.parameters],
                "responses": {code: self.responses[code].to_dict() for code in sorted(self.responses)},
                "deprecated": True if self.deprecated else None,
                "security": [req.to_dict() for req in self.security],
            },
            keep=("responses",),
        )
        data.update(self.extensions)
        return data


@dataclass
class RoutedOperation:
    """An operation with the path template and verb it is served under."""

    path: str
    method: str
    operation: Operation
    path_extensions: dict[str, Any] = field(default_factory=dict)


class OperationBuilder:
    """Builds the operations of one document against its registry and security definitions."""

    def __init__(
        self,
        root: DesignRoot,
        registry: DefinitionRegistry,
        security: SecurityMapper,
        base_path: str = "",
    ):
        self.root = root
        self.registry = registry
        self.security = security
        self.base_path = base_path
        self._in_progress = {}

    def build(self, service: Service, endpoint: Endpoint) -> list[RoutedOperation]:
        """One operation per route declared by ``endpoint``."""
        owner = f"{service.name}#{endpoint.name}"
        if not endpoint.routes:
            log.debug("endpoint_without_routes", endpoint=owner)
            return []

        hint = camelize(service.name) + camelize(endpoint.name)
        requirements = effective_requirements(endpoint.security, service.security, self.root.api.security)
        security = self.security.map_requirements(requirements, owner)

        routed = []
        for i, route in enumerate(endpoint.routes):
            template, wildcards = map_path(join_paths(service.path, route.path))
            operation_id = owner if len(endpoint.routes) == 1 else f"{owner}#{i + 1}"
            operation = Operation(
                operation_id=operation_id,
                tags=list(dict.fromkeys([service.name, *endpoint.tags])),
                summary=endpoint.name,
                description=endpoint.description,
                parameters=self._parameters(endpoint, wildcards, hint),
                responses=self._responses(service, endpoint, hint),
                consumes=list(endpoint.consumes),
                produces=list(endpoint.produces),
                security=security,
                deprecated=endpoint.deprecated,
                extensions=merge(None, endpoint.extensions),
            )
            routed.append(
                RoutedOperation(
                    path=strip_base_path(template, self.base_path),
                    method=route.method.lower(),
                    operation=operation,
                    path_extensions=merge(None, route.extensions),
                )
            )
        return routed

    def build_file_server(self, service: Service, files: FileServer) -> RoutedOperation:
        """A GET operation serving ``files.file_path``; wildcards become path parameters."""
        template, wildcards = map_path(join_paths(service.path, files.path))
        params = [Parameter(name, "path", True, ScalarSchema(type="string", description="Relative file path")) for name in wildcards]
        operation = Operation(
            operation_id=f"{service.name}#{files.path}",
            tags=[service.name],
            summary=f"Download {files.file_path}",
            description=files.description,
            parameters=params,
            responses={
                "200": Response("File downloaded", FileSchema()),
                "404": Response("File not found"),
            },
            extensions=merge(None, files.extensions),
        )
        return RoutedOperation(path=strip_base_path(template, self.base_path), method="get", operation=operation)

    def _ctx(self, name_hint: str, view: str | None = None) -> BuildContext:
        # every build in this document shares one recursion guard
        return BuildContext(
            root=self.root,
            registry=self.registry,
            view=view,
            name_hint=name_hint,
            in_progress=self._in_progress,
        )

    def _object_attribute(self, attr: Attribute | None) -> tuple[Attribute | None, UserType | None]:
        """The object attribute behind ``attr`` and its user type, if any."""
        if attr is None:
            return None, None
        if attr.type == "object":
            return attr, None
        ut = self.root.user_type(attr.type)
        if ut is not None and ut.is_object:
            return ut.attribute, ut
        return None, None

    def _parameters(self, endpoint: Endpoint, wildcards: list[str], hint: str) -> list[Parameter]:
        payload = endpoint.payload
        obj, payload_type = self._object_attribute(payload)
        ctx = self._ctx(hint)
        params: list[Parameter] = []

        if payload is not None and obj is None:
            return self._primitive_payload(endpoint, payload, wildcards, ctx)

        fields = obj.fields if obj is not None else {}
        required = obj.required if obj is not None else []
        bound: set[str] = set()

        for name in wildcards:
            attr = fields.get(name)
            if attr is None:
                log.debug("wildcard_without_field", endpoint=hint, wildcard=name)
                attr = Attribute(type="string")
            params.append(map_parameter(name, attr, "path", ctx))
            bound.add(name)

        for location, mapping in (("query", endpoint.query), ("header", endpoint.headers)):
            for field_name, wire_name in mapping.items():
                attr = fields.get(field_name)
                if attr is None:
                    raise DesignError(f"{hint}: {location} maps unknown payload field {field_name!r}")
                params.append(map_parameter(wire_name, attr, location, ctx, required=field_name in required))
                bound.add(field_name)

        body = self._request_body(endpoint, obj, payload_type, bound, hint)
        if body is not None:
            params.append(Parameter("body", "body", True, body))
        elif obj is not None:
            unbound = [name for name in fields if name not in bound]
            if unbound:
                log.debug("payload_fields_unbound", endpoint=hint, fields=unbound)
        return params

    def _primitive_payload(
        self, endpoint: Endpoint, payload: Attribute, wildcards: list[str], ctx: BuildContext
    ) -> list[Parameter]:
        """A non-object payload binds to the first wildcard, query, header or body, in that order."""
        params = [map_parameter(name, Attribute(type="string"), "path", ctx) for name in wildcards[1:]]
        if wildcards:
            params.insert(0, map_parameter(wildcards[0], payload, "path", ctx))
        elif endpoint.query:
            params.append(map_parameter(next(iter(endpoint.query.values())), payload, "query", ctx, required=True))
        elif endpoint.headers:
            params.append(map_parameter(next(iter(endpoint.headers.values())), payload, "header", ctx, required=True))
        elif endpoint.body:
            schema = build(payload, ctx.derive(name_hint=ctx.name_hint + "RequestBody"))
            params.append(Parameter("body", "body", True, schema))
        else:
            log.warning("payload_unbound", endpoint=ctx.name_hint, type=payload.type)
        return params

    def _request_body(
        self,
        endpoint: Endpoint,
        obj: Attribute | None,
        payload_type: UserType | None,
        bound: set[str],
        hint: str,
    ) -> Schema | None:
        if not endpoint.body or obj is None:
            return None
        ctx = self._ctx(hint + "RequestBody")
        if isinstance(endpoint.body, str):
            attr = obj.fields.get(endpoint.body)
            if attr is None:
                raise DesignError(f"{hint}: body maps unknown payload field {endpoint.body!r}")
            return build(attr, ctx)
        if not [name for name in obj.fields if name not in bound]:
            return None
        if not bound and payload_type is not None:
            return build_type(payload_type, ctx)
        schema = build_object(obj, ctx, exclude=tuple(bound))
        return RefSchema(self.registry.register(ctx.name_hint, schema))

    def _responses(self, service: Service, endpoint: Endpoint, hint: str) -> dict[str, Response]:
        owner = f"{service.name}#{endpoint.name}"
        declared = endpoint.responses or [ResponseDef(status=200 if endpoint.result else 204)]
        responses: dict[str, Response] = {}
        for decl in declared:
            schema, headers = self._response_body(endpoint.result, decl, hint)
            response = Response(
                description=decl.description or reason(decl.status),
                schema=schema,
                headers=headers,
                extensions=merge(None, decl.extensions),
            )
            _add_response(responses, decl.status, response, owner)

        for err in [*endpoint.errors, *service.errors]:
            _add_response(responses, err.status, self._error_response(err, hint), owner)
        return responses

    def _response_body(
        self, result: Attribute | None, decl: ResponseDef, hint: str
    ) -> tuple[Schema | None, dict[str, Schema]]:
        if result is None or not decl.body:
            return None, {}
        view = decl.view or result.view
        name_hint = hint + "ResponseBody"
        obj, result_type = self._object_attribute(result)

        if not decl.headers:
            if decl.view:
                result = result.model_copy(update={"view": decl.view})
            return build(result, self._ctx(name_hint, view)), {}

        if obj is None:
            raise DesignError(f"{hint}: response headers require an object result")
        only = None
        if result_type is not None:
            try:
                only = result_type.view_fields(view)
            except KeyError:
                raise DesignError(f"type {result_type.name!r} has no view {view!r}") from None
            if view and view != DEFAULT_VIEW:
                name_hint += camelize(view)

        ctx = self._ctx(name_hint)
        headers = {}
        for field_name, header_name in decl.headers.items():
            attr = obj.fields.get(field_name)
            if attr is None:
                raise DesignError(f"{hint}: response header maps unknown result field {field_name!r}")
            headers[header_name] = map_parameter(header_name, attr, "header", ctx).schema

        exposed = [name for name in obj.fields if only is None or name in only]
        if not [name for name in exposed if name not in decl.headers]:
            return None, headers
        schema = build_object(obj, ctx, only=only, exclude=tuple(decl.headers))
        return RefSchema(self.registry.register(name_hint, schema)), headers

    def _error_response(self, err: ErrorDef, hint: str) -> Response:
        ctx = self._ctx(hint + camelize(err.name) + "ResponseBody")
        if err.type is not None:
            schema = build(err.type, ctx)
        else:
            schema = build_type(self.root.user_type(ERROR_TYPE_NAME) or ERROR_RESULT, ctx)
        return Response(
            description=err.description or f"{reason(err.status)} ({err.name})",
            schema=schema,
            extensions=merge(None, err.extensions),
        )


def _add_response(responses: dict[str, Response], status: int, response: Response, owner: str) -> None:
    """Add ``response`` under ``status``, merging into a response already there.

    Descriptions are appended in declaration order; the first schema wins.
    """
    key = str(status)
    existing = responses.get(key)
    if existing is None:
        responses[key] = response
        return

    lines = existing.description.split("\n")
    if response.description and response.description not in lines:
        existing.description = "\n".join([*lines, response.description])
    if existing.schema is None:
        existing.schema = response.schema
    elif response.schema is not None and response.schema != existing.schema:
        log.warning("response_schema_conflict", endpoint=owner, status=key)
    for name, header in response.headers.items():
        existing.headers.setdefault(name, header)
    existing.extensions = merge(existing.extensions, response.extensions)
