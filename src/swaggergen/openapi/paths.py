"""Route patterns to Swagger path templates, and payload fields to parameters."""

import re
from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import quote

from swaggergen.design.base import Attribute
from swaggergen.errors import DesignError
from swaggergen.openapi.builder import BuildContext, build, camelize
from swaggergen.openapi.schema import ArraySchema, Schema, ScalarSchema

Location = Literal["path", "query", "header", "body"]

# {name} or {*name} anywhere in a segment
_BRACED = re.compile(r"\{\*?([^{}/]+)\}")
# :name or *name as a whole segment
_PREFIXED = re.compile(r"^[:*]([^/]+)$")

# RFC 3986 pchar minus unreserved (always kept by quote); "%" keeps existing escapes
_SEGMENT_SAFE = "!$&'()*+,;=:@%"

# keys of a flattened schema that a non-body parameter may not carry
_NON_PARAMETER_KEYS = ("example", "title")


def map_path(pattern: str) -> tuple[str, list[str]]:
    """Rewrite a route pattern into a path template.

    Returns the template and the wildcard names in order of appearance.
    Literal text is percent-encoded; wildcards become ``{name}``.
    """
    names: list[str] = []
    segments = []
    for segment in pattern.split("/"):
        m = _PREFIXED.match(segment)
        if m:
            names.append(m.group(1))
            segments.append("{" + m.group(1) + "}")
            continue
        out = []
        pos = 0
        for m in _BRACED.finditer(segment):
            out.append(quote(segment[pos : m.start()], safe=_SEGMENT_SAFE))
            names.append(m.group(1))
            out.append("{" + m.group(1) + "}")
            pos = m.end()
        out.append(quote(segment[pos:], safe=_SEGMENT_SAFE))
        segments.append("".join(out))
    return normalize_path("/".join(segments)), names


def join_paths(*parts: str) -> str:
    return normalize_path("/".join(p for p in parts if p))


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and drop the trailing one (except for ``/``)."""
    return "/" + re.sub(r"/{2,}", "/", path).strip("/")


def strip_base_path(path: str, base_path: str) -> str:
    if not base_path or base_path == "/":
        return path
    if path == base_path:
        return "/"
    if path.startswith(base_path + "/"):
        return path[len(base_path) :]
    return path


@dataclass
class Parameter:
    """A Swagger 2.0 parameter. Path parameters are always required."""

    name: str
    location: Location
    required: bool
    schema: Schema
    description: str = ""

    def __post_init__(self):
        if self.location == "path":
            self.required = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "in": self.location}
        schema = self.schema.to_dict()
        description = schema.pop("description", None)
        description = self.description or description
        if description:
            data["description"] = description
        data["required"] = self.required
        if self.location == "body":
            data["schema"] = schema
        else:
            for key in _NON_PARAMETER_KEYS:
                schema.pop(key, None)
            schema.setdefault("type", "string")
            data.update(schema)
            if self.location == "query" and schema["type"] == "array":
                data["collectionFormat"] = "multi"
        return data


def map_parameter(
    name: str,
    attr: Attribute,
    location: Location,
    ctx: BuildContext,
    required: bool = False,
) -> Parameter:
    """Build the parameter ``name`` found in ``location`` from ``attr``."""
    schema = build(attr, ctx.derive(view=None, name_hint=ctx.name_hint + camelize(name)))
    if location != "body" and not _is_simple(schema):
        raise DesignError(
            f"{ctx.name_hint}: {location} parameter {name!r} must be a primitive or an array of primitives"
        )
    return Parameter(
        name=name,
        location=location,
        required=required,
        schema=schema,
    )


def _is_simple(schema: Schema) -> bool:
    if isinstance(schema, ScalarSchema):
        return True
    return isinstance(schema, ArraySchema) and isinstance(schema.items, ScalarSchema)
