"""Schema builder: design attributes to Swagger 2.0 schemas.

Object types are never inlined. They are registered in the definition
registry and every use site gets a reference, so each type has one
canonical definition. Arrays, maps and primitives are inlined.
"""

import re
from dataclasses import dataclass, field, replace

import structlog

from swaggergen.design.base import DEFAULT_VIEW, PRIMITIVES, Attribute, DesignRoot, UserType
from swaggergen.errors import DesignError
from swaggergen.openapi.extensions import merge
from swaggergen.openapi.registry import DefinitionRegistry
from swaggergen.openapi.schema import ArraySchema, ObjectSchema, RefSchema, ScalarSchema, Schema

log = structlog.get_logger(__name__)

# design primitive -> (swagger type, swagger format)
PRIMITIVE_TYPES: dict[str, tuple[str | None, str | None]] = {
    "boolean": ("boolean", None),
    "int": ("integer", "int64"),
    "int32": ("integer", "int32"),
    "int64": ("integer", "int64"),
    "uint": ("integer", "int64"),
    "uint32": ("integer", "int32"),
    "uint64": ("integer", "int64"),
    "float32": ("number", "float"),
    "float64": ("number", "double"),
    "string": ("string", None),
    "bytes": ("string", "byte"),
    "any": (None, None),
}

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def camelize(name: str) -> str:
    """``"extended view"`` -> ``"ExtendedView"``; ``"User"`` is unchanged."""
    return "".join(p[:1].upper() + p[1:] for p in _WORD_SPLIT.split(name) if p)


def definition_name(type_name: str, view: str | None = None) -> str:
    """Definition name of a user type rendered with ``view``."""
    base = camelize(type_name)
    if view and view != DEFAULT_VIEW:
        return base + camelize(view)
    return base


@dataclass
class _Pending:
    name: str
    recursive: bool = False


@dataclass
class BuildContext:
    """State threaded through one schema build.

    ``view`` applies to the user type being built at the top of the call,
    or to the elements of a top-level array or map that name no view of
    their own; fields of that type fall back to their own view. ``name_hint`` names
    anonymous objects. ``in_progress`` is the recursion guard and is shared
    by every context derived from the same root context.
    """

    root: DesignRoot
    registry: DefinitionRegistry
    view: str | None = None
    name_hint: str = "Object"
    in_progress: dict[tuple[str, str], _Pending] = field(default_factory=dict)

    def derive(self, **changes) -> "BuildContext":
        return replace(self, **changes)


def build(attr: Attribute, ctx: BuildContext) -> Schema:
    """Build the schema of ``attr``, registering any object types it uses."""
    if attr.type in PRIMITIVES:
        return _scalar(attr)
    if attr.type == "array":
        return _array(attr, ctx)
    if attr.type == "map":
        return _map(attr, ctx)
    if attr.type == "object":
        schema = build_object(attr, ctx.derive(view=None))
        return RefSchema(ctx.registry.register(ctx.name_hint, schema))

    ut = ctx.root.user_type(attr.type)
    if ut is None:
        raise DesignError(f"{ctx.name_hint}: unknown type {attr.type!r}")
    if not ut.is_object:
        # aliases of non-object types are inlined
        aliased = ut.attribute.model_copy(
            update={
                "description": attr.description or ut.attribute.description or ut.description,
                "extensions": merge(merge(ut.attribute.extensions, ut.extensions), attr.extensions),
            }
        )
        return build(aliased, ctx)
    if attr.extensions:
        log.debug("reference_extensions_ignored", type=ut.name, keys=sorted(attr.extensions))
    return build_type(ut, ctx.derive(view=attr.view or ctx.view))


def build_type(ut: UserType, ctx: BuildContext) -> RefSchema:
    """Register the object user type ``ut`` rendered with ``ctx.view``.

    A type that is already being built (directly or transitively recursive)
    gets a reference to its reserved name; the reservation is filled once
    the outermost build of the type returns.
    """
    view = ctx.view or DEFAULT_VIEW
    identity = (ut.name, view)
    registry = ctx.registry

    name = registry.name_for(identity)
    if name is not None:
        return RefSchema(name)
    pending = ctx.in_progress.get(identity)
    if pending is not None:
        pending.recursive = True
        return RefSchema(pending.name)

    try:
        fields = ut.view_fields(view)
    except KeyError:
        raise DesignError(f"type {ut.name!r} has no view {view!r}") from None

    proposed = definition_name(ut.name, view)
    pending = _Pending(registry.reserve(proposed))
    ctx.in_progress[identity] = pending
    try:
        schema = build_object(
            ut.attribute,
            ctx.derive(view=None, name_hint=proposed),
            only=fields,
            description=ut.description,
            extensions=merge(ut.attribute.extensions, ut.extensions),
        )
    finally:
        del ctx.in_progress[identity]

    if pending.recursive:
        registry.fill(pending.name, schema)
        final = pending.name
    else:
        registry.release(pending.name)
        final = registry.register(proposed, schema)
    registry.bind(identity, final)
    return RefSchema(final)


def build_object(
    attr: Attribute,
    ctx: BuildContext,
    only: list[str] | None = None,
    exclude: tuple[str, ...] = (),
    description: str = "",
    extensions: dict | None = None,
) -> ObjectSchema:
    """Build the object schema of ``attr`` without registering it.

    ``only`` restricts the properties to a view; ``exclude`` drops fields
    that are bound elsewhere (path, query, headers).
    """
    if only is not None:
        unknown = [name for name in only if name not in attr.fields]
        if unknown:
            raise DesignError(f"{ctx.name_hint}: view lists unknown fields {unknown}")

    props: dict[str, Schema] = {}
    for name, field_attr in attr.fields.items():
        if (only is not None and name not in only) or name in exclude:
            continue
        props[name] = build(field_attr, ctx.derive(view=None, name_hint=ctx.name_hint + camelize(name)))

    if extensions is None:
        extensions = merge(None, attr.extensions)
    return ObjectSchema(
        properties=props,
        required=[name for name in attr.required if name in props],
        description=description or attr.description,
        example=attr.example,
        extensions=extensions,
    )


def _scalar(attr: Attribute) -> ScalarSchema:
    stype, fmt = PRIMITIVE_TYPES[attr.type]
    schema = ScalarSchema(
        type=stype,
        format=fmt,
        description=attr.description,
        default=attr.default,
        example=attr.example,
        extensions=merge(None, attr.extensions),
    )
    v = attr.validation
    if v is None:
        return schema

    schema.enum = list(v.enum) if v.enum is not None else None
    schema.pattern = v.pattern
    if v.format:
        schema.format = v.format
    if v.exclusive_minimum is not None:
        schema.minimum, schema.exclusive_minimum = v.exclusive_minimum, True
    elif v.minimum is not None:
        schema.minimum = v.minimum
    if v.exclusive_maximum is not None:
        schema.maximum, schema.exclusive_maximum = v.exclusive_maximum, True
    elif v.maximum is not None:
        schema.maximum = v.maximum
    if stype == "string":
        schema.min_length = v.min_length
        schema.max_length = v.max_length
    return schema


def _array(attr: Attribute, ctx: BuildContext) -> ArraySchema:
    elem = attr.elem or Attribute(type="any")
    v = attr.validation
    return ArraySchema(
        items=build(elem, ctx.derive(name_hint=ctx.name_hint + "Item")),
        min_items=v.min_length if v else None,
        max_items=v.max_length if v else None,
        description=attr.description,
        default=attr.default,
        example=attr.example,
        extensions=merge(None, attr.extensions),
    )


def _map(attr: Attribute, ctx: BuildContext) -> ObjectSchema:
    elem = attr.elem or Attribute(type="any")
    v = attr.validation
    return ObjectSchema(
        additional_properties=build(elem, ctx.derive(name_hint=ctx.name_hint + "Value")),
        min_properties=v.min_length if v else None,
        max_properties=v.max_length if v else None,
        description=attr.description,
        example=attr.example,
        extensions=merge(None, attr.extensions),
    )
