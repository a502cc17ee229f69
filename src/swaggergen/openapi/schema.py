"""Swagger 2.0 schema variants.

A schema is exactly one of a reference, an object, an array or a scalar.
Each case is its own class so the active shape is fixed at construction.
Equality is structural and compares references by name only.
"""

from dataclasses import dataclass, field
from typing import Any, Union

REF_PREFIX = "#/definitions/"


def compact(data: dict[str, Any], keep: tuple[str, ...] = ()) -> dict[str, Any]:
    """Drop unset (None) and empty collection values, keeping falsy scalars."""
    return {
        k: v
        for k, v in data.items()
        if k in keep or (v is not None and not (isinstance(v, (list, dict)) and not v))
    }


@dataclass(kw_only=True)
class _SchemaBase:
    description: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    def _finish(self, data: dict[str, Any], keep: tuple[str, ...] = ()) -> dict[str, Any]:
        out = compact(data, keep)
        out.update(self.extensions)
        return out


@dataclass
class RefSchema(_SchemaBase):
    """A reference to a named definition."""

    name: str

    @property
    def ref(self) -> str:
        return REF_PREFIX + self.name

    def to_dict(self) -> dict[str, Any]:
        # siblings of $ref are ignored by Swagger 2.0 tooling
        return {"$ref": self.ref}


@dataclass
class ScalarSchema(_SchemaBase):
    """A primitive value. ``type`` is None for values of any type."""

    type: str | None = None
    format: str | None = None
    enum: list[Any] | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    min_length: int | None = None
    max_length: int | None = None
    default: Any = None
    example: Any = None

    def to_dict(self) -> dict[str, Any]:
        return self._finish(
            {
                "type": self.type,
                "format": self.format,
                "description": self.description or None,
                "default": self.default,
                "example": self.example,
                "enum": self.enum,
                "pattern": self.pattern,
                "minimum": _number(self.minimum),
                "exclusiveMinimum": self.exclusive_minimum or None,
                "maximum": _number(self.maximum),
                "exclusiveMaximum": self.exclusive_maximum or None,
                "minLength": self.min_length,
                "maxLength": self.max_length,
            }
        )


@dataclass
class FileSchema(_SchemaBase):
    """The Swagger 2.0 ``file`` type, used by file server responses."""

    def to_dict(self) -> dict[str, Any]:
        return self._finish({"type": "file", "description": self.description or None})


@dataclass
class ArraySchema(_SchemaBase):
    items: "Schema"
    min_items: int | None = None
    max_items: int | None = None
    default: Any = None
    example: Any = None

    def to_dict(self) -> dict[str, Any]:
        return self._finish(
            {
                "type": "array",
                "description": self.description or None,
                "items": self.items.to_dict(),
                "default": self.default,
                "example": self.example,
                "minItems": self.min_items,
                "maxItems": self.max_items,
            },
            keep=("items",),
        )


@dataclass
class ObjectSchema(_SchemaBase):
    """An object with named properties, or a map when additional_properties is set."""

    properties: dict[str, "Schema"] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    additional_properties: "Schema | None" = None
    min_properties: int | None = None
    max_properties: int | None = None
    example: Any = None

    def to_dict(self) -> dict[str, Any]:
        props = {name: s.to_dict() for name, s in self.properties.items()}
        additional = None
        if self.additional_properties is not None:
            # an untyped map value renders as `true`
            additional = self.additional_properties.to_dict() or True
        return self._finish(
            {
                "type": "object",
                "description": self.description or None,
                "properties": props,
                "additionalProperties": additional,
                "example": self.example,
                "minProperties": self.min_properties,
                "maxProperties": self.max_properties,
                "required": self.required,
            }
        )


Schema = Union[RefSchema, ObjectSchema, ArraySchema, ScalarSchema, FileSchema]


def _number(value: int | float | None) -> int | float | None:
    """Render whole bounds as integers so ``minimum: 1`` does not become ``1.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def collect_refs(data: Any) -> set[str]:
    """Definition names referenced anywhere in a rendered (dict) document fragment."""
    refs: set[str] = set()
    if isinstance(data, dict):
        ref = data.get("$ref")
        if isinstance(ref, str) and ref.startswith(REF_PREFIX):
            refs.add(ref[len(REF_PREFIX) :])
        for value in data.values():
            refs |= collect_refs(value)
    elif isinstance(data, list):
        for value in data:
            refs |= collect_refs(value)
    return refs
