"""Exceptions raised while loading designs and generating Swagger documents.

Every error message names the offending document, endpoint, type or
scheme so a failure can be traced back to the design.
"""


class SwaggerGenError(Exception):
    """Base class for all swaggergen errors."""


class DesignLoadError(SwaggerGenError):
    """The design file could not be read or does not describe a design."""


class DesignError(SwaggerGenError):
    """The design graph is inconsistent and cannot be projected onto Swagger 2.0."""


class SecurityError(DesignError):
    """A security requirement references a scheme that was never declared."""

    def __init__(self, scheme: str, owner: str):
        self.scheme = scheme
        self.owner = owner
        super().__init__(f"{owner}: security scheme {scheme!r} is not declared")


class NamingCollisionError(SwaggerGenError):
    """No unique definition name could be derived for a schema."""


class RegistryFrozenError(SwaggerGenError):
    """A schema was registered after the document was serialized."""


class RenderError(SwaggerGenError):
    """A section template could not be rendered."""


class SwaggerValidationError(SwaggerGenError):
    """Rendered JSON does not parse as a Swagger 2.0 document."""
