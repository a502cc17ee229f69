"""Structural validation of rendered Swagger 2.0 JSON.

This is a sanity check on generator output, not full JSON Schema
validation: the document must parse, carry a non-empty ``swagger``
version and have the overall shape of a Swagger 2.0 object.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from swaggergen.errors import SwaggerValidationError


class _Extensible(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class SwaggerInfo(_Extensible):
    title: str
    version: str


class SwaggerParameter(_Extensible):
    name: str
    in_: str = Field(alias="in")
    required: bool = False

    @model_validator(mode="after")
    def _path_required(self) -> "SwaggerParameter":
        if self.in_ == "path" and not self.required:
            raise ValueError(f"path parameter {self.name!r} must be required")
        return self


class SwaggerResponse(_Extensible):
    description: str
    schema_: dict[str, Any] | None = Field(None, alias="schema")
    headers: dict[str, dict[str, Any]] = {}


class SwaggerOperation(_Extensible):
    operation_id: str | None = Field(None, alias="operationId")
    tags: list[str] = []
    parameters: list[SwaggerParameter] = []
    responses: dict[str, SwaggerResponse]
    security: list[dict[str, list[str]]] = []

    @field_validator("responses")
    @classmethod
    def _status_keys(cls, v: dict[str, SwaggerResponse]) -> dict[str, SwaggerResponse]:
        for key in v:
            if key != "default" and not (key.isdigit() and len(key) == 3):
                raise ValueError(f"response key must be a 3-digit status code or 'default', got {key!r}")
        return v


class SwaggerPathItem(_Extensible):
    get: SwaggerOperation | None = None
    put: SwaggerOperation | None = None
    post: SwaggerOperation | None = None
    delete: SwaggerOperation | None = None
    options: SwaggerOperation | None = None
    head: SwaggerOperation | None = None
    patch: SwaggerOperation | None = None


class SwaggerDocument(_Extensible):
    swagger: str
    info: SwaggerInfo
    host: str | None = None
    base_path: str | None = Field(None, alias="basePath")
    paths: dict[str, SwaggerPathItem]
    definitions: dict[str, dict[str, Any]] = {}
    security_definitions: dict[str, dict[str, Any]] = Field({}, alias="securityDefinitions")

    @field_validator("swagger")
    @classmethod
    def _version_set(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("swagger version must not be empty")
        return v

    @field_validator("paths")
    @classmethod
    def _path_keys(cls, v: dict[str, SwaggerPathItem]) -> dict[str, SwaggerPathItem]:
        for key in v:
            if not key.startswith("/"):
                raise ValueError(f"path must start with '/', got {key!r}")
        return v


def validate_swagger(content: bytes) -> SwaggerDocument:
    """Parse rendered JSON into a SwaggerDocument or raise SwaggerValidationError."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SwaggerValidationError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SwaggerValidationError("document is not a JSON object")
    if not data.get("swagger"):
        raise SwaggerValidationError("missing swagger version")
    try:
        return SwaggerDocument.model_validate(data)
    except ValidationError as e:
        raise SwaggerValidationError(str(e)) from e


def validate_files(files: dict[str, bytes]) -> dict[str, str]:
    """Validate every ``.json`` file; other formats are skipped.

    Returns dict of {filename: error_message} for files with errors.
    """
    errors = {}
    for filename, content in files.items():
        if not str(filename).endswith(".json"):
            continue
        try:
            validate_swagger(content)
        except SwaggerValidationError as e:
            errors[str(filename)] = f"SwaggerValidationError: {e}"
    return errors
