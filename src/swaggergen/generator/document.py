"""Document assembler: design graph to complete Swagger 2.0 documents.

One document is produced for the API version and one for every other
version declared by a service. Each document is built with its own
definition registry, and paths, definitions and security definitions are
sorted so unchanged designs render byte-identical output.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import structlog

from swaggergen.config import OutputFormat, Settings, get_settings
from swaggergen.design.base import ApiInfo, DesignRoot, Service
from swaggergen.errors import DesignError, SwaggerGenError
from swaggergen.openapi.extensions import merge
from swaggergen.openapi.operation import Operation, OperationBuilder, RoutedOperation
from swaggergen.openapi.registry import DefinitionRegistry
from swaggergen.openapi.schema import collect_refs, compact
from swaggergen.openapi.security import SecurityMapper

log = structlog.get_logger(__name__)

BASE_DOCUMENT = "openapi"

# verbs in the order Swagger 2.0 lists them in a path item
VERBS = ("get", "put", "post", "delete", "options", "head", "patch")

_SWAGGER_SCHEMES = ("http", "https", "ws", "wss")
_UNSAFE_NAME = re.compile(r"[^0-9A-Za-z._-]+")
_VARIABLE = re.compile(r"\{([^{}]+)\}")


@dataclass
class Document:
    name: str
    version: str
    format: OutputFormat
    path: Path
    spec: dict[str, Any]


def assemble(
    root: DesignRoot,
    settings: Settings | None = None,
    onerror: Callable[[str, SwaggerGenError], None] | None = None,
) -> list[Document]:
    """All documents of ``root``, one per version and output format.

    A version whose document cannot be built is logged and left out; the
    other versions are still assembled. ``onerror`` is called with the
    document name and the error for each version left out.
    """
    settings = settings or get_settings()
    docs = []
    for name, version, services in document_versions(root):
        try:
            spec = build_swagger(root, version, services, settings)
        except SwaggerGenError as e:
            log.error("document_failed", document=name, error=str(e))
            if onerror is not None:
                onerror(name, e)
            continue
        docs.extend(documents_for(name, version, spec, settings))
    return docs


def document_versions(root: DesignRoot) -> list[tuple[str, str, list[Service]]]:
    """``(document name, version, services)`` for the base version then the others sorted."""
    base = root.api.version
    groups: dict[str, list[Service]] = {base: []}
    for svc in root.services:
        groups.setdefault(svc.version or base, []).append(svc)

    result = [(BASE_DOCUMENT, base, groups.pop(base))]
    for version in sorted(groups):
        result.append((f"{BASE_DOCUMENT}_{_UNSAFE_NAME.sub('_', version)}", version, groups[version]))
    return result


def documents_for(name: str, version: str, spec: dict[str, Any], settings: Settings) -> list[Document]:
    return [Document(name, version, fmt, Path(f"{name}.{fmt}"), spec) for fmt in settings.formats]


def build_swagger(root: DesignRoot, version: str, services: list[Service], settings: Settings) -> dict[str, Any]:
    """Build the Swagger 2.0 object for ``services`` with a fresh registry."""
    registry = DefinitionRegistry(settings.max_name_suffix)
    security = SecurityMapper(root.security_schemes)
    host, base_path, schemes = server_location(root.api)
    builder = OperationBuilder(root, registry, security, base_path)

    paths: dict[str, dict[str, Any]] = {}
    for svc in services:
        for endpoint in svc.endpoints:
            for routed in builder.build(svc, endpoint):
                _add_operation(paths, routed)
        for files in svc.files:
            _add_operation(paths, builder.build_file_server(svc, files))

    registry.freeze()
    spec = compact(
        {
            "swagger": settings.swagger_version,
            "info": _info(root.api, version),
            "host": host,
            "basePath": base_path,
            "schemes": schemes,
            "consumes": list(settings.consumes),
            "produces": list(settings.produces),
            "paths": {path: _path_item(paths[path]) for path in sorted(paths)},
            "definitions": {name: schema.to_dict() for name, schema in registry.definitions().items()},
            "securityDefinitions": {
                name: definition.to_dict() for name, definition in security.sorted_definitions().items()
            },
            "tags": [_tag(svc) for svc in services],
        },
        keep=("paths",),
    )
    spec.update(merge(None, root.api.extensions))

    missing = collect_refs(spec) - set(spec.get("definitions", {}))
    if missing:
        raise DesignError(f"document {version!r}: unresolved references {sorted(missing)}")
    log.info(
        "document_built",
        version=version,
        paths=len(spec["paths"]),
        definitions=len(registry),
    )
    return spec


def server_location(api: ApiInfo) -> tuple[str | None, str | None, list[str]]:
    """``host``, ``basePath`` and ``schemes`` from the first server host.

    Host variables are replaced by their default values.
    """
    for server in api.servers:
        for host in server.hosts:
            uris = [_expand(uri, host.variables, server.name) for uri in host.uris]
            if not uris:
                continue
            schemes = []
            for uri in uris:
                scheme = urlsplit(uri).scheme
                if scheme in _SWAGGER_SCHEMES and scheme not in schemes:
                    schemes.append(scheme)
            first = urlsplit(next((u for u in uris if urlsplit(u).scheme in _SWAGGER_SCHEMES), uris[0]))
            base_path = first.path.rstrip("/") or None
            return first.netloc or None, base_path, schemes
    return None, None, []


def _expand(uri: str, variables, server: str) -> str:
    def substitute(m: re.Match) -> str:
        var = variables.get(m.group(1))
        if var is None:
            raise DesignError(f"server {server!r}: host variable {m.group(1)!r} is not defined in {uri!r}")
        return var.default

    return _VARIABLE.sub(substitute, uri)


def _add_operation(paths: dict[str, dict[str, Any]], routed: RoutedOperation) -> None:
    item = paths.setdefault(routed.path, {"operations": {}, "extensions": {}})
    if routed.method not in VERBS:
        raise DesignError(f"{routed.operation.operation_id}: unsupported HTTP method {routed.method.upper()!r}")
    other = item["operations"].get(routed.method)
    if other is not None:
        raise DesignError(
            f"{routed.path}: {routed.method.upper()} is served by both "
            f"{other.operation_id} and {routed.operation.operation_id}"
        )
    item["operations"][routed.method] = routed.operation
    item["extensions"] = merge(item["extensions"], routed.path_extensions)


def _path_item(item: dict[str, Any]) -> dict[str, Any]:
    operations: dict[str, Operation] = item["operations"]
    data = {verb: operations[verb].to_dict() for verb in VERBS if verb in operations}
    data.update(item["extensions"])
    return data


def _info(api: ApiInfo, version: str) -> dict[str, Any]:
    return compact(
        {
            "title": api.title or api.name,
            "description": api.description or None,
            "termsOfService": api.terms_of_service,
            "contact": api.contact.model_dump(exclude_none=True) if api.contact else None,
            "license": api.license.model_dump(exclude_none=True) if api.license else None,
            "version": version,
        }
    )


def _tag(svc: Service) -> dict[str, Any]:
    data = compact({"name": svc.name, "description": svc.description or None})
    data.update(merge(None, svc.extensions))
    return data
