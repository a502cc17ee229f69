"""Sections: the handoff between document assembly and rendering.

A section bundles a template source, the data bound into it, the helper
functions the template may call and the target file path. The bundled
renderer substitutes ``${helper}`` placeholders with ``helper(data)``.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import Any

import yaml

from swaggergen.config import Settings
from swaggergen.errors import RenderError
from swaggergen.generator.document import Document

SECTION_NAME = "openapi"

JSON_TEMPLATE = "${to_json}\n"
YAML_TEMPLATE = "${to_yaml}"


@dataclass
class Section:
    name: str
    source: str
    data: Any
    path: Path
    helpers: dict[str, Callable[[Any], str]] = field(default_factory=dict)


def helpers(settings: Settings) -> dict[str, Callable[[Any], str]]:
    """Serialization helpers available to section templates."""

    def to_json(data: Any) -> str:
        return json.dumps(data, indent=settings.json_indent, ensure_ascii=False)

    def to_yaml(data: Any) -> str:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

    return {"to_json": to_json, "to_yaml": to_yaml}


def section_for(doc: Document, settings: Settings) -> Section:
    source = JSON_TEMPLATE if doc.format == "json" else YAML_TEMPLATE
    return Section(
        name=SECTION_NAME,
        source=source,
        data=doc.spec,
        path=doc.path,
        helpers=helpers(settings),
    )


class _HelperValues(Mapping):
    """Calls a helper on the section data when the template asks for it."""

    def __init__(self, section: Section):
        self._section = section

    def __getitem__(self, key: str) -> str:
        return self._section.helpers[key](self._section.data)

    def __iter__(self):
        return iter(self._section.helpers)

    def __len__(self) -> int:
        return len(self._section.helpers)


def render(section: Section) -> bytes:
    """Render ``section`` to UTF-8 bytes."""
    try:
        text = Template(section.source).substitute(_HelperValues(section))
    except KeyError as e:
        raise RenderError(f"{section.path}: template uses unknown helper {e}") from e
    except (ValueError, TypeError, yaml.YAMLError) as e:
        raise RenderError(f"{section.path}: {e}") from e
    return text.encode("utf-8")
