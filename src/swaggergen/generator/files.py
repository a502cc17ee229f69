"""Generation pipeline: design graph to rendered, validated files."""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from swaggergen.config import Settings, get_settings
from swaggergen.design.base import DesignRoot
from swaggergen.errors import RenderError, SwaggerGenError
from swaggergen.generator.document import assemble
from swaggergen.generator.section import Section, render, section_for
from swaggergen.generator.validator import validate_files

log = structlog.get_logger(__name__)


@dataclass
class GenerationResult:
    """Rendered files keyed by relative path, and errors keyed by document or file."""

    files: dict[Path, bytes] = field(default_factory=dict)
    sections: list[Section] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def generate(root: DesignRoot, settings: Settings | None = None) -> GenerationResult:
    """Build, render and validate every document of ``root``.

    A failing document is reported in ``errors`` and left out of ``files``;
    the other documents are still generated.
    """
    settings = settings or get_settings()
    result = GenerationResult()

    def document_failed(name: str, error: SwaggerGenError) -> None:
        result.errors[name] = str(error)

    rendered: dict[Path, tuple[Section, bytes]] = {}
    for doc in assemble(root, settings, onerror=document_failed):
        section = section_for(doc, settings)
        try:
            rendered[doc.path] = section, render(section)
        except RenderError as e:
            log.error("file_failed", path=str(doc.path), error=str(e))
            result.errors[str(doc.path)] = f"{type(e).__name__}: {e}"

    invalid = validate_files({path: content for path, (_, content) in rendered.items()})
    for path, (section, content) in rendered.items():
        if str(path) in invalid:
            log.error("file_failed", path=str(path), error=invalid[str(path)])
            result.errors[str(path)] = invalid[str(path)]
            continue
        result.sections.append(section)
        result.files[path] = content

    return result


def write_files(result: GenerationResult, output_dir: Path) -> list[Path]:
    """Write the successfully generated files under ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for rel_path, content in result.files.items():
        path = output_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        written.append(path)
    return written
