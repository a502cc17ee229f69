"""Design file loader.

Reads a YAML or JSON design file into a DesignRoot. YAML is a superset of
JSON so both go through the same parser.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from swaggergen.design.base import DesignRoot
from swaggergen.errors import DesignLoadError


def load_design(file_path: Path) -> DesignRoot:
    """Parse a design file into a DesignRoot."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise DesignLoadError(f"{file_path}: {e}") from e
    return parse_design(text, source=str(file_path))


def parse_design(text: str, source: str = "<string>") -> DesignRoot:
    """Parse design text (YAML or JSON) into a DesignRoot."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DesignLoadError(f"{source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DesignLoadError(f"{source}: expected a mapping at the top level")

    try:
        return DesignRoot.model_validate(data)
    except ValidationError as e:
        raise DesignLoadError(f"{source}: {e}") from e
