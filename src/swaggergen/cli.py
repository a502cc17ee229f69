"""CLI entry point for swaggergen."""

from pathlib import Path

import click

from swaggergen.config import get_settings
from swaggergen.design.loader import load_design
from swaggergen.errors import DesignLoadError, SwaggerValidationError
from swaggergen.generator.files import generate, write_files
from swaggergen.generator.validator import validate_swagger
from swaggergen.log import configure_logging


@click.group()
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
def main(debug: bool):
    """swaggergen: compile API designs into OpenAPI v2 (Swagger) documents."""
    configure_logging(debug or get_settings().debug)


@main.command()
@click.argument("design_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(file_okay=False, path_type=Path), help="Output directory for the generated documents.")
@click.option("--format", "formats", multiple=True, type=click.Choice(["json", "yaml"]), help="Output format; repeat for several.")
def gen(design_path: Path, output: Path | None, formats: tuple[str, ...]):
    """Generate Swagger documents from a design file."""
    settings = get_settings()
    if formats:
        settings = settings.model_copy(update={"formats": list(dict.fromkeys(formats))})
    output = output or settings.output_dir

    click.echo(f"Loading design {design_path}...")
    try:
        root = load_design(design_path)
    except DesignLoadError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Found {len(root.services)} services.")

    result = generate(root, settings)
    for path in write_files(result, output):
        click.echo(f"  Created {path}")

    if not result.ok:
        for name, error in result.errors.items():
            click.echo(f"  Failed {name}: {error}", err=True)
        raise SystemExit(1)
    click.echo(f"Generated {len(result.files)} files in {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(doc_path: Path):
    """Check that a JSON document parses as a Swagger 2.0 document."""
    try:
        doc = validate_swagger(doc_path.read_bytes())
    except SwaggerValidationError as e:
        raise click.ClickException(f"{doc_path}: {e}") from e
    click.echo(f"{doc_path}: valid Swagger {doc.swagger} ({len(doc.paths)} paths)")
