from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from swaggergen.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _no_logging_setup():
    # structlog would keep a handle on CliRunner's temporary stderr
    with patch("swaggergen.cli.configure_logging"):
        yield


class TestCliGen:
    def test_gen_petstore(self, tmp_path):
        output_dir = tmp_path / "gen"
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(FIXTURES / "petstore.yaml"), "-o", str(output_dir)])

        assert result.exit_code == 0, result.output
        assert "Found 2 services." in result.output
        assert "Generated 4 files" in result.output
        assert (output_dir / "openapi.json").exists()
        assert (output_dir / "openapi.yaml").exists()
        assert (output_dir / "openapi_2.0.json").exists()

    def test_gen_single_format(self, tmp_path):
        output_dir = tmp_path / "gen"
        runner = CliRunner()
        result = runner.invoke(
            main, ["gen", str(FIXTURES / "petstore.yaml"), "-o", str(output_dir), "--format", "yaml"]
        )

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in output_dir.iterdir()) == ["openapi.yaml", "openapi_2.0.yaml"]

    def test_gen_invalid_design_file(self, tmp_path):
        design = tmp_path / "design.yaml"
        design.write_text("services: [unclosed\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(design), "-o", str(tmp_path / "gen")])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_gen_design_error_exits_nonzero(self, tmp_path):
        design = tmp_path / "design.yaml"
        design.write_text(
            "services:\n"
            "  - name: good\n"
            "    endpoints:\n"
            "      - {name: a, routes: ['GET /a']}\n"
            "  - name: bad\n"
            "    version: '2'\n"
            "    endpoints:\n"
            "      - {name: b, result: Ghost, routes: ['GET /b']}\n",
            encoding="utf-8",
        )
        output_dir = tmp_path / "gen"
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(design), "-o", str(output_dir)])

        assert result.exit_code == 1
        assert "Failed openapi_2" in result.output
        # the healthy document is still written
        assert (output_dir / "openapi.json").exists()

    def test_gen_missing_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 2


class TestCliValidate:
    def test_validate_generated_document(self, tmp_path):
        runner = CliRunner()
        runner.invoke(main, ["gen", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path), "--format", "json"])

        result = runner.invoke(main, ["validate", str(tmp_path / "openapi.json")])
        assert result.exit_code == 0, result.output
        assert "valid Swagger 2.0 (3 paths)" in result.output

    def test_validate_invalid_document(self, tmp_path):
        doc = tmp_path / "openapi.json"
        doc.write_text('{"info": {}}', encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["validate", str(doc)])

        assert result.exit_code == 1
        assert "missing swagger version" in result.output
